"""
Test configuration and fixtures for the Flamex POS backend
"""

import os
from unittest.mock import patch

import pytest

from flamex_pos.config import Settings, reset_config
from flamex_pos.container import DependencyContainer
from flamex_pos.infrastructure.database.operations import DatabaseManager


@pytest.fixture(autouse=True)
def mock_env():
    """Mock environment variables for testing"""
    test_env = {
        "DATABASE_URL": "sqlite:///:memory:",
        "ENVIRONMENT": "test",
        "LOG_LEVEL": "DEBUG",
        "TIMEZONE": "Asia/Karachi",
        "BCRYPT_ROUNDS": "4",
        "DEFAULT_CASHIER_NAME": "Test Cashier",
    }

    reset_config()
    with patch.dict(os.environ, test_env, clear=True):
        yield test_env
    reset_config()


@pytest.fixture
def db_manager(mock_env):
    """Fresh in-memory database per test"""
    manager = DatabaseManager(config=Settings(database_url="sqlite:///:memory:"))
    manager.create_tables()
    yield manager
    manager.close()


@pytest.fixture
def container(db_manager):
    return DependencyContainer(session_factory=db_manager.get_session_factory())


@pytest.fixture
def order_service(container):
    return container.get_order_service()


@pytest.fixture
def reports_service(container):
    return container.get_reports_service()


@pytest.fixture
def order_repository(container):
    return container.get_order_repository()


@pytest.fixture
def menu_items(container):
    """Three available items priced 100, 200 and 50"""
    category = container.get_category_service().create_category({"name": "Mains"})
    service = container.get_menu_item_service()
    return [
        service.create_menu_item({"name": name, "price": price, "category_id": category["id"]})
        for name, price in (("Burger", 100), ("Pizza", 200), ("Fries", 50))
    ]


@pytest.fixture
def customer(container):
    return container.get_customer_service().create_customer(
        {"name": "Ali Khan", "phone": "03001234567", "address": "House 1, Gulberg, Lahore"}
    )


@pytest.fixture
def rider(container):
    return container.get_rider_service().create_rider(
        {"name": "Bilal", "phone": "03111111111", "cnic": "35202-1234567-1"}
    )
