"""
Dependency Injection Container

Builds the repositories and services once and hands out shared instances.
"""

import logging
from typing import Any, Dict, Optional

from flamex_pos.application.services.business_info_service import BusinessInfoService
from flamex_pos.application.services.category_service import CategoryService
from flamex_pos.application.services.customer_service import CustomerService
from flamex_pos.application.services.expense_service import ExpenseService
from flamex_pos.application.services.menu_item_service import MenuItemService
from flamex_pos.application.services.order_service import OrderService
from flamex_pos.application.services.reports_service import ReportsService
from flamex_pos.application.services.rider_service import RiderService
from flamex_pos.application.services.user_service import UserService
from flamex_pos.infrastructure.repositories.session_handler import SessionFactory
from flamex_pos.infrastructure.repositories.sqlalchemy_business_info_repository import (
    SQLAlchemyBusinessInfoRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_customer_repository import (
    SQLAlchemyCustomerRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_expense_repository import (
    SQLAlchemyExpenseRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_menu_repository import (
    SQLAlchemyCategoryRepository,
    SQLAlchemyMenuItemRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_order_repository import (
    SQLAlchemyOrderRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_rider_repository import (
    SQLAlchemyRiderRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_user_repository import (
    SQLAlchemyUserRepository,
)

logger = logging.getLogger(__name__)


class DependencyContainer:
    """
    Dependency injection container

    Manages the instantiation of:
    - Repositories (Infrastructure layer)
    - Services (Application layer)

    ``session_factory`` is handed to every repository; when omitted they use
    the global database manager.
    """

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._instances: Dict[str, Any] = {}
        self._session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)
        self._setup_dependencies()

    def _setup_dependencies(self):
        """Setup all dependencies and their relationships"""
        self._logger.info("Setting up dependency injection container...")
        self._register_repositories()
        self._register_services()
        self._logger.info("Dependency injection container setup complete")

    def _register_repositories(self):
        """Register repository implementations"""
        factory = self._session_factory
        self._instances["order_repository"] = SQLAlchemyOrderRepository(factory)
        self._instances["customer_repository"] = SQLAlchemyCustomerRepository(factory)
        self._instances["rider_repository"] = SQLAlchemyRiderRepository(factory)
        self._instances["menu_item_repository"] = SQLAlchemyMenuItemRepository(factory)
        self._instances["category_repository"] = SQLAlchemyCategoryRepository(factory)
        self._instances["expense_repository"] = SQLAlchemyExpenseRepository(factory)
        self._instances["user_repository"] = SQLAlchemyUserRepository(factory)
        self._instances["business_info_repository"] = SQLAlchemyBusinessInfoRepository(factory)

        self._logger.debug("Repositories registered successfully")

    def _register_services(self):
        """Register services with their repositories"""
        self._instances["order_service"] = OrderService(
            order_repository=self.get_order_repository(),
            customer_repository=self.get_customer_repository(),
            rider_repository=self.get_rider_repository(),
        )
        self._instances["reports_service"] = ReportsService(
            order_repository=self.get_order_repository(),
            customer_repository=self.get_customer_repository(),
            expense_repository=self.get_expense_repository(),
            menu_item_repository=self.get_menu_item_repository(),
        )
        self._instances["customer_service"] = CustomerService(self.get_customer_repository())
        self._instances["rider_service"] = RiderService(self.get_rider_repository())
        self._instances["menu_item_service"] = MenuItemService(
            menu_item_repository=self.get_menu_item_repository(),
            category_repository=self.get_category_repository(),
        )
        self._instances["category_service"] = CategoryService(self.get_category_repository())
        self._instances["expense_service"] = ExpenseService(self.get_expense_repository())
        self._instances["user_service"] = UserService(self.get_user_repository())
        self._instances["business_info_service"] = BusinessInfoService(
            self.get_business_info_repository()
        )

        self._logger.debug("Services registered successfully")

    # Repository getters
    def get_order_repository(self) -> SQLAlchemyOrderRepository:
        """Get order repository instance"""
        return self._instances["order_repository"]

    def get_customer_repository(self) -> SQLAlchemyCustomerRepository:
        """Get customer repository instance"""
        return self._instances["customer_repository"]

    def get_rider_repository(self) -> SQLAlchemyRiderRepository:
        return self._instances["rider_repository"]

    def get_menu_item_repository(self) -> SQLAlchemyMenuItemRepository:
        return self._instances["menu_item_repository"]

    def get_category_repository(self) -> SQLAlchemyCategoryRepository:
        return self._instances["category_repository"]

    def get_expense_repository(self) -> SQLAlchemyExpenseRepository:
        return self._instances["expense_repository"]

    def get_user_repository(self) -> SQLAlchemyUserRepository:
        return self._instances["user_repository"]

    def get_business_info_repository(self) -> SQLAlchemyBusinessInfoRepository:
        return self._instances["business_info_repository"]

    # Service getters
    def get_order_service(self) -> OrderService:
        """Get order service instance"""
        return self._instances["order_service"]

    def get_reports_service(self) -> ReportsService:
        """Get reports service instance"""
        return self._instances["reports_service"]

    def get_customer_service(self) -> CustomerService:
        return self._instances["customer_service"]

    def get_rider_service(self) -> RiderService:
        return self._instances["rider_service"]

    def get_menu_item_service(self) -> MenuItemService:
        return self._instances["menu_item_service"]

    def get_category_service(self) -> CategoryService:
        return self._instances["category_service"]

    def get_expense_service(self) -> ExpenseService:
        return self._instances["expense_service"]

    def get_user_service(self) -> UserService:
        return self._instances["user_service"]

    def get_business_info_service(self) -> BusinessInfoService:
        return self._instances["business_info_service"]

    def cleanup(self):
        """Drop every registered instance"""
        self._logger.info("Cleaning up dependency container...")
        self._instances.clear()


# Global container instance
_container: Optional[DependencyContainer] = None


def get_container() -> DependencyContainer:
    """Get the global dependency container instance"""
    global _container
    if _container is None:
        _container = DependencyContainer()
    return _container


def initialize_container(session_factory: Optional[SessionFactory] = None) -> DependencyContainer:
    """Replace the global container, optionally bound to a session factory"""
    global _container
    if _container:
        _container.cleanup()
    _container = DependencyContainer(session_factory=session_factory)
    return _container


def reset_container():
    """Reset the global container (useful for testing)"""
    global _container
    if _container:
        _container.cleanup()
    _container = None
