"""
Tests for the customer service
"""

from decimal import Decimal

import pytest

from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from tests.helpers import line


@pytest.fixture
def customer_service(container):
    return container.get_customer_service()


class TestCustomerService:
    """Test CustomerService"""

    def test_create_customer_adds_default_address(self, customer_service):
        customer = customer_service.create_customer(
            {"name": "  Ali Khan ", "phone": " 03001234567 ", "address": "House 1, Gulberg, Lahore"}
        )

        assert customer["name"] == "Ali Khan"
        assert customer["phone"] == "03001234567"
        assert customer["total_orders"] == 0
        assert customer["total_spent"] == Decimal("0")
        assert [a["is_default"] for a in customer["addresses"]] == [True]

    def test_create_requires_name_and_phone(self, customer_service):
        with pytest.raises(ValidationError, match="Customer name is required"):
            customer_service.create_customer({"phone": "0300"})
        with pytest.raises(ValidationError, match="Phone number is required"):
            customer_service.create_customer({"name": "Ali"})

    def test_duplicate_phone_conflicts(self, customer_service, customer):
        with pytest.raises(ConflictError, match="already exists"):
            customer_service.create_customer({"name": "Other", "phone": customer["phone"]})

    def test_update_to_taken_phone_conflicts(self, customer_service, customer):
        other = customer_service.create_customer({"name": "Sara", "phone": "03009999999"})

        with pytest.raises(ConflictError, match="already belongs to another customer"):
            customer_service.update_customer(other["id"], {"phone": customer["phone"]})

    def test_update_customer(self, customer_service, customer):
        updated = customer_service.update_customer(customer["id"], {"notes": "Prefers cash"})

        assert updated["notes"] == "Prefers cash"

    def test_get_missing_customer(self, customer_service):
        with pytest.raises(NotFoundError, match="Customer not found"):
            customer_service.get_customer_by_id(123)
        with pytest.raises(NotFoundError):
            customer_service.get_customer_by_phone("000")

    def test_delete_blocked_by_orders(self, customer_service, order_service, menu_items, customer):
        order_service.create_order(
            {"order_type": "delivery", "customer_id": customer["id"], "items": [line(menu_items[0])]}
        )

        with pytest.raises(ValidationError, match="existing orders"):
            customer_service.delete_customer(customer["id"])

    def test_delete_customer(self, customer_service, customer):
        assert customer_service.delete_customer(customer["id"]) is True
        with pytest.raises(NotFoundError):
            customer_service.get_customer_by_id(customer["id"])

    def test_list_and_search(self, customer_service, customer):
        customer_service.create_customer({"name": "Sara", "phone": "03009999999"})

        listing = customer_service.get_customers(search="ali")

        assert [c["id"] for c in listing["customers"]] == [customer["id"]]
        assert listing["pagination"]["total"] == 1
        assert customer_service.search_customers("  ") == []
        assert [c["name"] for c in customer_service.search_customers("gulberg")] == ["Ali Khan"]
        assert [c["name"] for c in customer_service.search_customers_by_phone("9999")] == ["Sara"]

    def test_customer_orders(self, customer_service, order_service, menu_items, customer):
        for _ in range(2):
            order_service.create_order(
                {"order_type": "delivery", "customer_id": customer["id"], "items": [line(menu_items[0])]}
            )

        history = customer_service.get_customer_orders(customer["id"], limit=1)

        assert len(history["orders"]) == 1
        assert history["pagination"]["total"] == 2

    def test_find_or_create_by_phone(self, customer_service, customer):
        assert customer_service.find_or_create_customer_by_phone(customer["phone"])["id"] == customer["id"]

        created = customer_service.find_or_create_customer_by_phone(
            "03112223334", {"name": "Hamza", "address": "Street 4, Johar Town, Lahore"}
        )
        assert created["name"] == "Hamza"

        with pytest.raises(ValidationError, match="Address is required"):
            customer_service.find_or_create_customer_by_phone("03445556667", {"name": "No Address"})


class TestCustomerAddresses:
    """Test saved delivery addresses"""

    def test_single_default_address(self, customer_service, customer):
        second = customer_service.create_customer_address(
            customer["id"], {"address": "Office 3, Mall Road, Lahore", "is_default": True}
        )

        addresses = customer_service.get_customer_addresses(customer["id"])

        assert [a["id"] for a in addresses if a["is_default"]] == [second["id"]]
        assert len(addresses) == 2

    def test_duplicate_address_rejected(self, customer_service, customer):
        with pytest.raises(ValidationError, match="Address already exists"):
            customer_service.create_customer_address(
                customer["id"], {"address": "  house 1, gulberg, lahore "}
            )

    def test_blank_address_rejected(self, customer_service, customer):
        with pytest.raises(ValidationError, match="Address is required"):
            customer_service.create_customer_address(customer["id"], {"address": " "})

    def test_update_address_to_default(self, customer_service, customer):
        second = customer_service.create_customer_address(
            customer["id"], {"address": "Office 3, Mall Road, Lahore"}
        )

        customer_service.update_customer_address(second["id"], {"is_default": True})

        defaults = [
            a["id"] for a in customer_service.get_customer_addresses(customer["id"]) if a["is_default"]
        ]
        assert defaults == [second["id"]]

    def test_missing_address(self, customer_service):
        with pytest.raises(NotFoundError, match="Address not found"):
            customer_service.update_customer_address(404, {"notes": "x"})
        with pytest.raises(NotFoundError, match="Address not found"):
            customer_service.delete_customer_address(404)

    def test_delete_address(self, customer_service, customer):
        address_id = customer["addresses"][0]["id"]

        assert customer_service.delete_customer_address(address_id) is True
        assert customer_service.get_customer_addresses(customer["id"]) == []
