"""
Customer Service

Customer records, their saved delivery addresses and order history.
"""

import logging
from typing import Any, Optional

from flamex_pos.config import get_config
from flamex_pos.infrastructure.repositories.sqlalchemy_customer_repository import (
    SQLAlchemyCustomerRepository,
)
from flamex_pos.infrastructure.utilities.constants import PaginationSettings
from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)

CUSTOMER_FIELDS = ("name", "phone", "backup_phone", "address", "notes")


def _clean(data: dict[str, Any]) -> dict[str, Any]:
    cleaned = {key: data[key] for key in CUSTOMER_FIELDS if key in data}
    for key in ("name", "phone", "backup_phone"):
        if isinstance(cleaned.get(key), str):
            cleaned[key] = cleaned[key].strip()
    return cleaned


class CustomerService:
    """Customer management"""

    def __init__(self, customer_repository: SQLAlchemyCustomerRepository):
        self._customer_repository = customer_repository
        self._logger = logging.getLogger(self.__class__.__name__)

    def get_customers(
        self, page: int = 1, limit: Optional[int] = None, search: Optional[str] = None
    ) -> dict[str, Any]:
        return self._customer_repository.find_customers(
            page=page or 1,
            limit=limit or get_config().default_page_size,
            search=search.strip() if search and search.strip() else None,
        )

    def get_customer_by_id(self, customer_id: int) -> dict[str, Any]:
        customer = self._customer_repository.find_customer_by_id(customer_id)
        if not customer:
            raise NotFoundError("Customer not found", resource="customer")
        return customer

    def get_customer_by_phone(self, phone: str) -> dict[str, Any]:
        customer = self._customer_repository.find_customer_by_phone(phone.strip())
        if not customer:
            raise NotFoundError("Customer not found", resource="customer")
        return customer

    def create_customer(self, data: dict[str, Any]) -> dict[str, Any]:
        """Create a customer; the address also becomes their default saved address"""
        data = _clean(data)
        if not data.get("name"):
            raise ValidationError("Customer name is required", field="name")
        if not data.get("phone"):
            raise ValidationError("Phone number is required", field="phone")
        if self._customer_repository.find_customer_by_phone(data["phone"]):
            raise ConflictError("Customer with this phone number already exists", field="phone")

        customer = self._customer_repository.create_customer(
            data, default_address=data.get("address")
        )
        self._logger.info("✅ CUSTOMER CREATED: ID=%s", customer["id"])
        return customer

    def update_customer(self, customer_id: int, data: dict[str, Any]) -> dict[str, Any]:
        existing = self.get_customer_by_id(customer_id)
        data = _clean(data)

        if data.get("phone") and data["phone"] != existing["phone"]:
            other = self._customer_repository.find_customer_by_phone(data["phone"])
            if other and other["id"] != customer_id:
                raise ConflictError(
                    "Phone number already belongs to another customer", field="phone"
                )

        updated = self._customer_repository.update_customer(customer_id, data)
        if updated is None:
            raise NotFoundError("Customer not found", resource="customer")
        return updated

    def delete_customer(self, customer_id: int) -> bool:
        self.get_customer_by_id(customer_id)
        if self._customer_repository.has_orders(customer_id):
            raise ValidationError("Cannot delete customer with existing orders")
        return self._customer_repository.delete_customer(customer_id)

    def get_customer_orders(
        self, customer_id: int, page: int = 1, limit: Optional[int] = None
    ) -> dict[str, Any]:
        self.get_customer_by_id(customer_id)
        return self._customer_repository.get_customer_orders(
            customer_id,
            page=page or 1,
            limit=limit or PaginationSettings.CUSTOMER_ORDERS_PAGE_SIZE,
        )

    def search_customers(self, query: str) -> list[dict[str, Any]]:
        if not query or not query.strip():
            return []
        return self._customer_repository.search_customers(
            query.strip(), PaginationSettings.SEARCH_RESULT_LIMIT
        )

    def search_customers_by_phone(
        self, partial_phone: str, limit: int = PaginationSettings.PHONE_SEARCH_LIMIT
    ) -> list[dict[str, Any]]:
        if not partial_phone or not partial_phone.strip():
            return []
        return self._customer_repository.find_customers_by_partial_phone(
            partial_phone.strip(), limit
        )

    def find_or_create_customer_by_phone(
        self, phone: str, customer_data: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """Look a caller up by phone, registering them on first contact"""
        phone = phone.strip()
        customer = self._customer_repository.find_customer_by_phone(phone)
        if customer:
            return customer

        customer_data = customer_data or {}
        if not customer_data.get("name"):
            raise ValidationError(
                "Customer name is required when creating a new customer", field="name"
            )
        if not customer_data.get("address"):
            raise ValidationError(
                "Address is required when creating a new customer", field="address"
            )
        return self.create_customer({**customer_data, "phone": phone})

    # Addresses

    def get_customer_addresses(self, customer_id: int) -> list[dict[str, Any]]:
        self.get_customer_by_id(customer_id)
        return self._customer_repository.get_customer_addresses(customer_id)

    def create_customer_address(self, customer_id: int, data: dict[str, Any]) -> dict[str, Any]:
        self.get_customer_by_id(customer_id)
        address = (data.get("address") or "").strip()
        if not address:
            raise ValidationError("Address is required", field="address")
        return self._customer_repository.create_customer_address(
            customer_id,
            address,
            is_default=bool(data.get("is_default")),
            notes=data.get("notes"),
        )

    def update_customer_address(self, address_id: int, data: dict[str, Any]) -> dict[str, Any]:
        updated = self._customer_repository.update_customer_address(address_id, data)
        if updated is None:
            raise NotFoundError("Address not found", resource="address")
        return updated

    def delete_customer_address(self, address_id: int) -> bool:
        if not self._customer_repository.find_address_by_id(address_id):
            raise NotFoundError("Address not found", resource="address")
        return self._customer_repository.delete_customer_address(address_id)
