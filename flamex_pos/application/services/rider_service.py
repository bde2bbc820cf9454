"""
Rider Service
"""

import logging
from typing import Any, Optional

from flamex_pos.application.dtos.order_dtos import parse_enum
from flamex_pos.config import get_config
from flamex_pos.infrastructure.repositories.sqlalchemy_rider_repository import (
    SQLAlchemyRiderRepository,
)
from flamex_pos.infrastructure.utilities.constants import PaginationSettings, RiderStatus
from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)

RIDER_FIELDS = ("name", "phone", "cnic", "address", "status")


class RiderService:
    """Delivery rider management"""

    def __init__(self, rider_repository: SQLAlchemyRiderRepository):
        self._rider_repository = rider_repository
        self._logger = logging.getLogger(self.__class__.__name__)

    def get_riders(
        self,
        page: int = 1,
        limit: Optional[int] = None,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        return self._rider_repository.find_riders(
            page=page or 1,
            limit=limit or get_config().default_page_size,
            search=search.strip() if search and search.strip() else None,
            status=parse_enum(RiderStatus, status, "status"),
        )

    def get_rider_by_id(self, rider_id: int) -> dict[str, Any]:
        rider = self._rider_repository.find_rider_by_id(rider_id)
        if not rider:
            raise NotFoundError("Rider not found", resource="rider")
        return rider

    def get_rider_by_phone(self, phone: str) -> dict[str, Any]:
        rider = self._rider_repository.find_rider_by_phone(phone.strip())
        if not rider:
            raise NotFoundError("Rider not found", resource="rider")
        return rider

    def get_active_riders(self) -> list[dict[str, Any]]:
        return self._rider_repository.find_active_riders()

    def create_rider(self, data: dict[str, Any]) -> dict[str, Any]:
        """Register a rider; new riders always start active"""
        data = {key: data[key] for key in RIDER_FIELDS if data.get(key) is not None}
        if not data.get("name"):
            raise ValidationError("Rider name is required", field="name")
        if not data.get("phone"):
            raise ValidationError("Phone number is required", field="phone")

        if self._rider_repository.find_rider_by_phone(data["phone"]):
            raise ConflictError("Rider with this phone number already exists", field="phone")
        if data.get("cnic") and self._rider_repository.find_rider_by_cnic(data["cnic"]):
            raise ConflictError("Rider with this CNIC already exists", field="cnic")

        data["status"] = RiderStatus.ACTIVE.value
        rider = self._rider_repository.create_rider(data)
        self._logger.info("✅ RIDER CREATED: ID=%s", rider["id"])
        return rider

    def update_rider(self, rider_id: int, data: dict[str, Any]) -> dict[str, Any]:
        existing = self.get_rider_by_id(rider_id)
        data = {key: data[key] for key in RIDER_FIELDS if key in data}
        if "status" in data:
            data["status"] = parse_enum(RiderStatus, data["status"], "status")

        if data.get("phone") and data["phone"] != existing["phone"]:
            other = self._rider_repository.find_rider_by_phone(data["phone"])
            if other and other["id"] != rider_id:
                raise ConflictError("Phone number already belongs to another rider", field="phone")

        if data.get("cnic") and data["cnic"] != existing["cnic"]:
            other = self._rider_repository.find_rider_by_cnic(data["cnic"])
            if other and other["id"] != rider_id:
                raise ConflictError("CNIC already belongs to another rider", field="cnic")

        updated = self._rider_repository.update_rider(rider_id, data)
        if updated is None:
            raise NotFoundError("Rider not found", resource="rider")
        return updated

    def delete_rider(self, rider_id: int) -> bool:
        self.get_rider_by_id(rider_id)
        if self._rider_repository.has_assigned_orders(rider_id):
            raise ValidationError("Cannot delete rider with assigned orders")
        return self._rider_repository.delete_rider(rider_id)

    def toggle_rider_status(self, rider_id: int) -> dict[str, Any]:
        rider = self.get_rider_by_id(rider_id)
        new_status = (
            RiderStatus.INACTIVE.value
            if rider["status"] == RiderStatus.ACTIVE.value
            else RiderStatus.ACTIVE.value
        )
        self._logger.info("🔄 RIDER STATUS: ID=%s -> %s", rider_id, new_status)
        return self._rider_repository.update_rider(rider_id, {"status": new_status})

    def get_rider_orders(
        self,
        rider_id: int,
        page: int = 1,
        limit: Optional[int] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        self.get_rider_by_id(rider_id)
        return self._rider_repository.get_rider_orders(
            rider_id,
            page=page or 1,
            limit=limit or PaginationSettings.CUSTOMER_ORDERS_PAGE_SIZE,
            status=status,
        )
