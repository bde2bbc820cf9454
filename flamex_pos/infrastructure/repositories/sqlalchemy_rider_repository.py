"""
SQLAlchemy Rider Repository
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from flamex_pos.infrastructure.database.models import Order, OrderItem, Rider
from flamex_pos.infrastructure.repositories.serializers import order_to_dict, rider_to_dict
from flamex_pos.infrastructure.repositories.session_handler import (
    SessionFactory,
    managed_session,
)
from flamex_pos.infrastructure.utilities.constants import (
    DeliveryStatus,
    OrderStatus,
    RiderStatus,
)
from flamex_pos.infrastructure.utilities.exceptions import ConflictError
from flamex_pos.infrastructure.utilities.helpers import pagination


class SQLAlchemyRiderRepository:
    """SQLAlchemy implementation of the rider repository"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    def _session(self):
        return managed_session(self._session_factory)

    def find_riders(
        self,
        page: int = 1,
        limit: int = 50,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> dict[str, Any]:
        conditions = []
        if status:
            conditions.append(Rider.status == status)
        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    Rider.name.ilike(pattern),
                    Rider.phone.ilike(pattern),
                    Rider.cnic.ilike(pattern),
                    Rider.address.ilike(pattern),
                )
            )
        with self._session() as session:
            total = session.scalar(select(func.count(Rider.id)).where(*conditions)) or 0
            riders = session.scalars(
                select(Rider)
                .where(*conditions)
                .order_by(Rider.created_at.desc(), Rider.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            return {
                "riders": [rider_to_dict(r) for r in riders],
                "pagination": pagination(total, page, limit),
            }

    def find_rider_by_id(self, rider_id: int) -> Optional[dict[str, Any]]:
        with self._session() as session:
            rider = session.get(Rider, rider_id)
            if not rider:
                return None
            result = rider_to_dict(rider)
            result["orders_count"] = session.scalar(
                select(func.count(Order.id)).where(Order.rider_id == rider_id)
            )
            return result

    def find_rider_by_phone(self, phone: str) -> Optional[dict[str, Any]]:
        with self._session() as session:
            rider = session.scalar(select(Rider).where(Rider.phone == phone))
            return rider_to_dict(rider) if rider else None

    def find_rider_by_cnic(self, cnic: str) -> Optional[dict[str, Any]]:
        with self._session() as session:
            rider = session.scalar(select(Rider).where(Rider.cnic == cnic))
            return rider_to_dict(rider) if rider else None

    def find_active_riders(self) -> list[dict[str, Any]]:
        with self._session() as session:
            riders = session.scalars(
                select(Rider).where(Rider.status == RiderStatus.ACTIVE.value).order_by(Rider.name)
            ).all()
            return [rider_to_dict(r) for r in riders]

    def create_rider(self, data: dict[str, Any]) -> dict[str, Any]:
        self._logger.info("🛵 CREATE RIDER: phone=%s", data.get("phone"))
        with self._session() as session:
            rider = Rider(**data)
            session.add(rider)
            self._flush_unique(session)
            return rider_to_dict(rider)

    def update_rider(self, rider_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        with self._session() as session:
            rider = session.get(Rider, rider_id)
            if not rider:
                return None
            for key, value in data.items():
                setattr(rider, key, value)
            self._flush_unique(session)
            return rider_to_dict(rider)

    @staticmethod
    def _flush_unique(session: Session) -> None:
        try:
            session.flush()
        except IntegrityError as e:
            if "cnic" in str(e.orig):
                raise ConflictError("Rider with this CNIC already exists", field="cnic") from e
            raise ConflictError(
                "Rider with this phone number already exists", field="phone"
            ) from e

    def delete_rider(self, rider_id: int) -> bool:
        with self._session() as session:
            rider = session.get(Rider, rider_id)
            if not rider:
                return False
            session.delete(rider)
        self._logger.info("🗑️ RIDER DELETED: ID=%s", rider_id)
        return True

    def has_assigned_orders(self, rider_id: int) -> bool:
        with self._session() as session:
            return bool(
                session.scalar(select(func.count(Order.id)).where(Order.rider_id == rider_id))
            )

    def get_rider_orders(
        self, rider_id: int, page: int, limit: int, status: Optional[str] = None
    ) -> dict[str, Any]:
        """Non-cancelled orders for a rider; ``status`` is delivered or pending"""
        conditions = [
            Order.rider_id == rider_id,
            Order.order_status != OrderStatus.CANCELLED.value,
        ]
        if status == DeliveryStatus.DELIVERED.value:
            conditions.append(Order.delivery_status == DeliveryStatus.DELIVERED.value)
        elif status == DeliveryStatus.PENDING.value:
            conditions.append(
                or_(
                    Order.delivery_status.is_(None),
                    Order.delivery_status != DeliveryStatus.DELIVERED.value,
                )
            )

        with self._session() as session:
            total = session.scalar(select(func.count(Order.id)).where(*conditions)) or 0
            orders = session.scalars(
                select(Order)
                .where(*conditions)
                .options(
                    selectinload(Order.customer),
                    selectinload(Order.order_items).selectinload(OrderItem.menu_item),
                )
                .order_by(Order.created_at.desc(), Order.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            return {
                "orders": [order_to_dict(o) for o in orders],
                "pagination": pagination(total, page, limit),
            }
