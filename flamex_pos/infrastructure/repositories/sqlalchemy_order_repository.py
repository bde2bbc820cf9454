"""
SQLAlchemy Order Repository

Owns the transactional order + items writes and the read-side aggregate
queries used by the order screens.
"""

import json
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from flamex_pos.infrastructure.database.models import (
    Customer,
    MenuItem,
    Order,
    OrderEditHistory,
    OrderItem,
    Rider,
)
from flamex_pos.infrastructure.repositories.serializers import (
    edit_history_to_dict,
    order_to_dict,
)
from flamex_pos.infrastructure.repositories.session_handler import (
    SessionFactory,
    managed_session,
)
from flamex_pos.infrastructure.utilities.constants import (
    DeliveryStatus,
    OrderStatus,
    OrderType,
    PaymentMethod,
    PaymentStatus,
)
from flamex_pos.infrastructure.utilities.date_utils import DateRange, local_now
from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    MenuItemsNotFoundError,
    TableOccupiedError,
)
from flamex_pos.infrastructure.utilities.helpers import (
    pagination,
    safe_average,
    to_money,
)

NOT_CANCELLED = Order.order_status != OrderStatus.CANCELLED.value

OPEN_TABLE_CONDITIONS = (
    Order.order_type == OrderType.DINE_IN.value,
    Order.payment_status == PaymentStatus.PENDING.value,
    NOT_CANCELLED,
)


def _order_load_options():
    return (
        selectinload(Order.order_items).selectinload(OrderItem.menu_item),
        selectinload(Order.customer),
        selectinload(Order.rider),
    )


def _items_to_json(items: Iterable[dict[str, Any]]) -> str:
    return json.dumps(
        [
            {key: float(value) if isinstance(value, Decimal) else value for key, value in item.items()}
            for item in items
        ]
    )


class SQLAlchemyOrderRepository:
    """SQLAlchemy implementation of the order repository"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    def _session(self):
        return managed_session(self._session_factory)

    # ------------------------------------------------------------------
    # Guards used inside write transactions
    # ------------------------------------------------------------------

    def next_order_number(self, session: Session, day: date) -> int:
        """Orders already numbered on ``day`` plus one"""
        count = session.scalar(
            select(func.count(Order.id)).where(Order.business_date == day)
        )
        return (count or 0) + 1

    def find_occupied_tables(self, session: Optional[Session] = None) -> list[dict[str, Any]]:
        """Latest open dine-in order per table"""
        if session is None:
            with self._session() as own_session:
                return self.find_occupied_tables(own_session)

        rows = session.execute(
            select(Order.table_number, Order.id, Order.order_number, Order.created_at)
            .where(*OPEN_TABLE_CONDITIONS, Order.table_number.is_not(None))
            .order_by(Order.created_at.desc(), Order.id.desc())
        ).all()

        tables: dict[int, dict[str, Any]] = {}
        for row in rows:
            if row.table_number not in tables:
                tables[row.table_number] = {
                    "table_number": row.table_number,
                    "id": row.id,
                    "order_number": row.order_number,
                    "created_at": row.created_at,
                }
        return list(tables.values())

    def find_available_menu_items(
        self, menu_item_ids: Iterable[int], session: Optional[Session] = None
    ) -> set[int]:
        """Ids among ``menu_item_ids`` that exist and are available"""
        ids = set(menu_item_ids)
        if not ids:
            return set()
        if session is None:
            with self._session() as own_session:
                return self.find_available_menu_items(ids, own_session)
        return set(
            session.scalars(
                select(MenuItem.id).where(MenuItem.id.in_(ids), MenuItem.available.is_(True))
            ).all()
        )

    def _ensure_table_free(self, session: Session, table_number: int) -> None:
        occupied = {t["table_number"] for t in self.find_occupied_tables(session)}
        if table_number in occupied:
            raise TableOccupiedError(table_number)

    def _ensure_menu_items(self, session: Session, items: list[dict[str, Any]]) -> None:
        requested = [item["menu_item_id"] for item in items]
        found = self.find_available_menu_items(requested, session)
        missing = [item_id for item_id in dict.fromkeys(requested) if item_id not in found]
        if missing:
            raise MenuItemsNotFoundError(missing)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_order_with_items(
        self, order_data: dict[str, Any], items: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Insert an order and its items in one transaction.

        The table check, menu item check and daily number all run inside the
        same transaction as the insert; the unique constraints on the orders
        table reject whatever a concurrent writer slips past them.
        """
        self._logger.info(
            "📝 CREATE ORDER: type=%s items=%s", order_data.get("order_type"), len(items)
        )
        table_number = order_data.get("table_number")

        with self._session() as session:
            if order_data.get("order_type") == OrderType.DINE_IN.value and table_number:
                self._ensure_table_free(session, table_number)
            self._ensure_menu_items(session, items)

            now = local_now()
            order = Order(
                **order_data,
                order_number=self.next_order_number(session, now.date()),
                business_date=now.date(),
                created_at=now,
                updated_at=now,
            )
            order.order_items = [
                OrderItem(
                    menu_item_id=item["menu_item_id"],
                    quantity=item["quantity"],
                    price=item["price"],
                    created_at=now,
                )
                for item in items
            ]
            session.add(order)
            self._flush_order(session, table_number)

            result = order_to_dict(order)

        self._logger.info(
            "✅ ORDER CREATED: #%s, ID=%s", result["order_number"], result["id"]
        )
        return result

    def _flush_order(self, session: Session, table_number: Optional[int]) -> None:
        try:
            session.flush()
        except IntegrityError as e:
            detail = str(e.orig)
            if table_number and ("table_number" in detail or "uq_orders_open_table" in detail):
                raise TableOccupiedError(table_number) from e
            if "order_number" in detail or "uq_orders_daily_number" in detail:
                raise ConflictError(
                    "Order number already taken by a concurrent order", field="order_number"
                ) from e
            raise

    def find_order_by_id(self, order_id: int) -> Optional[dict[str, Any]]:
        with self._session() as session:
            order = session.scalar(
                select(Order).where(Order.id == order_id).options(*_order_load_options())
            )
            if not order:
                self._logger.info("📭 ORDER NOT FOUND: ID %s", order_id)
                return None
            return order_to_dict(order)

    def update_order(self, order_id: int, fields: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Plain column update; returns the refreshed order or None"""
        with self._session() as session:
            order = session.get(Order, order_id)
            if not order:
                return None
            for key, value in fields.items():
                setattr(order, key, value)
            self._flush_order(session, order.table_number)
            result = order_to_dict(order)
        self._logger.info("🔄 ORDER UPDATED: ID=%s fields=%s", order_id, sorted(fields))
        return result

    def update_order_with_items(
        self,
        order_id: int,
        fields: dict[str, Any],
        items: Optional[list[dict[str, Any]]],
        history: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        """Edit history row, item replacement and field update in one transaction"""
        with self._session() as session:
            order = session.get(Order, order_id)
            if not order:
                return None

            session.add(
                OrderEditHistory(
                    order_id=order_id,
                    edited_by=history["edited_by"],
                    old_total_amount=history.get("old_total_amount"),
                    new_total_amount=history.get("new_total_amount"),
                    old_payment_method=history.get("old_payment_method"),
                    new_payment_method=history.get("new_payment_method"),
                    old_amount_taken=history.get("old_amount_taken"),
                    new_amount_taken=history.get("new_amount_taken"),
                    old_return_amount=history.get("old_return_amount"),
                    new_return_amount=history.get("new_return_amount"),
                    old_items=_items_to_json(history.get("old_items", [])),
                    new_items=_items_to_json(history.get("new_items", [])),
                    change_reason=history.get("change_reason"),
                    ip_address=history.get("ip_address"),
                    edited_at=local_now(),
                )
            )

            if items:
                order.order_items.clear()
                session.flush()
                now = local_now()
                order.order_items.extend(
                    OrderItem(
                        menu_item_id=item["menu_item_id"],
                        quantity=item["quantity"],
                        price=item["price"],
                        created_at=now,
                    )
                    for item in items
                )

            for key, value in fields.items():
                setattr(order, key, value)

            self._flush_order(session, order.table_number)
            result = order_to_dict(order)

        self._logger.info("✏️ ORDER EDITED: ID=%s items_replaced=%s", order_id, bool(items))
        return result

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def find_orders(self, filters: dict[str, Any]) -> dict[str, Any]:
        """Paginated order list, newest first"""
        page = filters.get("page") or 1
        limit = filters.get("limit") or 50

        conditions = []
        if filters.get("order_status"):
            conditions.append(Order.order_status == filters["order_status"])
        else:
            conditions.append(NOT_CANCELLED)
        for key in ("order_type", "payment_status", "delivery_status"):
            if filters.get(key):
                conditions.append(getattr(Order, key) == filters[key])
        if filters.get("start_date") and filters.get("end_date"):
            conditions.append(Order.created_at.between(filters["start_date"], filters["end_date"]))

        search = (filters.get("search") or "").strip()
        if search:
            pattern = f"%{search}%"
            matches = [
                Customer.name.ilike(pattern),
                Customer.phone.ilike(pattern),
                Order.delivery_address.ilike(pattern),
            ]
            if search.isdigit():
                matches += [
                    Order.order_number == int(search),
                    Order.table_number == int(search),
                ]
            conditions.append(or_(*matches))

        with self._session() as session:
            total = session.scalar(
                select(func.count(Order.id))
                .select_from(Order)
                .outerjoin(Customer, Order.customer_id == Customer.id)
                .where(*conditions)
            ) or 0
            orders = session.scalars(
                select(Order)
                .outerjoin(Customer, Order.customer_id == Customer.id)
                .where(*conditions)
                .options(*_order_load_options())
                .order_by(Order.created_at.desc(), Order.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            return {
                "orders": [order_to_dict(o) for o in orders],
                "pagination": pagination(total, page, limit),
            }

    def _find_by_type(self, order_type: str, conditions: list) -> list[dict[str, Any]]:
        with self._session() as session:
            orders = session.scalars(
                select(Order)
                .where(Order.order_type == order_type, *conditions)
                .options(*_order_load_options())
                .order_by(Order.order_number.desc(), Order.created_at.desc())
            ).all()
            return [order_to_dict(o) for o in orders]

    @staticmethod
    def _range_condition(filters: dict[str, Any]) -> list:
        if filters.get("start_date") and filters.get("end_date"):
            return [Order.created_at.between(filters["start_date"], filters["end_date"])]
        return []

    def find_dine_in_orders(self, filters: dict[str, Any]) -> list[dict[str, Any]]:
        conditions = [NOT_CANCELLED, *self._range_condition(filters)]
        status = filters.get("status")
        if status in (PaymentStatus.PENDING.value, PaymentStatus.COMPLETED.value):
            conditions.append(Order.payment_status == status)
        return self._find_by_type(OrderType.DINE_IN.value, conditions)

    def find_delivery_orders(self, filters: dict[str, Any]) -> list[dict[str, Any]]:
        conditions = [NOT_CANCELLED, *self._range_condition(filters)]
        status = filters.get("status")
        if status == "completed":
            conditions += [
                Order.order_status == OrderStatus.COMPLETED.value,
                Order.payment_status == PaymentStatus.COMPLETED.value,
            ]
        elif status == "pending":
            conditions.append(
                or_(
                    Order.order_status != OrderStatus.COMPLETED.value,
                    Order.payment_status != PaymentStatus.COMPLETED.value,
                )
            )
        return self._find_by_type(OrderType.DELIVERY.value, conditions)

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------

    @staticmethod
    def _count_and_sum(session: Session, *conditions) -> dict[str, Any]:
        count, amount = session.execute(
            select(func.count(Order.id), func.coalesce(func.sum(Order.total_amount), 0)).where(
                *conditions
            )
        ).one()
        return {"count": count or 0, "total_amount": to_money(amount)}

    def get_dine_in_stats(self) -> dict[str, Any]:
        base = (Order.order_type == OrderType.DINE_IN.value, NOT_CANCELLED)
        with self._session() as session:
            pending = self._count_and_sum(
                session, *base, Order.payment_status == PaymentStatus.PENDING.value
            )
            completed = self._count_and_sum(
                session, *base, Order.payment_status == PaymentStatus.COMPLETED.value
            )
        return {
            "pending_orders": pending["count"],
            "completed_orders": completed["count"],
            "pending_revenue": pending["total_amount"],
            "completed_revenue": completed["total_amount"],
            "total_orders": pending["count"] + completed["count"],
            "total_revenue": pending["total_amount"] + completed["total_amount"],
        }

    def get_delivery_stats(self) -> dict[str, Any]:
        base = (Order.order_type == OrderType.DELIVERY.value, NOT_CANCELLED)
        cash = Order.payment_method == PaymentMethod.CASH.value
        with self._session() as session:
            stats = {
                "pending_payments": self._count_and_sum(
                    session, *base, Order.payment_status == PaymentStatus.PENDING.value
                ),
                "received_payments": self._count_and_sum(
                    session, *base, Order.payment_status == PaymentStatus.COMPLETED.value
                ),
                "pending_deliveries": self._count_and_sum(
                    session,
                    *base,
                    or_(
                        Order.delivery_status.is_(None),
                        Order.delivery_status != DeliveryStatus.DELIVERED.value,
                    ),
                ),
                "completed_deliveries": self._count_and_sum(
                    session, *base, Order.delivery_status == DeliveryStatus.DELIVERED.value
                ),
                "cod_pending": self._count_and_sum(
                    session, *base, cash, Order.payment_status == PaymentStatus.PENDING.value
                ),
                "cash_payments": self._count_and_sum(session, *base, cash),
                "bank_payments": self._count_and_sum(
                    session, *base, Order.payment_method == PaymentMethod.BANK_TRANSFER.value
                ),
            }

        total_orders = stats["pending_payments"]["count"] + stats["received_payments"]["count"]
        total_revenue = (
            stats["pending_payments"]["total_amount"] + stats["received_payments"]["total_amount"]
        )
        stats.update(
            {
                "total_orders": total_orders,
                "total_revenue": total_revenue,
                "average_order_value": safe_average(total_revenue, total_orders),
            }
        )
        return stats

    def get_order_statistics(self, date_range: DateRange) -> dict[str, Any]:
        base = (Order.created_at.between(date_range.start_date, date_range.end_date), NOT_CANCELLED)
        with self._session() as session:
            overall = self._count_and_sum(session, *base)
            dine_in = self._count_and_sum(
                session, *base, Order.order_type == OrderType.DINE_IN.value
            )
            delivery = self._count_and_sum(
                session, *base, Order.order_type == OrderType.DELIVERY.value
            )
            cash = self._count_and_sum(
                session, *base, Order.payment_method == PaymentMethod.CASH.value
            )
            bank = self._count_and_sum(
                session, *base, Order.payment_method == PaymentMethod.BANK_TRANSFER.value
            )
            pending = self._count_and_sum(
                session, *base, Order.payment_status == PaymentStatus.PENDING.value
            )
        return {
            "total_orders": overall["count"],
            "total_revenue": overall["total_amount"],
            "dine_in_orders": dine_in["count"],
            "delivery_orders": delivery["count"],
            "cash_orders_count": cash["count"],
            "cash_revenue": cash["total_amount"],
            "bank_orders_count": bank["count"],
            "bank_revenue": bank["total_amount"],
            "pending_orders": pending["count"],
            "dine_in_revenue": dine_in["total_amount"],
            "delivery_revenue": delivery["total_amount"],
        }

    def get_items_sales_report(self, date_range: DateRange) -> list[dict[str, Any]]:
        """Quantity, revenue and distinct order count per menu item"""
        with self._session() as session:
            rows = session.execute(
                select(
                    OrderItem.menu_item_id,
                    MenuItem.name,
                    func.sum(OrderItem.quantity),
                    func.sum(OrderItem.price * OrderItem.quantity),
                    func.count(func.distinct(OrderItem.order_id)),
                )
                .join(Order, OrderItem.order_id == Order.id)
                .join(MenuItem, OrderItem.menu_item_id == MenuItem.id)
                .where(
                    Order.created_at.between(date_range.start_date, date_range.end_date),
                    NOT_CANCELLED,
                )
                .group_by(OrderItem.menu_item_id, MenuItem.name)
                .order_by(OrderItem.menu_item_id)
            ).all()
        return [
            {
                "item_id": item_id,
                "item_name": name,
                "quantity": int(quantity or 0),
                "total_revenue": to_money(revenue),
                "order_count": order_count,
            }
            for item_id, name, quantity, revenue, order_count in rows
        ]

    def find_orders_in_range(
        self,
        date_range: DateRange,
        order_type: Optional[str] = None,
        include_cancelled: bool = False,
    ) -> list[dict[str, Any]]:
        """Orders created inside the range, oldest first, with relations loaded"""
        conditions = [Order.created_at.between(date_range.start_date, date_range.end_date)]
        if not include_cancelled:
            conditions.append(NOT_CANCELLED)
        if order_type:
            conditions.append(Order.order_type == order_type)
        with self._session() as session:
            orders = session.scalars(
                select(Order)
                .where(*conditions)
                .options(*_order_load_options())
                .order_by(Order.created_at, Order.id)
            ).all()
            return [order_to_dict(o) for o in orders]

    def get_order_edit_history(self, order_id: int) -> list[dict[str, Any]]:
        with self._session() as session:
            entries = session.scalars(
                select(OrderEditHistory)
                .where(OrderEditHistory.order_id == order_id)
                .order_by(OrderEditHistory.edited_at.desc(), OrderEditHistory.id.desc())
            ).all()
            return [edit_history_to_dict(e) for e in entries]

    # ------------------------------------------------------------------
    # Derived counters
    # ------------------------------------------------------------------

    def update_customer_stats(self, customer_id: int) -> None:
        """Recompute a customer's counters from their non-cancelled delivery orders"""
        with self._session() as session:
            customer = session.get(Customer, customer_id)
            if not customer:
                return
            stats = self._count_and_sum(
                session,
                Order.customer_id == customer_id,
                Order.order_type == OrderType.DELIVERY.value,
                NOT_CANCELLED,
            )
            customer.total_orders = stats["count"]
            customer.total_spent = stats["total_amount"]
        self._logger.debug("Customer %s stats refreshed", customer_id)

    def update_rider_stats(self, rider_id: int) -> None:
        """Recompute a rider's delivery count and cash collected"""
        with self._session() as session:
            rider = session.get(Rider, rider_id)
            if not rider:
                return
            delivered = (
                Order.rider_id == rider_id,
                Order.delivery_status == DeliveryStatus.DELIVERED.value,
                NOT_CANCELLED,
            )
            deliveries = self._count_and_sum(session, *delivered)
            cash = self._count_and_sum(
                session,
                *delivered,
                and_(
                    Order.payment_method == PaymentMethod.CASH.value,
                    Order.payment_status == PaymentStatus.COMPLETED.value,
                ),
            )
            rider.total_deliveries = deliveries["count"]
            rider.total_cash_collected = cash["total_amount"]
        self._logger.debug("Rider %s stats refreshed", rider_id)

