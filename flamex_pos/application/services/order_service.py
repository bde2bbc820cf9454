"""
Order Service

Business rules of the order lifecycle: creation, manual edits with an audit
trail, payment and delivery transitions, and the order screens' statistics.
"""

import logging
from typing import Any, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from flamex_pos.application.dtos.order_dtos import (
    CreateOrderRequest,
    MarkPaidRequest,
    OrderFilter,
    OrderListFilter,
    UpdateOrderRequest,
    parse_enum,
)
from flamex_pos.config import get_config
from flamex_pos.infrastructure.repositories.sqlalchemy_customer_repository import (
    SQLAlchemyCustomerRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_order_repository import (
    SQLAlchemyOrderRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_rider_repository import (
    SQLAlchemyRiderRepository,
)
from flamex_pos.infrastructure.utilities.constants import (
    DeliveryStatus,
    OrderStatus,
    OrderType,
    PaymentMethod,
    PaymentStatus,
)
from flamex_pos.infrastructure.utilities.date_utils import local_now, resolve_date_range
from flamex_pos.infrastructure.utilities.exceptions import (
    MenuItemsNotFoundError,
    NotFoundError,
    OrderNotFoundError,
    ValidationError,
)
from flamex_pos.infrastructure.utilities.helpers import calculate_order_total, to_money


class OrderService:
    """Order lifecycle and order statistics"""

    def __init__(
        self,
        order_repository: SQLAlchemyOrderRepository,
        customer_repository: SQLAlchemyCustomerRepository,
        rider_repository: SQLAlchemyRiderRepository,
    ):
        self._order_repository = order_repository
        self._customer_repository = customer_repository
        self._rider_repository = rider_repository
        self._logger = logging.getLogger(self.__class__.__name__)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_order(self, request: Union[CreateOrderRequest, dict]) -> dict[str, Any]:
        """Create an order and its items in one transaction"""
        if isinstance(request, dict):
            request = CreateOrderRequest.from_dict(request)

        self._logger.info("📝 ===== ORDER CREATION STARTED =====")
        self._logger.info(
            "📝 ORDER CREATION: type=%s items=%s table=%s customer=%s",
            request.order_type,
            len(request.items),
            request.table_number,
            request.customer_id,
        )

        is_delivery = request.order_type == OrderType.DELIVERY.value
        if is_delivery:
            if not request.customer_id:
                raise ValidationError(
                    "Customer is required for delivery orders", field="customer_id"
                )
            self._ensure_customer_exists(request.customer_id)

        subtotal = request.subtotal
        order_data: dict[str, Any] = {
            "order_type": request.order_type,
            "order_status": OrderStatus.PENDING.value,
            "payment_method": request.payment_method,
            "payment_status": request.payment_status or self._default_payment_status(request),
            "subtotal": subtotal,
            "discount_percent": request.discount_percent,
            "delivery_charge": request.delivery_charge,
            "total_amount": calculate_order_total(
                subtotal, request.discount_percent, request.delivery_charge
            ),
            "table_number": request.table_number,
            "delivery_address": request.delivery_address,
            "delivery_notes": request.delivery_notes,
            "special_instructions": request.special_instructions,
            "cashier_name": request.cashier_name or get_config().default_cashier_name,
            "amount_taken": None,
            "return_amount": None,
        }
        if is_delivery:
            order_data["customer_id"] = request.customer_id
            order_data["delivery_status"] = DeliveryStatus.PENDING.value

        if (
            request.payment_method == PaymentMethod.CASH.value
            and request.amount_taken is not None
            and request.return_amount is not None
        ):
            order_data["amount_taken"] = request.amount_taken
            order_data["return_amount"] = request.return_amount

        order = self._order_repository.create_order_with_items(
            order_data, [item.to_dict() for item in request.items]
        )

        if is_delivery:
            self._refresh_customer_stats(request.customer_id)
            order = self._order_repository.find_order_by_id(order["id"]) or order

        self._logger.info(
            "✅ ORDER CREATED: #%s total=%s", order["order_number"], order["total_amount"]
        )
        return order

    @staticmethod
    def _default_payment_status(request: CreateOrderRequest) -> str:
        if request.payment_method == PaymentMethod.CASH.value:
            return PaymentStatus.PENDING.value
        return PaymentStatus.COMPLETED.value

    def _ensure_customer_exists(self, customer_id: int) -> None:
        if not self._customer_repository.find_customer_by_id(customer_id):
            raise NotFoundError("Customer not found", resource="customer")

    def _get_order_or_raise(self, order_id: int) -> dict[str, Any]:
        order = self._order_repository.find_order_by_id(order_id)
        if not order:
            raise OrderNotFoundError(order_id)
        return order

    def get_order_by_id(self, order_id: int) -> dict[str, Any]:
        return self._get_order_or_raise(order_id)

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def update_order(
        self, order_id: int, request: Union[UpdateOrderRequest, dict]
    ) -> dict[str, Any]:
        """Apply a manual correction and record it in the edit history.

        Totals are frozen at creation: replacing items leaves ``subtotal`` and
        ``total_amount`` untouched unless the caller supplies ``total_amount``.
        """
        if isinstance(request, dict):
            request = UpdateOrderRequest.from_dict(request)

        existing = self._get_order_or_raise(order_id)
        self._logger.info("✏️ UPDATE ORDER: #%s (ID=%s)", existing["order_number"], order_id)

        items = [item.to_dict() for item in request.items] if request.items else None
        if items:
            self._ensure_menu_items_available(items)

        fields = request.field_updates()

        payment_method = request.payment_method or existing["payment_method"]
        if payment_method == PaymentMethod.CASH.value:
            fields["amount_taken"] = (
                request.amount_taken
                if request.amount_taken is not None
                else existing["amount_taken"]
            )
            fields["return_amount"] = (
                request.return_amount
                if request.return_amount is not None
                else existing["return_amount"]
            )
        else:
            fields["amount_taken"] = None
            fields["return_amount"] = None

        old_customer_id = existing["customer_id"]
        new_customer_id = old_customer_id
        if request.remove_customer:
            new_customer_id = None
            fields["customer_id"] = None
        elif request.customer_id is not None:
            self._ensure_customer_exists(request.customer_id)
            new_customer_id = request.customer_id
            fields["customer_id"] = request.customer_id

        old_items = [
            {
                "id": item["id"],
                "menu_item_id": item["menu_item_id"],
                "quantity": item["quantity"],
                "price": item["price"],
            }
            for item in existing["items"]
        ]
        history = {
            "edited_by": request.edited_by or "System",
            "old_total_amount": existing["total_amount"],
            "new_total_amount": fields.get("total_amount", existing["total_amount"]),
            "old_payment_method": existing["payment_method"],
            "new_payment_method": payment_method,
            "old_amount_taken": existing["amount_taken"],
            "new_amount_taken": fields["amount_taken"],
            "old_return_amount": existing["return_amount"],
            "new_return_amount": fields["return_amount"],
            "old_items": old_items,
            "new_items": items if items else old_items,
            "change_reason": request.change_reason or "Order updated",
            "ip_address": request.ip_address,
        }

        updated = self._order_repository.update_order_with_items(order_id, fields, items, history)
        if updated is None:
            raise OrderNotFoundError(order_id)

        if new_customer_id != old_customer_id:
            for customer_id in (old_customer_id, new_customer_id):
                if customer_id:
                    self._refresh_customer_stats(customer_id)
            updated = self._order_repository.find_order_by_id(order_id) or updated

        self._logger.info("✅ ORDER UPDATED: #%s", updated["order_number"])
        return updated

    def _ensure_menu_items_available(self, items: list[dict[str, Any]]) -> None:
        requested = [item["menu_item_id"] for item in items]
        found = self._order_repository.find_available_menu_items(requested)
        missing = [item_id for item_id in dict.fromkeys(requested) if item_id not in found]
        if missing:
            raise MenuItemsNotFoundError(missing)

    # ------------------------------------------------------------------
    # Lists and statistics
    # ------------------------------------------------------------------

    def get_orders(self, filters: Union[OrderFilter, dict, None] = None) -> dict[str, Any]:
        if filters is None:
            filters = OrderFilter()
        elif isinstance(filters, dict):
            filters = OrderFilter.from_dict(filters)
        return self._order_repository.find_orders(filters.to_query())

    def get_dine_in_orders(
        self, filters: Union[OrderListFilter, dict, None] = None
    ) -> list[dict[str, Any]]:
        return self._order_repository.find_dine_in_orders(self._list_filter(filters).to_query())

    def get_delivery_orders(
        self, filters: Union[OrderListFilter, dict, None] = None
    ) -> list[dict[str, Any]]:
        return self._order_repository.find_delivery_orders(self._list_filter(filters).to_query())

    @staticmethod
    def _list_filter(filters: Union[OrderListFilter, dict, None]) -> OrderListFilter:
        if filters is None:
            return OrderListFilter()
        if isinstance(filters, dict):
            return OrderListFilter(**filters)
        return filters

    def get_dine_in_stats(self) -> dict[str, Any]:
        return self._order_repository.get_dine_in_stats()

    def get_delivery_stats(self) -> dict[str, Any]:
        return self._order_repository.get_delivery_stats()

    def get_order_statistics(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        """Statistics for a named preset (today, yesterday, this_week, this_month) or a range"""
        return self._order_repository.get_order_statistics(
            resolve_date_range(preset, start_date, end_date)
        )

    def get_items_sales_report(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        return self._order_repository.get_items_sales_report(
            resolve_date_range(preset, start_date, end_date)
        )

    def get_table_availability(self) -> list[dict[str, Any]]:
        """Tables currently held by an open dine-in order"""
        return self._order_repository.find_occupied_tables()

    def get_order_edit_history(self, order_id: int) -> list[dict[str, Any]]:
        return self._order_repository.get_order_edit_history(order_id)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def mark_order_as_paid(
        self, order_id: int, request: Union[MarkPaidRequest, dict]
    ) -> dict[str, Any]:
        """Complete payment; a cash shortfall leaves a negative return amount"""
        if isinstance(request, dict):
            request = MarkPaidRequest(**request)

        order = self._get_order_or_raise(order_id)
        fields: dict[str, Any] = {
            "payment_method": request.payment_method,
            "payment_status": PaymentStatus.COMPLETED.value,
        }

        if request.payment_method == PaymentMethod.CASH.value:
            if request.amount_taken is None:
                raise ValidationError(
                    "Amount taken is required for cash payments", field="amount_taken"
                )
            fields["amount_taken"] = request.amount_taken
            fields["return_amount"] = (
                request.return_amount
                if request.return_amount is not None
                else to_money(request.amount_taken - order["total_amount"])
            )
        else:
            fields["amount_taken"] = None
            fields["return_amount"] = None

        self._logger.info("💰 ORDER PAID: #%s via %s", order["order_number"], request.payment_method)
        return self._update_or_raise(order_id, fields)

    def update_order_status(self, order_id: int, status: str) -> dict[str, Any]:
        """Set the order status; any status may follow any other"""
        status = parse_enum(OrderStatus, status, "order_status")
        if status is None:
            raise ValidationError("order_status is required", field="order_status")
        order = self._get_order_or_raise(order_id)
        self._logger.info(
            "🔄 ORDER STATUS: #%s %s -> %s", order["order_number"], order["order_status"], status
        )
        return self._update_or_raise(order_id, {"order_status": status})

    def cancel_order(self, order_id: int) -> dict[str, Any]:
        return self.update_order_status(order_id, OrderStatus.CANCELLED.value)

    def update_delivery_status(self, order_id: int, status: str) -> dict[str, Any]:
        """Advance a delivery; ``delivered`` also completes the payment once"""
        status = parse_enum(DeliveryStatus, status, "delivery_status")
        if status is None:
            raise ValidationError("delivery_status is required", field="delivery_status")

        order = self._get_order_or_raise(order_id)
        if order["order_type"] != OrderType.DELIVERY.value:
            raise ValidationError("Only delivery orders have delivery status", field="order_type")

        delivered = status == DeliveryStatus.DELIVERED.value
        fields: dict[str, Any] = {"delivery_status": status}
        if delivered and not order["delivered_at"]:
            fields["delivered_at"] = local_now()
            fields["payment_status"] = PaymentStatus.COMPLETED.value

        updated = self._update_or_raise(order_id, fields)
        self._logger.info("🛵 DELIVERY STATUS: #%s -> %s", order["order_number"], status)

        if delivered:
            if order["rider_id"]:
                self._refresh_rider_stats(order["rider_id"])
            if order["customer_id"]:
                self._refresh_customer_stats(order["customer_id"])
            updated = self._order_repository.find_order_by_id(order_id) or updated
        return updated

    def assign_rider_to_order(self, order_id: int, rider_id: int) -> dict[str, Any]:
        order = self._get_order_or_raise(order_id)
        if order["order_type"] != OrderType.DELIVERY.value:
            raise ValidationError(
                "Only delivery orders can have riders assigned", field="order_type"
            )
        if not self._rider_repository.find_rider_by_id(rider_id):
            raise NotFoundError("Rider not found", resource="rider")

        self._logger.info("🛵 RIDER ASSIGNED: order #%s -> rider %s", order["order_number"], rider_id)
        return self._update_or_raise(order_id, {"rider_id": rider_id, "assigned_at": local_now()})

    def _update_or_raise(self, order_id: int, fields: dict[str, Any]) -> dict[str, Any]:
        self._order_repository.update_order(order_id, fields)
        return self._get_order_or_raise(order_id)

    # ------------------------------------------------------------------
    # Derived counters (run after the primary commit)
    # ------------------------------------------------------------------

    def _refresh_customer_stats(self, customer_id: int) -> None:
        try:
            self._order_repository.update_customer_stats(customer_id)
        except SQLAlchemyError as e:
            self._logger.error(
                "💥 CUSTOMER STATS REFRESH FAILED: customer=%s: %s", customer_id, e, exc_info=True
            )

    def _refresh_rider_stats(self, rider_id: int) -> None:
        try:
            self._order_repository.update_rider_stats(rider_id)
        except SQLAlchemyError as e:
            self._logger.error(
                "💥 RIDER STATS REFRESH FAILED: rider=%s: %s", rider_id, e, exc_info=True
            )
