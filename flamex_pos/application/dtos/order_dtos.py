"""
Order DTOs

Request and filter objects for order operations. Each validates itself once
on construction so the service and repository layers can trust their shape.
"""

from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Type, Union

from flamex_pos.config import get_config
from flamex_pos.infrastructure.utilities.constants import (
    DeliveryStatus,
    OrderStatus,
    OrderType,
    PaymentMethod,
    PaymentStatus,
)
from flamex_pos.infrastructure.utilities.date_utils import DateRange, parse_date_range
from flamex_pos.infrastructure.utilities.exceptions import ValidationError
from flamex_pos.infrastructure.utilities.helpers import to_money

DateInput = Union[str, date, None]


def parse_enum(enum_cls: Type, value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    try:
        return enum_cls(value).value
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(
            f"Invalid {field_name}: {value}. Expected one of: {allowed}", field=field_name
        ) from exc


def _money(value: Any, field_name: str, allow_negative: bool = False) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        amount = to_money(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field_name}: {value}", field=field_name) from exc
    if amount < 0 and not allow_negative:
        raise ValidationError(f"{field_name} cannot be negative", field=field_name)
    return amount


def _positive_int(value: Any, field_name: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{field_name} must be a positive integer", field=field_name)
    return value


def _discount(value: Any) -> Decimal:
    discount = _money(value if value is not None else 0, "discount_percent")
    if discount > 100:
        raise ValidationError("discount_percent cannot exceed 100", field="discount_percent")
    return discount


def _known_keys(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in data.items() if key in names}


@dataclass
class OrderItemInput:
    """One requested order line; ``price`` becomes the stored snapshot"""

    menu_item_id: int
    quantity: int
    price: Decimal

    def __post_init__(self):
        _positive_int(self.menu_item_id, "menu_item_id")
        _positive_int(self.quantity, "quantity")
        self.price = _money(self.price, "price")
        if self.price is None or self.price <= 0:
            raise ValidationError("price must be greater than zero", field="price")

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderItemInput":
        return cls(
            menu_item_id=data.get("menu_item_id"),
            quantity=data.get("quantity"),
            price=data.get("price"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"menu_item_id": self.menu_item_id, "quantity": self.quantity, "price": self.price}


def _coerce_items(items: Optional[List[Any]]) -> List[OrderItemInput]:
    return [
        item if isinstance(item, OrderItemInput) else OrderItemInput.from_dict(item)
        for item in items or []
    ]


@dataclass
class CreateOrderRequest:
    """Request to create an order"""

    items: List[OrderItemInput]
    order_type: str = OrderType.DINE_IN.value
    payment_method: str = PaymentMethod.CASH.value
    payment_status: Optional[str] = None
    discount_percent: Decimal = Decimal("0")
    delivery_charge: Decimal = Decimal("0")
    amount_taken: Optional[Decimal] = None
    return_amount: Optional[Decimal] = None
    table_number: Optional[int] = None
    customer_id: Optional[int] = None
    delivery_address: Optional[str] = None
    delivery_notes: Optional[str] = None
    special_instructions: Optional[str] = None
    cashier_name: Optional[str] = None

    def __post_init__(self):
        self.items = _coerce_items(self.items)
        if not self.items:
            raise ValidationError("Order must contain at least one item", field="items")

        self.order_type = parse_enum(OrderType, self.order_type or OrderType.DINE_IN.value, "order_type")
        self.payment_method = parse_enum(
            PaymentMethod, self.payment_method or PaymentMethod.CASH.value, "payment_method"
        )
        self.payment_status = parse_enum(PaymentStatus, self.payment_status, "payment_status")
        self.discount_percent = _discount(self.discount_percent)
        self.delivery_charge = _money(self.delivery_charge or 0, "delivery_charge")
        self.amount_taken = _money(self.amount_taken, "amount_taken")
        self.return_amount = _money(self.return_amount, "return_amount", allow_negative=True)
        self.table_number = _positive_int(self.table_number, "table_number")
        self.customer_id = _positive_int(self.customer_id, "customer_id")

    @property
    def subtotal(self) -> Decimal:
        return to_money(sum((item.line_total for item in self.items), Decimal("0")))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreateOrderRequest":
        return cls(**_known_keys(cls, data))


@dataclass
class UpdateOrderRequest:
    """Manual correction of an existing order.

    ``None`` means "leave unchanged". ``remove_customer`` detaches the
    customer; ``items`` replaces every line when given.
    """

    items: Optional[List[OrderItemInput]] = None
    total_amount: Optional[Decimal] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    order_type: Optional[str] = None
    customer_id: Optional[int] = None
    remove_customer: bool = False
    delivery_address: Optional[str] = None
    delivery_notes: Optional[str] = None
    delivery_charge: Optional[Decimal] = None
    amount_taken: Optional[Decimal] = None
    return_amount: Optional[Decimal] = None
    table_number: Optional[int] = None
    special_instructions: Optional[str] = None
    change_reason: Optional[str] = None
    edited_by: Optional[str] = None
    ip_address: Optional[str] = None

    def __post_init__(self):
        self.items = _coerce_items(self.items) or None
        self.total_amount = _money(self.total_amount, "total_amount")
        self.payment_method = parse_enum(PaymentMethod, self.payment_method, "payment_method")
        self.payment_status = parse_enum(PaymentStatus, self.payment_status, "payment_status")
        self.order_type = parse_enum(OrderType, self.order_type, "order_type")
        self.customer_id = _positive_int(self.customer_id, "customer_id")
        self.delivery_charge = _money(self.delivery_charge, "delivery_charge")
        self.amount_taken = _money(self.amount_taken, "amount_taken")
        self.return_amount = _money(self.return_amount, "return_amount", allow_negative=True)
        self.table_number = _positive_int(self.table_number, "table_number")
        if self.remove_customer and self.customer_id is not None:
            raise ValidationError(
                "Cannot set and remove the customer in the same update", field="customer_id"
            )

    @property
    def changes_customer(self) -> bool:
        return self.remove_customer or self.customer_id is not None

    def field_updates(self) -> Dict[str, Any]:
        """Plain column values supplied by the caller"""
        names = (
            "total_amount",
            "payment_method",
            "payment_status",
            "order_type",
            "delivery_address",
            "delivery_notes",
            "delivery_charge",
            "table_number",
            "special_instructions",
        )
        return {name: getattr(self, name) for name in names if getattr(self, name) is not None}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UpdateOrderRequest":
        return cls(**_known_keys(cls, data))


@dataclass
class MarkPaidRequest:
    payment_method: str
    amount_taken: Optional[Decimal] = None
    return_amount: Optional[Decimal] = None

    def __post_init__(self):
        self.payment_method = parse_enum(PaymentMethod, self.payment_method, "payment_method")
        if self.payment_method is None:
            raise ValidationError("payment_method is required", field="payment_method")
        self.amount_taken = _money(self.amount_taken, "amount_taken")
        self.return_amount = _money(self.return_amount, "return_amount", allow_negative=True)


def _optional_range(start: DateInput, end: DateInput) -> Optional[DateRange]:
    """Whole local days; a single bound selects that one day"""
    if not start and not end:
        return None
    return parse_date_range(start or end, end or start)


@dataclass
class OrderFilter:
    """Filter for the paginated order list"""

    order_type: Optional[str] = None
    payment_status: Optional[str] = None
    order_status: Optional[str] = None
    delivery_status: Optional[str] = None
    start_date: DateInput = None
    end_date: DateInput = None
    page: int = 1
    limit: Optional[int] = None
    search: Optional[str] = None
    date_range: Optional[DateRange] = field(default=None, init=False)

    def __post_init__(self):
        self.order_type = parse_enum(OrderType, self.order_type, "order_type")
        self.payment_status = parse_enum(PaymentStatus, self.payment_status, "payment_status")
        self.order_status = parse_enum(OrderStatus, self.order_status, "order_status")
        self.delivery_status = parse_enum(DeliveryStatus, self.delivery_status, "delivery_status")
        self.page = _positive_int(self.page or 1, "page")
        self.limit = _positive_int(self.limit or get_config().default_page_size, "limit")
        self.search = self.search.strip() if self.search and self.search.strip() else None
        self.date_range = _optional_range(self.start_date, self.end_date)

    def to_query(self) -> Dict[str, Any]:
        return {
            "order_type": self.order_type,
            "payment_status": self.payment_status,
            "order_status": self.order_status,
            "delivery_status": self.delivery_status,
            "start_date": self.date_range.start_date if self.date_range else None,
            "end_date": self.date_range.end_date if self.date_range else None,
            "page": self.page,
            "limit": self.limit,
            "search": self.search,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OrderFilter":
        return cls(**_known_keys(cls, {k: v for k, v in data.items() if k != "date_range"}))


@dataclass
class OrderListFilter:
    """Filter for the dine-in and delivery boards (``status`` is pending/completed)"""

    status: Optional[str] = None
    start_date: DateInput = None
    end_date: DateInput = None
    date_range: Optional[DateRange] = field(default=None, init=False)

    def __post_init__(self):
        if self.status not in (None, PaymentStatus.PENDING.value, PaymentStatus.COMPLETED.value):
            raise ValidationError(
                f"Invalid status: {self.status}. Expected pending or completed", field="status"
            )
        self.date_range = _optional_range(self.start_date, self.end_date)

    def to_query(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "start_date": self.date_range.start_date if self.date_range else None,
            "end_date": self.date_range.end_date if self.date_range else None,
        }
