# pylint: disable=too-few-public-methods
"""
SQLAlchemy database models for the Flamex POS backend

Money columns are ``Numeric(10, 2)`` and surface as ``Decimal``. Timestamps
are naive datetimes in the business timezone (see ``date_utils.local_now``).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from flamex_pos.infrastructure.utilities.date_utils import local_now

Money = Numeric(10, 2, asdecimal=True)


class Base(DeclarativeBase):
    """Declarative base for all POS tables"""


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=local_now, onupdate=local_now, nullable=True
    )


class Category(TimestampMixin, Base):
    """Menu category"""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    menu_items: Mapped[List["MenuItem"]] = relationship("MenuItem", back_populates="category")

    def __str__(self) -> str:
        return f"<Category(id={self.id}, name='{self.name}')>"


class MenuItem(TimestampMixin, Base):
    """Sellable menu item"""

    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    category_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("categories.id"), nullable=True
    )
    image_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    available: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    category: Mapped[Optional["Category"]] = relationship("Category", back_populates="menu_items")

    def __str__(self) -> str:
        return f"<MenuItem(id={self.id}, name='{self.name}', price={self.price})>"


class Customer(TimestampMixin, Base):
    """Delivery customer, identified by phone"""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    backup_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Derived from delivery orders; recomputed, never incremented
    total_orders: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_spent: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)

    orders: Mapped[List["Order"]] = relationship("Order", back_populates="customer")
    addresses: Mapped[List["CustomerAddress"]] = relationship(
        "CustomerAddress",
        back_populates="customer",
        cascade="all, delete-orphan",
    )

    def __str__(self) -> str:
        return f"<Customer(id={self.id}, phone='{self.phone}', name='{self.name}')>"


class CustomerAddress(TimestampMixin, Base):
    __tablename__ = "customer_addresses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        ForeignKey("customers.id", ondelete="CASCADE"), nullable=False
    )
    address: Mapped[str] = mapped_column(String(500), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    customer: Mapped["Customer"] = relationship("Customer", back_populates="addresses")


class Rider(TimestampMixin, Base):
    """Delivery rider"""

    __tablename__ = "riders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    cnic: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    total_deliveries: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_cash_collected: Mapped[Decimal] = mapped_column(
        Money, default=Decimal("0"), nullable=False
    )

    orders: Mapped[List["Order"]] = relationship("Order", back_populates="rider")

    def __str__(self) -> str:
        return f"<Rider(id={self.id}, phone='{self.phone}', status='{self.status}')>"


class Order(Base):
    """One customer transaction"""

    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("business_date", "order_number", name="uq_orders_daily_number"),
        # At most one open dine-in order may hold a table
        Index(
            "uq_orders_open_table",
            "table_number",
            unique=True,
            sqlite_where=text(
                "order_type = 'dine_in' AND payment_status = 'pending' "
                "AND order_status != 'cancelled'"
            ),
            postgresql_where=text(
                "order_type = 'dine_in' AND payment_status = 'pending' "
                "AND order_status != 'cancelled'"
            ),
        ),
        Index("ix_orders_created_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[int] = mapped_column(Integer, nullable=False)
    business_date: Mapped[date] = mapped_column(Date, nullable=False)
    order_type: Mapped[str] = mapped_column(String(20), default="dine_in", nullable=False)
    order_status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    payment_status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), default="cash", nullable=False)
    delivery_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    subtotal: Mapped[Decimal] = mapped_column(Money, nullable=False)
    discount_percent: Mapped[Decimal] = mapped_column(
        Numeric(5, 2, asdecimal=True), default=Decimal("0"), nullable=False
    )
    delivery_charge: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    amount_taken: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    # Negative when a cash payment fell short of the total
    return_amount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)

    table_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    delivery_address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    delivery_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    special_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cashier_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    customer_id: Mapped[Optional[int]] = mapped_column(ForeignKey("customers.id"), nullable=True)
    rider_id: Mapped[Optional[int]] = mapped_column(ForeignKey("riders.id"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, nullable=False)
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, default=local_now, onupdate=local_now, nullable=True
    )
    assigned_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    customer: Mapped[Optional["Customer"]] = relationship("Customer", back_populates="orders")
    rider: Mapped[Optional["Rider"]] = relationship("Rider", back_populates="orders")
    order_items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    edit_history: Mapped[List["OrderEditHistory"]] = relationship(
        "OrderEditHistory",
        back_populates="order",
        cascade="all, delete-orphan",
    )

    def __str__(self) -> str:
        return (
            f"<Order(id={self.id}, number={self.order_number}, "
            f"type='{self.order_type}', total={self.total_amount})>"
        )


class OrderItem(Base):
    """Order line; ``price`` is the menu price captured at order time"""

    __tablename__ = "order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    menu_item_id: Mapped[int] = mapped_column(ForeignKey("menu_items.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Money, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="order_items")
    menu_item: Mapped["MenuItem"] = relationship("MenuItem")


class OrderEditHistory(Base):
    """Append-only audit row written for every order edit"""

    __tablename__ = "order_edit_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id", ondelete="CASCADE"), nullable=False
    )
    edited_by: Mapped[str] = mapped_column(String(100), nullable=False)
    old_total_amount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    new_total_amount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    old_payment_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    new_payment_method: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    old_amount_taken: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    new_amount_taken: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    old_return_amount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    new_return_amount: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    old_items: Mapped[str] = mapped_column(Text, nullable=False)
    new_items: Mapped[str] = mapped_column(Text, nullable=False)
    change_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    edited_at: Mapped[datetime] = mapped_column(DateTime, default=local_now, nullable=False)

    order: Mapped["Order"] = relationship("Order", back_populates="edit_history")


class Expense(TimestampMixin, Base):
    __tablename__ = "expenses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    payment_method: Mapped[str] = mapped_column(String(20), default="cash", nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    unit: Mapped[str] = mapped_column(String(20), default="PCS", nullable=False)
    unit_price: Mapped[Optional[Decimal]] = mapped_column(Money, nullable=True)
    expense_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class User(TimestampMixin, Base):
    """Back-office user (admin or manager)"""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(20), default="manager", nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)


class BusinessInfo(TimestampMixin, Base):
    """Key/value business settings (name, address, bank details...)"""

    __tablename__ = "business_info"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    value: Mapped[str] = mapped_column(Text, nullable=False)
