"""
SQLAlchemy Customer Repository

Customers, their saved delivery addresses and their order history.
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from flamex_pos.infrastructure.database.models import Customer, CustomerAddress, Order, OrderItem
from flamex_pos.infrastructure.repositories.serializers import (
    address_to_dict,
    customer_to_dict,
    order_to_dict,
)
from flamex_pos.infrastructure.repositories.session_handler import (
    SessionFactory,
    managed_session,
)
from flamex_pos.infrastructure.utilities.constants import OrderStatus
from flamex_pos.infrastructure.utilities.exceptions import ConflictError, ValidationError
from flamex_pos.infrastructure.utilities.helpers import pagination

DUPLICATE_ADDRESS_MESSAGE = "Address already exists for this customer"

ADDRESS_ORDERING = (CustomerAddress.is_default.desc(), CustomerAddress.created_at, CustomerAddress.id)


def _normalize_address(address: str) -> str:
    return address.strip().lower()


class SQLAlchemyCustomerRepository:
    """SQLAlchemy implementation of the customer repository"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    def _session(self):
        return managed_session(self._session_factory)

    @staticmethod
    def _with_primary_address(customer: Customer) -> dict[str, Any]:
        """List view: the customer plus only its default (or oldest) address"""
        result = customer_to_dict(customer, include_addresses=True)
        result["addresses"] = result["addresses"][:1]
        return result

    @staticmethod
    def _search_conditions(query: str, include_saved_addresses: bool = False) -> list:
        pattern = f"%{query}%"
        conditions = [
            Customer.name.ilike(pattern),
            Customer.phone.ilike(pattern),
            Customer.backup_phone.ilike(pattern),
            Customer.address.ilike(pattern),
        ]
        if include_saved_addresses:
            conditions.append(Customer.addresses.any(CustomerAddress.address.ilike(pattern)))
        return conditions

    def find_customers(
        self, page: int = 1, limit: int = 50, search: Optional[str] = None
    ) -> dict[str, Any]:
        conditions = [or_(*self._search_conditions(search))] if search else []
        with self._session() as session:
            total = session.scalar(select(func.count(Customer.id)).where(*conditions)) or 0
            customers = session.scalars(
                select(Customer)
                .where(*conditions)
                .options(selectinload(Customer.addresses))
                .order_by(Customer.created_at.desc(), Customer.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            return {
                "customers": [self._with_primary_address(c) for c in customers],
                "pagination": pagination(total, page, limit),
            }

    def find_all_customers(self) -> list[dict[str, Any]]:
        with self._session() as session:
            customers = session.scalars(select(Customer).order_by(Customer.id)).all()
            return [customer_to_dict(c) for c in customers]

    def find_customer_by_id(self, customer_id: int) -> Optional[dict[str, Any]]:
        with self._session() as session:
            customer = session.get(Customer, customer_id)
            if not customer:
                return None
            result = customer_to_dict(customer, include_addresses=True)
            result["orders_count"] = session.scalar(
                select(func.count(Order.id)).where(Order.customer_id == customer_id)
            )
            return result

    def find_customer_by_phone(self, phone: str) -> Optional[dict[str, Any]]:
        with self._session() as session:
            customer = session.scalar(select(Customer).where(Customer.phone == phone))
            return customer_to_dict(customer, include_addresses=True) if customer else None

    def search_customers(self, query: str, limit: int) -> list[dict[str, Any]]:
        """Name, phone, backup phone, legacy address or any saved address"""
        with self._session() as session:
            customers = session.scalars(
                select(Customer)
                .where(or_(*self._search_conditions(query, include_saved_addresses=True)))
                .options(selectinload(Customer.addresses))
                .order_by(Customer.created_at.desc(), Customer.id.desc())
                .limit(limit)
            ).all()
            return [self._with_primary_address(c) for c in customers]

    def find_customers_by_partial_phone(self, partial_phone: str, limit: int) -> list[dict[str, Any]]:
        pattern = f"%{partial_phone}%"
        with self._session() as session:
            customers = session.scalars(
                select(Customer)
                .where(or_(Customer.phone.ilike(pattern), Customer.backup_phone.ilike(pattern)))
                .options(selectinload(Customer.addresses))
                .order_by(Customer.created_at.desc(), Customer.id.desc())
                .limit(limit)
            ).all()
            return [self._with_primary_address(c) for c in customers]

    def create_customer(
        self, data: dict[str, Any], default_address: Optional[str] = None
    ) -> dict[str, Any]:
        """Insert a customer, optionally with a first default address"""
        self._logger.info("👤 CREATE CUSTOMER: phone=%s", data.get("phone"))
        with self._session() as session:
            customer = Customer(**data)
            if default_address:
                customer.addresses.append(
                    CustomerAddress(
                        address=default_address.strip(),
                        is_default=True,
                        notes=data.get("notes"),
                    )
                )
            session.add(customer)
            self._flush_unique_phone(session)
            return customer_to_dict(customer, include_addresses=True)

    def update_customer(self, customer_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        with self._session() as session:
            customer = session.get(Customer, customer_id)
            if not customer:
                return None
            for key, value in data.items():
                setattr(customer, key, value)
            self._flush_unique_phone(session)
            return customer_to_dict(customer, include_addresses=True)

    @staticmethod
    def _flush_unique_phone(session: Session) -> None:
        try:
            session.flush()
        except IntegrityError as e:
            raise ConflictError(
                "Customer with this phone number already exists", field="phone"
            ) from e

    def delete_customer(self, customer_id: int) -> bool:
        with self._session() as session:
            customer = session.get(Customer, customer_id)
            if not customer:
                return False
            session.delete(customer)
        self._logger.info("🗑️ CUSTOMER DELETED: ID=%s", customer_id)
        return True

    def has_orders(self, customer_id: int) -> bool:
        with self._session() as session:
            count = session.scalar(
                select(func.count(Order.id)).where(Order.customer_id == customer_id)
            )
            return bool(count)

    def get_customer_orders(self, customer_id: int, page: int, limit: int) -> dict[str, Any]:
        conditions = (
            Order.customer_id == customer_id,
            Order.order_status != OrderStatus.CANCELLED.value,
        )
        with self._session() as session:
            total = session.scalar(select(func.count(Order.id)).where(*conditions)) or 0
            orders = session.scalars(
                select(Order)
                .where(*conditions)
                .options(selectinload(Order.order_items).selectinload(OrderItem.menu_item))
                .order_by(Order.created_at.desc(), Order.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            return {
                "orders": [order_to_dict(o) for o in orders],
                "pagination": pagination(total, page, limit),
            }

    # Addresses

    def get_customer_addresses(self, customer_id: int) -> list[dict[str, Any]]:
        with self._session() as session:
            addresses = session.scalars(
                select(CustomerAddress)
                .where(CustomerAddress.customer_id == customer_id)
                .order_by(*ADDRESS_ORDERING)
            ).all()
            return [address_to_dict(a) for a in addresses]

    def find_address_by_id(self, address_id: int) -> Optional[dict[str, Any]]:
        with self._session() as session:
            address = session.get(CustomerAddress, address_id)
            return address_to_dict(address) if address else None

    @staticmethod
    def _ensure_unique_address(
        session: Session, customer_id: int, address: str, exclude_id: Optional[int] = None
    ) -> None:
        query = select(CustomerAddress.address).where(CustomerAddress.customer_id == customer_id)
        if exclude_id is not None:
            query = query.where(CustomerAddress.id != exclude_id)
        normalized = _normalize_address(address)
        if any(_normalize_address(existing) == normalized for existing in session.scalars(query)):
            raise ValidationError(DUPLICATE_ADDRESS_MESSAGE, field="address")

    @staticmethod
    def _unset_defaults(session: Session, customer_id: int, exclude_id: Optional[int] = None) -> None:
        statement = (
            update(CustomerAddress)
            .where(CustomerAddress.customer_id == customer_id, CustomerAddress.is_default.is_(True))
            .values(is_default=False)
        )
        if exclude_id is not None:
            statement = statement.where(CustomerAddress.id != exclude_id)
        session.execute(statement)

    def create_customer_address(
        self,
        customer_id: int,
        address: str,
        is_default: bool = False,
        notes: Optional[str] = None,
    ) -> dict[str, Any]:
        with self._session() as session:
            self._ensure_unique_address(session, customer_id, address)
            if is_default:
                self._unset_defaults(session, customer_id)
            entry = CustomerAddress(
                customer_id=customer_id,
                address=address.strip(),
                is_default=bool(is_default),
                notes=notes,
            )
            session.add(entry)
            session.flush()
            return address_to_dict(entry)

    def update_customer_address(
        self, address_id: int, data: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        with self._session() as session:
            entry = session.get(CustomerAddress, address_id)
            if not entry:
                return None
            if data.get("address"):
                self._ensure_unique_address(
                    session, entry.customer_id, data["address"], exclude_id=address_id
                )
                entry.address = data["address"].strip()
            if data.get("is_default"):
                self._unset_defaults(session, entry.customer_id, exclude_id=address_id)
            if data.get("is_default") is not None:
                entry.is_default = bool(data["is_default"])
            if "notes" in data:
                entry.notes = data["notes"]
            session.flush()
            return address_to_dict(entry)

    def delete_customer_address(self, address_id: int) -> bool:
        with self._session() as session:
            entry = session.get(CustomerAddress, address_id)
            if not entry:
                return False
            session.delete(entry)
            return True
