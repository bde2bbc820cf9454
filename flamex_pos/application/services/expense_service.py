"""
Expense Service
"""

import logging
from datetime import datetime
from typing import Any, Optional

from flamex_pos.config import get_config
from flamex_pos.infrastructure.repositories.sqlalchemy_expense_repository import (
    SQLAlchemyExpenseRepository,
)
from flamex_pos.infrastructure.utilities.constants import ExpenseDefaults
from flamex_pos.infrastructure.utilities.date_utils import (
    parse_date,
    parse_date_range,
    start_of_day,
)
from flamex_pos.infrastructure.utilities.exceptions import NotFoundError, ValidationError
from flamex_pos.infrastructure.utilities.helpers import to_money

EXPENSE_FIELDS = (
    "description",
    "amount",
    "category",
    "payment_method",
    "quantity",
    "unit",
    "unit_price",
    "expense_date",
)


def _money_field(data: dict[str, Any], key: str) -> None:
    if data.get(key) is None:
        return
    try:
        data[key] = to_money(data[key])
    except ValueError as exc:
        raise ValidationError(f"Invalid {key}: {data[key]}", field=key) from exc
    if data[key] < 0:
        raise ValidationError(f"{key} cannot be negative", field=key)


def _prepare(data: dict[str, Any]) -> dict[str, Any]:
    data = {key: data[key] for key in EXPENSE_FIELDS if key in data}
    _money_field(data, "amount")
    _money_field(data, "unit_price")
    expense_date = data.get("expense_date")
    if expense_date is not None and not isinstance(expense_date, datetime):
        data["expense_date"] = start_of_day(parse_date(expense_date, "expense_date"))
    return data


class ExpenseService:
    """Business expenses and their statistics"""

    def __init__(self, expense_repository: SQLAlchemyExpenseRepository):
        self._expense_repository = expense_repository
        self._logger = logging.getLogger(self.__class__.__name__)

    def get_expenses(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> dict[str, Any]:
        date_range = None
        if start_date or end_date:
            date_range = parse_date_range(start_date or end_date, end_date or start_date)
        return self._expense_repository.find_expenses(
            date_range=date_range,
            category=category or None,
            search=search.strip() if search and search.strip() else None,
            page=page or 1,
            limit=limit or get_config().default_page_size,
        )

    def get_expense_by_id(self, expense_id: int) -> dict[str, Any]:
        expense = self._expense_repository.find_expense_by_id(expense_id)
        if not expense:
            raise NotFoundError("Expense not found", resource="expense")
        return expense

    def create_expense(self, data: dict[str, Any]) -> dict[str, Any]:
        data = _prepare(data)
        if not (data.get("description") or "").strip():
            raise ValidationError("Description is required", field="description")
        if data.get("amount") is None:
            raise ValidationError("Amount is required", field="amount")

        data["payment_method"] = data.get("payment_method") or ExpenseDefaults.PAYMENT_METHOD
        data["quantity"] = data.get("quantity") or ExpenseDefaults.QUANTITY
        data["unit"] = data.get("unit") or ExpenseDefaults.UNIT
        expense = self._expense_repository.create_expense(data)
        self._logger.info("✅ EXPENSE RECORDED: ID=%s amount=%s", expense["id"], expense["amount"])
        return expense

    def update_expense(self, expense_id: int, data: dict[str, Any]) -> dict[str, Any]:
        self.get_expense_by_id(expense_id)
        updated = self._expense_repository.update_expense(expense_id, _prepare(data))
        if updated is None:
            raise NotFoundError("Expense not found", resource="expense")
        return updated

    def delete_expense(self, expense_id: int) -> bool:
        self.get_expense_by_id(expense_id)
        return self._expense_repository.delete_expense(expense_id)

    def get_expense_statistics(
        self, start_date: Optional[str] = None, end_date: Optional[str] = None
    ) -> dict[str, Any]:
        return self._expense_repository.get_expense_statistics(
            parse_date_range(start_date, end_date)
        )

    def get_expense_categories(self) -> list[str]:
        return self._expense_repository.find_expense_categories()
