"""
SQLAlchemy Expense Repository
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, select

from flamex_pos.infrastructure.database.models import Expense
from flamex_pos.infrastructure.repositories.serializers import expense_to_dict
from flamex_pos.infrastructure.repositories.session_handler import (
    SessionFactory,
    managed_session,
)
from flamex_pos.infrastructure.utilities.constants import ReportSettings
from flamex_pos.infrastructure.utilities.date_utils import DateRange
from flamex_pos.infrastructure.utilities.helpers import pagination, safe_average, to_money

# An expense belongs to the day it was incurred, or the day it was recorded
EFFECTIVE_DATE = func.coalesce(Expense.expense_date, Expense.created_at)


def in_range(date_range: DateRange):
    return EFFECTIVE_DATE.between(date_range.start_date, date_range.end_date)


class SQLAlchemyExpenseRepository:
    """SQLAlchemy implementation of the expense repository"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    def _session(self):
        return managed_session(self._session_factory)

    def find_expenses(
        self,
        date_range: Optional[DateRange] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> dict[str, Any]:
        conditions = []
        if date_range:
            conditions.append(in_range(date_range))
        if category:
            conditions.append(Expense.category.ilike(f"%{category}%"))
        if search:
            conditions.append(Expense.description.ilike(f"%{search}%"))

        with self._session() as session:
            total = session.scalar(select(func.count(Expense.id)).where(*conditions)) or 0
            expenses = session.scalars(
                select(Expense)
                .where(*conditions)
                .order_by(Expense.created_at.desc(), Expense.id.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
            return {
                "expenses": [expense_to_dict(e) for e in expenses],
                "pagination": pagination(total, page, limit),
            }

    def find_expenses_in_range(self, date_range: DateRange) -> list[dict[str, Any]]:
        """Every expense in the range, oldest first (used by the reports)"""
        with self._session() as session:
            expenses = session.scalars(
                select(Expense).where(in_range(date_range)).order_by(EFFECTIVE_DATE, Expense.id)
            ).all()
            return [expense_to_dict(e) for e in expenses]

    def find_expense_by_id(self, expense_id: int) -> Optional[dict[str, Any]]:
        with self._session() as session:
            expense = session.get(Expense, expense_id)
            return expense_to_dict(expense) if expense else None

    def create_expense(self, data: dict[str, Any]) -> dict[str, Any]:
        self._logger.info("💸 CREATE EXPENSE: %s", data.get("description"))
        with self._session() as session:
            expense = Expense(**data)
            session.add(expense)
            session.flush()
            return expense_to_dict(expense)

    def update_expense(self, expense_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        with self._session() as session:
            expense = session.get(Expense, expense_id)
            if not expense:
                return None
            for key, value in data.items():
                setattr(expense, key, value)
            session.flush()
            return expense_to_dict(expense)

    def delete_expense(self, expense_id: int) -> bool:
        with self._session() as session:
            expense = session.get(Expense, expense_id)
            if not expense:
                return False
            session.delete(expense)
        return True

    def get_expense_statistics(self, date_range: DateRange) -> dict[str, Any]:
        condition = in_range(date_range)
        with self._session() as session:
            count, total = session.execute(
                select(func.count(Expense.id), func.coalesce(func.sum(Expense.amount), 0)).where(
                    condition
                )
            ).one()
            by_category = session.execute(
                select(Expense.category, func.sum(Expense.amount), func.count(Expense.id))
                .where(condition)
                .group_by(Expense.category)
                .order_by(Expense.category)
            ).all()
            by_payment_method = session.execute(
                select(Expense.payment_method, func.sum(Expense.amount), func.count(Expense.id))
                .where(condition)
                .group_by(Expense.payment_method)
                .order_by(Expense.payment_method)
            ).all()

        total_amount = to_money(total)
        return {
            "total_amount": total_amount,
            "total_count": count,
            "average_amount": safe_average(total_amount, count),
            "by_category": [
                {
                    "category": category or ReportSettings.UNCATEGORIZED,
                    "total_amount": to_money(amount),
                    "count": category_count,
                }
                for category, amount, category_count in by_category
            ],
            "by_payment_method": [
                {
                    "payment_method": method,
                    "total_amount": to_money(amount),
                    "count": method_count,
                }
                for method, amount, method_count in by_payment_method
            ],
        }

    def find_expense_categories(self) -> list[str]:
        with self._session() as session:
            return list(
                session.scalars(
                    select(Expense.category)
                    .where(Expense.category.is_not(None), Expense.category != "")
                    .distinct()
                    .order_by(Expense.category)
                ).all()
            )
