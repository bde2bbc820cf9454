"""
SQLAlchemy repositories for the menu catalog (menu items and categories)
"""

import logging
from typing import Any, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from flamex_pos.infrastructure.database.models import Category, MenuItem
from flamex_pos.infrastructure.repositories.serializers import (
    category_to_dict,
    menu_item_to_dict,
)
from flamex_pos.infrastructure.repositories.session_handler import (
    SessionFactory,
    managed_session,
)
from flamex_pos.infrastructure.utilities.exceptions import ConflictError


class SQLAlchemyMenuItemRepository:
    """SQLAlchemy implementation of the menu item repository"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    def _session(self):
        return managed_session(self._session_factory)

    def find_menu_items(
        self,
        category_id: Optional[int] = None,
        available: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        conditions = []
        if category_id:
            conditions.append(MenuItem.category_id == category_id)
        if available is not None:
            conditions.append(MenuItem.available.is_(available))
        if search:
            pattern = f"%{search}%"
            conditions.append(or_(MenuItem.name.ilike(pattern), MenuItem.description.ilike(pattern)))
        return self._select(*conditions)

    def _select(self, *conditions) -> list[dict[str, Any]]:
        with self._session() as session:
            items = session.scalars(
                select(MenuItem)
                .where(*conditions)
                .options(selectinload(MenuItem.category))
                .order_by(MenuItem.name, MenuItem.id)
            ).all()
            return [menu_item_to_dict(item) for item in items]

    def find_menu_item_by_id(self, item_id: int) -> Optional[dict[str, Any]]:
        with self._session() as session:
            item = session.get(MenuItem, item_id)
            return menu_item_to_dict(item) if item else None

    def find_menu_items_by_category(self, category_id: int) -> list[dict[str, Any]]:
        return self._select(MenuItem.category_id == category_id, MenuItem.available.is_(True))

    def find_available_menu_items(self) -> list[dict[str, Any]]:
        return self._select(MenuItem.available.is_(True))

    def find_unavailable_menu_items(self) -> list[dict[str, Any]]:
        return self._select(MenuItem.available.is_(False))

    def create_menu_item(self, data: dict[str, Any]) -> dict[str, Any]:
        self._logger.info("🍔 CREATE MENU ITEM: %s", data.get("name"))
        with self._session() as session:
            item = MenuItem(**data)
            session.add(item)
            session.flush()
            return menu_item_to_dict(item)

    def update_menu_item(self, item_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        with self._session() as session:
            item = session.get(MenuItem, item_id)
            if not item:
                return None
            for key, value in data.items():
                setattr(item, key, value)
            session.flush()
            return menu_item_to_dict(item)

    def delete_menu_item(self, item_id: int) -> bool:
        with self._session() as session:
            item = session.get(MenuItem, item_id)
            if not item:
                return False
            session.delete(item)
            try:
                session.flush()
            except IntegrityError as e:
                raise ConflictError(
                    "Cannot delete menu item that appears on existing orders"
                ) from e
        return True


class SQLAlchemyCategoryRepository:
    """SQLAlchemy implementation of the category repository"""

    def __init__(self, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory
        self._logger = logging.getLogger(self.__class__.__name__)

    def _session(self):
        return managed_session(self._session_factory)

    def find_categories(self) -> list[dict[str, Any]]:
        with self._session() as session:
            categories = session.scalars(select(Category).order_by(Category.name)).all()
            return [category_to_dict(c) for c in categories]

    def find_category_by_id(self, category_id: int) -> Optional[dict[str, Any]]:
        with self._session() as session:
            category = session.get(Category, category_id)
            return category_to_dict(category, include_count=True) if category else None

    def find_category_by_name(self, name: str) -> Optional[dict[str, Any]]:
        with self._session() as session:
            category = session.scalar(select(Category).where(Category.name == name))
            return category_to_dict(category) if category else None

    def create_category(self, data: dict[str, Any]) -> dict[str, Any]:
        with self._session() as session:
            category = Category(**data)
            session.add(category)
            self._flush_unique_name(session)
            return category_to_dict(category)

    def update_category(self, category_id: int, data: dict[str, Any]) -> Optional[dict[str, Any]]:
        with self._session() as session:
            category = session.get(Category, category_id)
            if not category:
                return None
            for key, value in data.items():
                setattr(category, key, value)
            self._flush_unique_name(session)
            return category_to_dict(category)

    @staticmethod
    def _flush_unique_name(session) -> None:
        try:
            session.flush()
        except IntegrityError as e:
            raise ConflictError("Category with this name already exists", field="name") from e

    def delete_category(self, category_id: int) -> bool:
        with self._session() as session:
            category = session.get(Category, category_id)
            if not category:
                return False
            session.delete(category)
        return True

    def has_menu_items(self, category_id: int) -> bool:
        with self._session() as session:
            return bool(
                session.scalar(
                    select(func.count(MenuItem.id)).where(MenuItem.category_id == category_id)
                )
            )
