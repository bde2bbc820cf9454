"""
Menu Item Service
"""

import logging
from typing import Any, Optional

from flamex_pos.infrastructure.repositories.sqlalchemy_menu_repository import (
    SQLAlchemyCategoryRepository,
    SQLAlchemyMenuItemRepository,
)
from flamex_pos.infrastructure.utilities.exceptions import NotFoundError, ValidationError
from flamex_pos.infrastructure.utilities.helpers import to_money

MENU_ITEM_FIELDS = ("name", "description", "price", "category_id", "image_url", "available")


class MenuItemService:
    """Menu catalogue; ``available`` decides what can be ordered"""

    def __init__(
        self,
        menu_item_repository: SQLAlchemyMenuItemRepository,
        category_repository: SQLAlchemyCategoryRepository,
    ):
        self._menu_item_repository = menu_item_repository
        self._category_repository = category_repository
        self._logger = logging.getLogger(self.__class__.__name__)

    def _prepare(self, data: dict[str, Any]) -> dict[str, Any]:
        data = {key: data[key] for key in MENU_ITEM_FIELDS if key in data}
        if "name" in data:
            data["name"] = (data["name"] or "").strip()
            if not data["name"]:
                raise ValidationError("Menu item name is required", field="name")
        if "price" in data:
            try:
                data["price"] = to_money(data["price"])
            except ValueError as exc:
                raise ValidationError(f"Invalid price: {data['price']}", field="price") from exc
            if data["price"] <= 0:
                raise ValidationError("price must be greater than zero", field="price")
        if data.get("category_id") and not self._category_repository.find_category_by_id(
            data["category_id"]
        ):
            raise NotFoundError("Category not found", resource="category")
        return data

    def get_menu_items(
        self,
        category_id: Optional[int] = None,
        available: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        return self._menu_item_repository.find_menu_items(
            category_id=category_id,
            available=available,
            search=search.strip() if search and search.strip() else None,
        )

    def get_menu_item_by_id(self, item_id: int) -> dict[str, Any]:
        item = self._menu_item_repository.find_menu_item_by_id(item_id)
        if not item:
            raise NotFoundError("Menu item not found", resource="menu_item")
        return item

    def create_menu_item(self, data: dict[str, Any]) -> dict[str, Any]:
        if "name" not in data or "price" not in data:
            raise ValidationError("Menu item name and price are required")
        return self._menu_item_repository.create_menu_item(self._prepare(data))

    def update_menu_item(self, item_id: int, data: dict[str, Any]) -> dict[str, Any]:
        self.get_menu_item_by_id(item_id)
        updated = self._menu_item_repository.update_menu_item(item_id, self._prepare(data))
        if updated is None:
            raise NotFoundError("Menu item not found", resource="menu_item")
        return updated

    def delete_menu_item(self, item_id: int) -> bool:
        self.get_menu_item_by_id(item_id)
        return self._menu_item_repository.delete_menu_item(item_id)

    def toggle_availability(self, item_id: int) -> dict[str, Any]:
        item = self.get_menu_item_by_id(item_id)
        self._logger.info("🔄 MENU ITEM AVAILABILITY: ID=%s -> %s", item_id, not item["available"])
        return self._menu_item_repository.update_menu_item(
            item_id, {"available": not item["available"]}
        )

    def get_menu_items_by_category(self, category_id: int) -> list[dict[str, Any]]:
        return self._menu_item_repository.find_menu_items_by_category(category_id)

    def get_available_menu_items(self) -> list[dict[str, Any]]:
        return self._menu_item_repository.find_available_menu_items()
