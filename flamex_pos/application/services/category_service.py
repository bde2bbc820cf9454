"""
Category Service
"""

from typing import Any

from flamex_pos.infrastructure.repositories.sqlalchemy_menu_repository import (
    SQLAlchemyCategoryRepository,
)
from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)


class CategoryService:
    def __init__(self, category_repository: SQLAlchemyCategoryRepository):
        self._category_repository = category_repository

    def get_categories(self) -> list[dict[str, Any]]:
        return self._category_repository.find_categories()

    def get_category_by_id(self, category_id: int) -> dict[str, Any]:
        category = self._category_repository.find_category_by_id(category_id)
        if not category:
            raise NotFoundError("Category not found", resource="category")
        return category

    def create_category(self, data: dict[str, Any]) -> dict[str, Any]:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Category name is required", field="name")
        if self._category_repository.find_category_by_name(name):
            raise ConflictError("Category with this name already exists", field="name")
        return self._category_repository.create_category(
            {"name": name, "description": data.get("description")}
        )

    def update_category(self, category_id: int, data: dict[str, Any]) -> dict[str, Any]:
        existing = self.get_category_by_id(category_id)
        changes = {key: data[key] for key in ("name", "description") if key in data}

        if "name" in changes:
            changes["name"] = (changes["name"] or "").strip()
            if not changes["name"]:
                raise ValidationError("Category name is required", field="name")
            if changes["name"] != existing["name"] and self._category_repository.find_category_by_name(
                changes["name"]
            ):
                raise ConflictError("Category with this name already exists", field="name")

        updated = self._category_repository.update_category(category_id, changes)
        if updated is None:
            raise NotFoundError("Category not found", resource="category")
        return updated

    def delete_category(self, category_id: int) -> bool:
        self.get_category_by_id(category_id)
        if self._category_repository.has_menu_items(category_id):
            raise ValidationError("Cannot delete category with existing menu items")
        return self._category_repository.delete_category(category_id)
