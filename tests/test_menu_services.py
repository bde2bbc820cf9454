"""
Tests for menu items and categories
"""

from decimal import Decimal

import pytest

from flamex_pos.infrastructure.utilities.exceptions import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from tests.helpers import line


@pytest.fixture
def menu_item_service(container):
    return container.get_menu_item_service()


@pytest.fixture
def category_service(container):
    return container.get_category_service()


class TestMenuItemService:
    """Test MenuItemService"""

    def test_create_rounds_price(self, menu_item_service):
        item = menu_item_service.create_menu_item({"name": "  Tea ", "price": "49.999"})

        assert item["name"] == "Tea"
        assert item["price"] == Decimal("50.00")
        assert item["available"] is True
        assert item["category"] is None

    def test_create_requires_name_and_price(self, menu_item_service):
        with pytest.raises(ValidationError, match="Menu item name and price are required"):
            menu_item_service.create_menu_item({"name": "Tea"})

    @pytest.mark.parametrize("price", [0, "-5"])
    def test_price_must_be_positive(self, menu_item_service, price):
        with pytest.raises(ValidationError, match="price must be greater than zero"):
            menu_item_service.create_menu_item({"name": "Tea", "price": price})

    def test_invalid_price(self, menu_item_service):
        with pytest.raises(ValidationError) as exc_info:
            menu_item_service.create_menu_item({"name": "Tea", "price": "abc"})
        assert exc_info.value.field == "price"

    def test_unknown_category(self, menu_item_service):
        with pytest.raises(NotFoundError, match="Category not found"):
            menu_item_service.create_menu_item({"name": "Tea", "price": 50, "category_id": 99})

    def test_list_is_sorted_and_filtered(self, menu_item_service, menu_items):
        names = [item["name"] for item in menu_item_service.get_menu_items()]
        assert names == ["Burger", "Fries", "Pizza"]

        found = menu_item_service.get_menu_items(search="piz")
        assert [item["name"] for item in found] == ["Pizza"]

        # blank search is ignored
        assert len(menu_item_service.get_menu_items(search="   ")) == 3

    def test_toggle_availability(self, menu_item_service, menu_items):
        burger = menu_items[0]

        toggled = menu_item_service.toggle_availability(burger["id"])

        assert toggled["available"] is False
        available = [item["name"] for item in menu_item_service.get_available_menu_items()]
        assert available == ["Fries", "Pizza"]
        assert [i["name"] for i in menu_item_service.get_menu_items(available=False)] == ["Burger"]

    def test_items_by_category(self, menu_item_service, menu_items):
        category_id = menu_items[0]["category_id"]
        assert len(menu_item_service.get_menu_items_by_category(category_id)) == 3

    def test_update(self, menu_item_service, menu_items):
        updated = menu_item_service.update_menu_item(menu_items[2]["id"], {"price": 60})
        assert updated["price"] == Decimal("60.00")
        assert updated["name"] == "Fries"

    def test_update_missing(self, menu_item_service):
        with pytest.raises(NotFoundError, match="Menu item not found"):
            menu_item_service.update_menu_item(42, {"price": 60})

    def test_delete_unused_item(self, menu_item_service, menu_items):
        assert menu_item_service.delete_menu_item(menu_items[2]["id"]) is True
        with pytest.raises(NotFoundError):
            menu_item_service.get_menu_item_by_id(menu_items[2]["id"])

    def test_delete_item_on_order_is_refused(self, menu_item_service, order_service, menu_items):
        order_service.create_order({"items": [line(menu_items[0])]})

        with pytest.raises(ConflictError, match="appears on existing orders"):
            menu_item_service.delete_menu_item(menu_items[0]["id"])


class TestCategoryService:
    """Test CategoryService"""

    def test_create_and_duplicate(self, category_service):
        created = category_service.create_category({"name": " Drinks ", "description": "Cold"})
        assert created["name"] == "Drinks"

        with pytest.raises(ConflictError, match="Category with this name already exists"):
            category_service.create_category({"name": "Drinks"})

    def test_name_required(self, category_service):
        with pytest.raises(ValidationError, match="Category name is required"):
            category_service.create_category({"name": "  "})

    def test_get_includes_item_count(self, category_service, menu_items):
        category = category_service.get_category_by_id(menu_items[0]["category_id"])
        assert category["menu_items_count"] == 3

    def test_rename_conflict(self, category_service):
        category_service.create_category({"name": "Drinks"})
        desserts = category_service.create_category({"name": "Desserts"})

        with pytest.raises(ConflictError):
            category_service.update_category(desserts["id"], {"name": "Drinks"})

        # keeping the same name is not a conflict
        same = category_service.update_category(desserts["id"], {"name": "Desserts", "description": "Sweet"})
        assert same["description"] == "Sweet"

    def test_delete_with_items_is_refused(self, category_service, menu_items):
        with pytest.raises(ValidationError, match="Cannot delete category with existing menu items"):
            category_service.delete_category(menu_items[0]["category_id"])

    def test_delete_empty_category(self, category_service):
        drinks = category_service.create_category({"name": "Drinks"})

        assert category_service.delete_category(drinks["id"]) is True
        assert category_service.get_categories() == []

    def test_missing_category(self, category_service):
        with pytest.raises(NotFoundError):
            category_service.delete_category(7)
