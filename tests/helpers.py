"""
Shared builders for order tests
"""

from datetime import datetime


def line(item, quantity=1, price=None):
    """Order line for ``item`` at its menu price unless ``price`` is given"""
    return {
        "menu_item_id": item["id"],
        "quantity": quantity,
        "price": item["price"] if price is None else price,
    }


def backdate(order_repository, order_id, when: datetime, **extra):
    """Move an order's timestamps, used to place orders on specific days"""
    return order_repository.update_order(order_id, {"created_at": when, **extra})
