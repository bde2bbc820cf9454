"""
Model to dict conversion shared by the repositories

Must be called while the owning session is still open so lazy relationships
can load.
"""

import json
from typing import Any, Optional

from flamex_pos.infrastructure.database.models import (
    BusinessInfo,
    Category,
    Customer,
    CustomerAddress,
    Expense,
    MenuItem,
    Order,
    OrderEditHistory,
    OrderItem,
    Rider,
    User,
)


def category_to_dict(category: Category, include_count: bool = False) -> dict[str, Any]:
    result = {
        "id": category.id,
        "name": category.name,
        "description": category.description,
        "created_at": category.created_at,
        "updated_at": category.updated_at,
    }
    if include_count:
        result["menu_items_count"] = len(category.menu_items)
    return result


def menu_item_to_dict(item: MenuItem, include_category: bool = True) -> dict[str, Any]:
    result = {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "price": item.price,
        "category_id": item.category_id,
        "image_url": item.image_url,
        "available": item.available,
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }
    if include_category:
        result["category"] = category_to_dict(item.category) if item.category else None
    return result


def address_to_dict(address: CustomerAddress) -> dict[str, Any]:
    return {
        "id": address.id,
        "customer_id": address.customer_id,
        "address": address.address,
        "is_default": address.is_default,
        "notes": address.notes,
        "created_at": address.created_at,
        "updated_at": address.updated_at,
    }


def customer_to_dict(customer: Customer, include_addresses: bool = False) -> dict[str, Any]:
    result = {
        "id": customer.id,
        "name": customer.name,
        "phone": customer.phone,
        "backup_phone": customer.backup_phone,
        "address": customer.address,
        "notes": customer.notes,
        "total_orders": customer.total_orders,
        "total_spent": customer.total_spent,
        "created_at": customer.created_at,
        "updated_at": customer.updated_at,
    }
    if include_addresses:
        addresses = sorted(customer.addresses, key=lambda a: (not a.is_default, a.created_at))
        result["addresses"] = [address_to_dict(a) for a in addresses]
    return result


def rider_to_dict(rider: Rider) -> dict[str, Any]:
    return {
        "id": rider.id,
        "name": rider.name,
        "phone": rider.phone,
        "cnic": rider.cnic,
        "address": rider.address,
        "status": rider.status,
        "total_deliveries": rider.total_deliveries,
        "total_cash_collected": rider.total_cash_collected,
        "created_at": rider.created_at,
        "updated_at": rider.updated_at,
    }


def order_item_to_dict(item: OrderItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "order_id": item.order_id,
        "menu_item_id": item.menu_item_id,
        "quantity": item.quantity,
        "price": item.price,
        "menu_item": menu_item_to_dict(item.menu_item, include_category=False)
        if item.menu_item
        else None,
    }


def order_to_dict(order: Order, include_relations: bool = True) -> dict[str, Any]:
    result = {
        "id": order.id,
        "order_number": order.order_number,
        "business_date": order.business_date,
        "order_type": order.order_type,
        "order_status": order.order_status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "delivery_status": order.delivery_status,
        "subtotal": order.subtotal,
        "discount_percent": order.discount_percent,
        "delivery_charge": order.delivery_charge,
        "total_amount": order.total_amount,
        "amount_taken": order.amount_taken,
        "return_amount": order.return_amount,
        "table_number": order.table_number,
        "delivery_address": order.delivery_address,
        "delivery_notes": order.delivery_notes,
        "special_instructions": order.special_instructions,
        "cashier_name": order.cashier_name,
        "customer_id": order.customer_id,
        "rider_id": order.rider_id,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "assigned_at": order.assigned_at,
        "delivered_at": order.delivered_at,
    }
    if include_relations:
        result["items"] = [order_item_to_dict(item) for item in order.order_items]
        result["customer"] = customer_to_dict(order.customer) if order.customer else None
        result["rider"] = rider_to_dict(order.rider) if order.rider else None
    return result


def _load_items(raw: Optional[str]) -> list[dict[str, Any]]:
    if not raw:
        return []
    return json.loads(raw)


def edit_history_to_dict(entry: OrderEditHistory) -> dict[str, Any]:
    return {
        "id": entry.id,
        "order_id": entry.order_id,
        "edited_by": entry.edited_by,
        "old_total_amount": entry.old_total_amount,
        "new_total_amount": entry.new_total_amount,
        "old_payment_method": entry.old_payment_method,
        "new_payment_method": entry.new_payment_method,
        "old_amount_taken": entry.old_amount_taken,
        "new_amount_taken": entry.new_amount_taken,
        "old_return_amount": entry.old_return_amount,
        "new_return_amount": entry.new_return_amount,
        "old_items": _load_items(entry.old_items),
        "new_items": _load_items(entry.new_items),
        "change_reason": entry.change_reason,
        "ip_address": entry.ip_address,
        "edited_at": entry.edited_at,
    }


def expense_to_dict(expense: Expense) -> dict[str, Any]:
    return {
        "id": expense.id,
        "description": expense.description,
        "amount": expense.amount,
        "category": expense.category,
        "payment_method": expense.payment_method,
        "quantity": expense.quantity,
        "unit": expense.unit,
        "unit_price": expense.unit_price,
        "expense_date": expense.expense_date,
        "created_at": expense.created_at,
        "updated_at": expense.updated_at,
    }


def user_to_dict(user: User) -> dict[str, Any]:
    """Public view of a user; the password hash never leaves the repository"""
    return {
        "id": user.id,
        "username": user.username,
        "full_name": user.full_name,
        "role": user.role,
        "email": user.email,
        "phone": user.phone,
        "status": user.status,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


def business_info_to_dict(info: BusinessInfo) -> dict[str, Any]:
    return {
        "id": info.id,
        "key": info.key,
        "value": info.value,
        "created_at": info.created_at,
        "updated_at": info.updated_at,
    }
