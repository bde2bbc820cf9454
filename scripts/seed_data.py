#!/usr/bin/env python3
"""
Seed a development database with realistic POS data.

This script will generate:
- A small menu across a few categories
- Customers with saved addresses and riders
- Dine-in and delivery orders spread over the last weeks
- Daily expenses

Orders go through the services, so totals, history and customer/rider
statistics are produced exactly as at the till.
"""

import argparse
import random
import sys
from datetime import timedelta
from pathlib import Path

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from faker import Faker

from flamex_pos.container import get_container
from flamex_pos.infrastructure.database.operations import init_db
from flamex_pos.infrastructure.logging.logging_config import setup_logging
from flamex_pos.infrastructure.utilities.date_utils import local_now

fake = Faker(["en_PK", "en_US"])

MENU = {
    "Pizza": [("Chicken Tikka Pizza", 1450), ("Fajita Pizza", 1350), ("Veggie Pizza", 1100)],
    "Burgers": [("Zinger Burger", 650), ("Beef Burger", 750), ("Chicken Burger", 550)],
    "Sides": [("Fries", 250), ("Garlic Bread", 300), ("Coleslaw", 150)],
    "Drinks": [("Soft Drink", 120), ("Mint Margarita", 350), ("Mineral Water", 80)],
}

AREAS = ["DHA Phase 5", "Gulberg III", "Model Town", "Johar Town", "Bahria Town"]
EXPENSE_CATEGORIES = ["Groceries", "Utilities", "Salaries", "Gas", "Maintenance"]


def phone_number() -> str:
    return "03" + "".join(random.choices("0123456789", k=9))


def seed_menu(container) -> list:
    categories = container.get_category_service()
    menu_items = container.get_menu_item_service()
    items = []
    for category_name, dishes in MENU.items():
        category = categories.create_category({"name": category_name})
        for name, price in dishes:
            items.append(
                menu_items.create_menu_item(
                    {"name": name, "price": price, "category_id": category["id"]}
                )
            )
    return items


def seed_customers(container, count: int) -> list:
    service = container.get_customer_service()
    return [
        service.create_customer(
            {
                "name": fake.name(),
                "phone": phone_number(),
                "address": f"House {fake.building_number()}, Street {random.randint(1, 40)}, "
                f"{random.choice(AREAS)}, Lahore",
            }
        )
        for _ in range(count)
    ]


def seed_riders(container, count: int) -> list:
    service = container.get_rider_service()
    return [
        service.create_rider(
            {
                "name": fake.name(),
                "phone": phone_number(),
                "cnic": f"{random.randint(10000, 99999)}-{random.randint(1000000, 9999999)}-"
                f"{random.randint(1, 9)}",
            }
        )
        for _ in range(count)
    ]


def random_items(menu_items: list) -> list:
    return [
        {"menu_item_id": item["id"], "quantity": random.randint(1, 3), "price": item["price"]}
        for item in random.sample(menu_items, k=random.randint(1, 4))
    ]


def seed_orders(
    container, menu_items: list, customers: list, riders: list, count: int, days: int
) -> None:
    orders = container.get_order_service()
    repository = container.get_order_repository()
    now = local_now()
    # placed through the services "now", then moved back in time
    for _ in range(count):
        placed_at = now - timedelta(days=random.randint(0, days - 1), minutes=random.randint(0, 600))
        if random.random() < 0.5:
            order = orders.create_order(
                {
                    "order_type": "dine_in",
                    "table_number": random.randint(1, 12),
                    "payment_method": random.choice(["cash", "bank_transfer"]),
                    "items": random_items(menu_items),
                }
            )
            if random.random() < 0.8:
                orders.update_order_status(order["id"], "completed")
            if order["payment_status"] == "pending":
                paid = int(order["total_amount"]) + random.choice([0, 50, 100, 500])
                orders.mark_order_as_paid(
                    order["id"], {"payment_method": "cash", "amount_taken": paid}
                )
            repository.update_order(order["id"], {"created_at": placed_at})
            continue

        customer = random.choice(customers)
        order = orders.create_order(
            {
                "order_type": "delivery",
                "customer_id": customer["id"],
                "delivery_address": customer["address"],
                "delivery_charge": random.choice([0, 100, 150]),
                "discount_percent": random.choice([0, 0, 0, 10]),
                "payment_method": random.choice(["cash", "cash", "bank_transfer"]),
                "items": random_items(menu_items),
            }
        )
        orders.assign_rider_to_order(order["id"], random.choice(riders)["id"])
        orders.update_delivery_status(order["id"], "out_for_delivery")
        timestamps = {"created_at": placed_at, "assigned_at": placed_at + timedelta(minutes=10)}
        if random.random() < 0.85:
            orders.update_delivery_status(order["id"], "delivered")
            timestamps["delivered_at"] = placed_at + timedelta(minutes=random.randint(20, 75))
        repository.update_order(order["id"], timestamps)


def seed_expenses(container, days: int) -> None:
    service = container.get_expense_service()
    today = local_now().date()
    for offset in range(days):
        for _ in range(random.randint(1, 3)):
            service.create_expense(
                {
                    "description": fake.sentence(nb_words=4).rstrip("."),
                    "amount": random.randint(500, 15000),
                    "category": random.choice(EXPENSE_CATEGORIES),
                    "expense_date": (today - timedelta(days=offset)).isoformat(),
                }
            )


def seed_business_info(container) -> None:
    service = container.get_business_info_service()
    service.upsert_setting("business_name", "Flamex")
    service.upsert_setting("business_address", fake.address().replace("\n", ", "))
    service.upsert_setting("business_phone", phone_number())


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the Flamex POS database")
    parser.add_argument("--customers", type=int, default=40)
    parser.add_argument("--riders", type=int, default=5)
    parser.add_argument("--orders", type=int, default=150)
    parser.add_argument("--order-days", type=int, default=21, help="Spread orders over this many days")
    parser.add_argument("--expense-days", type=int, default=30)
    parser.add_argument("--seed", type=int, help="Random seed for repeatable data")
    args = parser.parse_args()

    if args.seed is not None:
        random.seed(args.seed)
        Faker.seed(args.seed)

    setup_logging()
    init_db()
    container = get_container()

    print("🌱 Seeding database...")
    seed_business_info(container)
    menu_items = seed_menu(container)
    customers = seed_customers(container, args.customers)
    riders = seed_riders(container, args.riders)
    seed_orders(container, menu_items, customers, riders, args.orders, args.order_days)
    seed_expenses(container, args.expense_days)
    print(
        f"✅ Seeded {len(menu_items)} menu items, {len(customers)} customers, "
        f"{len(riders)} riders and {args.orders} orders"
    )


if __name__ == "__main__":
    main()
