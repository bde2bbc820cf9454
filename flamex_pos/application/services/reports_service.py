"""
Reports Service

Date-bucketed sales, customer, rider, delivery and profit reports. Every
report resolves a date range, loads the matching rows through the
repositories and reduces them in memory.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Callable, Hashable, Iterable, Optional, Union

from flamex_pos.application.dtos.order_dtos import parse_enum
from flamex_pos.infrastructure.logging.logging_config import PerformanceLogger
from flamex_pos.infrastructure.repositories.sqlalchemy_customer_repository import (
    SQLAlchemyCustomerRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_expense_repository import (
    SQLAlchemyExpenseRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_menu_repository import (
    SQLAlchemyMenuItemRepository,
)
from flamex_pos.infrastructure.repositories.sqlalchemy_order_repository import (
    SQLAlchemyOrderRepository,
)
from flamex_pos.infrastructure.utilities.constants import (
    DeliveryStatus,
    LoyaltyThresholds,
    OrderStatus,
    OrderType,
    PaymentMethod,
    PaymentStatus,
    ProfitThresholds,
    ReportSettings,
    RiderStatus,
    TimelineInterval,
)
from flamex_pos.infrastructure.utilities.date_utils import (
    DateRange,
    day_range,
    each_day,
    each_month,
    local_today,
    month_range,
    parse_date,
    resolve_date_range,
    year_range,
)
from flamex_pos.infrastructure.utilities.exceptions import ValidationError
from flamex_pos.infrastructure.utilities.helpers import (
    ZERO,
    extract_area_from_address,
    percentage,
    safe_average,
    sum_money,
    to_money,
)

Order = dict[str, Any]

OPEN_DELIVERY_STATUSES = (DeliveryStatus.PENDING.value, DeliveryStatus.OUT_FOR_DELIVERY.value)


def _revenue(orders: Iterable[Order]) -> Decimal:
    return sum_money(order["total_amount"] for order in orders)


def _count_and_revenue(orders: list[Order]) -> dict[str, Any]:
    return {"count": len(orders), "revenue": _revenue(orders)}


def _only(orders: Iterable[Order], **criteria) -> list[Order]:
    return [o for o in orders if all(o[key] == value for key, value in criteria.items())]


def _bucket(orders: Iterable[Order], key: Callable[[Order], Hashable]) -> dict[Hashable, list[Order]]:
    buckets: dict[Hashable, list[Order]] = defaultdict(list)
    for order in orders:
        buckets[key(order)].append(order)
    return buckets


def _week_start(day: date) -> date:
    """Sunday on or before ``day``"""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def _expense_day(expense: dict[str, Any]) -> date:
    return (expense["expense_date"] or expense["created_at"]).date()


def _period(date_range: DateRange) -> dict[str, datetime]:
    return date_range.as_dict()


def loyalty_segment(order_count: int) -> Optional[str]:
    """Segment for a customer's qualifying order count; None below one order"""
    if order_count < LoyaltyThresholds.MIN_ORDERS:
        return None
    if order_count <= LoyaltyThresholds.NEW_MAX_ORDERS:
        return "new"
    if order_count <= LoyaltyThresholds.REGULAR_MAX_ORDERS:
        return "regular"
    if order_count <= LoyaltyThresholds.LOYAL_MAX_ORDERS:
        return "loyal"
    return "vip"


class ReportsService:
    """Analytics over orders, expenses, customers and riders"""

    def __init__(
        self,
        order_repository: SQLAlchemyOrderRepository,
        customer_repository: SQLAlchemyCustomerRepository,
        expense_repository: SQLAlchemyExpenseRepository,
        menu_item_repository: SQLAlchemyMenuItemRepository,
    ):
        self._order_repository = order_repository
        self._customer_repository = customer_repository
        self._expense_repository = expense_repository
        self._menu_item_repository = menu_item_repository
        self._logger = logging.getLogger(self.__class__.__name__)

    @staticmethod
    def resolve_date_range(
        preset: Optional[str] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
    ) -> DateRange:
        return resolve_date_range(preset, start, end)

    def _orders(self, date_range: DateRange, **kwargs) -> list[Order]:
        return self._order_repository.find_orders_in_range(date_range, **kwargs)

    # ------------------------------------------------------------------
    # Sales
    # ------------------------------------------------------------------

    def get_daily_sales_report(self, report_date: Union[str, date, None] = None) -> dict[str, Any]:
        day = parse_date(report_date, "date") if report_date else local_today()
        with PerformanceLogger("daily_sales_report", self._logger, {"date": day.isoformat()}):
            orders = self._orders(day_range(day))
            orders.reverse()

            total_revenue = _revenue(orders)
            total_items = sum(item["quantity"] for order in orders for item in order["items"])
            return {
                "date": day.isoformat(),
                "summary": {
                    "total_revenue": total_revenue,
                    "total_orders": len(orders),
                    "total_items": total_items,
                    "average_order_value": safe_average(total_revenue, len(orders)),
                },
                "breakdown": {
                    "by_order_type": {
                        "dine_in": _count_and_revenue(
                            _only(orders, order_type=OrderType.DINE_IN.value)
                        ),
                        "delivery": _count_and_revenue(
                            _only(orders, order_type=OrderType.DELIVERY.value)
                        ),
                    },
                    "by_payment_method": {
                        "cash": _count_and_revenue(
                            _only(orders, payment_method=PaymentMethod.CASH.value)
                        ),
                        "bank_transfer": _count_and_revenue(
                            _only(orders, payment_method=PaymentMethod.BANK_TRANSFER.value)
                        ),
                    },
                },
                "orders": orders,
            }

    def get_monthly_sales_report(
        self, year: Optional[int] = None, month: Optional[int] = None
    ) -> dict[str, Any]:
        today = local_today()
        year = year or today.year
        month = month or today.month
        date_range = month_range(year, month)

        with PerformanceLogger("monthly_sales_report", self._logger, {"year": year, "month": month}):
            orders = self._orders(date_range)
            by_day = _bucket(orders, lambda o: o["created_at"].date())
            daily_stats = [
                {
                    "date": day.isoformat(),
                    "day_of_week": day.strftime("%A"),
                    "orders": len(by_day.get(day, [])),
                    "revenue": _revenue(by_day.get(day, [])),
                }
                for day in each_day(date_range)
            ]

            total_revenue = _revenue(orders)
            return {
                "period": f"{year}-{month:02d}",
                "summary": {
                    "total_revenue": total_revenue,
                    "total_orders": len(orders),
                    "average_order_value": safe_average(total_revenue, len(orders)),
                    "daily_average": safe_average(total_revenue, len(daily_stats)),
                },
                "daily_stats": daily_stats,
                "top_items": [
                    {key: item[key] for key in ("id", "name", "quantity", "revenue")}
                    for item in self._rank_items(orders)[: ReportSettings.TOP_ITEMS_LIMIT]
                ],
            }

    def get_yearly_sales_report(self, year: Optional[int] = None) -> dict[str, Any]:
        year = year or local_today().year
        with PerformanceLogger("yearly_sales_report", self._logger, {"year": year}):
            orders = self._orders(year_range(year))
            by_month = _bucket(orders, lambda o: o["created_at"].month)
            monthly_stats = [
                {
                    "month": month,
                    "month_name": date(year, month, 1).strftime("%b"),
                    "revenue": _revenue(by_month.get(month, [])),
                    "orders": len(by_month.get(month, [])),
                }
                for month in range(1, 13)
            ]

            total_revenue = _revenue(orders)
            return {
                "year": year,
                "summary": {
                    "total_revenue": total_revenue,
                    "total_orders": len(orders),
                    "average_order_value": safe_average(total_revenue, len(orders)),
                    "monthly_average": safe_average(total_revenue, 12),
                },
                "monthly_stats": monthly_stats,
            }

    def get_order_summary_report(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        date_range = resolve_date_range(preset, start, end)
        orders = self._orders(date_range)

        total_revenue = _revenue(orders)
        total_items = sum(item["quantity"] for order in orders for item in order["items"])
        customers = {order["customer_id"] for order in orders if order["customer_id"]}

        hour_counts: dict[int, int] = defaultdict(int)
        for order in orders:
            hour_counts[order["created_at"].hour] += 1

        return {
            "period": _period(date_range),
            "summary": {
                "total_revenue": total_revenue,
                "total_orders": len(orders),
                "total_customers": len(customers),
                "total_items": total_items,
                "average_order_value": safe_average(total_revenue, len(orders)),
                "average_items_per_order": round(total_items / len(orders), 2) if orders else 0,
            },
            "breakdown": {
                "by_status": {
                    status.value: len(_only(orders, order_status=status.value))
                    for status in OrderStatus
                },
                "by_order_type": {
                    order_type.value: len(_only(orders, order_type=order_type.value))
                    for order_type in OrderType
                },
                "by_payment_method": {
                    method.value: len(_only(orders, payment_method=method.value))
                    for method in PaymentMethod
                },
            },
            "peak_hours": [
                {"hour": hour, "count": hour_counts[hour]} for hour in sorted(hour_counts)
            ],
        }

    def get_order_timeline_report(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        interval: str = TimelineInterval.DAILY.value,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        """Dense series: every bucket in the range appears, empty ones as 0/0"""
        interval = parse_enum(TimelineInterval, interval or TimelineInterval.DAILY.value, "interval")
        date_range = resolve_date_range(preset, start, end)

        with PerformanceLogger("order_timeline_report", self._logger, {"interval": interval}):
            orders = self._orders(date_range)
            timeline = getattr(self, f"_{interval}_timeline")(orders, date_range)

            total_orders = sum(bucket["orders"] for bucket in timeline)
            total_revenue = sum_money(bucket["revenue"] for bucket in timeline)
            return {
                "interval": interval,
                "period": _period(date_range),
                "timeline": timeline,
                "summary": {
                    "total_orders": total_orders,
                    "total_revenue": total_revenue,
                    "average_orders_per_interval": (
                        round(total_orders / len(timeline), 2) if timeline else 0
                    ),
                    "average_revenue_per_interval": safe_average(total_revenue, len(timeline)),
                },
            }

    @staticmethod
    def _hourly_timeline(orders: list[Order], date_range: DateRange) -> list[dict[str, Any]]:
        buckets = _bucket(orders, lambda o: o["created_at"].replace(minute=0, second=0, microsecond=0))
        timeline = []
        for day in each_day(date_range):
            for hour in range(24):
                moment = datetime(day.year, day.month, day.day, hour)
                timeline.append(
                    {
                        "time": moment.strftime("%Y-%m-%d %H:00"),
                        "orders": len(buckets.get(moment, [])),
                        "revenue": _revenue(buckets.get(moment, [])),
                    }
                )
        return timeline

    @staticmethod
    def _daily_timeline(orders: list[Order], date_range: DateRange) -> list[dict[str, Any]]:
        buckets = _bucket(orders, lambda o: o["created_at"].date())
        return [
            {
                "date": day.isoformat(),
                "day_of_week": day.strftime("%A"),
                "orders": len(buckets.get(day, [])),
                "revenue": _revenue(buckets.get(day, [])),
            }
            for day in each_day(date_range)
        ]

    @staticmethod
    def _weekly_timeline(orders: list[Order], date_range: DateRange) -> list[dict[str, Any]]:
        buckets = _bucket(orders, lambda o: _week_start(o["created_at"].date()))
        timeline = []
        week = _week_start(date_range.start_date.date())
        last = date_range.end_date.date()
        while week <= last:
            timeline.append(
                {
                    "week_start": week.isoformat(),
                    "week_end": (week + timedelta(days=6)).isoformat(),
                    "orders": len(buckets.get(week, [])),
                    "revenue": _revenue(buckets.get(week, [])),
                }
            )
            week += timedelta(days=7)
        return timeline

    @staticmethod
    def _monthly_timeline(orders: list[Order], date_range: DateRange) -> list[dict[str, Any]]:
        buckets = _bucket(orders, lambda o: o["created_at"].date().replace(day=1))
        return [
            {
                "month": month.strftime("%Y-%m"),
                "month_name": month.strftime("%B %Y"),
                "orders": len(buckets.get(month, [])),
                "revenue": _revenue(buckets.get(month, [])),
            }
            for month in each_month(date_range)
        ]

    # ------------------------------------------------------------------
    # Items
    # ------------------------------------------------------------------

    @staticmethod
    def _rank_items(orders: list[Order]) -> list[dict[str, Any]]:
        """Per menu item totals, highest revenue first"""
        items: dict[int, dict[str, Any]] = {}
        for order in orders:
            for line in order["items"]:
                record = items.get(line["menu_item_id"])
                if record is None:
                    menu_item = line["menu_item"] or {}
                    record = items[line["menu_item_id"]] = {
                        "id": line["menu_item_id"],
                        "name": menu_item.get("name"),
                        "category_id": menu_item.get("category_id"),
                        "quantity": 0,
                        "revenue": ZERO,
                        "order_ids": set(),
                    }
                record["quantity"] += line["quantity"]
                record["revenue"] = to_money(record["revenue"] + line["price"] * line["quantity"])
                record["order_ids"].add(order["id"])

        ranked = []
        for record in items.values():
            order_ids = record.pop("order_ids")
            record["order_count"] = len(order_ids)
            record["average_quantity_per_order"] = (
                round(record["quantity"] / len(order_ids), 2) if order_ids else 0
            )
            ranked.append(record)
        ranked.sort(key=lambda r: r["revenue"], reverse=True)
        return ranked

    def get_top_selling_items_report(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        limit: int = ReportSettings.TOP_ITEMS_LIMIT,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        date_range = resolve_date_range(preset, start, end)
        items = self._rank_items(self._orders(date_range))
        return {
            "period": _period(date_range),
            "items": items[:limit],
            "summary": {
                "total_items_sold": sum(item["quantity"] for item in items),
                "total_revenue": sum_money(item["revenue"] for item in items),
                "unique_items": len(items),
            },
        }

    def get_low_stock_items_report(self) -> dict[str, Any]:
        """Menu items currently switched off (stock levels are not tracked)"""
        items = self._menu_item_repository.find_unavailable_menu_items()
        return {
            "count": len(items),
            "items": items,
            "summary": f"Found {len(items)} unavailable items",
        }

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def get_top_customers_report(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        limit: int = ReportSettings.TOP_ITEMS_LIMIT,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        date_range = resolve_date_range(preset, start, end)
        orders = [o for o in self._orders(date_range) if o["customer_id"]]

        customers = []
        for customer_orders in _bucket(orders, lambda o: o["customer_id"]).values():
            customer = customer_orders[0]["customer"]
            total_spent = _revenue(customer_orders)
            customers.append(
                {
                    "id": customer["id"],
                    "name": customer["name"],
                    "phone": customer["phone"],
                    "total_spent": total_spent,
                    "total_orders": len(customer_orders),
                    "average_order_value": safe_average(total_spent, len(customer_orders)),
                    "total_items": sum(
                        item["quantity"] for order in customer_orders for item in order["items"]
                    ),
                    "last_order_date": max(order["created_at"] for order in customer_orders),
                }
            )
        customers.sort(key=lambda c: c["total_spent"], reverse=True)

        total_revenue = sum_money(c["total_spent"] for c in customers)
        return {
            "period": _period(date_range),
            "customers": customers[:limit],
            "summary": {
                "total_customers": len(customers),
                "total_revenue": total_revenue,
                "average_customer_value": safe_average(total_revenue, len(customers)),
            },
        }

    def get_customer_loyalty_report(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        """Segment every customer by qualifying orders in the range.

        1 order is new, 2-5 regular, 6-10 loyal, above 10 vip. Customers
        without orders in the range count towards the total only.
        """
        date_range = resolve_date_range(preset, start, end)
        with PerformanceLogger("customer_loyalty_report", self._logger):
            customers = self._customer_repository.find_all_customers()
            orders_by_customer = _bucket(
                (o for o in self._orders(date_range) if o["customer_id"]),
                lambda o: o["customer_id"],
            )

            segments = {
                name: {"count": 0, "customers": [], "total_spent": ZERO}
                for name in ("new", "regular", "loyal", "vip")
            }
            total_orders = 0
            for customer in customers:
                customer_orders = orders_by_customer.get(customer["id"], [])
                total_orders += len(customer_orders)
                segment = loyalty_segment(len(customer_orders))
                if segment is None:
                    continue
                total_spent = _revenue(customer_orders)
                entry = segments[segment]
                entry["count"] += 1
                entry["total_spent"] = to_money(entry["total_spent"] + total_spent)
                entry["customers"].append(
                    {
                        "id": customer["id"],
                        "name": customer["name"],
                        "phone": customer["phone"],
                        "order_count": len(customer_orders),
                        "total_spent": total_spent,
                        "average_order_value": safe_average(total_spent, len(customer_orders)),
                    }
                )

            return {
                "period": _period(date_range),
                "segments": segments,
                "summary": {
                    "total_customers": len(customers),
                    "total_revenue": sum_money(s["total_spent"] for s in segments.values()),
                    "average_orders_per_customer": (
                        round(total_orders / len(customers), 2) if customers else 0
                    ),
                },
            }

    # ------------------------------------------------------------------
    # Riders
    # ------------------------------------------------------------------

    def get_rider_performance_report(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        """Active riders with orders in the range, most deliveries first.

        The average delivery time only counts delivered orders that carry
        both ``assigned_at`` and ``delivered_at``.
        """
        date_range = resolve_date_range(preset, start, end)
        orders = [
            o
            for o in self._orders(date_range)
            if o["rider"] and o["rider"]["status"] == RiderStatus.ACTIVE.value
        ]

        riders = []
        for rider_orders in _bucket(orders, lambda o: o["rider_id"]).values():
            rider = rider_orders[0]["rider"]
            delivered = _only(rider_orders, delivery_status=DeliveryStatus.DELIVERED.value)
            timed = [o for o in delivered if o["assigned_at"] and o["delivered_at"]]
            minutes = [
                (o["delivered_at"] - o["assigned_at"]).total_seconds() / 60 for o in timed
            ]
            recent = sorted(delivered, key=lambda o: o["created_at"], reverse=True)
            riders.append(
                {
                    "id": rider["id"],
                    "name": rider["name"],
                    "phone": rider["phone"],
                    "metrics": {
                        "total_deliveries": len(delivered),
                        "total_revenue": _revenue(delivered),
                        "cash_collected": _revenue(
                            _only(delivered, payment_method=PaymentMethod.CASH.value)
                        ),
                        "pending_deliveries": len(rider_orders) - len(delivered),
                        "average_delivery_time": round(sum(minutes) / len(minutes)) if minutes else 0,
                        "success_rate": percentage(len(delivered), len(rider_orders)),
                    },
                    "orders": recent[: ReportSettings.RECENT_DELIVERIES_PER_RIDER],
                }
            )
        riders.sort(key=lambda r: r["metrics"]["total_deliveries"], reverse=True)

        return {
            "period": _period(date_range),
            "riders": riders,
            "summary": {
                "total_riders": len(riders),
                "total_deliveries": sum(r["metrics"]["total_deliveries"] for r in riders),
                "total_revenue": sum_money(r["metrics"]["total_revenue"] for r in riders),
                "average_success_rate": (
                    round(sum(r["metrics"]["success_rate"] for r in riders) / len(riders), 2)
                    if riders
                    else 0
                ),
            },
        }

    # ------------------------------------------------------------------
    # Finance
    # ------------------------------------------------------------------

    def _financial_summary(
        self, date_range: DateRange, orders: list[Order], expenses: list[dict[str, Any]]
    ) -> dict[str, Any]:
        total_revenue = _revenue(orders)
        total_expenses = sum_money(e["amount"] for e in expenses)
        net_profit = total_revenue - total_expenses
        cash_revenue = _revenue(_only(orders, payment_method=PaymentMethod.CASH.value))
        bank_revenue = _revenue(_only(orders, payment_method=PaymentMethod.BANK_TRANSFER.value))

        categories: dict[str, dict[str, Any]] = defaultdict(lambda: {"amount": ZERO, "count": 0})
        for expense in expenses:
            category = categories[expense["category"] or ReportSettings.UNCATEGORIZED]
            category["amount"] = to_money(category["amount"] + expense["amount"])
            category["count"] += 1

        days = sum(1 for _ in each_day(date_range))
        return {
            "period": _period(date_range),
            "revenue": {
                "total": total_revenue,
                "by_payment_method": {
                    "cash": cash_revenue,
                    "bank_transfer": bank_revenue,
                    "cash_percentage": percentage(cash_revenue, total_revenue),
                    "bank_percentage": percentage(bank_revenue, total_revenue),
                },
                "by_order_type": {
                    "dine_in": _revenue(_only(orders, order_type=OrderType.DINE_IN.value)),
                    "delivery": _revenue(_only(orders, order_type=OrderType.DELIVERY.value)),
                },
            },
            "expenses": {
                "total": total_expenses,
                "categories": dict(categories),
                "average_per_day": safe_average(total_expenses, days),
            },
            "profit": {
                "net": net_profit,
                "margin": percentage(net_profit, total_revenue),
                "expense_to_revenue_ratio": (
                    round(float(total_expenses / total_revenue), 4) if total_revenue else 0
                ),
            },
            "key_metrics": {
                "orders": len(orders),
                "average_order_value": safe_average(total_revenue, len(orders)),
                "expenses": len(expenses),
                "average_expense": safe_average(total_expenses, len(expenses)),
            },
        }

    def get_financial_summary_report(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        date_range = resolve_date_range(preset, start, end)
        return self._financial_summary(
            date_range,
            self._orders(date_range),
            self._expense_repository.find_expenses_in_range(date_range),
        )

    def get_profit_loss_report(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        """Financial summary plus a daily breakdown, trends and recommendations"""
        date_range = resolve_date_range(preset, start, end)
        with PerformanceLogger("profit_loss_report", self._logger):
            orders = self._orders(date_range)
            expenses = self._expense_repository.find_expenses_in_range(date_range)
            summary = self._financial_summary(date_range, orders, expenses)

            orders_by_day = _bucket(orders, lambda o: o["created_at"].date())
            expenses_by_day = _bucket(expenses, _expense_day)

            daily = []
            for day in each_day(date_range):
                revenue = _revenue(orders_by_day.get(day, []))
                spent = sum_money(e["amount"] for e in expenses_by_day.get(day, []))
                profit = revenue - spent
                daily.append(
                    {
                        "date": day.isoformat(),
                        "day_of_week": day.strftime("%A"),
                        "revenue": revenue,
                        "expenses": spent,
                        "profit": profit,
                        "margin": percentage(profit, revenue),
                        "orders": len(orders_by_day.get(day, [])),
                    }
                )

            profitable_days = sum(1 for day in daily if day["profit"] > 0)
            summary.update(
                {
                    "daily_breakdown": daily,
                    "trends": {
                        "average_daily_profit": safe_average(
                            sum_money(day["profit"] for day in daily), len(daily)
                        ),
                        "profitable_days": profitable_days,
                        "profitability_rate": percentage(profitable_days, len(daily)),
                        "best_day": max(daily, key=lambda d: d["profit"]) if daily else None,
                        "worst_day": min(daily, key=lambda d: d["profit"]) if daily else None,
                    },
                    "recommendations": self._profit_recommendations(summary, daily),
                }
            )
            return summary

    @staticmethod
    def _profit_recommendations(
        summary: dict[str, Any], daily: list[dict[str, Any]]
    ) -> list[dict[str, str]]:
        recommendations = []
        total_revenue = summary["revenue"]["total"]
        total_expenses = summary["expenses"]["total"]

        if summary["profit"]["margin"] < ProfitThresholds.MIN_MARGIN_PERCENT:
            recommendations.append(
                {
                    "type": "warning",
                    "message": "Profit margin is below 20%. Consider reducing costs or increasing prices.",
                    "action": "Review expense categories and menu pricing.",
                }
            )

        if total_expenses > total_revenue * Decimal(ProfitThresholds.MAX_EXPENSE_RATIO):
            recommendations.append(
                {
                    "type": "critical",
                    "message": "Expenses are consuming more than 70% of revenue.",
                    "action": "Implement cost-cutting measures immediately.",
                }
            )

        losing_days = sum(1 for day in daily if day["profit"] < 0)
        if losing_days > len(daily) * Decimal(ProfitThresholds.MAX_UNPROFITABLE_DAY_RATIO):
            recommendations.append(
                {
                    "type": "warning",
                    "message": (
                        f"More than 30% of days are unprofitable "
                        f"({losing_days} out of {len(daily)} days)."
                    ),
                    "action": "Analyze patterns in unprofitable days.",
                }
            )

        heavy = [
            name
            for name, data in summary["expenses"]["categories"].items()
            if data["amount"] > total_revenue * Decimal(ProfitThresholds.HIGH_CATEGORY_RATIO)
        ]
        if heavy:
            recommendations.append(
                {
                    "type": "info",
                    "message": f"High expense categories: {', '.join(heavy)}",
                    "action": "Review spending in these categories.",
                }
            )
        return recommendations

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _delivery_orders(self, date_range: DateRange) -> list[Order]:
        return self._orders(
            date_range, order_type=OrderType.DELIVERY.value, include_cancelled=True
        )

    def get_delivery_overview_report(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        date_range = resolve_date_range(preset, start, end)
        orders = self._delivery_orders(date_range)
        total_revenue = _revenue(orders)

        cash = PaymentMethod.CASH.value
        completed = PaymentStatus.COMPLETED.value
        payment_breakdown = {
            "cash": _only(orders, payment_method=cash, payment_status=completed),
            "bank_transfer": _only(
                orders, payment_method=PaymentMethod.BANK_TRANSFER.value, payment_status=completed
            ),
            "cod_pending": _only(
                orders, payment_method=cash, payment_status=PaymentStatus.PENDING.value
            ),
            "cod_received": _only(
                orders,
                payment_method=cash,
                payment_status=completed,
                delivery_status=DeliveryStatus.DELIVERED.value,
            ),
        }

        by_day = _bucket(orders, lambda o: o["created_at"].date())
        return {
            "period": _period(date_range),
            "summary": {
                "total_orders": len(orders),
                "total_revenue": total_revenue,
                "average_order_value": safe_average(total_revenue, len(orders)),
                "delivered_orders": len(
                    _only(orders, delivery_status=DeliveryStatus.DELIVERED.value)
                ),
                "pending_orders": sum(
                    1 for o in orders if o["delivery_status"] in OPEN_DELIVERY_STATUSES
                ),
                "cancelled_orders": len(
                    _only(orders, delivery_status=DeliveryStatus.CANCELLED.value)
                ),
            },
            "payment_breakdown": {
                name: {"count": len(group), "total": _revenue(group)}
                for name, group in payment_breakdown.items()
            },
            "trend": [
                {
                    "date": day.isoformat(),
                    "orders": len(by_day.get(day, [])),
                    "revenue": _revenue(by_day.get(day, [])),
                }
                for day in each_day(date_range)
            ],
        }

    def get_delivery_area_analysis(
        self,
        start: Optional[str] = None,
        end: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Delivery orders grouped by the locality guessed from their address"""
        date_range = resolve_date_range(preset, start, end)
        orders = [o for o in self._delivery_orders(date_range) if o["delivery_address"]]

        areas = []
        for area, area_orders in _bucket(
            orders, lambda o: extract_area_from_address(o["delivery_address"])
        ).items():
            revenue = _revenue(area_orders)
            areas.append(
                {
                    "area": area,
                    "total_orders": len(area_orders),
                    "total_revenue": revenue,
                    "average_order_value": safe_average(revenue, len(area_orders)),
                    "delivered_orders": len(
                        _only(area_orders, delivery_status=DeliveryStatus.DELIVERED.value)
                    ),
                    "pending_orders": sum(
                        1 for o in area_orders if o["delivery_status"] in OPEN_DELIVERY_STATUSES
                    ),
                }
            )
        areas.sort(key=lambda a: a["total_revenue"], reverse=True)
        return areas

    def get_delivery_cod_orders(
        self,
        status: str = "pending",
        start: Optional[str] = None,
        end: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> dict[str, Any]:
        """Cash-on-delivery orders still to collect (``pending``) or collected (``received``)"""
        if status not in ("pending", "received"):
            raise ValidationError(
                f"Invalid status: {status}. Expected pending or received", field="status"
            )
        payment_status = (
            PaymentStatus.PENDING.value if status == "pending" else PaymentStatus.COMPLETED.value
        )
        date_range = resolve_date_range(preset, start, end)
        orders = _only(
            self._delivery_orders(date_range),
            payment_method=PaymentMethod.CASH.value,
            payment_status=payment_status,
        )
        orders.sort(key=lambda o: o["created_at"], reverse=True)

        cod_orders = [
            {
                "id": order["id"],
                "order_number": order["order_number"],
                "customer_name": (order["customer"] or {}).get("name") or ReportSettings.GUEST_NAME,
                "customer_phone": (order["customer"] or {}).get("phone") or "N/A",
                "delivery_address": order["delivery_address"] or "N/A",
                "total_amount": order["total_amount"],
                "delivery_charge": order["delivery_charge"],
                "delivery_status": order["delivery_status"] or DeliveryStatus.PENDING.value,
                "created_at": order["created_at"],
                "delivered_at": order["delivered_at"],
                "rider_name": (order["rider"] or {}).get("name"),
                "payment_status": order["payment_status"],
            }
            for order in orders
        ]
        return {
            "orders": cod_orders,
            "totals": {"count": len(cod_orders), "amount": _revenue(cod_orders)},
        }
