"""
Tests for the reports service
"""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from flamex_pos.application.services.reports_service import loyalty_segment
from flamex_pos.infrastructure.utilities.date_utils import local_now
from flamex_pos.infrastructure.utilities.exceptions import ValidationError
from tests.helpers import backdate, line


@pytest.fixture
def place_order(order_service, order_repository, menu_items):
    """Create an order and move it to ``when``"""

    def _place(when, items=None, **data):
        order = order_service.create_order(
            {"items": items or [line(menu_items[0], 2), line(menu_items[1], 1)], **data}
        )
        if when is not None:
            backdate(order_repository, order["id"], when)
        return order_service.get_order_by_id(order["id"])

    return _place


@pytest.fixture
def customers(container):
    service = container.get_customer_service()
    return [
        service.create_customer(
            {"name": f"Customer {index}", "phone": f"0300000000{index}", "address": address}
        )
        for index, address in enumerate(
            ["House 1, Gulberg, Lahore", "Flat 2, DHA Phase 5, Lahore", "Street 9 Model Town"]
        )
    ]


class TestLoyaltySegment:
    """Test the loyalty thresholds"""

    @pytest.mark.parametrize(
        "count,segment",
        [(0, None), (1, "new"), (2, "regular"), (5, "regular"), (6, "loyal"), (10, "loyal"), (11, "vip")],
    )
    def test_thresholds(self, count, segment):
        assert loyalty_segment(count) == segment


class TestSalesReports:
    """Test daily, monthly and yearly sales"""

    def test_daily_sales(self, reports_service, place_order, menu_items, customers):
        place_order(None)
        place_order(
            None,
            items=[line(menu_items[2], 2)],
            order_type="delivery",
            customer_id=customers[0]["id"],
            payment_method="bank_transfer",
        )

        report = reports_service.get_daily_sales_report()

        assert report["summary"]["total_orders"] == 2
        assert report["summary"]["total_revenue"] == Decimal("500.00")
        assert report["summary"]["total_items"] == 5
        assert report["summary"]["average_order_value"] == Decimal("250.00")
        assert report["breakdown"]["by_order_type"]["delivery"] == {
            "count": 1,
            "revenue": Decimal("100.00"),
        }
        assert report["breakdown"]["by_payment_method"]["cash"]["revenue"] == Decimal("400.00")
        assert report["orders"][0]["order_type"] == "delivery"

    def test_daily_sales_excludes_cancelled(self, reports_service, order_service, place_order):
        order = place_order(None)
        order_service.cancel_order(order["id"])

        assert reports_service.get_daily_sales_report()["summary"]["total_orders"] == 0

    def test_monthly_sales(self, reports_service, place_order):
        place_order(datetime(2024, 2, 3, 12, 0))
        place_order(datetime(2024, 2, 3, 18, 0))
        place_order(datetime(2024, 3, 1, 9, 0))

        report = reports_service.get_monthly_sales_report(2024, 2)

        assert report["period"] == "2024-02"
        assert len(report["daily_stats"]) == 29
        assert report["daily_stats"][2]["orders"] == 2
        assert report["summary"]["total_revenue"] == Decimal("800.00")
        assert report["top_items"][0]["name"] == "Burger"

    def test_monthly_sales_rejects_bad_month(self, reports_service):
        with pytest.raises(ValidationError, match="Invalid month"):
            reports_service.get_monthly_sales_report(2024, 13)

    def test_yearly_sales(self, reports_service, place_order):
        place_order(datetime(2023, 1, 15, 12, 0))
        place_order(datetime(2023, 12, 31, 23, 0))

        report = reports_service.get_yearly_sales_report(2023)

        assert [m["month_name"] for m in report["monthly_stats"]][:2] == ["Jan", "Feb"]
        assert report["monthly_stats"][0]["orders"] == 1
        assert report["monthly_stats"][11]["revenue"] == Decimal("400.00")
        assert report["summary"]["total_orders"] == 2


class TestOrderReports:
    """Test the order summary and timeline"""

    def test_order_summary(self, reports_service, place_order):
        place_order(datetime(2024, 5, 1, 13, 30))
        place_order(datetime(2024, 5, 1, 13, 45), payment_method="bank_transfer")
        place_order(datetime(2024, 5, 2, 20, 0))

        report = reports_service.get_order_summary_report("2024-05-01", "2024-05-02")

        assert report["summary"]["total_orders"] == 3
        assert report["breakdown"]["by_status"]["pending"] == 3
        assert report["breakdown"]["by_payment_method"]["bank_transfer"] == 1
        assert report["peak_hours"] == [{"hour": 13, "count": 2}, {"hour": 20, "count": 1}]

    def test_daily_timeline_is_dense(self, reports_service, place_order):
        place_order(datetime(2024, 1, 2, 10, 0))

        report = reports_service.get_order_timeline_report("2024-01-01", "2024-01-03", "daily")

        assert [(b["date"], b["orders"]) for b in report["timeline"]] == [
            ("2024-01-01", 0),
            ("2024-01-02", 1),
            ("2024-01-03", 0),
        ]
        assert report["timeline"][0]["revenue"] == Decimal("0.00")
        assert report["summary"]["total_orders"] == 1

    def test_hourly_timeline_has_every_hour(self, reports_service, place_order):
        place_order(datetime(2024, 1, 2, 10, 15))

        report = reports_service.get_order_timeline_report("2024-01-02", "2024-01-02", "hourly")

        assert len(report["timeline"]) == 24
        assert report["timeline"][10] == {
            "time": "2024-01-02 10:00",
            "orders": 1,
            "revenue": Decimal("400.00"),
        }

    def test_weekly_timeline_starts_on_sunday(self, reports_service, place_order):
        place_order(datetime(2024, 1, 10, 10, 0))

        report = reports_service.get_order_timeline_report("2024-01-03", "2024-01-16", "weekly")

        assert [b["week_start"] for b in report["timeline"]] == [
            "2023-12-31",
            "2024-01-07",
            "2024-01-14",
        ]
        assert [b["orders"] for b in report["timeline"]] == [0, 1, 0]

    def test_monthly_timeline(self, reports_service, place_order):
        place_order(datetime(2024, 3, 5, 10, 0))

        report = reports_service.get_order_timeline_report("2024-01-15", "2024-03-10", "monthly")

        assert [b["month"] for b in report["timeline"]] == ["2024-01", "2024-02", "2024-03"]
        assert [b["orders"] for b in report["timeline"]] == [0, 0, 1]

    def test_timeline_rejects_unknown_interval(self, reports_service):
        with pytest.raises(ValidationError, match="interval"):
            reports_service.get_order_timeline_report(interval="minutely")

    def test_reversed_range_rejected(self, reports_service):
        with pytest.raises(ValidationError):
            reports_service.get_order_summary_report("2024-02-01", "2024-01-01")


class TestItemReports:
    def test_top_selling_items(self, reports_service, place_order, menu_items):
        place_order(None)
        place_order(None, items=[line(menu_items[2], 10)])

        report = reports_service.get_top_selling_items_report(limit=2)

        assert [item["name"] for item in report["items"]] == ["Fries", "Burger"]
        assert report["items"][0]["quantity"] == 10
        assert report["items"][1]["order_count"] == 1
        assert report["summary"]["unique_items"] == 3
        assert report["summary"]["total_revenue"] == Decimal("900.00")

    def test_low_stock_lists_unavailable_items(self, container, reports_service, menu_items):
        container.get_menu_item_service().toggle_availability(menu_items[0]["id"])

        report = reports_service.get_low_stock_items_report()

        assert report["count"] == 1
        assert report["summary"] == "Found 1 unavailable items"


class TestCustomerReports:
    def test_top_customers(self, reports_service, place_order, customers):
        place_order(None, order_type="delivery", customer_id=customers[0]["id"])
        place_order(None, order_type="delivery", customer_id=customers[1]["id"])
        place_order(None, order_type="delivery", customer_id=customers[1]["id"])

        report = reports_service.get_top_customers_report()

        assert [c["id"] for c in report["customers"]] == [customers[1]["id"], customers[0]["id"]]
        assert report["customers"][0]["total_spent"] == Decimal("800.00")
        assert report["summary"]["total_customers"] == 2

    def test_loyalty_segments(self, reports_service, place_order, customers):
        for customer, count in zip(customers, (1, 6, 0)):
            for _ in range(count):
                place_order(None, order_type="delivery", customer_id=customer["id"])

        report = reports_service.get_customer_loyalty_report()

        segments = report["segments"]
        assert segments["new"]["count"] == 1
        assert segments["loyal"]["count"] == 1
        assert segments["loyal"]["customers"][0]["order_count"] == 6
        assert segments["loyal"]["total_spent"] == Decimal("2400.00")
        assert segments["regular"]["count"] == 0
        assert segments["vip"]["count"] == 0
        assert report["summary"]["total_customers"] == 3


class TestRiderReports:
    def test_rider_performance(
        self, order_service, order_repository, reports_service, place_order, customers, rider
    ):
        start = datetime.combine(datetime.now().date() - timedelta(days=1), datetime.min.time())
        durations = (20, 40, None)
        for minutes in durations:
            order = place_order(None, order_type="delivery", customer_id=customers[0]["id"])
            order_service.assign_rider_to_order(order["id"], rider["id"])
            order_service.update_delivery_status(order["id"], "delivered")
            backdate(
                order_repository,
                order["id"],
                start + timedelta(hours=12),
                assigned_at=start + timedelta(hours=12) if minutes else None,
                delivered_at=start + timedelta(hours=12, minutes=minutes or 30),
            )
        pending = place_order(None, order_type="delivery", customer_id=customers[0]["id"])
        order_service.assign_rider_to_order(pending["id"], rider["id"])

        report = reports_service.get_rider_performance_report()

        metrics = report["riders"][0]["metrics"]
        assert metrics["total_deliveries"] == 3
        assert metrics["pending_deliveries"] == 1
        assert metrics["average_delivery_time"] == 30
        assert metrics["success_rate"] == 75.0
        assert metrics["cash_collected"] == Decimal("1200.00")
        assert len(report["riders"][0]["orders"]) == 3

    def test_inactive_riders_skipped(
        self, container, order_service, reports_service, place_order, customers, rider
    ):
        order = place_order(None, order_type="delivery", customer_id=customers[0]["id"])
        order_service.assign_rider_to_order(order["id"], rider["id"])
        container.get_rider_service().toggle_rider_status(rider["id"])

        assert reports_service.get_rider_performance_report()["riders"] == []


class TestFinancialReports:
    @pytest.fixture
    def expenses(self, container):
        return container.get_expense_service()

    def test_financial_summary(self, reports_service, place_order, expenses):
        place_order(datetime(2024, 4, 1, 12, 0))
        place_order(datetime(2024, 4, 2, 12, 0), payment_method="bank_transfer")
        expenses.create_expense(
            {"description": "Flour", "amount": 100, "category": "Groceries", "expense_date": "2024-04-01"}
        )
        expenses.create_expense({"description": "Tip jar", "amount": 60, "expense_date": "2024-04-02"})

        report = reports_service.get_financial_summary_report("2024-04-01", "2024-04-02")

        assert report["revenue"]["total"] == Decimal("800.00")
        assert report["revenue"]["by_payment_method"]["cash_percentage"] == 50.0
        assert report["expenses"]["total"] == Decimal("160.00")
        assert report["expenses"]["categories"]["Uncategorized"]["count"] == 1
        assert report["expenses"]["average_per_day"] == Decimal("80.00")
        assert report["profit"]["net"] == Decimal("640.00")
        assert report["profit"]["margin"] == 80.0
        assert report["profit"]["expense_to_revenue_ratio"] == 0.2

    def test_profit_loss_flags_thin_margins(self, reports_service, place_order, expenses):
        place_order(datetime(2024, 4, 1, 12, 0))
        expenses.create_expense(
            {"description": "Chicken", "amount": 350, "category": "Groceries", "expense_date": "2024-04-01"}
        )

        report = reports_service.get_profit_loss_report("2024-04-01", "2024-04-01")

        assert [r["type"] for r in report["recommendations"]] == ["warning", "critical", "info"]
        assert report["recommendations"][2]["message"] == "High expense categories: Groceries"
        assert report["trends"]["profitable_days"] == 1

    def test_profit_loss_flags_losing_days(self, reports_service, place_order, expenses):
        place_order(datetime(2024, 4, 1, 12, 0))
        expenses.create_expense(
            {"description": "Gas bill", "amount": 100, "category": "Utilities", "expense_date": "2024-04-02"}
        )

        report = reports_service.get_profit_loss_report("2024-04-01", "2024-04-02")

        daily = report["daily_breakdown"]
        assert [d["profit"] for d in daily] == [Decimal("400.00"), Decimal("-100.00")]
        assert report["trends"]["best_day"]["date"] == "2024-04-01"
        assert report["trends"]["worst_day"]["date"] == "2024-04-02"
        assert report["trends"]["profitability_rate"] == 50.0
        assert [r["type"] for r in report["recommendations"]] == ["warning", "info"]
        assert "(1 out of 2 days)" in report["recommendations"][0]["message"]

    def test_healthy_period_has_no_recommendations(self, reports_service, place_order, expenses):
        place_order(datetime(2024, 4, 1, 12, 0))
        expenses.create_expense(
            {"description": "Napkins", "amount": 10, "category": "Supplies", "expense_date": "2024-04-01"}
        )

        report = reports_service.get_profit_loss_report("2024-04-01", "2024-04-01")

        assert report["recommendations"] == []


class TestDeliveryReports:
    def test_area_analysis(self, reports_service, place_order, customers):
        for customer in customers:
            place_order(
                None,
                order_type="delivery",
                customer_id=customer["id"],
                delivery_address=customer["address"],
            )
        place_order(
            None,
            order_type="delivery",
            customer_id=customers[0]["id"],
            delivery_address="House 7, Gulberg, Lahore",
        )

        areas = reports_service.get_delivery_area_analysis()

        assert areas[0]["area"] == "Gulberg"
        assert areas[0]["total_orders"] == 2
        assert {a["area"] for a in areas} == {"Gulberg", "DHA Phase 5", "Model Town"}

    def test_overview_and_cod(self, order_service, reports_service, place_order, customers):
        open_cod = place_order(None, order_type="delivery", customer_id=customers[0]["id"])
        delivered = place_order(None, order_type="delivery", customer_id=customers[1]["id"])
        order_service.update_delivery_status(delivered["id"], "delivered")
        place_order(
            None,
            order_type="delivery",
            customer_id=customers[2]["id"],
            payment_method="bank_transfer",
        )

        overview = reports_service.get_delivery_overview_report()
        pending = reports_service.get_delivery_cod_orders("pending")
        received = reports_service.get_delivery_cod_orders("received")

        assert overview["summary"]["total_orders"] == 3
        assert overview["summary"]["delivered_orders"] == 1
        assert overview["payment_breakdown"]["cod_pending"]["count"] == 1
        assert overview["payment_breakdown"]["cod_received"]["total"] == Decimal("400.00")
        assert [o["id"] for o in pending["orders"]] == [open_cod["id"]]
        assert pending["orders"][0]["customer_name"] == "Customer 0"
        assert received["totals"] == {"count": 1, "amount": Decimal("400.00")}

    def test_cod_rejects_unknown_status(self, reports_service):
        with pytest.raises(ValidationError):
            reports_service.get_delivery_cod_orders("lost")


class TestDateRangePresets:
    def test_presets(self, reports_service):
        today = reports_service.resolve_date_range("today")

        assert today.start_date.date() == today.end_date.date()
        with pytest.raises(ValidationError, match="Unknown date preset"):
            reports_service.resolve_date_range("last_decade")

    def test_reports_accept_presets(self, reports_service, place_order):
        place_order(None)
        place_order(local_now() - timedelta(days=1), payment_method="bank_transfer")

        today = reports_service.get_order_summary_report(preset="today")
        yesterday = reports_service.get_financial_summary_report(preset="yesterday")

        assert today["summary"]["total_orders"] == 1
        assert yesterday["revenue"]["total"] == Decimal("400.00")
        assert reports_service.get_top_selling_items_report(preset="today", limit=1)["summary"][
            "total_items_sold"
        ] == 3

    def test_unknown_preset_in_report(self, reports_service):
        with pytest.raises(ValidationError, match="Unknown date preset"):
            reports_service.get_delivery_overview_report(preset="fortnight")
