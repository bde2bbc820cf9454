"""
Tests for money, address and date helpers
"""

import json
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import patch

import pytest

from flamex_pos.infrastructure.utilities import date_utils
from flamex_pos.infrastructure.utilities.date_utils import (
    DateRange,
    each_day,
    each_month,
    month_range,
    parse_date,
    parse_date_range,
    resolve_date_range,
)
from flamex_pos.infrastructure.utilities.exceptions import ValidationError
from flamex_pos.infrastructure.utilities.helpers import (
    calculate_order_total,
    dumps,
    extract_area_from_address,
    pagination,
    percentage,
    safe_average,
    sum_money,
    to_money,
)


class TestMoneyHelpers:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "0.00"),
            (10, "10.00"),
            ("2.345", "2.35"),
            (0.1, "0.10"),
            (Decimal("-1.005"), "-1.01"),
        ],
    )
    def test_to_money_rounds_half_up(self, value, expected):
        assert to_money(value) == Decimal(expected)

    def test_to_money_rejects_text(self):
        with pytest.raises(ValueError):
            to_money("ten")

    def test_float_noise_does_not_leak(self):
        assert sum_money([0.1, 0.2]) == Decimal("0.30")

    @pytest.mark.parametrize(
        "subtotal, discount, delivery, expected",
        [
            (400, 10, 0, "360.00"),
            (400, 0, 150, "550.00"),
            ("99.99", "12.5", 0, "87.49"),
            (0, 50, 100, "100.00"),
        ],
    )
    def test_calculate_order_total(self, subtotal, discount, delivery, expected):
        assert calculate_order_total(subtotal, discount, delivery) == Decimal(expected)

    def test_safe_average_and_percentage(self):
        assert safe_average(100, 0) == Decimal("0.00")
        assert safe_average(100, 3) == Decimal("33.33")
        assert percentage(1, 3) == 33.33
        assert percentage(5, 0) == 0.0

    def test_pagination(self):
        assert pagination(0, 1, 20) == {"total": 0, "page": 1, "limit": 20, "total_pages": 0}
        assert pagination(41, 2, 20)["total_pages"] == 3


class TestExtractArea:
    @pytest.mark.parametrize(
        "address, area",
        [
            ("House 1, Gulberg, Lahore", "Gulberg"),
            ("Flat 3, DHA Phase 5", "Flat 3"),
            ("Street 9 Model Town", "Model Town"),
            ("Johar", "Johar"),
            ("", "Unknown"),
            ("N/A", "Unknown"),
            (None, "Unknown"),
        ],
    )
    def test_extract_area(self, address, area):
        assert extract_area_from_address(address) == area


class TestJsonDumps:
    def test_decimals_and_dates(self):
        payload = {"total": Decimal("12.50"), "at": datetime(2024, 1, 2, 3, 4), "day": date(2024, 1, 2)}

        assert json.loads(dumps(payload)) == {
            "total": 12.5,
            "at": "2024-01-02T03:04:00",
            "day": "2024-01-02",
        }

    def test_unknown_type(self):
        with pytest.raises(TypeError):
            dumps({"value": object()})


class TestDateUtils:
    def test_parse_date(self):
        assert parse_date("2024-02-29") == date(2024, 2, 29)
        assert parse_date("2024-02-29T10:15:00") == date(2024, 2, 29)
        assert parse_date(datetime(2024, 2, 29, 8)) == date(2024, 2, 29)

    @pytest.mark.parametrize("value", ["29/02/2024", "2024-13-01", ""])
    def test_parse_date_rejects_garbage(self, value):
        with pytest.raises(ValidationError, match="Invalid date range"):
            parse_date(value)

    def test_parse_date_range_covers_whole_days(self):
        date_range = parse_date_range("2024-01-01", "2024-01-03")

        assert date_range.start_date == datetime(2024, 1, 1)
        assert date_range.end_date.date() == date(2024, 1, 3)
        assert date_range.end_date.hour == 23
        assert date_range.contains(datetime(2024, 1, 3, 23, 59))

    def test_parse_date_range_order(self):
        with pytest.raises(ValidationError):
            parse_date_range("2024-02-01", "2024-01-01")

    def test_parse_date_range_default_window(self):
        with patch.object(date_utils, "local_today", return_value=date(2024, 3, 31)):
            date_range = parse_date_range(default_days=30)

        assert date_range.start_date == datetime(2024, 3, 1)
        assert date_range.end_date.date() == date(2024, 3, 31)

    def test_month_range(self):
        assert month_range(2024, 2).end_date.date() == date(2024, 2, 29)
        assert month_range(2024, 12).end_date.date() == date(2024, 12, 31)
        with pytest.raises(ValidationError):
            month_range(2024, 13)

    def test_iterators(self):
        date_range = DateRange(datetime(2023, 11, 30), datetime(2024, 1, 2, 23, 59))

        assert list(each_month(date_range)) == [date(2023, 11, 1), date(2023, 12, 1), date(2024, 1, 1)]
        days = list(each_day(date_range))
        assert days[0] == date(2023, 11, 30)
        assert days[-1] == date(2024, 1, 2)
        assert len(days) == 34

    def test_presets(self):
        # Wednesday
        with patch.object(date_utils, "local_today", return_value=date(2024, 5, 15)):
            assert resolve_date_range("today").start_date == datetime(2024, 5, 15)
            assert resolve_date_range("yesterday").start_date == datetime(2024, 5, 14)
            assert resolve_date_range("this_week").start_date == datetime(2024, 5, 12)
            assert resolve_date_range("this_month").start_date == datetime(2024, 5, 1)

    def test_unknown_preset(self):
        with pytest.raises(ValidationError, match="Unknown date preset"):
            resolve_date_range("last_decade")
