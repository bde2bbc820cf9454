"""
Utility functions for the Flamex POS backend
"""

import json
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Union

from flamex_pos.infrastructure.utilities.constants import ReportSettings

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Optional[Number]) -> Decimal:
    """Convert to Decimal going through ``str`` so floats do not leak binary noise."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def to_money(value: Optional[Number]) -> Decimal:
    """Round to currency precision (2 places, half up)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def sum_money(values: Iterable[Optional[Number]]) -> Decimal:
    return to_money(sum((to_decimal(v) for v in values), ZERO))


def safe_average(total: Number, count: int) -> Decimal:
    if not count:
        return ZERO
    return to_money(to_decimal(total) / count)


def percentage(part: Number, whole: Number) -> float:
    """``part`` as a percentage of ``whole``, 0 when ``whole`` is zero."""
    whole = to_decimal(whole)
    if whole == 0:
        return 0.0
    return round(float(to_decimal(part) / whole * 100), 2)


def calculate_order_total(
    subtotal: Number, discount_percent: Number = 0, delivery_charge: Number = 0
) -> Decimal:
    """``subtotal * (1 - discount/100) + delivery_charge`` at currency precision."""
    subtotal = to_decimal(subtotal)
    discount = subtotal * to_decimal(discount_percent) / Decimal(100)
    return to_money(subtotal - discount + to_decimal(delivery_charge))


def extract_area_from_address(address: Optional[str]) -> str:
    """Best-effort locality from a free-text address.

    "street, area, city" gives "area"; without commas the last two words are
    used. This is a grouping heuristic, not a geocode.
    """
    if not address or not address.strip() or address.strip() == "N/A":
        return ReportSettings.UNKNOWN_AREA

    parts = [part.strip() for part in address.split(",")]
    if len(parts) >= 2:
        return parts[-2] or ReportSettings.UNKNOWN_AREA

    words = address.strip().split()
    if len(words) > 2:
        return " ".join(words[-2:])
    return address.strip()


def json_default(value: Any) -> Any:
    """``json.dumps`` hook for Decimal and datetime values."""
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, set):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dumps(payload: Any, **kwargs) -> str:
    return json.dumps(payload, default=json_default, **kwargs)


def total_pages(total: int, limit: int) -> int:
    return (total + limit - 1) // limit if limit else 0


def pagination(total: int, page: int, limit: int) -> dict:
    return {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages(total, limit),
    }
