"""
Date range helpers

All datetimes handled here are naive and expressed in the business timezone
(``Settings.timezone``); that is also how order and expense timestamps are
stored, so day boundaries are local calendar days.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo

from flamex_pos.config import get_config
from flamex_pos.infrastructure.utilities.constants import DatePreset
from flamex_pos.infrastructure.utilities.exceptions import ValidationError


@dataclass(frozen=True)
class DateRange:
    """Inclusive datetime range"""

    start_date: datetime
    end_date: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start_date <= moment <= self.end_date

    def as_dict(self) -> dict:
        return {"start_date": self.start_date, "end_date": self.end_date}


def local_now() -> datetime:
    """Current wall-clock time in the business timezone (naive)."""
    return datetime.now(ZoneInfo(get_config().timezone)).replace(tzinfo=None)


def local_today() -> date:
    return local_now().date()


def start_of_day(day: Union[date, datetime]) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time.min)


def end_of_day(day: Union[date, datetime]) -> datetime:
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time.max)


def day_range(day: Union[date, datetime]) -> DateRange:
    return DateRange(start_of_day(day), end_of_day(day))


def month_range(year: int, month: int) -> DateRange:
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {month}", field="month")
    first = date(year, month, 1)
    if month == 12:
        last = date(year, 12, 31)
    else:
        last = date(year, month + 1, 1) - timedelta(days=1)
    return DateRange(start_of_day(first), end_of_day(last))


def year_range(year: int) -> DateRange:
    return DateRange(start_of_day(date(year, 1, 1)), end_of_day(date(year, 12, 31)))


def parse_date(value: Union[str, date, datetime], field: str = "date") -> date:
    """Parse ``YYYY-MM-DD`` (or a full ISO timestamp) into a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.fromisoformat(value.strip()).date()
    except (AttributeError, ValueError) as exc:
        raise ValidationError("Invalid date range", field=field) from exc


def parse_date_range(
    start: Optional[Union[str, date]] = None,
    end: Optional[Union[str, date]] = None,
    default_days: Optional[int] = None,
) -> DateRange:
    """Expand optional start/end values into whole local days.

    Missing values fall back to a trailing window ending today.
    """
    if default_days is None:
        default_days = get_config().default_report_days
    today = local_today()
    start_day = parse_date(start, "start_date") if start else today - timedelta(days=default_days)
    end_day = parse_date(end, "end_date") if end else today
    if start_day > end_day:
        raise ValidationError("Start date must not be after end date", field="start_date")
    return DateRange(start_of_day(start_day), end_of_day(end_day))


def get_today_range() -> DateRange:
    return day_range(local_today())


def get_yesterday_range() -> DateRange:
    return day_range(local_today() - timedelta(days=1))


def get_this_week_range() -> DateRange:
    """Sunday of the current week up to the end of today."""
    today = local_today()
    days_since_sunday = (today.weekday() + 1) % 7
    return DateRange(start_of_day(today - timedelta(days=days_since_sunday)), end_of_day(today))


def get_this_month_range() -> DateRange:
    today = local_today()
    return DateRange(start_of_day(today.replace(day=1)), end_of_day(today))


_PRESETS = {
    DatePreset.TODAY: get_today_range,
    DatePreset.YESTERDAY: get_yesterday_range,
    DatePreset.THIS_WEEK: get_this_week_range,
    DatePreset.THIS_MONTH: get_this_month_range,
}


def resolve_date_range(
    preset: Optional[str] = None,
    start: Optional[Union[str, date]] = None,
    end: Optional[Union[str, date]] = None,
) -> DateRange:
    """Resolve a named preset or explicit start/end strings into a range."""
    if preset:
        try:
            return _PRESETS[DatePreset(preset)]()
        except ValueError as exc:
            raise ValidationError(f"Unknown date preset: {preset}", field="filter") from exc
    return parse_date_range(start, end)


def each_day(date_range: DateRange) -> Iterator[date]:
    day = date_range.start_date.date()
    last = date_range.end_date.date()
    while day <= last:
        yield day
        day += timedelta(days=1)


def each_month(date_range: DateRange) -> Iterator[date]:
    """First day of every month touched by the range."""
    current = date_range.start_date.date().replace(day=1)
    last = date_range.end_date.date()
    while current <= last:
        yield current
        if current.month == 12:
            current = current.replace(year=current.year + 1, month=1)
        else:
            current = current.replace(month=current.month + 1)
