"""
Date helpers for the staff appointment table.

The backend stores instants as integer nanoseconds since the Unix epoch.
Preferred dates are sent as midnight of the chosen day in the clinic
timezone, so they are converted back to calendar dates in that timezone.
"""
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import List, Optional, Sequence, Tuple, TypeVar
from pydantic import BaseModel

from ..core.config import settings

NANOS_PER_SECOND = 1_000_000_000
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

T = TypeVar("T")

class DateFilterType(str, Enum):
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    CUSTOM = "custom"

    @property
    def label(self) -> str:
        return _FILTER_LABELS[self]

_FILTER_LABELS = {
    DateFilterType.ALL: "All",
    DateFilterType.TODAY: "Today",
    DateFilterType.WEEK: "This Week",
    DateFilterType.MONTH: "This Month",
    DateFilterType.CUSTOM: "Custom Range",
}

class DateFilter(BaseModel):
    type: DateFilterType = DateFilterType.ALL
    start_date: Optional[date] = None
    end_date: Optional[date] = None

# Timestamp conversion
def nanos_to_datetime(timestamp: int, tz=None) -> datetime:
    """Convert backend nanoseconds to an aware datetime (UTC unless `tz` is given)."""
    seconds, remainder = divmod(int(timestamp), NANOS_PER_SECOND)
    value = EPOCH + timedelta(seconds=seconds, microseconds=remainder // 1000)
    return value.astimezone(tz or timezone.utc)

def datetime_to_nanos(value: datetime) -> int:
    """Convert a datetime to backend nanoseconds. Naive values are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - EPOCH
    return (delta.days * 86400 + delta.seconds) * NANOS_PER_SECOND + delta.microseconds * 1000

def date_to_nanos(day: date) -> int:
    return datetime_to_nanos(datetime.combine(day, time.min, tzinfo=settings.clinic_tz))

def nanos_to_date(timestamp: int) -> date:
    return nanos_to_datetime(timestamp, settings.clinic_tz).date()

def clinic_today() -> date:
    return datetime.now(settings.clinic_tz).date()

# Ranges
def is_same_day(first: date, second: date) -> bool:
    return _as_date(first) == _as_date(second)

def is_within_range(value: date, start: date, end: date) -> bool:
    """Inclusive range check at day granularity."""
    return _as_date(start) <= _as_date(value) <= _as_date(end)

def get_today_range(today: Optional[date] = None) -> Tuple[date, date]:
    today = today or clinic_today()
    return today, today

def get_week_range(today: Optional[date] = None) -> Tuple[date, date]:
    """Sunday through Saturday of the week containing `today`."""
    today = today or clinic_today()
    # date.weekday() is Monday=0; shift so Sunday starts the week
    days_since_sunday = (today.weekday() + 1) % 7
    start = today - timedelta(days=days_since_sunday)
    return start, start + timedelta(days=6)

def get_month_range(today: Optional[date] = None) -> Tuple[date, date]:
    today = today or clinic_today()
    start = today.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(days=1)

def filter_appointments_by_date(
    appointments: Sequence[T],
    date_filter: DateFilter,
    today: Optional[date] = None
) -> List[T]:
    """Return the appointments whose preferred date matches `date_filter`.

    `today` anchors the relative filters; it defaults to the current date in
    the clinic timezone. The input sequence is never modified.
    """
    if date_filter.type == DateFilterType.ALL:
        return list(appointments)

    if date_filter.type == DateFilterType.CUSTOM:
        if not (date_filter.start_date and date_filter.end_date):
            return list(appointments)
        start, end = date_filter.start_date, date_filter.end_date
    elif date_filter.type == DateFilterType.TODAY:
        start, _ = get_today_range(today)
        return [
            appointment for appointment in appointments
            if is_same_day(appointment.preferred_date, start)
        ]
    elif date_filter.type == DateFilterType.WEEK:
        start, end = get_week_range(today)
    elif date_filter.type == DateFilterType.MONTH:
        start, end = get_month_range(today)
    else:
        return list(appointments)

    return [
        appointment for appointment in appointments
        if is_within_range(appointment.preferred_date, start, end)
    ]

def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
