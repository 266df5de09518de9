"""
Calendar-day keys: pure functions, no DB access.

A day key is a ``datetime.date``; its ISO form (YYYY-MM-DD) is what gets stored.
Everything here uses the local wall clock. Two callers in different timezones
may disagree on what "today" is, and that is accepted.
"""
from datetime import date, datetime, timedelta
from typing import Callable

from ..errors import ValidationError

Clock = Callable[[], date]


def to_day_key(instant: date | datetime | str) -> date:
    """Normalize a timestamp, date or ISO string to its local calendar day."""
    if isinstance(instant, datetime):
        if instant.tzinfo is not None:
            instant = instant.astimezone()
        return instant.date()
    if isinstance(instant, date):
        return instant
    if isinstance(instant, str):
        raw = instant.strip()
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            return to_day_key(datetime.fromisoformat(raw.replace("Z", "+00:00")))
        except ValueError:
            raise ValidationError(f"Invalid date: {instant!r}") from None
    raise ValidationError(f"Cannot convert {type(instant).__name__} to a day key")


def format_day_key(day: date) -> str:
    return day.isoformat()


def today_key(clock: Clock | None = None) -> date:
    return clock() if clock else date.today()


def days_between(earlier: date, later: date) -> int:
    return (later - earlier).days


def is_day_before(a: date, b: date) -> bool:
    """True when ``a`` is exactly one calendar day before ``b``."""
    return b - a == timedelta(days=1)


def is_today(day: date, today: date) -> bool:
    return day == today


def is_yesterday(day: date, today: date) -> bool:
    return is_day_before(day, today)
