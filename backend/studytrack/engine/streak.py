"""
Streak tracking: pure functions, no DB access.
"""
from datetime import date, timedelta
from enum import Enum
from typing import Iterable

from ..models import Streak
from .daykey import is_day_before


class StreakPolicy(str, Enum):
    """How the stored study-streak counter reacts to a new attendance mark."""

    INCREMENT = "increment"   # bump the stored counter by one on every mark
    RECOMPUTE = "recompute"   # replace it with the calculator's current streak


def compute_streak(days: Iterable[date], today: date, grace_days: int = 0) -> Streak:
    """
    Derive current/longest/total from an owner's marked days (any order, duplicates ok).

    The current streak must end today. ``grace_days`` lets it end up to that many
    days earlier instead; 0 means a missed day zeroes the current streak.
    """
    ordered = sorted(set(days), reverse=True)
    if not ordered:
        return Streak()

    marked = set(ordered)
    current = 0
    cursor = today
    for _ in range(max(grace_days, 0)):
        if cursor in marked:
            break
        cursor -= timedelta(days=1)
    while cursor in marked:
        current += 1
        cursor -= timedelta(days=1)

    longest = 1
    run = 1
    for newer, older in zip(ordered, ordered[1:]):
        if is_day_before(older, newer):
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    return Streak(current_streak=current, longest_streak=longest, total_days=len(ordered))


def advance_study_streak(last_study_date: date | None, current_streak: int, today: date) -> int:
    """
    Stored-counter rule for study-time logging.
    Same day keeps the counter, yesterday extends it, anything else restarts at 1.
    """
    if last_study_date == today:
        return current_streak

    if last_study_date is not None and is_day_before(last_study_date, today):
        return current_streak + 1

    return 1
