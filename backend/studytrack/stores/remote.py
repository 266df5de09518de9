"""
Supabase-backed stores for authenticated owners.
"""
import logging
from datetime import date
from typing import Any, Optional

from supabase import Client

from ..db import ATTENDANCE_TABLE, PROFILE_TABLE, is_unique_violation
from ..errors import DuplicateError, NotFoundError, StoreError
from ..models import MAX_SUBJECT_PROGRESS, AttendanceRecord, ProfileAggregate

logger = logging.getLogger(__name__)


def _run(query, action: str):
    """Execute a PostgREST query, turning client failures into StoreError."""
    try:
        return query.execute()
    except Exception as e:
        logger.error("Supabase %s failed: %s", action, e)
        raise StoreError(f"Failed to {action}") from e


class RemoteAttendanceStore:
    def __init__(self, db: Client):
        self.db = db

    def _table(self):
        return self.db.table(ATTENDANCE_TABLE)

    def insert(self, owner: str, day: date) -> AttendanceRecord:
        if self.exists_for_date(owner, day):
            raise DuplicateError()
        try:
            res = self._table().insert({"user_id": owner, "date": day.isoformat()}).execute()
        except Exception as e:
            # The unique (user_id, date) constraint catches a racing insert.
            if is_unique_violation(e):
                raise DuplicateError() from e
            logger.error("Supabase mark attendance failed for %s...: %s", owner[:8], e)
            raise StoreError("Failed to mark attendance") from e
        if not res.data:
            raise StoreError("Failed to mark attendance")
        return AttendanceRecord.model_validate(res.data[0])

    def list_by_owner(self, owner: str) -> list[AttendanceRecord]:
        res = _run(
            self._table().select("*").eq("user_id", owner).order("date", desc=True),
            "fetch attendance",
        )
        return [AttendanceRecord.model_validate(row) for row in (res.data or [])]

    def exists_for_date(self, owner: str, day: date) -> bool:
        res = _run(
            self._table().select("id").eq("user_id", owner).eq("date", day.isoformat()).limit(1),
            "check attendance",
        )
        return bool(res.data)

    def most_recent(self, owner: str) -> Optional[AttendanceRecord]:
        res = _run(
            self._table().select("*").eq("user_id", owner).order("date", desc=True).limit(1),
            "fetch latest attendance",
        )
        return AttendanceRecord.model_validate(res.data[0]) if res.data else None


# ── Profile aggregate ─────────────────────────────────────────────────────────

def profile_to_row(profile: ProfileAggregate) -> dict[str, Any]:
    subjects = {name: s.model_dump(mode="json") for name, s in profile.subjects.items()}
    return {
        "current_streak": profile.study_streak,
        "longest_streak": profile.longest_streak,
        "total_study_days": profile.total_study_days,
        "total_study_time": profile.total_study_minutes,
        "today_study_time": profile.today_study_minutes,
        "weekly_study_time": profile.weekly_study_minutes,
        "total_xp": profile.xp_points,
        "completed_lessons": profile.completed_lessons,
        "total_lessons": profile.total_lessons,
        "subjects_completed": sum(
            1 for s in profile.subjects.values() if s.progress >= MAX_SUBJECT_PROGRESS
        ),
        "subject_progress": subjects,
        "last_study_date": profile.last_study_date.isoformat() if profile.last_study_date else None,
        "study_time_date": profile.study_time_date.isoformat() if profile.study_time_date else None,
        "daily_goal": profile.daily_goal_minutes,
    }


def row_to_profile(row: dict) -> ProfileAggregate:
    data: dict[str, Any] = {
        "study_streak": row.get("current_streak") or 0,
        "longest_streak": row.get("longest_streak") or 0,
        "total_study_days": row.get("total_study_days") or 0,
        "total_study_minutes": row.get("total_study_time") or 0,
        "today_study_minutes": row.get("today_study_time") or 0,
        "weekly_study_minutes": row.get("weekly_study_time") or 0,
        "xp_points": row.get("total_xp") or 0,
        "completed_lessons": row.get("completed_lessons") or 0,
        "total_lessons": row.get("total_lessons") or 100,
        "daily_goal_minutes": row.get("daily_goal") or 60,
        "last_study_date": row.get("last_study_date"),
        "study_time_date": row.get("study_time_date"),
        "join_date": row.get("created_at"),
    }
    if row.get("subject_progress"):
        data["subjects"] = row["subject_progress"]
    return ProfileAggregate.model_validate(data)


class RemoteProfileStore:
    def __init__(self, db: Client):
        self.db = db

    def _table(self):
        return self.db.table(PROFILE_TABLE)

    def get(self, owner: str) -> ProfileAggregate:
        res = _run(self._table().select("*").eq("user_id", owner).limit(1), "fetch user data")
        if not res.data:
            raise NotFoundError(f"No user data for {owner}")
        return row_to_profile(res.data[0])

    def create(self, owner: str, profile: ProfileAggregate) -> ProfileAggregate:
        res = _run(
            self._table().insert({"user_id": owner, **profile_to_row(profile)}),
            "initialize user data",
        )
        return row_to_profile(res.data[0]) if res.data else profile

    def save(self, owner: str, profile: ProfileAggregate) -> None:
        _run(self._table().update(profile_to_row(profile)).eq("user_id", owner), "update user data")
