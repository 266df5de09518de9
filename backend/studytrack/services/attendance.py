"""
AttendanceService: the single entry point for marking and reading attendance.

The service is realm-agnostic. It receives an AttendanceStore and a ProfileService
for one session and never checks where they persist.

Marking writes the attendance record first and the profile aggregate second,
with no transaction across the two. If the aggregate update fails the mark is
still reported as a success, with ``profile_updated=False``, and the failure is
logged. The two stay inconsistent until the aggregate is backfilled.
"""
import logging
from datetime import date
from enum import Enum
from typing import Optional

from ..config import DEFAULT_LAUNCH_DATE
from ..engine.daykey import Clock, to_day_key, today_key
from ..engine.milestones import streak_milestone
from ..engine.streak import compute_streak
from ..errors import DuplicateError, StudyTrackError, ValidationError
from ..models import AttendanceRecord, AttendanceStats, MarkResult
from ..stores.base import AttendanceStore
from .profile import ProfileService
from .refresh import Observer, RefreshScheduler

logger = logging.getLogger(__name__)


class SessionKind(str, Enum):
    REMOTE = "remote"   # authenticated owner, Supabase tables
    DEVICE = "device"   # mobile login, on-device storage


class AttendanceService:
    def __init__(
        self,
        store: AttendanceStore,
        profiles: ProfileService,
        kind: SessionKind,
        *,
        launch_date: date = DEFAULT_LAUNCH_DATE,
        grace_days: int = 0,
        scheduler: Optional[RefreshScheduler] = None,
        clock: Clock | None = None,
    ):
        self.store = store
        self.profiles = profiles
        self.kind = kind
        self.launch_date = launch_date
        self.grace_days = grace_days
        self.scheduler = scheduler
        self.clock = clock

    def _today(self) -> date:
        return today_key(self.clock)

    def _validate(self, owner: str, day: date) -> None:
        if not owner:
            raise ValidationError("Missing owner")
        if day > self._today():
            raise ValidationError("Cannot mark attendance for a future date")
        if self.kind is SessionKind.REMOTE and day < self.launch_date:
            raise ValidationError(f"Cannot mark attendance before {self.launch_date.isoformat()}")

    # ── Writes ────────────────────────────────────────────────────────────────

    def mark_today(self, owner: str, observer: Observer | None = None) -> MarkResult:
        return self.mark_for_date(owner, self._today(), observer)

    def mark_for_date(self, owner: str, day, observer: Observer | None = None) -> MarkResult:
        try:
            day = to_day_key(day)
            self._validate(owner, day)
            if self.store.exists_for_date(owner, day):
                raise DuplicateError()
            record = self.store.insert(owner, day)
        except StudyTrackError as e:
            log = logger.info if e.kind in ("duplicate", "validation") else logger.error
            log("Mark attendance for %s... on %s rejected: %s", (owner or "")[:8], day, e)
            return MarkResult(success=False, error=str(e), error_kind=e.kind)

        try:
            days = [r.date for r in self.store.list_by_owner(owner)]
        except StudyTrackError as e:
            # The record is written; streak falls back to what this mark alone implies.
            logger.error("Attendance for %s... saved but re-read failed: %s", owner[:8], e)
            days = [day]
        streak = compute_streak(days, self._today(), self.grace_days)

        profile_updated = True
        try:
            self.profiles.record_attendance(owner, day, streak)
        except StudyTrackError as e:
            profile_updated = False
            logger.error("Attendance for %s... on %s saved but profile update failed: %s",
                         owner[:8], day, e)

        if observer is not None and self.scheduler is not None:
            self.scheduler.schedule(lambda: self.profiles.get_or_create(owner), observer)

        logger.info("Attendance marked for %s... on %s (streak %d)", owner[:8], day, streak.current_streak)
        return MarkResult(success=True, record=record, streak=streak, profile_updated=profile_updated)

    # ── Reads ─────────────────────────────────────────────────────────────────

    def get_stats(self, owner: str) -> AttendanceStats:
        if not owner:
            return AttendanceStats(error="Missing owner")
        try:
            records = self.store.list_by_owner(owner)
        except StudyTrackError as e:
            logger.error("Error getting attendance stats for %s...: %s", owner[:8], e)
            return AttendanceStats(error=str(e))

        today = self._today()
        days = [r.date for r in records]
        streak = compute_streak(days, today, self.grace_days)
        return AttendanceStats(
            streak=streak,
            has_marked_today=today in days,
            last_marked_date=max(days) if days else None,
            milestone=streak_milestone(streak.current_streak) if days else None,
        )

    def get_history(self, owner: str) -> list[AttendanceRecord]:
        try:
            return list(self.store.list_by_owner(owner))
        except StudyTrackError as e:
            logger.error("Error fetching attendance for %s...: %s", owner[:8], e)
            return []

    def check_date(self, owner: str, day) -> bool:
        try:
            return self.store.exists_for_date(owner, to_day_key(day))
        except StudyTrackError:
            return False

    def last_marked(self, owner: str) -> Optional[date]:
        try:
            record = self.store.most_recent(owner)
        except StudyTrackError as e:
            logger.error("Error fetching latest attendance for %s...: %s", owner[:8], e)
            return None
        return record.date if record else None
