"""
Owner-scoped progress aggregate: XP, study streak counter, lessons, study time.
"""
import logging
from datetime import date, datetime

from ..engine.daykey import Clock, today_key
from ..engine.streak import StreakPolicy, advance_study_streak
from ..engine.xp import ATTENDANCE_XP, DEFAULT_LESSON_XP, bump_subject_progress, study_time_xp
from ..errors import NotFoundError, ValidationError
from ..models import ProfileAggregate, Streak, SubjectProgress
from ..stores.base import ProfileStore

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(
        self,
        store: ProfileStore,
        policy: StreakPolicy = StreakPolicy.INCREMENT,
        clock: Clock | None = None,
    ):
        self.store = store
        self.policy = policy
        self.clock = clock

    def get_or_create(self, owner: str) -> ProfileAggregate:
        try:
            return self.store.get(owner)
        except NotFoundError:
            logger.info("Initializing profile for %s...", owner[:8])
            profile = ProfileAggregate(join_date=datetime.now().astimezone())
            return self.store.create(owner, profile)

    def record_attendance(self, owner: str, day: date, streak: Streak) -> ProfileAggregate:
        """Apply one successful attendance mark. Callers invoke this once per mark."""
        profile = self.get_or_create(owner)
        updates: dict = {
            "total_study_days": profile.total_study_days + 1,
            "xp_points": profile.xp_points + ATTENDANCE_XP,
        }
        if self.policy is StreakPolicy.RECOMPUTE:
            updates["study_streak"] = streak.current_streak
            updates["longest_streak"] = max(profile.longest_streak, streak.longest_streak)
        else:
            # Stored counter keeps growing across gaps; see StreakPolicy.RECOMPUTE.
            updates["study_streak"] = profile.study_streak + 1
            updates["longest_streak"] = max(profile.longest_streak, profile.study_streak + 1)
        if profile.last_study_date is None or day > profile.last_study_date:
            updates["last_study_date"] = day

        profile = profile.model_copy(update=updates)
        self.store.save(owner, profile)
        return profile

    def log_study_time(self, owner: str, minutes: int, subject: str | None = None) -> ProfileAggregate:
        if minutes <= 0:
            raise ValidationError("Study time must be a positive number of minutes")
        today = today_key(self.clock)
        profile = self.get_or_create(owner)
        # Minute counters roll over on their own date; attendance marks move last_study_date.
        counted = profile.study_time_date
        today_minutes = profile.today_study_minutes if counted == today else 0
        same_week = counted is not None and counted.isocalendar()[:2] == today.isocalendar()[:2]
        weekly_minutes = profile.weekly_study_minutes if same_week else 0
        new_streak = advance_study_streak(profile.last_study_date, profile.study_streak, today)

        updates: dict = {
            "today_study_minutes": today_minutes + minutes,
            "weekly_study_minutes": weekly_minutes + minutes,
            "total_study_minutes": profile.total_study_minutes + minutes,
            "xp_points": profile.xp_points + study_time_xp(minutes),
            "study_streak": new_streak,
            "longest_streak": max(profile.longest_streak, new_streak),
            "last_study_date": today,
            "study_time_date": today,
        }
        if subject:
            subjects = dict(profile.subjects)
            current = subjects.get(subject, SubjectProgress())
            subjects[subject] = current.model_copy(update={"last_studied": datetime.now().astimezone()})
            updates["subjects"] = subjects

        profile = profile.model_copy(update=updates)
        self.store.save(owner, profile)
        logger.info("Study time for %s...: +%d min", owner[:8], minutes)
        return profile

    def complete_lesson(self, owner: str, subject: str, xp: int = DEFAULT_LESSON_XP) -> ProfileAggregate:
        if not subject:
            raise ValidationError("Subject is required")
        profile = self.get_or_create(owner)
        subjects = dict(profile.subjects)
        current = subjects.get(subject, SubjectProgress())
        subjects[subject] = SubjectProgress(
            progress=bump_subject_progress(current.progress),
            last_studied=datetime.now().astimezone(),
        )
        profile = profile.model_copy(update={
            "completed_lessons": profile.completed_lessons + 1,
            "xp_points": profile.xp_points + xp,
            "subjects": subjects,
        })
        self.store.save(owner, profile)
        return profile
