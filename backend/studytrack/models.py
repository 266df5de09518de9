import re
import datetime as dt
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

UUID4_RE = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$"
)

DEFAULT_SUBJECTS = ("physics", "chemistry", "mathematics")
MAX_SUBJECT_PROGRESS = 100


def validate_uuid4(v: str) -> str:
    if not UUID4_RE.match(v.lower()):
        raise ValueError("must be a valid UUID v4")
    return v.lower()


# ── Attendance ────────────────────────────────────────────────────────────────

class AttendanceRecord(BaseModel):
    id: Optional[str] = None
    user_id: str
    date: dt.date
    created_at: Optional[datetime] = None
    model_config = {"extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        # daily_attendance ids may be uuid or bigint depending on the migration
        return str(v) if v is not None else None


class Streak(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    total_days: int = 0


class Milestone(BaseModel):
    emoji: str
    message: str
    badge: Optional[str] = None
    badge_xp: int = 0


class AttendanceStats(BaseModel):
    streak: Streak = Field(default_factory=Streak)
    has_marked_today: bool = False
    last_marked_date: Optional[date] = None
    milestone: Optional[Milestone] = None
    error: Optional[str] = None


class MarkResult(BaseModel):
    success: bool
    error: Optional[str] = None
    error_kind: Optional[str] = None
    record: Optional[AttendanceRecord] = None
    streak: Optional[Streak] = None
    profile_updated: bool = False


# ── Profile aggregate ─────────────────────────────────────────────────────────

class SubjectProgress(BaseModel):
    progress: int = Field(default=0, ge=0, le=MAX_SUBJECT_PROGRESS)
    last_studied: Optional[datetime] = None


def _default_subjects() -> dict[str, SubjectProgress]:
    return {name: SubjectProgress() for name in DEFAULT_SUBJECTS}


class ProfileAggregate(BaseModel):
    study_streak: int = 0
    longest_streak: int = 0
    total_study_days: int = 0
    xp_points: int = 0
    completed_lessons: int = 0
    total_lessons: int = 100
    subjects: dict[str, SubjectProgress] = Field(default_factory=_default_subjects)
    today_study_minutes: int = 0
    weekly_study_minutes: int = 0
    total_study_minutes: int = 0
    daily_goal_minutes: int = 60
    last_study_date: Optional[date] = None
    study_time_date: Optional[date] = None      # day the minute counters belong to
    join_date: Optional[datetime] = None
    model_config = {"extra": "ignore"}

    @property
    def weekly_goal_minutes(self) -> int:
        return self.daily_goal_minutes * 7


# ── Device session ────────────────────────────────────────────────────────────

class DeviceProfile(BaseModel):
    """Identity blob of a non-authenticated (mobile login) session."""

    id: str = Field(min_length=1, max_length=64)
    full_name: str = Field(min_length=1, max_length=100)
    school_name: Optional[str] = None
    class_name: Optional[str] = Field(default=None, alias="class")
    mobile_number: Optional[str] = None
    age: Optional[int] = None
    subfolder_id: Optional[str] = None
    last_marked_date: Optional[date] = None
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("mobile_number")
    @classmethod
    def validate_mobile_number(cls, v):
        if v is not None and not v.strip().isdigit():
            raise ValueError("mobile number must contain digits only")
        return v.strip() if v else v


# ── Request bodies ────────────────────────────────────────────────────────────

class MarkAttendanceRequest(BaseModel):
    date: Optional[dt.date] = None


class StudyTimeRequest(BaseModel):
    minutes: int = Field(gt=0, le=24 * 60)
    subject: Optional[str] = Field(default=None, max_length=50)


class LessonCompletion(BaseModel):
    subject: str = Field(min_length=1, max_length=50)
    xp: int = Field(default=25, ge=0, le=1000)
