"""
XP computation rules: pure functions, no DB access.
"""
from ..models import MAX_SUBJECT_PROGRESS

ATTENDANCE_XP = 10          # once per successful mark
STUDY_XP_PER_BLOCK = 5
STUDY_BLOCK_MINUTES = 10
DEFAULT_LESSON_XP = 25
SUBJECT_PROGRESS_STEP = 5


def study_time_xp(minutes: int) -> int:
    """5 XP per full 10 minutes studied; partial blocks earn nothing."""
    return (max(minutes, 0) // STUDY_BLOCK_MINUTES) * STUDY_XP_PER_BLOCK


def bump_subject_progress(progress: int, step: int = SUBJECT_PROGRESS_STEP) -> int:
    return min(MAX_SUBJECT_PROGRESS, progress + step)
