"""
Error taxonomy shared by the stores, services and API.
"""


class StudyTrackError(Exception):
    """Base class for every failure the attendance core reports."""

    kind = "error"


class ValidationError(StudyTrackError):
    """Future date, date before the launch floor, missing owner, bad input."""

    kind = "validation"


class DuplicateError(StudyTrackError):
    """Attendance already exists for that day. Expected and non-fatal."""

    kind = "duplicate"

    def __init__(self, message: str = "Attendance already marked for this date"):
        super().__init__(message)


class StoreError(StudyTrackError):
    """Transport or persistence failure. Never retried by the core."""

    kind = "store"


class NotFoundError(StudyTrackError):
    """No aggregate or profile exists yet for the owner."""

    kind = "not_found"
