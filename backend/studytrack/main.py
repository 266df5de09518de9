"""
StudyTrack: FastAPI backend
"""
import logging
from datetime import date
from functools import lru_cache
from typing import Iterator, Optional

from fastapi import FastAPI, Header, HTTPException, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from .config import get_settings
from .db import get_client
from .engine.xp import study_time_xp
from .errors import StudyTrackError
from .models import DeviceProfile, LessonCompletion, MarkAttendanceRequest, StudyTimeRequest, validate_uuid4
from .session import StudySession, open_device_session, open_remote_session
from .stores.device import DeviceSessionStore, DeviceStorage

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
app = FastAPI(title="StudyTrack API")
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:8080",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type", "X-Device-Profile"],
)

ERROR_STATUS = {
    "validation": 400,
    "not_found": 404,
    "duplicate": 409,
    "store": 503,
}


def _http_error(kind: Optional[str], message: Optional[str]) -> HTTPException:
    return HTTPException(status_code=ERROR_STATUS.get(kind or "", 500), detail=message or "Request failed")


@lru_cache(maxsize=1)
def get_device_storage() -> DeviceStorage:
    return DeviceStorage(get_settings().device_dir)


@app.get("/health")
def health():
    try:
        db = get_client()
        db.table("daily_attendance").select("id").limit(1).execute()
        return {"status": "ok", "db": "ok"}
    except Exception as e:
        logger.error("Health check DB failure: %s", e)
        raise HTTPException(status_code=503, detail="DB unavailable")


# ── Sessions ──────────────────────────────────────────────────────────────────

def get_session(
    authorization: Optional[str] = Header(None),
    x_device_profile: Optional[str] = Header(None),
) -> Iterator[StudySession]:
    """Bearer user id → remote session; X-Device-Profile → device session."""
    settings = get_settings()
    if authorization:
        if not authorization.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Missing Bearer token")
        try:
            user_id = validate_uuid4(authorization.removeprefix("Bearer ").strip())
        except ValueError:
            raise HTTPException(status_code=401, detail="Invalid user id")
        session = open_remote_session(get_client(), user_id, settings)
    elif x_device_profile:
        try:
            session = open_device_session(get_device_storage(), x_device_profile, settings)
        except StudyTrackError as e:
            raise _http_error(e.kind, str(e))
    else:
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        yield session
    finally:
        session.close()


# ── Device registration ───────────────────────────────────────────────────────

@app.post("/api/device/session", status_code=201)
@limiter.limit("10/minute")
def register_device_profile(request: Request, body: DeviceProfile):
    sessions = DeviceSessionStore(get_device_storage())
    try:
        if sessions.load(body.id):
            return {"status": "already_registered"}
        sessions.save(body)
    except StudyTrackError as e:
        raise _http_error(e.kind, str(e))
    logger.info("Device profile registered: %s", body.id[:8])
    return {"status": "registered"}


@app.get("/api/device/session/{profile_id}")
def get_device_profile(profile_id: str):
    try:
        profile = DeviceSessionStore(get_device_storage()).load(profile_id)
    except StudyTrackError as e:
        raise _http_error(e.kind, str(e))
    if profile is None:
        raise HTTPException(status_code=404, detail="Device profile not found")
    return profile.model_dump(mode="json", by_alias=True)


# ── Attendance ────────────────────────────────────────────────────────────────

@app.post("/api/attendance", status_code=201)
@limiter.limit("30/minute")
def mark_attendance(
    request: Request,
    body: Optional[MarkAttendanceRequest] = None,
    session: StudySession = Depends(get_session),
):
    if body is None or body.date is None:
        result = session.attendance.mark_today(session.owner)
    else:
        result = session.attendance.mark_for_date(session.owner, body.date)
    if not result.success:
        raise _http_error(result.error_kind, result.error)
    return {"status": "marked", **result.model_dump(mode="json", exclude={"success", "error", "error_kind"})}


@app.get("/api/attendance")
def get_attendance(session: StudySession = Depends(get_session)):
    records = session.attendance.get_history(session.owner)
    return {"attendance": [r.model_dump(mode="json") for r in records]}


@app.get("/api/attendance/stats")
def get_attendance_stats(session: StudySession = Depends(get_session)):
    return session.attendance.get_stats(session.owner).model_dump(mode="json")


@app.get("/api/attendance/{day}")
def check_attendance(day: date, session: StudySession = Depends(get_session)):
    return {"date": day.isoformat(), "marked": session.attendance.check_date(session.owner, day)}


# ── Profile ───────────────────────────────────────────────────────────────────

@app.get("/api/profile")
def get_profile(session: StudySession = Depends(get_session)):
    try:
        profile = session.profiles.get_or_create(session.owner)
    except StudyTrackError as e:
        raise _http_error(e.kind, str(e))
    return {
        **profile.model_dump(mode="json"),
        "weekly_goal_minutes": profile.weekly_goal_minutes,
        "session_kind": session.kind.value,
        "last_marked_date": session.attendance.last_marked(session.owner),
    }


@app.post("/api/study-time")
@limiter.limit("30/minute")
def log_study_time(request: Request, body: StudyTimeRequest, session: StudySession = Depends(get_session)):
    try:
        profile = session.profiles.log_study_time(session.owner, body.minutes, body.subject)
    except StudyTrackError as e:
        raise _http_error(e.kind, str(e))
    return {"status": "ok", "xp_awarded": study_time_xp(body.minutes), "xp_points": profile.xp_points}


@app.post("/api/lessons")
@limiter.limit("30/minute")
def complete_lesson(request: Request, body: LessonCompletion, session: StudySession = Depends(get_session)):
    try:
        profile = session.profiles.complete_lesson(session.owner, body.subject, body.xp)
    except StudyTrackError as e:
        raise _http_error(e.kind, str(e))
    return {
        "status": "ok",
        "xp_awarded": body.xp,
        "xp_points": profile.xp_points,
        "subject_progress": profile.subjects[body.subject].progress,
    }
