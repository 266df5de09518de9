"""
Per-session wiring: pick the store pair once from the session kind.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from supabase import Client

from .config import Settings
from .engine.daykey import Clock
from .errors import NotFoundError
from .models import DeviceProfile
from .services.attendance import AttendanceService, SessionKind
from .services.profile import ProfileService
from .services.refresh import RefreshScheduler
from .stores.device import DeviceSessionStore, DeviceStorage, LocalAttendanceStore, LocalProfileStore
from .stores.remote import RemoteAttendanceStore, RemoteProfileStore

logger = logging.getLogger(__name__)

__all__ = ["SessionKind", "StudySession", "open_remote_session", "open_device_session"]


@dataclass
class StudySession:
    kind: SessionKind
    owner: str
    attendance: AttendanceService
    profiles: ProfileService
    scheduler: RefreshScheduler
    device_profile: Optional[DeviceProfile] = field(default=None)

    def close(self) -> None:
        """Teardown: pending refreshes are dropped."""
        self.scheduler.close()

    def __enter__(self) -> "StudySession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _build(kind, owner, attendance_store, profile_store, settings: Settings, clock, device_profile=None):
    scheduler = RefreshScheduler(delay=settings.refresh_delay)
    profiles = ProfileService(profile_store, policy=settings.streak_policy, clock=clock)
    attendance = AttendanceService(
        attendance_store,
        profiles,
        kind,
        launch_date=settings.launch_date,
        grace_days=settings.grace_days,
        scheduler=scheduler,
        clock=clock,
    )
    return StudySession(kind, owner, attendance, profiles, scheduler, device_profile)


def open_remote_session(db: Client, user_id: str, settings: Settings, clock: Clock | None = None) -> StudySession:
    return _build(
        SessionKind.REMOTE, user_id,
        RemoteAttendanceStore(db), RemoteProfileStore(db),
        settings, clock,
    )


def open_device_session(
    storage: DeviceStorage, profile_id: str, settings: Settings, clock: Clock | None = None
) -> StudySession:
    """Reads the device profile blob once; the profile must have been registered."""
    profile = DeviceSessionStore(storage).load(profile_id)
    if profile is None:
        raise NotFoundError("Device profile not registered")
    logger.debug("Device session opened for %s", profile.full_name)
    return _build(
        SessionKind.DEVICE, profile.id,
        LocalAttendanceStore(storage, profile.id), LocalProfileStore(storage),
        settings, clock, device_profile=profile,
    )
