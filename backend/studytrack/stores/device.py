"""
On-device storage for non-authenticated (mobile login) sessions.

Each device profile gets one JSON file under the storage directory holding its
session blob, its marked day list and its profile aggregate. Nothing here talks
to the network.
"""
import json
import logging
import os
import re
from datetime import date
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from ..errors import NotFoundError, StoreError, ValidationError
from ..models import AttendanceRecord, DeviceProfile, ProfileAggregate

logger = logging.getLogger(__name__)

SESSION_KEY = "folder_user_session"
ATTENDANCE_KEY = "mobile_user_attendance"
PROFILE_KEY = "user_data"

NAMESPACE_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class DeviceStorage:
    """Small JSON key/value store, one file per namespace."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def _path(self, namespace: str) -> Path:
        if not NAMESPACE_RE.match(namespace):
            raise ValidationError(f"Invalid device namespace: {namespace!r}")
        return self.root / f"{namespace}.json"

    def _load(self, namespace: str) -> dict[str, Any]:
        path = self._path(namespace)
        if not path.exists():
            return {}
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error("Unreadable device storage %s: %s", path, e)
            raise StoreError("Failed to read device storage") from e

    def get(self, namespace: str, key: str) -> Any:
        return self._load(namespace).get(key)

    def set(self, namespace: str, key: str, value: Any) -> None:
        data = self._load(namespace)
        data[key] = value
        path = self._path(namespace)
        tmp = path.with_suffix(".tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data), encoding="utf-8")
            os.replace(tmp, path)
        except OSError as e:
            logger.error("Failed writing device storage %s: %s", path, e)
            raise StoreError("Failed to write device storage") from e


class DeviceSessionStore:
    """The identity blob of a device profile, read at session start and written on mark."""

    def __init__(self, storage: DeviceStorage):
        self.storage = storage

    def load(self, profile_id: str) -> Optional[DeviceProfile]:
        raw = self.storage.get(profile_id, SESSION_KEY)
        if raw is None:
            return None
        try:
            return DeviceProfile.model_validate(raw)
        except PydanticValidationError as e:
            raise StoreError("Corrupt device session") from e

    def save(self, profile: DeviceProfile) -> None:
        self.storage.set(profile.id, SESSION_KEY, profile.model_dump(mode="json", by_alias=True))


class LocalAttendanceStore:
    """
    Marked days of the active device profile, in insertion order.

    ``append`` does not check for duplicates; callers go through AttendanceService,
    which checks ``exists_for_date`` first.
    """

    def __init__(self, storage: DeviceStorage, profile_id: str):
        self.storage = storage
        self.profile_id = profile_id

    def _check_owner(self, owner: str) -> None:
        if owner != self.profile_id:
            raise ValidationError("Owner does not match the active device profile")

    def days(self) -> list[date]:
        raw = self.storage.get(self.profile_id, ATTENDANCE_KEY) or []
        try:
            return [date.fromisoformat(d) for d in raw]
        except (TypeError, ValueError) as e:
            raise StoreError("Corrupt device attendance list") from e

    def append(self, day: date) -> None:
        days = [d.isoformat() for d in self.days()]
        days.append(day.isoformat())
        self.storage.set(self.profile_id, ATTENDANCE_KEY, days)

    # AttendanceStore protocol

    def _record(self, day: date) -> AttendanceRecord:
        return AttendanceRecord(id=f"{self.profile_id}:{day.isoformat()}", user_id=self.profile_id, date=day)

    def insert(self, owner: str, day: date) -> AttendanceRecord:
        self._check_owner(owner)
        self.append(day)
        sessions = DeviceSessionStore(self.storage)
        profile = sessions.load(self.profile_id)
        if profile is not None and (profile.last_marked_date is None or day > profile.last_marked_date):
            sessions.save(profile.model_copy(update={"last_marked_date": day}))
        return self._record(day)

    def list_by_owner(self, owner: str) -> list[AttendanceRecord]:
        self._check_owner(owner)
        return [self._record(d) for d in sorted(set(self.days()), reverse=True)]

    def exists_for_date(self, owner: str, day: date) -> bool:
        self._check_owner(owner)
        return day in self.days()

    def most_recent(self, owner: str) -> Optional[AttendanceRecord]:
        self._check_owner(owner)
        days = self.days()
        return self._record(max(days)) if days else None


class LocalProfileStore:
    def __init__(self, storage: DeviceStorage):
        self.storage = storage

    def get(self, owner: str) -> ProfileAggregate:
        raw = self.storage.get(owner, PROFILE_KEY)
        if raw is None:
            raise NotFoundError(f"No device profile data for {owner}")
        try:
            return ProfileAggregate.model_validate(raw)
        except PydanticValidationError as e:
            raise StoreError("Corrupt device profile data") from e

    def create(self, owner: str, profile: ProfileAggregate) -> ProfileAggregate:
        self.save(owner, profile)
        return profile

    def save(self, owner: str, profile: ProfileAggregate) -> None:
        self.storage.set(owner, PROFILE_KEY, profile.model_dump(mode="json"))
