"""
Storage capabilities implemented by both realms (remote Supabase and on-device JSON).
"""
from datetime import date
from typing import Optional, Protocol, Sequence

from ..models import AttendanceRecord, ProfileAggregate


class AttendanceStore(Protocol):
    def insert(self, owner: str, day: date) -> AttendanceRecord:
        """Persist one (owner, day) record. May raise DuplicateError or StoreError."""
        raise NotImplementedError

    def list_by_owner(self, owner: str) -> Sequence[AttendanceRecord]:
        """All records for the owner, most recent first. Empty, never an error, when none."""
        raise NotImplementedError

    def exists_for_date(self, owner: str, day: date) -> bool:
        raise NotImplementedError

    def most_recent(self, owner: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError


class ProfileStore(Protocol):
    def get(self, owner: str) -> ProfileAggregate:
        """Raises NotFoundError when the owner has no aggregate yet."""
        raise NotImplementedError

    def create(self, owner: str, profile: ProfileAggregate) -> ProfileAggregate:
        raise NotImplementedError

    def save(self, owner: str, profile: ProfileAggregate) -> None:
        raise NotImplementedError
