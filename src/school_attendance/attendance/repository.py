from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceDay, AttendanceEntry


class AttendanceRepository(Protocol):
    """Record store keyed by (date, grade).

    Dates passed in are already normalized to midnight UTC.
    """

    def find_one(self, *, date: datetime, grade: str) -> Optional[AttendanceDay]:
        raise NotImplementedError

    def insert(
        self,
        *,
        date: datetime,
        grade: str,
        recorded_by: str,
        entries: Sequence[AttendanceEntry],
    ) -> AttendanceDay:
        """Create the day. Raises ConflictError if (date, grade) already exists."""

        raise NotImplementedError

    def append_entries(self, *, date: datetime, grade: str, entries: Sequence[AttendanceEntry]) -> AttendanceDay:
        """Atomically append ``entries`` unless any of their students is already recorded.

        Raises ConflictError and writes nothing when a student is already present.
        """

        raise NotImplementedError

    def find_range(self, *, start: datetime, end: datetime, grade: Optional[str] = None) -> Sequence[AttendanceDay]:
        raise NotImplementedError

    def delete_range(self, *, start: datetime, end: datetime) -> int:
        raise NotImplementedError

    def list_recent(self, limit: int) -> Sequence[AttendanceDay]:
        raise NotImplementedError
