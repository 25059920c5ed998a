from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Statuses accepted when recording attendance.

    The recording screen also offers "Late", but only these two are stored.
    """

    PRESENT = "Present"
    ABSENT = "Absent"
