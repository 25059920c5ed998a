from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet

from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class AttendanceEntry:
    """One student's status within an attendance day."""

    student_id: str
    status: AttendanceStatus

    def to_dict(self) -> dict:
        return {"studentId": self.student_id, "status": self.status.value}


@dataclass(frozen=True)
class AttendanceDay:
    """Domain entity: all attendance taken for one grade on one date.

    ``date`` is always midnight UTC. ``recorded_by`` is the teacher of the
    first batch; later batches only append to ``entries``.
    """

    day_id: int
    date: datetime
    grade: str
    recorded_by: str
    entries: tuple[AttendanceEntry, ...] = field(default_factory=tuple)

    def student_ids(self) -> FrozenSet[str]:
        return frozenset(e.student_id for e in self.entries)

    def to_dict(self) -> dict:
        return {
            "id": self.day_id,
            "date": self.date.strftime("%Y-%m-%d"),
            "grade": self.grade,
            "recordedBy": self.recorded_by,
            "records": [e.to_dict() for e in self.entries],
        }


@dataclass(frozen=True)
class RecordResult:
    status: str  # "created" | "updated"
    record: AttendanceDay


@dataclass(frozen=True)
class ClearResult:
    deleted_count: int

    def to_dict(self) -> dict:
        return {"deletedCount": self.deleted_count}


@dataclass(frozen=True)
class StudentStatusRow:
    """Read-model: an entry with the student's display name resolved."""

    student_id: str
    student_name: str
    status: AttendanceStatus


@dataclass(frozen=True)
class AttendanceDayView:
    """Read-model returned by day queries."""

    date: datetime
    grade: str
    recorded_by: str
    teacher_name: str
    records: tuple[StudentStatusRow, ...]

    def to_dict(self) -> dict:
        return {
            "date": self.date.strftime("%Y-%m-%d"),
            "grade": self.grade,
            "recordedBy": self.recorded_by,
            "teacherName": self.teacher_name,
            "records": [
                {"studentId": r.student_id, "studentName": r.student_name, "status": r.status.value}
                for r in self.records
            ],
        }


@dataclass(frozen=True)
class DashboardStats:
    total_students: int
    present_today: int
    absent_today: int
    percentage: int
    recent_activity: list[dict]

    def to_dict(self) -> dict:
        return {
            "totalStudents": self.total_students,
            "todayAttendance": {
                "percentage": self.percentage,
                "present": self.present_today,
                "absent": self.absent_today,
            },
            "recentActivity": self.recent_activity,
        }
