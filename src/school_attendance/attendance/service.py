from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import DateInput, day_range, normalize_day, utc_today
from ..common.validators import is_blank
from ..core.constants import (
    ALREADY_RECORDED_MESSAGE,
    DEFAULT_RECENT_ACTIVITY,
    UNKNOWN_STUDENT,
    UNKNOWN_TEACHER,
)
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..students.repository import StudentRepository
from ..users.repository import TeacherRepository
from .model import (
    AttendanceDay,
    AttendanceDayView,
    AttendanceEntry,
    ClearResult,
    DashboardStats,
    RecordResult,
    StudentStatusRow,
)
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def _field(raw: Any, *names: str) -> Any:
    if isinstance(raw, AttendanceEntry):
        raw = {"studentId": raw.student_id, "status": raw.status}
    if not isinstance(raw, Mapping):
        return None
    for name in names:
        if name in raw:
            return raw[name]
    return None


class AttendanceService:
    """Use case: record, query and clear daily attendance.

    Enforces "at most one status per student per date" across every batch
    submitted for the same (date, grade).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        teachers: TeacherRepository,
        students: StudentRepository,
        *,
        recent_limit: int = DEFAULT_RECENT_ACTIVITY,
    ):
        self._attendance = attendance
        self._teachers = teachers
        self._students = students
        self._recent_limit = int(recent_limit)

    def _parse_entries(self, raw_entries: Iterable[Any]) -> list[AttendanceEntry]:
        pairs = [
            (_field(raw, "studentId", "student_id"), _field(raw, "status"))
            for raw in raw_entries
        ]

        if any(is_blank(student_id) or is_blank(status) for student_id, status in pairs):
            raise ValidationError("incomplete record")

        entries = []
        for student_id, status in pairs:
            try:
                entries.append(AttendanceEntry(student_id=str(student_id).strip(), status=AttendanceStatus(status)))
            except ValueError:
                raise ValidationError("invalid status") from None

        ids = [e.student_id for e in entries]
        if len(set(ids)) != len(ids):
            raise ConflictError("duplicate student in submission")

        return entries

    def record_attendance(
        self,
        *,
        date: DateInput,
        grade: str,
        entries: Sequence[Any],
        recorded_by: str,
    ) -> RecordResult:
        if is_blank(date) or is_blank(grade) or not isinstance(entries, (list, tuple)) or not entries:
            raise ValidationError("missing required fields")

        teacher = None if is_blank(recorded_by) else self._teachers.get_by_id(str(recorded_by))
        if not teacher:
            raise NotFoundError("teacher not found")

        batch = self._parse_entries(entries)
        day = normalize_day(date)
        grade = str(grade).strip()

        existing = self._attendance.find_one(date=day, grade=grade)
        if existing is None:
            try:
                record = self._attendance.insert(
                    date=day,
                    grade=grade,
                    recorded_by=teacher.teacher_id,
                    entries=batch,
                )
                logger.info(
                    "Attendance recorded for grade %s on %s by %s (%d entries)",
                    grade, day.date(), teacher.teacher_id, len(batch),
                )
                return RecordResult(status="created", record=record)
            except ConflictError:
                # Another request created this day first; merge into it instead.
                existing = self._attendance.find_one(date=day, grade=grade)
                if existing is None:
                    raise

        if existing.student_ids() & {e.student_id for e in batch}:
            raise ConflictError(ALREADY_RECORDED_MESSAGE)

        record = self._attendance.append_entries(date=day, grade=grade, entries=batch)
        logger.info(
            "Attendance updated for grade %s on %s by %s (%d entries added)",
            grade, day.date(), teacher.teacher_id, len(batch),
        )
        return RecordResult(status="updated", record=record)

    def _fetch_day(self, value: DateInput, grade: Optional[str] = None) -> Sequence[AttendanceDay]:
        if is_blank(value):
            raise ValidationError("date is required")
        start, end = day_range(value)
        grade = None if is_blank(grade) else str(grade).strip()
        return self._attendance.find_range(start=start, end=end, grade=grade)

    def _to_views(self, days: Sequence[AttendanceDay]) -> list[AttendanceDayView]:
        if not days:
            return []

        # Two-step read: collect keys, batch fetch, merge here.
        students = {
            s.id: s
            for s in self._students.find_by_ids({e.student_id for d in days for e in d.entries})
        }
        teachers = {t.teacher_id: t for t in self._teachers.find_by_ids({d.recorded_by for d in days})}

        views = []
        for d in days:
            teacher = teachers.get(d.recorded_by)
            rows = []
            for e in d.entries:
                student = students.get(e.student_id)
                rows.append(
                    StudentStatusRow(
                        student_id=e.student_id,
                        student_name=student.full_name if student else UNKNOWN_STUDENT,
                        status=e.status,
                    )
                )
            views.append(
                AttendanceDayView(
                    date=d.date,
                    grade=d.grade,
                    recorded_by=d.recorded_by,
                    teacher_name=teacher.full_name if teacher else UNKNOWN_TEACHER,
                    records=tuple(rows),
                )
            )
        return views

    def query_attendance(self, date: DateInput, grade: Optional[str] = None) -> list[AttendanceDayView]:
        return self._to_views(self._fetch_day(date, grade))

    def clear_attendance(self, date: DateInput) -> ClearResult:
        if is_blank(date):
            raise ValidationError("date is required")
        start, end = day_range(date)
        deleted = self._attendance.delete_range(start=start, end=end)
        logger.info("Cleared %d attendance record(s) for %s", deleted, start.date())
        return ClearResult(deleted_count=deleted)

    def build_report_rows(self, date: DateInput, grade: Optional[str] = None) -> list[dict]:
        """Flat rows for CSV export."""
        return [
            {
                "date": view.date.strftime("%Y-%m-%d"),
                "grade": view.grade,
                "teacher": view.teacher_name,
                "student_id": row.student_id,
                "student_name": row.student_name,
                "status": row.status.value,
            }
            for view in self.query_attendance(date, grade)
            for row in view.records
        ]

    def dashboard_stats(self, *, today: Optional[date] = None) -> DashboardStats:
        today = today or utc_today()
        start, end = day_range(today)

        present = absent = total = 0
        for d in self._attendance.find_range(start=start, end=end):
            for e in d.entries:
                total += 1
                if e.status == AttendanceStatus.PRESENT:
                    present += 1
                elif e.status == AttendanceStatus.ABSENT:
                    absent += 1

        recent = list(self._attendance.list_recent(self._recent_limit))
        teachers = {t.teacher_id: t for t in self._teachers.find_by_ids({d.recorded_by for d in recent})}
        activity = []
        for d in recent:
            teacher = teachers.get(d.recorded_by)
            activity.append(
                {
                    "date": d.date.strftime("%Y-%m-%d"),
                    "grade": d.grade,
                    "teacher": teacher.full_name if teacher else UNKNOWN_TEACHER,
                    "presentCount": sum(1 for e in d.entries if e.status == AttendanceStatus.PRESENT),
                    "absentCount": sum(1 for e in d.entries if e.status == AttendanceStatus.ABSENT),
                }
            )

        return DashboardStats(
            total_students=self._students.count(),
            present_today=present,
            absent_today=absent,
            percentage=int(present * 100 / total + 0.5) if total else 0,
            recent_activity=activity,
        )
