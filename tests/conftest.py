from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional

import pytest
from werkzeug.security import generate_password_hash

from school_attendance.attendance.model import AttendanceDay
from school_attendance.attendance.service import AttendanceService
from school_attendance.container import build_services
from school_attendance.core.constants import ALREADY_RECORDED_MESSAGE
from school_attendance.core.exceptions import ConflictError
from school_attendance.main import create_app
from school_attendance.notifications.service import AbsenceNotifier
from school_attendance.students.model import Student
from school_attendance.users.model import Teacher

TEACHER_PASSWORD = "secret123"


class InMemoryAttendance:
    def __init__(self):
        self._days: dict[tuple[datetime, str], AttendanceDay] = {}
        self._next_id = 1
        self.writes = 0

    def add_raw(self, *, date: datetime, grade: str, recorded_by: str, entries=()) -> AttendanceDay:
        """Store a day as-is, bypassing normalization (e.g. with a time component)."""
        day = AttendanceDay(day_id=self._next_id, date=date, grade=grade, recorded_by=recorded_by, entries=tuple(entries))
        self._next_id += 1
        self._days[(date, grade)] = day
        return day

    def all_days(self) -> list[AttendanceDay]:
        return list(self._days.values())

    def find_one(self, *, date, grade) -> Optional[AttendanceDay]:
        return self._days.get((date, grade))

    def insert(self, *, date, grade, recorded_by, entries) -> AttendanceDay:
        if (date, grade) in self._days:
            raise ConflictError("Record already exists")
        self.writes += 1
        return self.add_raw(date=date, grade=grade, recorded_by=recorded_by, entries=entries)

    def append_entries(self, *, date, grade, entries) -> AttendanceDay:
        day = self._days.get((date, grade))
        if day is None:
            raise ConflictError("attendance day was removed while recording")
        if day.student_ids() & {e.student_id for e in entries}:
            raise ConflictError(ALREADY_RECORDED_MESSAGE)
        updated = replace(day, entries=day.entries + tuple(entries))
        self._days[(date, grade)] = updated
        self.writes += 1
        return updated

    def find_range(self, *, start, end, grade=None) -> list[AttendanceDay]:
        days = [d for d in self._days.values() if start <= d.date < end and (grade is None or d.grade == grade)]
        return sorted(days, key=lambda d: (d.date, d.grade))

    def delete_range(self, *, start, end) -> int:
        doomed = [k for k, d in self._days.items() if start <= d.date < end]
        for k in doomed:
            del self._days[k]
        return len(doomed)

    def list_recent(self, limit: int) -> list[AttendanceDay]:
        days = sorted(self._days.values(), key=lambda d: (d.date, d.day_id), reverse=True)
        return days[:limit]


class InMemoryStudents:
    def __init__(self, students: Iterable[Student]):
        self._by_id = {s.id: s for s in students}
        self.lookups: list[set[str]] = []

    def find_by_ids(self, ids) -> list[Student]:
        ids = set(ids)
        self.lookups.append(ids)
        return [self._by_id[i] for i in sorted(ids) if i in self._by_id]

    def list_all(self) -> list[Student]:
        return sorted(self._by_id.values(), key=lambda s: (s.grade, s.surname, s.name))

    def list_by_grade(self, grade) -> list[Student]:
        return [s for s in self.list_all() if s.grade == grade]

    def distinct_grades(self) -> list[str]:
        return sorted({s.grade for s in self._by_id.values()})

    def count(self) -> int:
        return len(self._by_id)


class InMemoryTeachers:
    def __init__(self, teachers: Iterable[Teacher]):
        self._by_id = {t.teacher_id: t for t in teachers}

    def get_by_id(self, teacher_id) -> Optional[Teacher]:
        return self._by_id.get(teacher_id)

    def get_by_email(self, email) -> Optional[Teacher]:
        return next((t for t in self._by_id.values() if t.email == email), None)

    def find_by_ids(self, ids) -> list[Teacher]:
        return [self._by_id[i] for i in ids if i in self._by_id]

    def update_password(self, teacher_id, password_hash) -> bool:
        teacher = self._by_id.get(teacher_id)
        if not teacher:
            return False
        self._by_id[teacher_id] = replace(teacher, password_hash=password_hash)
        return True


class RecordingMailer:
    """Collects sends; addresses in ``failing`` raise like a refused SMTP recipient."""

    def __init__(self, failing: Iterable[str] = ()):
        self.failing = set(failing)
        self.calls: list[tuple[str, str, str]] = []
        self._lock = threading.Lock()

    def send(self, to: str, subject: str, body: str) -> None:
        with self._lock:
            self.calls.append((to, subject, body))
        if to in self.failing:
            raise RuntimeError(f"Recipient refused: {to}")

    @property
    def recipients(self) -> list[str]:
        return [c[0] for c in self.calls]


@pytest.fixture(scope="session")
def teacher() -> Teacher:
    return Teacher(
        teacher_id="T1",
        name="Amina",
        surname="Okafor",
        email="amina.okafor@school.test",
        password_hash=generate_password_hash(TEACHER_PASSWORD),
        grades=("5A", "5B"),
    )


@pytest.fixture
def roster() -> list[Student]:
    return [
        Student("S1", "Liam", "Carter", "5A", "Grace Carter", "grace.carter@example.com", "+15550100001"),
        Student("S2", "Noah", "Bennett", "5A", "Oliver Bennett", "oliver.bennett@example.com", "+15550100002"),
        Student("S3", "Emma", "Hughes", "5A", "Sophia Hughes", "sophia.hughes@example.com", "+15550100003"),
        Student("S4", "Ava", "Morales", "5B", "Lucas Morales", "lucas.morales@example.com", "+15550100004"),
    ]


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def students_repo(roster) -> InMemoryStudents:
    return InMemoryStudents(roster)


@pytest.fixture
def teachers_repo(teacher) -> InMemoryTeachers:
    return InMemoryTeachers([teacher])


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def service(attendance_repo, teachers_repo, students_repo) -> AttendanceService:
    return AttendanceService(attendance_repo, teachers_repo, students_repo)


@pytest.fixture
def notifier(attendance_repo, students_repo, mailer) -> AbsenceNotifier:
    return AbsenceNotifier(attendance_repo, students_repo, mailer, max_workers=4)


@pytest.fixture
def container(attendance_repo, students_repo, teachers_repo, mailer):
    return build_services(
        attendance_repo=attendance_repo,
        students_repo=students_repo,
        teachers_repo=teachers_repo,
        mailer=mailer,
        secret_key="test-secret",
        notify_workers=4,
        frontend_url="http://localhost:3000",
    )


@pytest.fixture
def app(container):
    return create_app(container=container, settings_module="school_attendance.config.testing")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client, teacher):
    with client.session_transaction() as sess:
        sess["teacher_id"] = teacher.teacher_id
        sess["name"] = "Amina Okafor"
    return client
