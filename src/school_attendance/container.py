from __future__ import annotations

from dataclasses import dataclass

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .core.constants import DEFAULT_NOTIFY_WORKERS, DEFAULT_RESET_TOKEN_TTL_MINUTES
from .database.connection import DatabaseConnection, DBConfig
from .notifications.mailer import MailSender
from .notifications.service import AbsenceNotifier
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import RosterService
from .users.mysql_teacher_repository import MySQLTeacherRepository
from .users.repository import TeacherRepository
from .users.reset_tokens import ResetTokenSigner
from .users.service import AuthService


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    students_repo: StudentRepository
    teachers_repo: TeacherRepository
    mailer: MailSender

    auth_service: AuthService
    attendance_service: AttendanceService
    absence_notifier: AbsenceNotifier
    roster_service: RosterService


def build_services(
    *,
    attendance_repo: AttendanceRepository,
    students_repo: StudentRepository,
    teachers_repo: TeacherRepository,
    mailer: MailSender,
    secret_key: str,
    notify_workers: int = DEFAULT_NOTIFY_WORKERS,
    reset_ttl_minutes: int = DEFAULT_RESET_TOKEN_TTL_MINUTES,
    frontend_url: str = "",
) -> Container:
    """Wire services on top of any repository implementation."""

    auth_service = AuthService(
        teachers_repo,
        ResetTokenSigner(secret_key, ttl_minutes=reset_ttl_minutes),
        mailer,
        frontend_url=frontend_url,
        ttl_minutes=reset_ttl_minutes,
    )
    attendance_service = AttendanceService(attendance_repo, teachers_repo, students_repo)
    absence_notifier = AbsenceNotifier(attendance_repo, students_repo, mailer, max_workers=notify_workers)
    roster_service = RosterService(students_repo)

    return Container(
        attendance_repo=attendance_repo,
        students_repo=students_repo,
        teachers_repo=teachers_repo,
        mailer=mailer,
        auth_service=auth_service,
        attendance_service=attendance_service,
        absence_notifier=absence_notifier,
        roster_service=roster_service,
    )


def build_container(*, db_config: dict, mailer: MailSender, secret_key: str, **options) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return build_services(
        attendance_repo=MySQLAttendanceRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        teachers_repo=MySQLTeacherRepository(conn),
        mailer=mailer,
        secret_key=secret_key,
        **options,
    )
