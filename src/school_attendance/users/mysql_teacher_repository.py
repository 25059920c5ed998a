from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders
from .model import Teacher
from .repository import TeacherRepository

_COLUMNS = "teacher_id, name, surname, email, password_hash, grades, is_active"


def _to_teacher(row: Dict[str, Any]) -> Teacher:
    grades = tuple(g.strip() for g in (row.get("grades") or "").split(",") if g.strip())
    return Teacher(
        teacher_id=row["teacher_id"],
        name=row["name"],
        surname=row["surname"],
        email=row["email"],
        password_hash=row["password_hash"],
        grades=grades,
        is_active=bool(row.get("is_active", True)),
    )


class MySQLTeacherRepository(TeacherRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, teacher_id: str) -> Optional[Teacher]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM teachers WHERE teacher_id=%s", (str(teacher_id),))
            row = fetchone(cur)
            return _to_teacher(row) if row else None

    def get_by_email(self, email: str) -> Optional[Teacher]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM teachers WHERE email=%s", (email,))
            row = fetchone(cur)
            return _to_teacher(row) if row else None

    def find_by_ids(self, ids: Iterable[str]) -> Sequence[Teacher]:
        ids = sorted({str(i) for i in ids})
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM teachers WHERE teacher_id IN ({in_placeholders(ids)})",
                tuple(ids),
            )
            return [_to_teacher(r) for r in fetchall(cur)]

    def update_password(self, teacher_id: str, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE teachers SET password_hash=%s WHERE teacher_id=%s",
                (password_hash, str(teacher_id)),
            )
            return cur.rowcount > 0
