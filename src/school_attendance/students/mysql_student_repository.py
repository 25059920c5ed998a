from __future__ import annotations

from typing import Any, Dict, Iterable, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_placeholders
from .model import Student
from .repository import StudentRepository

_COLUMNS = "id, name, surname, grade, parent_name, parent_email, parent_phone"


def _to_student(row: Dict[str, Any]) -> Student:
    return Student(
        id=row["id"],
        name=row["name"],
        surname=row["surname"],
        grade=row["grade"],
        parent_name=row["parent_name"],
        parent_email=row["parent_email"],
        parent_phone=row["parent_phone"],
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_ids(self, ids: Iterable[str]) -> Sequence[Student]:
        ids = sorted({str(i) for i in ids})
        if not ids:
            return []

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM students WHERE id IN ({in_placeholders(ids)})",
                tuple(ids),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students ORDER BY grade, surname, name")
            return [_to_student(r) for r in fetchall(cur)]

    def list_by_grade(self, grade: str) -> Sequence[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM students WHERE grade=%s ORDER BY surname, name",
                (grade,),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def distinct_grades(self) -> Sequence[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT grade FROM students ORDER BY grade")
            return [r["grade"] for r in fetchall(cur)]

    def count(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total FROM students")
            row = fetchone(cur)
            return int(row["total"]) if row else 0
