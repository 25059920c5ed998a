from __future__ import annotations

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..core.constants import ALREADY_RECORDED_MESSAGE
from ..core.enums import AttendanceStatus
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    in_placeholders,
    to_db_datetime,
)
from .model import AttendanceDay, AttendanceEntry
from .repository import AttendanceRepository


class MySQLAttendanceRepository(AttendanceRepository):
    """Days live in ``attendance_days``, one row per student in ``attendance_entries``.

    The unique keys (attendance_date, grade) and (day_id, student_id) back the
    reconciliation invariants even under concurrent requests.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load_days(self, cur, rows: List[Dict[str, Any]]) -> List[AttendanceDay]:
        if not rows:
            return []

        day_ids = [int(r["day_id"]) for r in rows]
        cur.execute(
            f"""
            SELECT day_id, student_id, status
            FROM attendance_entries
            WHERE day_id IN ({in_placeholders(day_ids)})
            ORDER BY day_id, position
            """,
            tuple(day_ids),
        )
        entries: dict[int, list[AttendanceEntry]] = defaultdict(list)
        for e in fetchall(cur):
            entries[int(e["day_id"])].append(
                AttendanceEntry(student_id=e["student_id"], status=AttendanceStatus(e["status"]))
            )

        return [
            AttendanceDay(
                day_id=int(r["day_id"]),
                date=from_db_datetime(r["attendance_date"]),
                grade=r["grade"],
                recorded_by=r["recorded_by"],
                entries=tuple(entries.get(int(r["day_id"]), ())),
            )
            for r in rows
        ]

    def _insert_entries(self, cur, day_id: int, entries: Sequence[AttendanceEntry], *, start_position: int) -> None:
        cur.executemany(
            """
            INSERT INTO attendance_entries(day_id, position, student_id, status)
            VALUES(%s,%s,%s,%s)
            """,
            [
                (day_id, start_position + i, e.student_id, e.status.value)
                for i, e in enumerate(entries)
            ],
        )

    def find_one(self, *, date: datetime, grade: str) -> Optional[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT day_id, attendance_date, grade, recorded_by
                FROM attendance_days
                WHERE attendance_date=%s AND grade=%s
                """,
                (to_db_datetime(date), grade),
            )
            row = fetchone(cur)
            if not row:
                return None
            return self._load_days(cur, [row])[0]

    def insert(
        self,
        *,
        date: datetime,
        grade: str,
        recorded_by: str,
        entries: Sequence[AttendanceEntry],
    ) -> AttendanceDay:
        # A concurrent insert for the same (date, grade) hits the unique key
        # and surfaces from db_cursor as ConflictError.
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_days(attendance_date, grade, recorded_by)
                VALUES(%s,%s,%s)
                """,
                (to_db_datetime(date), grade, recorded_by),
            )
            day_id = int(cur.lastrowid)
            self._insert_entries(cur, day_id, entries, start_position=0)

        return AttendanceDay(
            day_id=day_id,
            date=date,
            grade=grade,
            recorded_by=recorded_by,
            entries=tuple(entries),
        )

    def append_entries(self, *, date: datetime, grade: str, entries: Sequence[AttendanceEntry]) -> AttendanceDay:
        student_ids = [e.student_id for e in entries]

        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock serializes appends to the same day.
            cur.execute(
                """
                SELECT day_id, attendance_date, grade, recorded_by
                FROM attendance_days
                WHERE attendance_date=%s AND grade=%s
                FOR UPDATE
                """,
                (to_db_datetime(date), grade),
            )
            day = fetchone(cur)
            if not day:
                raise ConflictError("attendance day was removed while recording")
            day_id = int(day["day_id"])

            cur.execute(
                f"""
                SELECT student_id
                FROM attendance_entries
                WHERE day_id=%s AND student_id IN ({in_placeholders(student_ids)})
                """,
                (day_id, *student_ids),
            )
            if fetchall(cur):
                raise ConflictError(ALREADY_RECORDED_MESSAGE)

            cur.execute(
                "SELECT COALESCE(MAX(position), -1) + 1 AS next_position FROM attendance_entries WHERE day_id=%s",
                (day_id,),
            )
            next_position = int(fetchone(cur)["next_position"])
            self._insert_entries(cur, day_id, entries, start_position=next_position)

            return self._load_days(cur, [day])[0]

    def find_range(self, *, start: datetime, end: datetime, grade: Optional[str] = None) -> Sequence[AttendanceDay]:
        clauses = ["attendance_date >= %s", "attendance_date < %s"]
        params: list[object] = [to_db_datetime(start), to_db_datetime(end)]

        if grade:
            clauses.append("grade=%s")
            params.append(grade)

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT day_id, attendance_date, grade, recorded_by
                FROM attendance_days
                WHERE {where}
                ORDER BY attendance_date ASC, grade ASC
                """,
                tuple(params),
            )
            return self._load_days(cur, fetchall(cur))

    def delete_range(self, *, start: datetime, end: datetime) -> int:
        # Entries go with their day (ON DELETE CASCADE).
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM attendance_days WHERE attendance_date >= %s AND attendance_date < %s",
                (to_db_datetime(start), to_db_datetime(end)),
            )
            return int(cur.rowcount)

    def list_recent(self, limit: int) -> Sequence[AttendanceDay]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT day_id, attendance_date, grade, recorded_by
                FROM attendance_days
                ORDER BY attendance_date DESC, day_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return self._load_days(cur, fetchall(cur))
