from __future__ import annotations

from typing import Optional, Sequence

from ..common.validators import is_blank, require_non_empty
from ..core.exceptions import NotFoundError
from .model import Student
from .repository import StudentRepository


class RosterService:
    """Read-only roster queries backing the recording screen."""

    def __init__(self, students: StudentRepository):
        self._students = students

    def list_students(self, grade: Optional[str] = None) -> Sequence[Student]:
        if is_blank(grade):
            return self._students.list_all()
        return self._students.list_by_grade(str(grade).strip())

    def get_student(self, student_id: str) -> Student:
        student_id = require_non_empty(student_id, "Student id")
        found = self._students.find_by_ids([student_id])
        if not found:
            raise NotFoundError("Student not found.")
        return found[0]

    def list_grades(self) -> Sequence[str]:
        return self._students.distinct_grades()
