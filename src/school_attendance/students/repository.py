from __future__ import annotations

from typing import Iterable, Protocol, Sequence

from .model import Student


class StudentRepository(Protocol):
    """Roster lookup by stable student ids. Read-only."""

    def find_by_ids(self, ids: Iterable[str]) -> Sequence[Student]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Student]:
        raise NotImplementedError

    def list_by_grade(self, grade: str) -> Sequence[Student]:
        raise NotImplementedError

    def distinct_grades(self) -> Sequence[str]:
        raise NotImplementedError

    def count(self) -> int:
        raise NotImplementedError
