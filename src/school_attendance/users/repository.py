from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Teacher


class TeacherRepository(Protocol):
    """Repository interface for teachers.

    Services depend on this protocol, never on a concrete database.
    """

    def get_by_id(self, teacher_id: str) -> Optional[Teacher]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[Teacher]:
        raise NotImplementedError

    def find_by_ids(self, ids: Iterable[str]) -> Sequence[Teacher]:
        raise NotImplementedError

    def update_password(self, teacher_id: str, password_hash: str) -> bool:
        raise NotImplementedError
