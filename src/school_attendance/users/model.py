from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Teacher:
    """Domain entity: a teacher account.

    Note: Plain data object, no DB access here.
    """

    teacher_id: str
    name: str
    surname: str
    email: str
    password_hash: str
    grades: tuple[str, ...] = field(default_factory=tuple)
    is_active: bool = True

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}"
