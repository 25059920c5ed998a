from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Student:
    """Roster entry. Read-only for attendance and notifications."""

    id: str
    name: str
    surname: str
    grade: str
    parent_name: str
    parent_email: str
    parent_phone: str

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "surname": self.surname,
            "grade": self.grade,
            "parentName": self.parent_name,
            "parentEmail": self.parent_email,
            "parentPhone": self.parent_phone,
        }
