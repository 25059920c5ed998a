from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..students.model import Student

ABSENCE_SUBJECT = "Attendance Notification for {student_name}"
ABSENCE_BODY = """Dear {parent_name},

We would like to inform you that your child, {student_name}, was marked absent on {date}.

Best regards,
Attendance System"""


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    body: str


@dataclass(frozen=True)
class NotifyResult:
    attempted: int
    failed: int

    def to_dict(self) -> dict:
        return {"attempted": self.attempted, "failed": self.failed}


def build_absence_message(student: Student, day: datetime) -> MailMessage:
    student_name = student.full_name
    return MailMessage(
        to=student.parent_email,
        subject=ABSENCE_SUBJECT.format(student_name=student_name),
        body=ABSENCE_BODY.format(
            parent_name=student.parent_name,
            student_name=student_name,
            date=day.strftime("%Y-%m-%d"),
        ),
    )
