from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import DateInput, day_range
from ..common.validators import is_blank
from ..core.constants import DEFAULT_NOTIFY_WORKERS
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..students.repository import StudentRepository
from .mailer import MailSender
from .model import MailMessage, NotifyResult, build_absence_message

logger = logging.getLogger(__name__)


class AbsenceNotifier:
    """Use case: e-mail the guardian of every student marked Absent on a date.

    Sends run concurrently. A failed send is logged and counted, never
    raised, so one bad address cannot block the rest of the batch.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        students: StudentRepository,
        mailer: MailSender,
        *,
        max_workers: int = DEFAULT_NOTIFY_WORKERS,
    ):
        self._attendance = attendance
        self._students = students
        self._mailer = mailer
        self._max_workers = max(1, int(max_workers))

    def notify_absences(self, date: DateInput) -> NotifyResult:
        if is_blank(date):
            raise ValidationError("date is required")

        start, end = day_range(date)
        # One message per student even when marked absent in several grades.
        absent = list(dict.fromkeys(
            e.student_id
            for d in self._attendance.find_range(start=start, end=end)
            for e in d.entries
            if e.status == AttendanceStatus.ABSENT
        ))
        logger.info("Absent students found for %s: %d", start.date(), len(absent))
        if not absent:
            return NotifyResult(attempted=0, failed=0)

        students = {s.id: s for s in self._students.find_by_ids(set(absent))}

        messages: list[MailMessage] = []
        for student_id in absent:
            student = students.get(student_id)
            if not student:
                logger.warning("Student not found for record: %s", student_id)
                continue
            messages.append(build_absence_message(student, start))

        if not messages:
            return NotifyResult(attempted=0, failed=0)

        return NotifyResult(attempted=len(messages), failed=self._dispatch(messages))

    def _dispatch(self, messages: list[MailMessage]) -> int:
        failed = 0
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(messages))) as pool:
            futures = {pool.submit(self._mailer.send, m.to, m.subject, m.body): m for m in messages}
            for fut in as_completed(futures):
                msg = futures[fut]
                try:
                    fut.result()
                except Exception as exc:
                    failed += 1
                    logger.error("Failed to send email to %s: %s", msg.to, exc)
        return failed
