from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.exceptions import AuthenticationError
from ..notifications.mailer import MailSender
from .repository import TeacherRepository
from .reset_tokens import ResetTokenSigner, password_fingerprint

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Password Reset Request"
RESET_BODY = (
    "You requested a password reset. Please click on the following link to reset your password: {url}\n\n"
    "This link will expire in {minutes} minutes."
)


@dataclass(frozen=True)
class SessionTeacher:
    """What we store into Flask session after login."""

    teacher_id: str
    full_name: str
    email: str
    grades: tuple[str, ...]


class AuthService:
    """Use case: teacher login and password reset."""

    def __init__(
        self,
        teachers: TeacherRepository,
        signer: ResetTokenSigner,
        mailer: Optional[MailSender] = None,
        *,
        frontend_url: str = "",
        ttl_minutes: int = 60,
    ):
        self._teachers = teachers
        self._signer = signer
        self._mailer = mailer
        self._frontend_url = frontend_url.rstrip("/")
        self._ttl_minutes = int(ttl_minutes)

    def authenticate(self, email: str, password: str) -> SessionTeacher:
        teacher = self._teachers.get_by_email((email or "").strip().lower())
        if not teacher or not teacher.is_active:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(teacher.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes like 'CHANGE_ME'
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return SessionTeacher(
            teacher_id=teacher.teacher_id,
            full_name=teacher.full_name,
            email=teacher.email,
            grades=teacher.grades,
        )

    def request_password_reset(self, email: str) -> Optional[str]:
        """Issue a reset token and mail the link. Unknown emails return None silently."""
        email = require_non_empty(email, "Email").lower()
        teacher = self._teachers.get_by_email(email)
        if not teacher or not teacher.is_active:
            logger.info("Password reset requested for unknown email")
            return None

        token = self._signer.issue(teacher.teacher_id, teacher.password_hash)
        if self._mailer:
            url = f"{self._frontend_url}/reset-password/{token}"
            self._mailer.send(
                teacher.email,
                RESET_SUBJECT,
                RESET_BODY.format(url=url, minutes=self._ttl_minutes),
            )
        logger.info("Password reset issued for teacher %s", teacher.teacher_id)
        return token

    def reset_password(self, token: str, new_password: str) -> None:
        claims = self._signer.verify(require_non_empty(token, "Token"))
        require_min_length(new_password, "Password", MIN_PASSWORD_LENGTH)

        teacher = self._teachers.get_by_id(claims["sub"])
        if not teacher or claims.get("pwd") != password_fingerprint(teacher.password_hash):
            raise AuthenticationError("Invalid or expired reset token")

        self._teachers.update_password(teacher.teacher_id, generate_password_hash(new_password))
        logger.info("Password reset completed for teacher %s", teacher.teacher_id)
