"""Mail collaborator.

Backends:
1. smtp    - Flask-Mail, configured through the MAIL_* settings
2. console - development mode, messages are only logged
"""

from __future__ import annotations

import logging
from typing import Protocol

from flask import Flask
from flask_mail import Mail, Message

logger = logging.getLogger(__name__)


class MailSender(Protocol):
    def send(self, to: str, subject: str, body: str) -> None:
        """Deliver one message. Raises on failure."""

        raise NotImplementedError


class FlaskMailSender(MailSender):
    """Send through Flask-Mail.

    Each call pushes its own app context, so it is safe from worker threads.
    """

    def __init__(self, app: Flask, mail: Mail | None = None):
        self._app = app
        self._mail = mail or Mail(app)

    def send(self, to: str, subject: str, body: str) -> None:
        if not to:
            raise ValueError("No recipient address")

        with self._app.app_context():
            msg = Message(subject=subject, recipients=[to], body=body)
            self._mail.send(msg)
        logger.info("Email sent to %s", to)


class ConsoleMailSender(MailSender):
    def send(self, to: str, subject: str, body: str) -> None:
        if not to:
            raise ValueError("No recipient address")
        logger.info("[console mail] to=%s subject=%s\n%s", to, subject, body)


def build_mail_sender(app: Flask, backend: str) -> MailSender:
    backend = (backend or "console").lower()
    if backend == "smtp":
        return FlaskMailSender(app)
    if backend == "console":
        return ConsoleMailSender()
    raise ValueError(f"Unknown MAIL_BACKEND: {backend!r}")
