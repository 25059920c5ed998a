from unittest import mock

import pytest
from flask import Flask
from flask_mail import Mail

from school_attendance.notifications.mailer import (
    ConsoleMailSender,
    FlaskMailSender,
    build_mail_sender,
)


@pytest.fixture
def mail_app():
    app = Flask(__name__)
    app.config.update(MAIL_DEFAULT_SENDER="no-reply@attendance-system.test", MAIL_SUPPRESS_SEND=True)
    Mail(app)
    return app


def test_flask_mail_sender_builds_message(mail_app):
    mail = mock.Mock()
    sender = FlaskMailSender(mail_app, mail)

    sender.send("grace.carter@example.com", "Subject", "Body")

    msg = mail.send.call_args.args[0]
    assert msg.recipients == ["grace.carter@example.com"]
    assert msg.subject == "Subject"
    assert msg.body == "Body"


def test_flask_mail_sender_propagates_failures(mail_app):
    mail = mock.Mock()
    mail.send.side_effect = ConnectionRefusedError("smtp down")

    with pytest.raises(ConnectionRefusedError):
        FlaskMailSender(mail_app, mail).send("grace.carter@example.com", "Subject", "Body")


def test_missing_address_raises():
    with pytest.raises(ValueError):
        ConsoleMailSender().send("", "Subject", "Body")


def test_build_mail_sender(mail_app):
    assert isinstance(build_mail_sender(mail_app, "console"), ConsoleMailSender)
    assert isinstance(build_mail_sender(mail_app, "SMTP"), FlaskMailSender)
    with pytest.raises(ValueError):
        build_mail_sender(mail_app, "pigeon")
