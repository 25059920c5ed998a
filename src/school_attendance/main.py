from __future__ import annotations

import importlib
import logging
from types import ModuleType
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from .attendance.controller import register as register_attendance
from .config import get_settings_module
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_teachers, list_tables
from .notifications.mailer import build_mail_sender
from .students.controller import register as register_students
from .users.controller import register as register_users

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

MAIL_SETTINGS = (
    "MAIL_SERVER",
    "MAIL_PORT",
    "MAIL_USE_TLS",
    "MAIL_USERNAME",
    "MAIL_PASSWORD",
    "MAIL_DEFAULT_SENDER",
)

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)


def _prepare_database(settings: ModuleType) -> None:
    db_config = getattr(settings, "DB_CONFIG")

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config)
        ensure_demo_teachers(db_config)
        logger.info("Demo seed ready")


def create_app(*, container: Optional[Container] = None, settings_module: Optional[str] = None) -> Flask:
    """Application factory.

    Tests pass a ``container`` built on in-memory repositories; otherwise the
    MySQL-backed container is built from the active settings module.
    """

    load_dotenv(override=False)
    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    for key in MAIL_SETTINGS:
        if hasattr(settings, key):
            app.config[key] = getattr(settings, key)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        _prepare_database(settings)
        container = build_container(
            db_config=db_config,
            mailer=build_mail_sender(app, getattr(settings, "MAIL_BACKEND", "console")),
            secret_key=app.secret_key,
            notify_workers=int(getattr(settings, "NOTIFY_WORKERS", 8)),
            reset_ttl_minutes=int(getattr(settings, "RESET_TOKEN_TTL_MINUTES", 60)),
            frontend_url=str(getattr(settings, "FRONTEND_URL", "")),
        )

    register_users(app, container)
    register_attendance(app, container)
    register_students(app, container)

    return app
