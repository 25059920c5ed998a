"""JSON helpers shared by the Flask controllers."""

from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, session

from ..core.exceptions import (
    AuthenticationError,
    ConflictError,
    DomainError,
    NotFoundError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (NotFoundError, 404),
    (ConflictError, 409),
)


def error_response(exc: DomainError, *, fallback: str = "Internal server error"):
    """Translate a domain error into a JSON response.

    StorageError and unknown errors never leak their details.
    """

    if not isinstance(exc, StorageError):
        for error_type, status in _STATUS_BY_ERROR:
            if isinstance(exc, error_type):
                return jsonify({"message": str(exc)}), status
    logger.error("%s: %s", fallback, exc)
    return jsonify({"message": fallback}), 500


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "teacher_id" not in session:
            return jsonify({"message": "Authentication required"}), 401
        return view(*args, **kwargs)

    return wrapper
