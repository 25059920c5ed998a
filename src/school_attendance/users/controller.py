from __future__ import annotations

import logging

from flask import Flask, jsonify, request, session

from ..common.http import error_response, login_required
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    def login():
        data = request.get_json(silent=True) or {}
        try:
            teacher = container.auth_service.authenticate(data.get("email", ""), data.get("password", ""))
        except DomainError as e:
            return error_response(e, fallback="Error during login")
        except Exception:
            logger.exception("Error during login")
            return jsonify({"message": "Error during login"}), 500

        session.clear()
        session["teacher_id"] = teacher.teacher_id
        session["name"] = teacher.full_name
        session["grades"] = list(teacher.grades)

        return jsonify({
            "message": "Login successful",
            "teacher": {
                "id": teacher.teacher_id,
                "name": teacher.full_name,
                "email": teacher.email,
                "grades": list(teacher.grades),
            },
        }), 200

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    @login_required
    def logout():
        session.clear()
        return jsonify({"message": "Logged out"}), 200

    @app.route("/api/auth/validate", methods=["GET"], endpoint="validate_session")
    @login_required
    def validate_session():
        return jsonify({
            "valid": True,
            "teacherId": session["teacher_id"],
            "name": session.get("name", ""),
            "grades": session.get("grades", []),
        }), 200

    @app.route("/api/auth/forgot-password", methods=["POST"], endpoint="forgot_password")
    def forgot_password():
        data = request.get_json(silent=True) or {}
        try:
            container.auth_service.request_password_reset(data.get("email", ""))
        except DomainError as e:
            return error_response(e, fallback="Error requesting password reset")
        except Exception:
            logger.exception("Error requesting password reset")
            return jsonify({"message": "Error requesting password reset"}), 500

        # Same answer for known and unknown addresses.
        return jsonify({"message": "If the account exists, a password reset email has been sent"}), 200

    @app.route("/api/auth/reset-password", methods=["POST"], endpoint="reset_password")
    def reset_password():
        data = request.get_json(silent=True) or {}
        try:
            container.auth_service.reset_password(data.get("token", ""), data.get("password", ""))
        except DomainError as e:
            return error_response(e, fallback="Error resetting password")
        except Exception:
            logger.exception("Error resetting password")
            return jsonify({"message": "Error resetting password"}), 500

        return jsonify({"message": "Password reset successful"}), 200
