from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.http import error_response, login_required
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/students", methods=["GET"], endpoint="list_students")
    @login_required
    def list_students():
        try:
            students = container.roster_service.list_students(request.args.get("grade"))
        except DomainError as e:
            return error_response(e, fallback="Error fetching students")
        except Exception:
            logger.exception("Error fetching students")
            return jsonify({"message": "Error fetching students"}), 500

        return jsonify([s.to_dict() for s in students]), 200

    @app.route("/api/students/byGrade/<grade>", methods=["GET"], endpoint="list_students_by_grade")
    @login_required
    def list_students_by_grade(grade: str):
        try:
            students = container.roster_service.list_students(grade)
        except DomainError as e:
            return error_response(e, fallback="Error fetching students")
        except Exception:
            logger.exception("Error fetching students by grade")
            return jsonify({"message": "Error fetching students"}), 500

        return jsonify([s.to_dict() for s in students]), 200

    @app.route("/api/students/by-id/<student_id>", methods=["GET"], endpoint="get_student")
    @login_required
    def get_student(student_id: str):
        try:
            student = container.roster_service.get_student(student_id)
        except DomainError as e:
            return error_response(e, fallback="Error fetching student.")
        except Exception:
            logger.exception("Error fetching student %s", student_id)
            return jsonify({"message": "Error fetching student."}), 500

        return jsonify(student.to_dict()), 200

    @app.route("/api/grades", methods=["GET"], endpoint="list_grades")
    @login_required
    def list_grades():
        try:
            grades = container.roster_service.list_grades()
        except DomainError as e:
            return error_response(e, fallback="Error fetching grades")
        except Exception:
            logger.exception("Error fetching grades")
            return jsonify({"message": "Error fetching grades"}), 500

        return jsonify(list(grades)), 200
