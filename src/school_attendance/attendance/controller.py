from __future__ import annotations

import csv
import io
import logging

from flask import Flask, jsonify, request, session

from ..common.datetime_utils import calendar_day
from ..common.http import error_response, login_required
from ..core.exceptions import DomainError
from ..container import Container

logger = logging.getLogger(__name__)

REPORT_FIELDS = ["date", "grade", "teacher", "student_id", "student_name", "status"]


def register(app: Flask, container: Container) -> None:
    def _write_report_csv(*, rows: list[dict], filename: str):
        out = io.StringIO()
        writer = csv.DictWriter(out, fieldnames=REPORT_FIELDS)
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/attendance", methods=["POST"], endpoint="record_attendance")
    @login_required
    def record_attendance():
        data = request.get_json(silent=True) or {}
        try:
            result = container.attendance_service.record_attendance(
                date=data.get("date"),
                grade=data.get("grade"),
                entries=data.get("records") or data.get("entries"),
                recorded_by=session["teacher_id"],
            )
        except DomainError as e:
            return error_response(e, fallback="Error recording attendance")
        except Exception:
            logger.exception("Error recording attendance")
            return jsonify({"message": "Error recording attendance"}), 500

        if result.status == "created":
            return jsonify({
                "message": "Attendance recorded successfully",
                "status": result.status,
                "attendance": result.record.to_dict(),
            }), 201

        return jsonify({
            "message": "Attendance updated successfully",
            "status": result.status,
            "attendance": result.record.to_dict(),
        }), 200

    @app.route("/api/attendance", methods=["GET"], endpoint="query_attendance")
    @login_required
    def query_attendance():
        try:
            days = container.attendance_service.query_attendance(
                request.args.get("date"),
                request.args.get("grade") or None,
            )
        except DomainError as e:
            return error_response(e, fallback="Error fetching attendance records")
        except Exception:
            logger.exception("Error fetching attendance records")
            return jsonify({"message": "Error fetching attendance records"}), 500

        return jsonify([d.to_dict() for d in days]), 200

    @app.route("/api/attendance", methods=["DELETE"], endpoint="clear_attendance")
    @login_required
    def clear_attendance():
        try:
            result = container.attendance_service.clear_attendance(request.args.get("date"))
        except DomainError as e:
            return error_response(e, fallback="Error deleting attendance records")
        except Exception:
            logger.exception("Error deleting attendance records")
            return jsonify({"message": "Error deleting attendance records"}), 500

        if result.deleted_count == 0:
            message = "No attendance records found for this date to delete."
        else:
            message = "Attendance records deleted successfully."
        return jsonify({"message": message, **result.to_dict()}), 200

    @app.route("/api/attendance/send-alerts", methods=["POST"], endpoint="send_absence_alerts")
    @login_required
    def send_absence_alerts():
        data = request.get_json(silent=True) or {}
        try:
            result = container.absence_notifier.notify_absences(data.get("date"))
        except DomainError as e:
            return error_response(e, fallback="Error sending alert emails")
        except Exception:
            logger.exception("Error sending alert emails")
            return jsonify({"message": "Error sending alert emails"}), 500

        if result.attempted == 0:
            message = "No absent students to send emails to."
        elif result.failed:
            message = f"{result.attempted - result.failed} of {result.attempted} alert emails sent."
        else:
            message = "Alert emails sent successfully."
        return jsonify({"message": message, **result.to_dict()}), 200

    @app.route("/api/attendance/dashboard-stats", methods=["GET"], endpoint="dashboard_stats")
    @login_required
    def dashboard_stats():
        try:
            stats = container.attendance_service.dashboard_stats()
        except DomainError as e:
            return error_response(e, fallback="Error getting dashboard statistics")
        except Exception:
            logger.exception("Error getting dashboard statistics")
            return jsonify({"message": "Error getting dashboard statistics"}), 500

        response = jsonify(stats.to_dict())
        response.headers["Cache-Control"] = "private, max-age=30"
        return response

    @app.route("/api/attendance/export", methods=["GET"], endpoint="export_attendance")
    @login_required
    def export_attendance():
        date_s = request.args.get("date")
        grade = (request.args.get("grade") or "").strip() or None
        try:
            rows = container.attendance_service.build_report_rows(date_s, grade)
            day = calendar_day(date_s)
        except DomainError as e:
            return error_response(e, fallback="Error exporting attendance")
        except Exception:
            logger.exception("Error exporting attendance")
            return jsonify({"message": "Error exporting attendance"}), 500

        suffix = f"_{grade}" if grade else ""
        filename = f"attendance_{day.strftime('%Y%m%d')}{suffix}.csv"
        return _write_report_csv(rows=rows, filename=filename)
