from __future__ import annotations

import io
from datetime import date

from flask import Flask, jsonify, send_file

from ..common.web import admin_required, error_response
from ..container import Container
from ..core.exceptions import DomainError, StoreError
from .export import XLSX_MIMETYPE, report_filename, report_to_csv, report_to_xlsx


def register(app: Flask, container: Container) -> None:
    analytics = container.analytics_service

    @app.route("/api/analytics/dashboard", methods=["GET"], endpoint="analytics_dashboard")
    @admin_required
    def analytics_dashboard():
        try:
            return jsonify({"success": True, "data": analytics.dashboard(date.today())}), 200
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/analytics/events/<event_id>", methods=["GET"], endpoint="analytics_event")
    @admin_required
    def analytics_event(event_id: str):
        try:
            return jsonify({"success": True, "data": analytics.event_stats(event_id)}), 200
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/analytics/events/<event_id>/attendance.<fmt>", methods=["GET"], endpoint="export_attendance")
    @admin_required
    def export_attendance(event_id: str, fmt: str):
        if fmt not in ("csv", "xlsx"):
            return jsonify({"success": False, "message": "Unsupported export format"}), 404
        try:
            report = analytics.attendance_report(event_id)
        except (DomainError, StoreError) as e:
            return error_response(e)

        title = next((s["Value"] for s in report.summary if s["Field"] == "Event"), "event")
        filename = report_filename(title, date.today().isoformat(), fmt)
        if fmt == "csv":
            return app.response_class(
                report_to_csv(report),
                mimetype="text/csv",
                headers={"Content-Disposition": f"attachment; filename={filename}"},
            )
        return send_file(
            io.BytesIO(report_to_xlsx(report)),
            download_name=filename,
            as_attachment=True,
            mimetype=XLSX_MIMETYPE,
        )
