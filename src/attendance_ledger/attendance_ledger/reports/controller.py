from __future__ import annotations

from flask import Flask, Response, request

from ..auth.access import current_principal, login_required, privileged_required
from ..common.datetime_utils import now_local, parse_iso_date
from ..common.responses import error_response, ok
from ..common.validators import optional_text, require_int
from ..container import Container
from ..core.enums import ReportFormat
from ..core.exceptions import AuthorizationError, ValidationError
from .formatter import dashboard_payload, employee_summary_payload, to_csv, to_payload


def _optional_date(name: str):
    value = request.args.get(name)
    return parse_iso_date(value, field=name) if value else None


def _report_format(value: str) -> ReportFormat:
    try:
        return ReportFormat((value or ReportFormat.JSON.value).strip().lower())
    except ValueError:
        raise ValidationError("format must be json or csv", field="format")


def register(app: Flask, container: Container) -> None:
    reports = container.report_service

    @app.route("/api/reports/attendance", methods=["GET"], endpoint="reports_attendance")
    @login_required
    def attendance_report():
        args = request.args
        principal = current_principal()
        try:
            fmt = _report_format(args.get("format", ""))
            employee_id = require_int(args["employeeId"], "employeeId") if args.get("employeeId") else None
            department = optional_text(args.get("department"), "department", max_len=100)

            # Regular employees only ever see their own figures.
            if not principal.is_privileged:
                if employee_id is not None and employee_id != principal.employee_id:
                    raise AuthorizationError("Access denied")
                employee_id, department = principal.employee_id, None

            report = reports.report(
                args.get("period", "monthly"),
                start=_optional_date("startDate"),
                end=_optional_date("endDate"),
                department=department,
                employee_id=employee_id,
            )
        except Exception as e:
            return error_response(e)

        if fmt == ReportFormat.CSV:
            filename = f"attendance-report-{now_local():%Y-%m-%d}.csv"
            return Response(
                to_csv(report),
                mimetype="text/csv",
                headers={"Content-Disposition": f"attachment; filename={filename}"},
            )
        return ok(to_payload(report))

    @app.route("/api/reports/dashboard", methods=["GET"], endpoint="reports_dashboard")
    @privileged_required
    def dashboard():
        try:
            snapshot = reports.dashboard()
        except Exception as e:
            return error_response(e)
        return ok(dashboard_payload(snapshot))

    @app.route("/api/reports/employee/<int:employee_id>", methods=["GET"], endpoint="reports_employee")
    @login_required
    def employee_report(employee_id: int):
        principal = current_principal()
        try:
            if employee_id != principal.employee_id and not principal.is_privileged:
                raise AuthorizationError("Access denied")
            summary = reports.employee_summary(
                employee_id,
                start=_optional_date("startDate"),
                end=_optional_date("endDate"),
            )
        except Exception as e:
            return error_response(e)
        return ok(employee_summary_payload(summary))
