from __future__ import annotations

import io

from flask import Flask, request, send_file

from ..auth.access import current_principal, login_required, privileged_required
from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.responses import error_response, fail, ok
from ..common.validators import optional_text, parse_status, require_int, require_non_empty
from ..container import Container
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_PAGE_SIZE
from ..core.enums import QRAction
from ..core.exceptions import ValidationError
from ..reports.formatter import record_payload
from ..tokens.service import QRTokenService
from .model import ManyRecords, RecordFilters, RequestContext, SingleRecord


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", field="body")
    return body


def _request_context() -> RequestContext:
    forwarded = (request.headers.get("X-Forwarded-For") or "").split(",")[0].strip()
    return RequestContext(
        source_ip=forwarded or request.remote_addr,
        device_info=request.headers.get("User-Agent"),
    )


def _checkin_payload(record) -> dict:
    return {
        "attendance": record_payload(record),
        "checkInTime": record.check_in.time.isoformat(timespec="seconds"),
        "location": record.check_in.location,
    }


def _checkout_payload(record) -> dict:
    return {
        "attendance": record_payload(record),
        "checkOutTime": record.check_out.time.isoformat(timespec="seconds"),
        "workedMinutes": record.worked_minutes,
        "overtimeMinutes": record.overtime_minutes,
    }


def _with_employees(records, directory) -> list[dict]:
    employees = {}
    for r in records:
        if r.employee_id not in employees:
            employees[r.employee_id] = directory.find_by_id(r.employee_id)
    return [record_payload(r, employees[r.employee_id]) for r in records]


def _page_payload(page, directory) -> dict:
    return {
        "attendance": _with_employees(page.items, directory),
        "pagination": {"page": page.page, "limit": page.limit, "total": page.total, "pages": page.pages},
    }


def register(app: Flask, container: Container) -> None:
    ledger = container.ledger
    directory = container.directory

    # ----- check-in / check-out -----

    @app.route("/api/attendance/checkin", methods=["POST"], endpoint="attendance_checkin")
    @login_required
    def checkin():
        try:
            body = _json_body()
            record = ledger.check_in(
                current_principal(),
                location=optional_text(body.get("location"), "location", max_len=100),
                notes=optional_text(body.get("notes"), "notes"),
                context=_request_context(),
            )
        except Exception as e:
            return error_response(e)
        return ok(_checkin_payload(record), message="Checked in successfully", status=201)

    @app.route("/api/attendance/checkout", methods=["POST"], endpoint="attendance_checkout")
    @login_required
    def checkout():
        try:
            body = _json_body()
            record = ledger.check_out(
                current_principal(),
                location=optional_text(body.get("location"), "location", max_len=100),
                notes=optional_text(body.get("notes"), "notes"),
                context=_request_context(),
            )
        except Exception as e:
            return error_response(e)
        return ok(_checkout_payload(record), message="Checked out successfully")

    @app.route("/api/attendance/admin/checkin", methods=["POST"], endpoint="attendance_admin_checkin")
    @privileged_required
    def admin_checkin():
        try:
            body = _json_body()
            record = ledger.check_in(
                current_principal(),
                employee_id=require_int(body.get("employeeId"), "employeeId"),
                location=optional_text(body.get("location"), "location", max_len=100),
                notes=optional_text(body.get("notes"), "notes"),
                context=_request_context(),
            )
        except Exception as e:
            return error_response(e)
        return ok(_checkin_payload(record), message="Employee checked in successfully", status=201)

    @app.route("/api/attendance/admin/checkout", methods=["POST"], endpoint="attendance_admin_checkout")
    @privileged_required
    def admin_checkout():
        try:
            body = _json_body()
            record = ledger.check_out(
                current_principal(),
                employee_id=require_int(body.get("employeeId"), "employeeId"),
                location=optional_text(body.get("location"), "location", max_len=100),
                notes=optional_text(body.get("notes"), "notes"),
                context=_request_context(),
            )
        except Exception as e:
            return error_response(e)
        return ok(_checkout_payload(record), message="Employee checked out successfully")

    # ----- QR -----

    @app.route("/api/attendance/qr/generate", methods=["GET"], endpoint="attendance_qr_generate")
    @login_required
    def qr_generate():
        try:
            issued = ledger.issue_qr(current_principal(), request.args.get("action", ""))
        except Exception as e:
            return error_response(e)
        return ok({"token": issued.token, "action": issued.action.value, "expiresIn": issued.expires_in})

    @app.route("/api/attendance/qr/image", methods=["GET"], endpoint="attendance_qr_image")
    @login_required
    def qr_image():
        try:
            issued = ledger.issue_qr(current_principal(), request.args.get("action", ""))
        except Exception as e:
            return error_response(e)
        png = QRTokenService.render_png(issued.token)
        return send_file(io.BytesIO(png), mimetype="image/png", download_name=f"{issued.action.value}.png")

    @app.route("/api/attendance/qr/scan", methods=["POST"], endpoint="attendance_qr_scan")
    @privileged_required
    def qr_scan():
        try:
            body = _json_body()
            token = require_non_empty(body.get("token"), "token")
            result = ledger.scan_qr(current_principal(), token, context=_request_context())
        except Exception as e:
            return error_response(e)

        if result.action == QRAction.CHECK_IN:
            return ok(_checkin_payload(result.record), message="Checked in via QR")
        return ok(_checkout_payload(result.record), message="Checked out via QR")

    # ----- reads -----

    @app.route("/api/attendance", methods=["GET"], endpoint="attendance_list")
    @login_required
    def list_attendance():
        args = request.args
        try:
            filters = RecordFilters(
                employee_id=require_int(args["employeeId"], "employeeId") if args.get("employeeId") else None,
                start_date=parse_iso_date(args["startDate"], field="startDate") if args.get("startDate") else None,
                end_date=parse_iso_date(args["endDate"], field="endDate") if args.get("endDate") else None,
                status=parse_status(args["status"]) if args.get("status") else None,
                page=require_int(args.get("page", 1), "page"),
                limit=require_int(args.get("limit", DEFAULT_PAGE_SIZE), "limit"),
            )
            page = ledger.list_records(current_principal(), filters)
        except Exception as e:
            return error_response(e)
        return ok(_page_payload(page, directory))

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        try:
            snapshot = ledger.today(current_principal())
        except Exception as e:
            return error_response(e)

        if isinstance(snapshot, SingleRecord):
            data = {
                "kind": snapshot.kind,
                "date": snapshot.work_date.isoformat(),
                "attendance": (
                    record_payload(snapshot.record, directory.find_by_id(snapshot.record.employee_id))
                    if snapshot.record
                    else None
                ),
            }
        elif isinstance(snapshot, ManyRecords):
            data = {
                "kind": snapshot.kind,
                "date": snapshot.work_date.isoformat(),
                "attendance": _with_employees(snapshot.records, directory),
            }
        else:
            return fail("Server error", 500)
        return ok(data)

    @app.route("/api/attendance/employee/<int:employee_id>", methods=["GET"], endpoint="attendance_employee")
    @login_required
    def employee_history(employee_id: int):
        args = request.args
        try:
            page = ledger.employee_history(
                current_principal(),
                employee_id,
                start_date=parse_iso_date(args["startDate"], field="startDate") if args.get("startDate") else None,
                end_date=parse_iso_date(args["endDate"], field="endDate") if args.get("endDate") else None,
                page=require_int(args.get("page", 1), "page"),
                limit=require_int(args.get("limit", DEFAULT_HISTORY_LIMIT), "limit"),
            )
        except Exception as e:
            return error_response(e)
        return ok(_page_payload(page, directory))

    # ----- privileged edits -----

    @app.route("/api/attendance/<int:attendance_id>", methods=["PUT"], endpoint="attendance_update")
    @privileged_required
    def update_record(attendance_id: int):
        try:
            body = _json_body()
            record = ledger.update_record(
                current_principal(),
                attendance_id,
                status=parse_status(body["status"]) if body.get("status") else None,
                notes=optional_text(body.get("notes"), "notes"),
            )
        except Exception as e:
            return error_response(e)
        return ok(record_payload(record), message="Attendance updated")

    @app.route("/api/attendance/<int:attendance_id>/times", methods=["PUT"], endpoint="attendance_force_times")
    @privileged_required
    def force_times(attendance_id: int):
        try:
            body = _json_body()
            if not body.get("checkIn"):
                raise ValidationError("checkIn is required", field="checkIn")
            record = ledger.force_set_times(
                current_principal(),
                attendance_id,
                check_in_time=parse_iso_datetime(body["checkIn"], field="checkIn"),
                check_out_time=parse_iso_datetime(body["checkOut"], field="checkOut") if body.get("checkOut") else None,
            )
        except Exception as e:
            return error_response(e)
        return ok(record_payload(record), message="Attendance times overridden")

    @app.route("/api/attendance/admin/mark", methods=["POST"], endpoint="attendance_admin_mark")
    @privileged_required
    def mark_day():
        try:
            body = _json_body()
            record = ledger.mark_day(
                current_principal(),
                employee_id=require_int(body.get("employeeId"), "employeeId"),
                work_date=parse_iso_date(require_non_empty(body.get("date"), "date"), field="date"),
                status=parse_status(require_non_empty(body.get("status"), "status")),
                notes=optional_text(body.get("notes"), "notes"),
            )
        except Exception as e:
            return error_response(e)
        return ok(record_payload(record), message="Attendance marked", status=201)
