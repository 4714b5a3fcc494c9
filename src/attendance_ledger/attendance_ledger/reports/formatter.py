"""Shape reports for chart clients and CSV export."""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..employees.model import Employee
from .model import (
    AttendanceReport,
    DashboardSnapshot,
    DayBucket,
    DepartmentCount,
    DepartmentStat,
    EmployeeSummary,
    HourBucket,
    ReportSummary,
    WeekBucket,
)

CSV_COLUMNS = [
    "Employee Name",
    "Employee ID",
    "Department",
    "Date",
    "Check In",
    "Check Out",
    "Status",
    "Worked Minutes",
    "Overtime Minutes",
    "Notes",
]


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat(timespec="seconds") if value else None


def bucket_payload(bucket) -> dict:
    if isinstance(bucket, HourBucket):
        return {
            "name": bucket.label,
            "hour": bucket.hour,
            "early": bucket.early,
            "onTime": bucket.on_time,
            "late": bucket.late,
            "veryLate": bucket.very_late,
            "checkOuts": bucket.check_outs,
        }
    if isinstance(bucket, DayBucket):
        return {
            "name": bucket.label,
            "date": bucket.day.isoformat(),
            "present": bucket.present,
            "late": bucket.late,
            "absent": bucket.absent,
        }
    if isinstance(bucket, WeekBucket):
        return {
            "name": bucket.label,
            "fullName": bucket.full_name,
            "startDate": bucket.start.isoformat(),
            "endDate": bucket.end.isoformat(),
            "present": bucket.present,
            "late": bucket.late,
            "absent": bucket.absent,
        }
    raise TypeError(f"unsupported bucket type: {type(bucket).__name__}")


def summary_payload(summary: ReportSummary) -> dict:
    return {
        "totalRecords": summary.total_records,
        "present": summary.present,
        "absent": summary.absent,
        "late": summary.late,
        "totalEmployees": summary.total_employees,
        "expectedDays": summary.expected_days,
        "attendanceRate": summary.attendance_rate,
    }


def pie_payload(departments: list[DepartmentCount]) -> list[dict]:
    return [{"name": d.department, "value": d.present} for d in departments]


def department_stats_payload(stats: list[DepartmentStat]) -> list[dict]:
    return [
        {"department": s.department, "total": s.total, "present": s.present, "attendanceRate": s.attendance_rate}
        for s in stats
    ]


def employee_payload(employee: Optional[Employee]) -> Optional[dict]:
    if not employee:
        return None
    return {
        "id": employee.employee_id,
        "name": employee.name,
        "employeeId": employee.employee_code,
        "department": employee.department,
    }


def record_payload(record: AttendanceRecord, employee: Optional[Employee] = None) -> dict:
    """JSON view of a record. With ``employee`` the owner's name, code and department ride along."""

    def stamp(s):
        if not s:
            return None
        return {
            "time": _iso(s.time),
            "location": s.location,
            "ipAddress": s.source_ip,
            "deviceInfo": s.device_info,
        }

    return {
        "id": record.attendance_id,
        "employeeId": record.employee_id,
        "date": record.work_date.isoformat(),
        "checkIn": stamp(record.check_in),
        "checkOut": stamp(record.check_out),
        "status": record.status.value,
        "workedMinutes": record.worked_minutes,
        "overtimeMinutes": record.overtime_minutes,
        "notes": record.notes,
        "approvedBy": record.approval.approved_by if record.approval else None,
        "approvedAt": _iso(record.approval.approved_at) if record.approval else None,
        "employee": employee_payload(employee),
    }


def to_payload(report: AttendanceReport) -> dict:
    return {
        "period": report.period.value,
        "startDate": report.window.start.isoformat(),
        "endDate": report.window.end.isoformat(),
        "chartData": [bucket_payload(b) for b in report.buckets],
        "pieData": pie_payload(list(report.department_breakdown)),
        "summary": summary_payload(report.summary),
    }


def to_csv(report: AttendanceReport) -> str:
    """One row per record. The BOM keeps spreadsheet apps reading UTF-8 names."""

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS)
    writer.writeheader()

    for row in report.rows:
        record, employee = row.record, row.employee
        writer.writerow(
            {
                "Employee Name": employee.name if employee else "",
                "Employee ID": employee.employee_code if employee else record.employee_id,
                "Department": (employee.department if employee else None) or "",
                "Date": record.work_date.isoformat(),
                "Check In": _iso(record.check_in_time) or "",
                "Check Out": _iso(record.check_out_time) or "",
                "Status": record.status.value,
                "Worked Minutes": record.worked_minutes,
                "Overtime Minutes": record.overtime_minutes,
                "Notes": record.notes or "",
            }
        )

    return "\ufeff" + buf.getvalue()


def dashboard_payload(snapshot: DashboardSnapshot) -> dict:
    return {
        "date": snapshot.day.isoformat(),
        "totalEmployees": snapshot.total_employees,
        "presentToday": snapshot.present_today,
        "lateToday": snapshot.late_today,
        "absentToday": snapshot.absent_today,
        "weeklyAttendance": [bucket_payload(b) for b in snapshot.weekly],
        "departmentAttendance": pie_payload(list(snapshot.departments)),
        "departmentStats": department_stats_payload(list(snapshot.department_stats)),
    }


def employee_summary_payload(summary: EmployeeSummary) -> dict:
    employee = summary.employee
    return {
        "employee": {
            "id": employee.employee_id,
            "name": employee.name,
            "employeeId": employee.employee_code,
            "department": employee.department,
            "position": employee.position,
        },
        "startDate": summary.window.start.isoformat(),
        "endDate": summary.window.end.isoformat(),
        "stats": {
            "totalDays": summary.total_days,
            "present": summary.present,
            "late": summary.late,
            "totalWorkedMinutes": summary.total_worked_minutes,
            "averageWorkedMinutes": summary.average_worked_minutes,
            "totalOvertimeMinutes": summary.total_overtime_minutes,
        },
        "records": [record_payload(r) for r in summary.records],
    }
