from __future__ import annotations

from datetime import timedelta

import pytest

from src.attendance_ledger.attendance_ledger.core.enums import QRAction
from src.attendance_ledger.attendance_ledger.core.exceptions import (
    AlreadyCheckedInError,
    AuthorizationError,
    EmployeeInactiveError,
    MalformedTokenError,
)


def test_scan_checks_in_with_qr_location(ledger, tokens, admin, fixed_now):
    token = tokens.issue(3, QRAction.CHECK_IN).token

    result = ledger.scan_qr(admin, token, now=fixed_now)

    assert result.action == QRAction.CHECK_IN
    assert result.record.employee_id == 3
    assert result.record.check_in.location == "QR Point"


def test_replayed_token_hits_the_ledger_guard(ledger, tokens, admin, fixed_now):
    token = tokens.issue(3, QRAction.CHECK_IN).token

    ledger.scan_qr(admin, token, now=fixed_now)
    with pytest.raises(AlreadyCheckedInError):
        ledger.scan_qr(admin, token, now=fixed_now + timedelta(seconds=30))


def test_scan_check_out(ledger, tokens, admin, staff, fixed_now):
    ledger.check_in(staff, now=fixed_now)

    result = ledger.scan_qr(admin, tokens.issue(3, "check-out").token, now=fixed_now + timedelta(hours=8, minutes=15))

    assert result.action == QRAction.CHECK_OUT
    assert result.record.worked_minutes == 495
    assert result.record.check_out.location == "QR Point"


def test_only_privileged_scanners(ledger, tokens, staff, fixed_now):
    token = tokens.issue(3, QRAction.CHECK_IN).token

    with pytest.raises(AuthorizationError):
        ledger.scan_qr(staff, token, now=fixed_now)


def test_scan_for_inactive_employee(ledger, tokens, admin, fixed_now):
    with pytest.raises(EmployeeInactiveError):
        ledger.scan_qr(admin, tokens.issue(4, QRAction.CHECK_IN).token, now=fixed_now)


def test_tampered_token(ledger, tokens, admin, fixed_now):
    header, payload, _ = tokens.issue(3, QRAction.CHECK_IN).token.split(".")
    other_signature = tokens.issue(2, QRAction.CHECK_IN).token.split(".")[2]

    with pytest.raises(MalformedTokenError):
        ledger.scan_qr(admin, ".".join([header, payload, other_signature]), now=fixed_now)


def test_issue_qr_is_for_self_only(ledger, staff):
    issued = ledger.issue_qr(staff, "check-in")

    assert issued.expires_in == 300
    assert issued.action == QRAction.CHECK_IN
