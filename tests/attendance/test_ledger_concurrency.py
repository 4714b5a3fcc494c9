from __future__ import annotations

import threading

from src.attendance_ledger.attendance_ledger.auth.model import Principal
from src.attendance_ledger.attendance_ledger.core.enums import QRAction, Role
from src.attendance_ledger.attendance_ledger.core.exceptions import AlreadyCheckedInError, AlreadyCheckedOutError


def _race(n, fn):
    barrier = threading.Barrier(n)
    outcomes = []
    lock = threading.Lock()

    def worker(i):
        barrier.wait()
        try:
            fn(i)
            result = "ok"
        except Exception as e:
            result = e
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return outcomes


def test_concurrent_check_ins_have_exactly_one_winner(ledger, attendance_repo, staff, admin, fixed_now):
    # Direct and admin-assisted paths racing for the same employee/day.
    actors = [staff, admin] * 4

    outcomes = _race(len(actors), lambda i: ledger.check_in(actors[i], employee_id=3, now=fixed_now))

    assert outcomes.count("ok") == 1
    assert all(isinstance(o, AlreadyCheckedInError) for o in outcomes if o != "ok")
    assert len([r for r in attendance_repo.records if r.employee_id == 3]) == 1


def test_concurrent_check_outs_have_exactly_one_winner(ledger, staff, fixed_now):
    ledger.check_in(staff, now=fixed_now)

    outcomes = _race(6, lambda i: ledger.check_out(staff, now=fixed_now.replace(hour=17 + i % 2)))

    assert outcomes.count("ok") == 1
    assert all(isinstance(o, AlreadyCheckedOutError) for o in outcomes if o != "ok")


def test_different_employees_do_not_interfere(ledger, attendance_repo, admin, fixed_now):
    ids = [2, 3]
    outcomes = _race(2, lambda i: ledger.check_in(Principal(employee_id=ids[i], role=Role.EMPLOYEE), now=fixed_now))

    assert outcomes == ["ok", "ok"]
    assert len(attendance_repo.records) == 2


def test_qr_scans_race_direct_check_ins(ledger, attendance_repo, tokens, staff, admin, fixed_now):
    token = tokens.issue(3, QRAction.CHECK_IN).token
    calls = [
        lambda: ledger.scan_qr(admin, token, now=fixed_now),
        lambda: ledger.check_in(staff, now=fixed_now),
        lambda: ledger.check_in(admin, employee_id=3, now=fixed_now),
    ] * 3

    outcomes = _race(len(calls), lambda i: calls[i]())

    assert outcomes.count("ok") == 1
    assert all(isinstance(o, AlreadyCheckedInError) for o in outcomes if o != "ok")
    assert len([r for r in attendance_repo.records if r.employee_id == 3]) == 1
