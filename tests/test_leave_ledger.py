"""Tests for the leave ledger: lifecycle, overlap, backfill and balances."""

from datetime import date

import pytest
from sqlalchemy import func, select

from hrledger.models.attendance import Attendance
from hrledger.models.notification import Notification
from hrledger.services.leave import LeaveLedger, count_leave_days
from hrledger.services.result import LedgerError


@pytest.fixture
def ledger(db_session, clock) -> LeaveLedger:
    return LeaveLedger(db_session, clock)


async def _request(ledger, user, start, end, leave_type="annual", **kwargs):
    result = await ledger.create_request(
        user.id, start_date=start, end_date=end, leave_type=leave_type, reason="Trip", **kwargs
    )
    assert result.success, result.error
    return result.value


async def _notifications(db_session, user_id):
    result = await db_session.execute(
        select(Notification).where(Notification.user_id == user_id).order_by(Notification.id)
    )
    return list(result.scalars().all())


def test_count_leave_days():
    assert count_leave_days(date(2025, 4, 1), date(2025, 4, 1)) == 1.0
    assert count_leave_days(date(2025, 4, 1), date(2025, 4, 5)) == 5.0
    assert count_leave_days(date(2025, 4, 1), date(2025, 4, 2), half_day=True) == 1.0


# ── Creation ────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_create_routes_to_manager(ledger, db_session, report, manager):
    request = await _request(ledger, report, date(2025, 4, 1), date(2025, 4, 3))
    assert request.status == "pending"
    assert request.approver_id == manager.id
    assert request.days == 3.0

    notes = await _notifications(db_session, manager.id)
    assert len(notes) == 1
    assert notes[0].type == "leave_request"
    assert notes[0].data["leave_request_id"] == request.id
    assert "Rita Report" in notes[0].message


@pytest.mark.asyncio
async def test_create_without_manager_has_no_approver(ledger, db_session, employee):
    request = await _request(ledger, employee, date(2025, 4, 1), date(2025, 4, 1))
    assert request.approver_id is None
    count = await db_session.execute(select(func.count(Notification.id)))
    assert count.scalar_one() == 0


@pytest.mark.asyncio
async def test_create_starting_today_is_allowed(ledger, employee):
    request = await _request(ledger, employee, date(2025, 3, 10), date(2025, 3, 10))
    assert request.start_date == date(2025, 3, 10)


@pytest.mark.asyncio
async def test_create_rejects_bad_input(ledger, employee):
    past = await ledger.create_request(
        employee.id, date(2025, 3, 9), date(2025, 3, 12), "annual", "Late filing"
    )
    assert past.code == LedgerError.START_DATE_IN_PAST

    backwards = await ledger.create_request(
        employee.id, date(2025, 4, 5), date(2025, 4, 1), "annual", "Backwards"
    )
    assert backwards.code == LedgerError.INVALID_DATE_RANGE

    endless = await ledger.create_request(
        employee.id, date(2025, 4, 1), date.max, "unpaid", "Forever"
    )
    assert endless.code == LedgerError.RANGE_TOO_LONG

    bad_type = await ledger.create_request(
        employee.id, date(2025, 4, 1), date(2025, 4, 2), "sabbatical", "Rest"
    )
    assert bad_type.code == LedgerError.INVALID_LEAVE_TYPE


@pytest.mark.asyncio
async def test_create_for_unknown_user(ledger):
    result = await ledger.create_request(9999, date(2025, 4, 1), date(2025, 4, 2), "annual", "x")
    assert result.code == LedgerError.USER_NOT_FOUND


@pytest.mark.asyncio
async def test_overlap_rejected(ledger, employee):
    await _request(ledger, employee, date(2025, 4, 10), date(2025, 4, 15))

    clash = await ledger.create_request(
        employee.id, date(2025, 4, 12), date(2025, 4, 20), "sick", "Flu"
    )
    assert clash.code == LedgerError.OVERLAPPING_REQUEST

    adjacent = await ledger.create_request(
        employee.id, date(2025, 4, 16), date(2025, 4, 20), "sick", "Flu"
    )
    assert adjacent.success


@pytest.mark.asyncio
async def test_rejected_request_does_not_block(ledger, employee, manager):
    first = await _request(ledger, employee, date(2025, 4, 10), date(2025, 4, 15))
    await ledger.reject_request(first.id, manager.id, "Busy week")

    again = await ledger.create_request(
        employee.id, date(2025, 4, 10), date(2025, 4, 15), "annual", "Retry"
    )
    assert again.success


@pytest.mark.asyncio
async def test_overlap_is_per_user(ledger, employee, manager):
    await _request(ledger, employee, date(2025, 4, 10), date(2025, 4, 15))
    other = await ledger.create_request(
        manager.id, date(2025, 4, 10), date(2025, 4, 15), "annual", "Same dates"
    )
    assert other.success


# ── Approval ────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_approve_backfills_attendance(ledger, db_session, report, admin):
    request = await _request(ledger, report, date(2025, 3, 12), date(2025, 3, 14))

    result = await ledger.approve_request(request.id, admin.id, "Enjoy")
    assert result.success
    approved = result.value
    assert approved.status == "approved"
    assert approved.approver_id == admin.id
    assert approved.approved_at is not None
    assert approved.comments == "Enjoy"

    rows = await db_session.execute(
        select(Attendance).where(Attendance.user_id == report.id).order_by(Attendance.date)
    )
    rows = list(rows.scalars().all())
    assert [r.date for r in rows] == [date(2025, 3, 12), date(2025, 3, 13), date(2025, 3, 14)]
    assert all(r.status == "leave" and r.total_hours == 8.0 for r in rows)

    notes = await _notifications(db_session, report.id)
    assert [n.type for n in notes] == ["leave_approved"]


@pytest.mark.asyncio
async def test_approve_twice_is_already_processed(ledger, db_session, employee, manager):
    request = await _request(ledger, employee, date(2025, 3, 12), date(2025, 3, 13))
    assert (await ledger.approve_request(request.id, manager.id)).success

    second = await ledger.approve_request(request.id, manager.id)
    assert second.code == LedgerError.ALREADY_PROCESSED

    count = await db_session.execute(
        select(func.count(Attendance.id)).where(Attendance.user_id == employee.id)
    )
    assert count.scalar_one() == 2


@pytest.mark.asyncio
async def test_approve_overwrites_existing_day(ledger, db_session, clock, employee, manager):
    from hrledger.services.attendance import AttendanceLedger

    await AttendanceLedger(db_session, clock).check_in(employee.id)
    request = await _request(ledger, employee, date(2025, 3, 10), date(2025, 3, 10))
    await ledger.approve_request(request.id, manager.id)

    rows = await db_session.execute(
        select(Attendance).where(Attendance.user_id == employee.id)
    )
    rows = list(rows.scalars().all())
    assert len(rows) == 1
    assert rows[0].status == "leave"


@pytest.mark.asyncio
async def test_approve_unknown_request(ledger, manager):
    result = await ledger.approve_request(4242, manager.id)
    assert result.code == LedgerError.NOT_FOUND
    assert result.error == "Leave request not found"


@pytest.mark.asyncio
async def test_failed_approval_leaves_request_pending(ledger, db_session, employee, manager, monkeypatch):
    request = await _request(ledger, employee, date(2025, 3, 12), date(2025, 3, 14))
    request_id = request.id

    async def _boom(*args, **kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(ledger.notifications, "create", _boom)
    with pytest.raises(RuntimeError):
        await ledger.approve_request(request_id, manager.id)

    # The rollback expires loaded instances; reload by id.
    reloaded = await ledger._get(request_id)
    assert reloaded.status == "pending"
    count = await db_session.execute(select(func.count(Attendance.id)))
    assert count.scalar_one() == 0


# ── Rejection ───────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_reject_requires_comments(ledger, employee, manager):
    request = await _request(ledger, employee, date(2025, 4, 1), date(2025, 4, 2))
    for comments in (None, "", "   "):
        result = await ledger.reject_request(request.id, manager.id, comments)
        assert result.code == LedgerError.COMMENTS_REQUIRED


@pytest.mark.asyncio
async def test_reject(ledger, db_session, employee, manager):
    request = await _request(ledger, employee, date(2025, 4, 1), date(2025, 4, 2))
    result = await ledger.reject_request(request.id, manager.id, " Team offsite ")
    assert result.value.status == "rejected"
    assert result.value.comments == "Team offsite"
    assert result.value.approved_at is not None

    notes = await _notifications(db_session, employee.id)
    assert [n.type for n in notes] == ["leave_rejected"]
    assert notes[0].data["comments"] == "Team offsite"

    again = await ledger.approve_request(request.id, manager.id)
    assert again.code == LedgerError.ALREADY_PROCESSED


# ── Deletion ────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_delete_rules(ledger, employee, manager):
    request = await _request(ledger, employee, date(2025, 4, 1), date(2025, 4, 2))

    assert (await ledger.delete_request(999, employee.id)).code == LedgerError.NOT_FOUND
    foreign = await ledger.delete_request(request.id, manager.id)
    assert foreign.code == LedgerError.UNAUTHORIZED
    assert foreign.error == "Unauthorized to delete this leave request"

    assert (await ledger.delete_request(request.id, employee.id)).success
    assert await ledger._get(request.id) is None


@pytest.mark.asyncio
async def test_processed_request_cannot_be_deleted(ledger, employee, manager):
    request = await _request(ledger, employee, date(2025, 4, 1), date(2025, 4, 2))
    await ledger.approve_request(request.id, manager.id)

    result = await ledger.delete_request(request.id, employee.id)
    assert result.code == LedgerError.NOT_PENDING


# ── Reads ───────────────────────────────────────────────────────────
@pytest.mark.asyncio
async def test_list_for_user_joins_identity(ledger, clock, report, manager):
    first = await _request(ledger, report, date(2025, 4, 1), date(2025, 4, 2))
    clock.advance(minutes=5)
    second = await _request(ledger, report, date(2025, 5, 1), date(2025, 5, 1), "personal")

    views = (await ledger.list_for_user(report.id)).value
    assert [v["id"] for v in views] == [second.id, first.id]
    assert views[0]["employee_name"] == "Rita Report"
    assert views[0]["approver_email"] == "manager@example.com"
    assert views[1]["total_days"] == 2


@pytest.mark.asyncio
async def test_list_for_team(ledger, make_user, report, manager, employee):
    sibling = await make_user("employee", manager_id=manager.id)
    mine = await _request(ledger, report, date(2025, 4, 1), date(2025, 4, 2))
    theirs = await _request(ledger, sibling, date(2025, 4, 1), date(2025, 4, 2))
    await _request(ledger, employee, date(2025, 4, 1), date(2025, 4, 2))
    await ledger.approve_request(theirs.id, manager.id)

    team = (await ledger.list_for_team(manager.id)).value
    assert {v["id"] for v in team} == {mine.id, theirs.id}

    pending = (await ledger.list_for_team(manager.id, "pending")).value
    assert [v["id"] for v in pending] == [mine.id]


@pytest.mark.asyncio
async def test_balance(ledger, employee, manager):
    sick_a = await _request(ledger, employee, date(2025, 4, 1), date(2025, 4, 2), "sick")
    sick_b = await _request(ledger, employee, date(2025, 5, 5), date(2025, 5, 7), "sick")
    await _request(ledger, employee, date(2025, 6, 2), date(2025, 6, 6), "annual")
    half = await _request(ledger, employee, date(2025, 7, 1), date(2025, 7, 1), "personal", half_day=True)
    next_year = await _request(ledger, employee, date(2026, 1, 5), date(2026, 1, 6), "sick")
    for request in (sick_a, sick_b, half, next_year):
        await ledger.approve_request(request.id, manager.id)

    balance = (await ledger.get_balance(employee.id)).value
    assert balance["sick"] == {"used": 5.0, "total": 10}
    assert balance["annual"] == {"used": 0.0, "total": 20}
    assert balance["personal"] == {"used": 0.5, "total": 5}
    assert set(balance) == {"annual", "sick", "personal", "maternity", "paternity", "unpaid"}


@pytest.mark.asyncio
async def test_range_cap_boundary(ledger, employee):
    year = await ledger.create_request(
        employee.id, date(2025, 4, 1), date(2026, 3, 31), "unpaid", "Sabbatical"
    )
    assert year.success
    assert year.value.days == 365.0

    longer = await ledger.create_request(
        employee.id, date(2026, 4, 1), date(2027, 4, 1), "unpaid", "Another one"
    )
    assert longer.code == LedgerError.RANGE_TOO_LONG
    assert longer.error == "Leave request cannot span more than 365 days"


@pytest.mark.asyncio
async def test_cannot_process_own_request(ledger, manager):
    request = await _request(ledger, manager, date(2025, 4, 1), date(2025, 4, 2))

    approved = await ledger.approve_request(request.id, manager.id)
    assert approved.code == LedgerError.UNAUTHORIZED
    assert approved.error == "You cannot process your own leave request"

    rejected = await ledger.reject_request(request.id, manager.id, "No")
    assert rejected.code == LedgerError.UNAUTHORIZED

    assert (await ledger._get(request.id)).status == "pending"
