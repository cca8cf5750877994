"""Tests for the time ledger (AttendanceLedger) business rules."""

from datetime import date

import pytest

from hrledger.services.attendance import AttendanceLedger
from hrledger.services.result import LedgerError


@pytest.fixture
def ledger(db_session, clock) -> AttendanceLedger:
    return AttendanceLedger(db_session, clock)


@pytest.mark.asyncio
async def test_full_working_day(ledger, clock, employee):
    """Check-in, break, check-out, correction: one complete day."""
    result = await ledger.check_in(employee.id)
    assert result.success
    assert result.value.status == "present"

    again = await ledger.check_in(employee.id)
    assert again.code == LedgerError.ALREADY_CHECKED_IN

    clock.set(12, 0)
    assert (await ledger.start_break(employee.id)).success
    clock.set(12, 30)
    ended = await ledger.end_break(employee.id)
    assert ended.value == 1800

    clock.set(17, 0)
    out = await ledger.check_out(employee.id)
    assert out.value == pytest.approx(7.9167, abs=1e-3)

    today = (await ledger.get_today(employee.id)).value
    assert today.break_duration_seconds == 1800
    assert today.total_hours == pytest.approx(7.9167, abs=1e-3)

    assert (await ledger.delete_today(employee.id)).success
    placeholder = (await ledger.get_today(employee.id)).value
    assert placeholder.id is None
    assert placeholder.status == "absent"
    assert placeholder.total_hours == 0.0


@pytest.mark.asyncio
async def test_check_in_at_late_hour_is_late(ledger, clock, employee):
    clock.set(10, 0)
    result = await ledger.check_in(employee.id)
    assert result.value.status == "late"


@pytest.mark.asyncio
async def test_check_in_just_before_late_hour_is_present(ledger, clock, employee):
    clock.set(9, 59, 59)
    result = await ledger.check_in(employee.id)
    assert result.value.status == "present"


@pytest.mark.asyncio
async def test_check_out_without_check_in(ledger, employee):
    result = await ledger.check_out(employee.id)
    assert not result
    assert result.code == LedgerError.NO_CHECK_IN
    assert result.error == "No check-in found for today"


@pytest.mark.asyncio
async def test_check_in_again_after_check_out(ledger, clock, employee):
    """A second session the same day reopens the row instead of adding one."""
    await ledger.check_in(employee.id, notes="morning")
    clock.set(12, 0)
    await ledger.check_out(employee.id)

    clock.set(13, 0)
    result = await ledger.check_in(employee.id)
    assert result.success
    record = result.value
    assert record.check_out_time is None
    assert record.total_hours == 0.0
    assert record.notes == "morning"
    assert record.status == "late"

    rows = (await ledger.get_weekly(employee.id, ledger.today())).value
    assert len(rows) == 1


@pytest.mark.asyncio
async def test_total_hours_ignore_breaks(ledger, clock, employee):
    clock.set(8, 0)
    await ledger.check_in(employee.id)
    clock.set(9, 0)
    await ledger.start_break(employee.id)
    clock.set(10, 0)
    await ledger.end_break(employee.id)
    clock.set(12, 0)
    result = await ledger.check_out(employee.id)
    assert result.value == pytest.approx(4.0)


@pytest.mark.asyncio
async def test_break_nesting(ledger, clock, employee):
    await ledger.check_in(employee.id)

    no_break = await ledger.end_break(employee.id)
    assert no_break.code == LedgerError.NO_OPEN_BREAK

    assert (await ledger.start_break(employee.id)).success
    second = await ledger.start_break(employee.id)
    assert second.code == LedgerError.BREAK_ALREADY_OPEN


@pytest.mark.asyncio
async def test_break_durations_accumulate(ledger, clock, employee):
    await ledger.check_in(employee.id)
    for start, end in ((10, 10), (11, 15)):
        clock.set(start, 0)
        await ledger.start_break(employee.id)
        clock.set(start, end)
        await ledger.end_break(employee.id)

    today = (await ledger.get_today(employee.id)).value
    assert today.break_duration_seconds == 25 * 60


@pytest.mark.asyncio
async def test_break_requires_open_session(ledger, clock, employee):
    assert (await ledger.start_break(employee.id)).code == LedgerError.NO_CHECK_IN

    await ledger.check_in(employee.id)
    clock.set(17, 0)
    await ledger.check_out(employee.id)
    assert (await ledger.start_break(employee.id)).code == LedgerError.NO_CHECK_IN


@pytest.mark.asyncio
async def test_check_out_closes_open_break(ledger, clock, employee):
    await ledger.check_in(employee.id)
    clock.set(12, 0)
    await ledger.start_break(employee.id)
    clock.set(17, 0)
    await ledger.check_out(employee.id)

    today = (await ledger.get_today(employee.id)).value
    assert not today.has_open_break
    assert today.break_duration_seconds == 5 * 3600

    clock.set(23, 0)
    late = await ledger.end_break(employee.id)
    assert late.code == LedgerError.NO_OPEN_BREAK
    today = (await ledger.get_today(employee.id)).value
    assert today.break_duration_seconds == 5 * 3600

@pytest.mark.asyncio
async def test_delete_today_without_record(ledger, employee):
    result = await ledger.delete_today(employee.id)
    assert result.code == LedgerError.NO_RECORD_TODAY


@pytest.mark.asyncio
async def test_records_are_per_user(ledger, employee, manager):
    await ledger.check_in(employee.id)
    other = await ledger.check_in(manager.id)
    assert other.success
    assert (await ledger.get_today(manager.id)).value.id != (await ledger.get_today(employee.id)).value.id


@pytest.mark.asyncio
async def test_concurrent_insert_reports_already_checked_in(ledger, employee, monkeypatch):
    """The unique (user, date) constraint catches a lost read-then-write race."""
    await ledger.check_in(employee.id)

    async def _stale_read(user_id, day):
        return None

    monkeypatch.setattr(ledger, "_get_day", _stale_read)
    result = await ledger.check_in(employee.id)
    assert result.code == LedgerError.ALREADY_CHECKED_IN


@pytest.mark.asyncio
async def test_weekly_and_summary(ledger, clock, employee):
    week_start = ledger.today()

    # Monday on time, Tuesday late, Wednesday nothing, Thursday on time
    for day_offset, hour in ((0, 9), (1, 11), (3, 8)):
        clock.now = clock.now.replace(day=10 + day_offset, hour=hour, minute=0)
        await ledger.check_in(employee.id)
        clock.now = clock.now.replace(hour=hour + 8)
        await ledger.check_out(employee.id)

    rows = (await ledger.get_weekly(employee.id, week_start)).value
    assert [r.date for r in rows] == [date(2025, 3, 10), date(2025, 3, 11), date(2025, 3, 13)]

    summary = (await ledger.get_summary(employee.id, week_start, date(2025, 3, 16))).value
    assert summary.total_days == 3
    assert summary.present_days == 3
    assert summary.late_days == 1
    assert summary.absent_days == 0
    assert summary.total_hours == pytest.approx(24.0)


@pytest.mark.asyncio
async def test_summary_of_empty_range(ledger, employee):
    summary = (await ledger.get_summary(employee.id, date(2025, 1, 1), date(2025, 1, 31))).value
    assert summary.total_days == 0
    assert summary.total_hours == 0.0


@pytest.mark.asyncio
async def test_stage_leave_day_overwrites_status(ledger, db_session, employee):
    await ledger.check_in(employee.id)
    record = await ledger.stage_leave_day(employee.id, ledger.today())
    await db_session.commit()

    assert record.status == "leave"
    assert record.total_hours == 8.0
