"""
Attendance endpoints — check-in/out, breaks, today / weekly views.

Every route acts on the authenticated caller's own record.
"""

from __future__ import annotations

from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException, Query

from hrledger.api.v1.deps import get_attendance_ledger, get_current_active_user
from hrledger.core.exceptions import raise_for_result
from hrledger.models.attendance import Attendance
from hrledger.models.user import User
from hrledger.schemas.attendance import (AttendanceActionRequest,
                                         AttendanceActionResponse,
                                         AttendanceNotes, AttendanceRead,
                                         AttendanceSummaryRead,
                                         BreakEndResponse, CheckOutResponse,
                                         TodayAttendanceResponse,
                                         WeeklyAttendanceResponse)
from hrledger.schemas.base import MessageResponse
from hrledger.services.attendance import AttendanceLedger

router = APIRouter(prefix="/attendance", tags=["attendance"])


def _pad_week(user_id: int, start_date: date, records: list[Attendance]) -> list[Attendance]:
    """Fill days without a stored row with absent placeholders."""
    by_day = {r.date: r for r in records}
    week = [start_date + timedelta(days=i) for i in range(7)]
    return [by_day.get(d) or Attendance.placeholder(user_id, d) for d in week]


# ── Check-in / check-out ────────────────────────────────────────────
@router.post("/checkin", response_model=MessageResponse)
async def check_in(
    body: AttendanceNotes | None = None,
    user: User = Depends(get_current_active_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
) -> MessageResponse:
    result = await ledger.check_in(user.id, body.notes if body else None)
    raise_for_result(result)
    return MessageResponse(message="Checked in successfully")


@router.post("/checkout", response_model=CheckOutResponse)
async def check_out(
    body: AttendanceNotes | None = None,
    user: User = Depends(get_current_active_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
) -> CheckOutResponse:
    result = await ledger.check_out(user.id, body.notes if body else None)
    raise_for_result(result)
    return CheckOutResponse(message="Checked out successfully", total_hours=result.value)


# ── Breaks ──────────────────────────────────────────────────────────
@router.post("/break/start", response_model=MessageResponse)
async def break_start(
    user: User = Depends(get_current_active_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
) -> MessageResponse:
    result = await ledger.start_break(user.id)
    raise_for_result(result)
    return MessageResponse(message="Break started")


@router.post("/break/end", response_model=BreakEndResponse)
async def break_end(
    user: User = Depends(get_current_active_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
) -> BreakEndResponse:
    result = await ledger.end_break(user.id)
    raise_for_result(result)
    return BreakEndResponse(message="Break ended", break_duration=result.value)


# ── Views ───────────────────────────────────────────────────────────
@router.get("/today", response_model=TodayAttendanceResponse)
async def today(
    user: User = Depends(get_current_active_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
) -> TodayAttendanceResponse:
    """Today's record, or an absent placeholder (``id: null``) when none exists."""
    result = await ledger.get_today(user.id)
    return TodayAttendanceResponse(attendance=AttendanceRead.model_validate(result.value))


@router.get("/weekly", response_model=WeeklyAttendanceResponse)
async def weekly(
    start_date: date | None = Query(default=None, alias="startDate"),
    user: User = Depends(get_current_active_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
) -> WeeklyAttendanceResponse:
    start_date = start_date or ledger.today()
    if start_date > date.max - timedelta(days=6):
        raise HTTPException(status_code=400, detail="startDate is out of range")
    records = (await ledger.get_weekly(user.id, start_date)).value
    summary = (await ledger.get_summary(user.id, start_date, start_date + timedelta(days=6))).value
    return WeeklyAttendanceResponse(
        weekly_attendance=[
            AttendanceRead.model_validate(r) for r in _pad_week(user.id, start_date, records)
        ],
        summary=AttendanceSummaryRead.model_validate(summary),
    )


@router.get("/summary", response_model=AttendanceSummaryRead)
async def summary(
    start_date: date = Query(alias="startDate"),
    end_date: date = Query(alias="endDate"),
    user: User = Depends(get_current_active_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
) -> AttendanceSummaryRead:
    if end_date < start_date:
        raise HTTPException(status_code=400, detail="endDate cannot be before startDate")
    result = await ledger.get_summary(user.id, start_date, end_date)
    return AttendanceSummaryRead.model_validate(result.value)


# ── Combined endpoint (today + action dispatch) ─────────────────────
@router.get("", response_model=TodayAttendanceResponse)
async def get_attendance(
    user: User = Depends(get_current_active_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
) -> TodayAttendanceResponse:
    result = await ledger.get_today(user.id)
    return TodayAttendanceResponse(
        attendance=AttendanceRead.model_validate(result.value),
        message="Attendance retrieved successfully",
    )


@router.post("", response_model=AttendanceActionResponse, response_model_exclude_none=True)
async def attendance_action(
    body: AttendanceActionRequest,
    user: User = Depends(get_current_active_user),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
) -> AttendanceActionResponse:
    if body.action == "checkin":
        result = await ledger.check_in(user.id, body.notes)
        raise_for_result(result)
        return AttendanceActionResponse(message="Checked in successfully")

    if body.action == "checkout":
        result = await ledger.check_out(user.id, body.notes)
        raise_for_result(result)
        return AttendanceActionResponse(
            message="Checked out successfully", total_hours=result.value
        )

    # Privileged correction: removes today's row outright.
    result = await ledger.delete_today(user.id)
    raise_for_result(result)
    return AttendanceActionResponse(message="Today's attendance record deleted successfully")
