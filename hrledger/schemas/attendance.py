"""Pydantic schemas for the attendance (time ledger) endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import Field, field_validator

from hrledger.core.clock import ensure_utc
from hrledger.schemas.base import CamelModel


# ── Requests ────────────────────────────────────────────────────────
class AttendanceNotes(CamelModel):
    notes: str | None = Field(default=None, max_length=500)


class AttendanceActionRequest(AttendanceNotes):
    action: Literal["checkin", "checkout", "delete"]


# ── Records ─────────────────────────────────────────────────────────
class AttendanceRead(CamelModel):
    id: int | None = None  # None for a placeholder day
    user_id: int
    date: date
    check_in_time: datetime | None = None
    check_out_time: datetime | None = None
    break_start_time: datetime | None = None
    break_end_time: datetime | None = None
    break_duration_seconds: int = 0
    total_hours: float = 0.0
    status: str
    notes: str | None = None

    @field_validator(
        "check_in_time", "check_out_time", "break_start_time", "break_end_time"
    )
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class AttendanceSummaryRead(CamelModel):
    total_days: int
    present_days: int
    absent_days: int
    late_days: int
    total_hours: float


# ── Responses ───────────────────────────────────────────────────────
class CheckOutResponse(CamelModel):
    message: str
    total_hours: float


class BreakEndResponse(CamelModel):
    message: str
    break_duration: int


class AttendanceActionResponse(CamelModel):
    message: str
    total_hours: float | None = None


class TodayAttendanceResponse(CamelModel):
    attendance: AttendanceRead
    message: str | None = None


class WeeklyAttendanceResponse(CamelModel):
    weekly_attendance: list[AttendanceRead]
    summary: AttendanceSummaryRead
