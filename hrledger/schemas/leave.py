"""Pydantic schemas for the leave ledger endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import Field, field_validator

from hrledger.core.clock import ensure_utc
from hrledger.models.leave_request import LEAVE_TYPES
from hrledger.schemas.base import CamelModel

LeaveStatus = Literal["pending", "approved", "rejected", "cancelled"]


# ── Requests ────────────────────────────────────────────────────────
class LeaveRequestCreate(CamelModel):
    start_date: date
    end_date: date
    leave_type: str
    reason: str = Field(max_length=1000)
    half_day: bool = False
    emergency_contact: str | None = Field(default=None, max_length=200)
    attachments: list[str] = Field(default_factory=list, max_length=20)

    @field_validator("leave_type")
    @classmethod
    def _leave_type(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in LEAVE_TYPES:
            raise ValueError(f"Leave type must be one of: {', '.join(LEAVE_TYPES)}")
        return v

    @field_validator("reason")
    @classmethod
    def _reason(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Reason must not be empty")
        return v


class LeaveDecision(CamelModel):
    leave_request_id: int
    action: Literal["approve", "reject"]
    comments: str | None = Field(default=None, max_length=1000)


# ── Records ─────────────────────────────────────────────────────────
class LeaveRequestRead(CamelModel):
    id: int
    user_id: int
    leave_type: str
    start_date: date
    end_date: date
    days: float
    half_day: bool
    reason: str
    status: str
    approver_id: int | None = None
    approved_at: datetime | None = None
    comments: str | None = None
    emergency_contact: str | None = None
    attachments: list[str] = Field(default_factory=list)
    applied_at: datetime | None = None
    total_days: int
    employee_name: str | None = None
    employee_email: str | None = None
    employee_department: str | None = None
    approver_name: str | None = None
    approver_email: str | None = None

    @field_validator("approved_at", "applied_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class LeaveBalanceItem(CamelModel):
    used: float
    total: float


class LeaveBalanceRead(CamelModel):
    annual: LeaveBalanceItem
    sick: LeaveBalanceItem
    personal: LeaveBalanceItem
    maternity: LeaveBalanceItem
    paternity: LeaveBalanceItem
    unpaid: LeaveBalanceItem


# ── Responses ───────────────────────────────────────────────────────
class LeaveCreated(CamelModel):
    success: bool = True
    message: str
    leave_request_id: int


class LeaveRequestList(CamelModel):
    success: bool = True
    data: list[LeaveRequestRead]


class LeaveBalanceResponse(CamelModel):
    success: bool = True
    data: LeaveBalanceRead
