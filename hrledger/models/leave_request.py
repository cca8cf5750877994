"""
LeaveRequest model — one row per leave application.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (JSON, Boolean, Column, Date, DateTime, Float,
                        ForeignKey, Index, Integer, String)

from hrledger.db.base import Base

LEAVE_TYPES = ("annual", "sick", "personal", "maternity", "paternity", "unpaid")
BLOCKING_STATUSES = ("pending", "approved")

# Days allocated per calendar year
LEAVE_ALLOCATIONS: dict[str, int] = {
    "annual": 20,
    "sick": 10,
    "personal": 5,
    "maternity": 90,
    "paternity": 14,
    "unpaid": 365,
}


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        Index("ix_leave_user_dates", "user_id", "start_date", "end_date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)  # type: ignore[assignment]
    leave_type: str = Column(String(20), nullable=False)  # type: ignore[assignment]
    start_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    end_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    days: float = Column(Float, nullable=False)  # type: ignore[assignment]
    half_day: bool = Column(Boolean, nullable=False, default=False)  # type: ignore[assignment]
    reason: str = Column(String(1000), nullable=False)  # type: ignore[assignment]
    status: str = Column(  # type: ignore[assignment]
        String(20), nullable=False, default="pending", index=True
    )  # pending | approved | rejected | cancelled
    approver_id: int | None = Column(Integer, ForeignKey("users.id"), nullable=True)  # type: ignore[assignment]
    approved_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    comments: str | None = Column(String(1000), nullable=True)  # type: ignore[assignment]
    emergency_contact: str | None = Column(String(200), nullable=True)  # type: ignore[assignment]
    attachments: list = Column(JSON, nullable=False, default=list)  # type: ignore[assignment]
    applied_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1
