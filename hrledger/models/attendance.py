"""
Attendance model — one row per (user, calendar date).
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (Column, Date, DateTime, Float, ForeignKey, Index,
                        Integer, String, UniqueConstraint)

from hrledger.db.base import Base

PRESENT_STATUSES = ("present", "late", "on_duty")


class Attendance(Base):
    __tablename__ = "attendance"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
        Index("ix_attendance_user_date", "user_id", "date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    check_in_time: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    check_out_time: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    break_start_time: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    break_end_time: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    break_duration_seconds: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    total_hours: float = Column(Float, nullable=False, default=0.0)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="absent")  # type: ignore[assignment]
    # present | late | absent | on_duty | leave
    notes: str | None = Column(String(500), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def is_checked_in(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is None

    @property
    def has_open_break(self) -> bool:
        return self.break_start_time is not None and self.break_end_time is None

    @classmethod
    def placeholder(cls, user_id: int, day: date) -> "Attendance":
        """Transient, never-persisted view of a day without a row."""
        return cls(
            id=None,
            user_id=user_id,
            date=day,
            check_in_time=None,
            check_out_time=None,
            break_start_time=None,
            break_end_time=None,
            break_duration_seconds=0,
            total_hours=0.0,
            status="absent",
            notes=None,
        )
