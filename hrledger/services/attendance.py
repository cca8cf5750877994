"""
Time ledger — the per-user, per-day attendance record.

One row per (user, date).  Check-in is a single upsert keyed on that pair;
the unique constraint on the table closes the read-then-write race between
two concurrent check-ins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy import case, func, select
from sqlalchemy import delete as sa_delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hrledger.core.clock import Clock, ensure_utc, local_today, to_local, utc_now
from hrledger.core.config import settings
from hrledger.models.attendance import PRESENT_STATUSES, Attendance
from hrledger.services.result import LedgerError, LedgerResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttendanceSummary:
    total_days: int = 0
    present_days: int = 0
    absent_days: int = 0
    late_days: int = 0
    total_hours: float = 0.0


class AttendanceLedger:
    def __init__(self, db: AsyncSession, clock: Clock = utc_now) -> None:
        self.db = db
        self.clock = clock

    def today(self) -> date:
        return local_today(self.clock())

    async def _get_day(self, user_id: int, day: date) -> Attendance | None:
        result = await self.db.execute(
            select(Attendance).where(Attendance.user_id == user_id, Attendance.date == day)
        )
        return result.scalar_one_or_none()

    async def _upsert_day(self, user_id: int, day: date, **values) -> Attendance:
        """Stage an insert or in-place update of the (user, day) row. Does not commit."""
        record = await self._get_day(user_id, day)
        if record is None:
            values.setdefault("break_duration_seconds", 0)
            values.setdefault("total_hours", 0.0)
            record = Attendance(user_id=user_id, date=day, **values)
            self.db.add(record)
        else:
            for field, value in values.items():
                setattr(record, field, value)
        return record

    # ── Check-in / check-out ───────────────────────────────────────
    async def check_in(self, user_id: int, notes: str | None = None) -> LedgerResult[Attendance]:
        now = self.clock()
        day = local_today(now)

        existing = await self._get_day(user_id, day)
        if existing is not None and existing.is_checked_in:
            return LedgerResult.fail(LedgerError.ALREADY_CHECKED_IN)

        status = "late" if to_local(now).hour >= settings.LATE_HOUR else "present"
        values = {
            "check_in_time": now,
            "check_out_time": None,
            "total_hours": 0.0,
            "status": status,
        }
        if notes is not None:
            values["notes"] = notes

        record = await self._upsert_day(user_id, day, **values)
        try:
            await self.db.commit()
        except IntegrityError:
            # A concurrent request inserted today's row first.
            await self.db.rollback()
            logger.info("Concurrent check-in detected for user %d on %s", user_id, day)
            return LedgerResult.fail(LedgerError.ALREADY_CHECKED_IN)

        await self.db.refresh(record)
        logger.info("User %d checked in (%s) on %s", user_id, status, day)
        return LedgerResult.ok(record)

    async def check_out(self, user_id: int, notes: str | None = None) -> LedgerResult[float]:
        now = self.clock()
        record = await self._get_day(user_id, local_today(now))
        if record is None or record.check_in_time is None:
            return LedgerResult.fail(LedgerError.NO_CHECK_IN)

        # Raw span; break time is not subtracted.
        total_hours = (now - ensure_utc(record.check_in_time)).total_seconds() / 3600
        if record.has_open_break:
            # Checking out ends the break in progress.
            self._close_break(record, now)
        record.check_out_time = now
        record.total_hours = total_hours
        if notes is not None:
            record.notes = notes
        await self.db.commit()

        logger.info("User %d checked out after %.2f hours", user_id, total_hours)
        return LedgerResult.ok(total_hours)

    # ── Breaks ─────────────────────────────────────────────────────
    @staticmethod
    def _close_break(record: Attendance, now: datetime) -> int:
        duration = int((now - ensure_utc(record.break_start_time)).total_seconds())
        record.break_end_time = now
        record.break_duration_seconds = (record.break_duration_seconds or 0) + duration
        return duration

    async def start_break(self, user_id: int) -> LedgerResult[Attendance]:
        now = self.clock()
        record = await self._get_day(user_id, local_today(now))
        if record is None or not record.is_checked_in:
            return LedgerResult.fail(LedgerError.NO_CHECK_IN)
        if record.has_open_break:
            return LedgerResult.fail(LedgerError.BREAK_ALREADY_OPEN)

        record.break_start_time = now
        record.break_end_time = None
        await self.db.commit()
        return LedgerResult.ok(record)

    async def end_break(self, user_id: int) -> LedgerResult[int]:
        now = self.clock()
        record = await self._get_day(user_id, local_today(now))
        if record is None or not record.has_open_break:
            return LedgerResult.fail(LedgerError.NO_OPEN_BREAK)

        duration = self._close_break(record, now)
        await self.db.commit()

        logger.info("User %d ended a %ds break", user_id, duration)
        return LedgerResult.ok(duration)

    # ── Reads ──────────────────────────────────────────────────────
    async def get_today(self, user_id: int) -> LedgerResult[Attendance]:
        day = self.today()
        record = await self._get_day(user_id, day)
        return LedgerResult.ok(record if record is not None else Attendance.placeholder(user_id, day))

    async def get_weekly(self, user_id: int, start_date: date) -> LedgerResult[list[Attendance]]:
        """Stored rows for the 7 days from ``start_date``; days without a row are absent."""
        end_date = start_date + timedelta(days=6)
        result = await self.db.execute(
            select(Attendance)
            .where(
                Attendance.user_id == user_id,
                Attendance.date >= start_date,
                Attendance.date <= end_date,
            )
            .order_by(Attendance.date.asc())
        )
        return LedgerResult.ok(list(result.scalars().all()))

    async def get_summary(
        self, user_id: int, start_date: date, end_date: date
    ) -> LedgerResult[AttendanceSummary]:
        result = await self.db.execute(
            select(
                func.count(Attendance.id).label("total_days"),
                func.sum(case((Attendance.status.in_(PRESENT_STATUSES), 1), else_=0)).label("present_days"),
                func.sum(case((Attendance.status == "absent", 1), else_=0)).label("absent_days"),
                func.sum(case((Attendance.status == "late", 1), else_=0)).label("late_days"),
                func.sum(Attendance.total_hours).label("total_hours"),
            ).where(
                Attendance.user_id == user_id,
                Attendance.date >= start_date,
                Attendance.date <= end_date,
            )
        )
        row = result.one()
        return LedgerResult.ok(
            AttendanceSummary(
                total_days=int(row.total_days or 0),
                present_days=int(row.present_days or 0),
                absent_days=int(row.absent_days or 0),
                late_days=int(row.late_days or 0),
                total_hours=float(row.total_hours or 0.0),
            )
        )

    # ── Corrections ────────────────────────────────────────────────
    async def delete_today(self, user_id: int) -> LedgerResult[None]:
        """Hard-delete today's row. Irreversible; meant for correcting bad entries."""
        day = self.today()
        record = await self._get_day(user_id, day)
        if record is None:
            return LedgerResult.fail(LedgerError.NO_RECORD_TODAY)

        await self.db.execute(sa_delete(Attendance).where(Attendance.id == record.id))
        await self.db.commit()
        logger.warning("Attendance record %d for user %d on %s deleted", record.id, user_id, day)
        return LedgerResult.ok()

    async def stage_leave_day(self, user_id: int, day: date) -> Attendance:
        """Mark ``day`` as leave with a full-day credit. Caller commits."""
        record = await self._upsert_day(
            user_id, day, status="leave", total_hours=settings.LEAVE_DAY_HOURS
        )
        await self.db.flush()
        return record
