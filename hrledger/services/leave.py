"""
Leave ledger — leave-request lifecycle and derived leave balances.

Status only moves ``pending -> approved`` or ``pending -> rejected``.
Approval writes one ``leave`` attendance row per day of the range; the
backfill, the status flip and the employee notification share one commit
so a failure leaves the request pending.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from hrledger.core.clock import Clock, date_range, local_today, utc_now
from hrledger.models.leave_request import (BLOCKING_STATUSES, LEAVE_ALLOCATIONS,
                                           LEAVE_TYPES, LeaveRequest)
from hrledger.models.user import User
from hrledger.services.attendance import AttendanceLedger
from hrledger.services.directory import Directory
from hrledger.services.notifications import NotificationSink
from hrledger.services.result import LedgerError, LedgerResult

logger = logging.getLogger(__name__)

_NOT_FOUND = "Leave request not found"
_SELF_APPROVAL = "You cannot process your own leave request"

MAX_REQUEST_DAYS = 365

LeaveBalance = dict[str, dict[str, float]]


def count_leave_days(start_date: date, end_date: date, half_day: bool = False) -> float:
    """Inclusive day count, halved for half-day requests."""
    days = (end_date - start_date).days + 1
    return days * 0.5 if half_day else float(days)


def _request_view(
    request: LeaveRequest, employee: User | None, approver: User | None
) -> dict[str, Any]:
    return {
        "id": request.id,
        "user_id": request.user_id,
        "leave_type": request.leave_type,
        "start_date": request.start_date,
        "end_date": request.end_date,
        "days": request.days,
        "half_day": request.half_day,
        "reason": request.reason,
        "status": request.status,
        "approver_id": request.approver_id,
        "approved_at": request.approved_at,
        "comments": request.comments,
        "emergency_contact": request.emergency_contact,
        "attachments": request.attachments or [],
        "applied_at": request.applied_at,
        "total_days": request.total_days,
        "employee_name": employee.full_name if employee else None,
        "employee_email": employee.email if employee else None,
        "employee_department": employee.department if employee else None,
        "approver_name": approver.full_name if approver else None,
        "approver_email": approver.email if approver else None,
    }


class LeaveLedger:
    def __init__(self, db: AsyncSession, clock: Clock = utc_now) -> None:
        self.db = db
        self.clock = clock
        self.attendance = AttendanceLedger(db, clock)
        self.notifications = NotificationSink(db, clock)
        self.directory = Directory(db, clock)

    async def _get(self, request_id: int) -> LeaveRequest | None:
        result = await self.db.execute(select(LeaveRequest).where(LeaveRequest.id == request_id))
        return result.scalar_one_or_none()

    async def _has_overlap(self, user_id: int, start_date: date, end_date: date) -> bool:
        result = await self.db.execute(
            select(func.count(LeaveRequest.id)).where(
                LeaveRequest.user_id == user_id,
                LeaveRequest.status.in_(BLOCKING_STATUSES),
                LeaveRequest.start_date <= end_date,
                LeaveRequest.end_date >= start_date,
            )
        )
        return result.scalar_one() > 0

    # ── Create ─────────────────────────────────────────────────────
    async def create_request(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        leave_type: str,
        reason: str,
        half_day: bool = False,
        emergency_contact: str | None = None,
        attachments: list[str] | None = None,
    ) -> LedgerResult[LeaveRequest]:
        if leave_type not in LEAVE_TYPES:
            return LedgerResult.fail(LedgerError.INVALID_LEAVE_TYPE)
        if start_date < local_today(self.clock()):
            return LedgerResult.fail(LedgerError.START_DATE_IN_PAST)
        if end_date < start_date:
            return LedgerResult.fail(LedgerError.INVALID_DATE_RANGE)
        if (end_date - start_date).days >= MAX_REQUEST_DAYS:
            return LedgerResult.fail(LedgerError.RANGE_TOO_LONG)
        if await self._has_overlap(user_id, start_date, end_date):
            return LedgerResult.fail(LedgerError.OVERLAPPING_REQUEST)

        employee = await self.directory.get_user(user_id, active_only=True)
        if employee is None:
            return LedgerResult.fail(LedgerError.USER_NOT_FOUND)
        approver_id = await self.directory.resolve_approver(user_id)

        request = LeaveRequest(
            user_id=user_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days=count_leave_days(start_date, end_date, half_day),
            half_day=half_day,
            reason=reason,
            status="pending",
            approver_id=approver_id,
            emergency_contact=emergency_contact,
            attachments=list(attachments or []),
            applied_at=self.clock(),
        )
        self.db.add(request)
        await self.db.flush()

        if approver_id is not None:
            name = employee.full_name or employee.email
            await self.notifications.create(
                approver_id,
                "leave_request",
                "New Leave Request",
                f"{name} has submitted a leave request for {leave_type} leave",
                {"leave_request_id": request.id, "employee_name": name},
                commit=False,
            )

        await self.db.commit()
        await self.db.refresh(request)
        logger.info(
            "Leave request %d created by user %d (%s, %s..%s)",
            request.id, user_id, leave_type, start_date, end_date,
        )
        return LedgerResult.ok(request)

    # ── Approve / reject ───────────────────────────────────────────
    async def _load_pending(self, request_id: int, approver_id: int) -> LedgerResult[LeaveRequest]:
        request = await self._get(request_id)
        if request is None:
            return LedgerResult.fail(LedgerError.NOT_FOUND, _NOT_FOUND)
        if request.user_id == approver_id:
            return LedgerResult.fail(LedgerError.UNAUTHORIZED, _SELF_APPROVAL)
        if request.status != "pending":
            return LedgerResult.fail(LedgerError.ALREADY_PROCESSED)
        return LedgerResult.ok(request)

    async def _close(
        self, request: LeaveRequest, status: str, approver_id: int, comments: str | None
    ) -> bool:
        """Conditional status flip; False when another approver got there first."""
        result = await self.db.execute(
            update(LeaveRequest)
            .where(LeaveRequest.id == request.id, LeaveRequest.status == "pending")
            .values(
                status=status,
                approver_id=approver_id,
                approved_at=self.clock(),
                comments=comments,
                updated_at=self.clock(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def approve_request(
        self, request_id: int, approver_id: int, comments: str | None = None
    ) -> LedgerResult[LeaveRequest]:
        loaded = await self._load_pending(request_id, approver_id)
        if not loaded:
            return loaded
        request = loaded.value

        try:
            for day in date_range(request.start_date, request.end_date):
                await self.attendance.stage_leave_day(request.user_id, day)

            if not await self._close(request, "approved", approver_id, comments or None):
                await self.db.rollback()
                return LedgerResult.fail(LedgerError.ALREADY_PROCESSED)

            await self.notifications.create(
                request.user_id,
                "leave_approved",
                "Leave Request Approved",
                f"Your {request.leave_type} leave request has been approved",
                {"leave_request_id": request.id, "comments": comments},
                commit=False,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(request)
        logger.info(
            "Leave request %d approved by user %d (%d attendance days backfilled)",
            request.id, approver_id, request.total_days,
        )
        return LedgerResult.ok(request)

    async def reject_request(
        self, request_id: int, approver_id: int, comments: str | None
    ) -> LedgerResult[LeaveRequest]:
        if not comments or not comments.strip():
            return LedgerResult.fail(LedgerError.COMMENTS_REQUIRED)

        loaded = await self._load_pending(request_id, approver_id)
        if not loaded:
            return loaded
        request = loaded.value

        try:
            if not await self._close(request, "rejected", approver_id, comments.strip()):
                await self.db.rollback()
                return LedgerResult.fail(LedgerError.ALREADY_PROCESSED)

            await self.notifications.create(
                request.user_id,
                "leave_rejected",
                "Leave Request Rejected",
                f"Your {request.leave_type} leave request has been rejected",
                {"leave_request_id": request.id, "comments": comments.strip()},
                commit=False,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(request)
        logger.info("Leave request %d rejected by user %d", request.id, approver_id)
        return LedgerResult.ok(request)

    # ── Delete ─────────────────────────────────────────────────────
    async def delete_request(self, request_id: int, user_id: int) -> LedgerResult[None]:
        request = await self._get(request_id)
        if request is None:
            return LedgerResult.fail(LedgerError.NOT_FOUND, _NOT_FOUND)
        if request.user_id != user_id:
            return LedgerResult.fail(
                LedgerError.UNAUTHORIZED, "Unauthorized to delete this leave request"
            )
        if request.status != "pending":
            return LedgerResult.fail(LedgerError.NOT_PENDING)

        await self.db.execute(sa_delete(LeaveRequest).where(LeaveRequest.id == request_id))
        await self.db.commit()
        logger.info("Leave request %d deleted by its owner %d", request_id, user_id)
        return LedgerResult.ok()

    # ── Reads ──────────────────────────────────────────────────────
    async def _views(self, *criteria) -> list[dict[str, Any]]:
        employee = aliased(User)
        approver = aliased(User)
        result = await self.db.execute(
            select(LeaveRequest, employee, approver)
            .join(employee, LeaveRequest.user_id == employee.id)
            .outerjoin(approver, LeaveRequest.approver_id == approver.id)
            .where(*criteria)
            .order_by(LeaveRequest.applied_at.desc(), LeaveRequest.id.desc())
        )
        return [_request_view(req, emp, appr) for req, emp, appr in result.all()]

    async def list_for_user(self, user_id: int) -> LedgerResult[list[dict[str, Any]]]:
        return LedgerResult.ok(await self._views(LeaveRequest.user_id == user_id))

    async def list_for_team(
        self, manager_id: int, status: str | None = None
    ) -> LedgerResult[list[dict[str, Any]]]:
        employee_ids = select(User.id).where(User.manager_id == manager_id)
        criteria = [LeaveRequest.user_id.in_(employee_ids)]
        if status:
            criteria.append(LeaveRequest.status == status)
        return LedgerResult.ok(await self._views(*criteria))

    async def get_balance(self, user_id: int) -> LedgerResult[LeaveBalance]:
        """Recomputed on every call from approved requests starting this year."""
        year = local_today(self.clock()).year
        result = await self.db.execute(
            select(LeaveRequest.leave_type, func.sum(LeaveRequest.days).label("used"))
            .where(
                LeaveRequest.user_id == user_id,
                LeaveRequest.status == "approved",
                LeaveRequest.start_date >= date(year, 1, 1),
                LeaveRequest.start_date <= date(year, 12, 31),
            )
            .group_by(LeaveRequest.leave_type)
        )
        used = {row.leave_type: float(row.used or 0) for row in result.all()}
        return LedgerResult.ok(
            {
                leave_type: {"used": used.get(leave_type, 0.0), "total": total}
                for leave_type, total in LEAVE_ALLOCATIONS.items()
            }
        )
