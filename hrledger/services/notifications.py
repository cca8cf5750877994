"""
Notification sink — in-app notifications addressed to a single user.

Rows are immutable apart from ``read_at``, which only ever moves from
unset to set.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrledger.core.clock import Clock, utc_now
from hrledger.models.notification import NOTIFICATION_TYPES, Notification
from hrledger.services.result import LedgerError, LedgerResult

logger = logging.getLogger(__name__)

_NOT_FOUND = "Notification not found"


class NotificationSink:
    def __init__(self, db: AsyncSession, clock: Clock = utc_now) -> None:
        self.db = db
        self.clock = clock

    async def create(
        self,
        user_id: int,
        type: str,
        title: str,
        message: str,
        data: dict[str, Any] | None = None,
        *,
        commit: bool = True,
    ) -> LedgerResult[Notification]:
        """Insert a notification; with ``commit=False`` it joins the caller's unit of work."""
        if type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type: {type}")
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=data or {},
            created_at=self.clock(),
        )
        self.db.add(notification)
        if commit:
            await self.db.commit()
            await self.db.refresh(notification)
            logger.info("Notification %s (%s) created for user %d", notification.id, type, user_id)
        return LedgerResult.ok(notification)

    async def list(
        self, user_id: int, unread_only: bool = False, limit: int = 50
    ) -> LedgerResult[list[Notification]]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.read_at.is_(None))
        query = query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
        result = await self.db.execute(query)
        return LedgerResult.ok(list(result.scalars().all()))

    async def _get_owned(self, notification_id: int, user_id: int) -> Notification | None:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def mark_read(self, notification_id: int, user_id: int) -> LedgerResult[Notification]:
        notification = await self._get_owned(notification_id, user_id)
        if notification is None:
            return LedgerResult.fail(LedgerError.NOT_FOUND, _NOT_FOUND)

        if notification.read_at is None:
            notification.read_at = self.clock()
            await self.db.commit()
            await self.db.refresh(notification)
        return LedgerResult.ok(notification)

    async def mark_all_read(self, user_id: int) -> LedgerResult[int]:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read_at.is_(None))
            .values(read_at=self.clock())
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        logger.info("Marked %d notifications read for user %d", result.rowcount, user_id)
        return LedgerResult.ok(result.rowcount)

    async def unread_count(self, user_id: int) -> LedgerResult[int]:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.read_at.is_(None),
            )
        )
        return LedgerResult.ok(result.scalar_one())

    async def delete(self, notification_id: int, user_id: int) -> LedgerResult[None]:
        notification = await self._get_owned(notification_id, user_id)
        if notification is None:
            return LedgerResult.fail(LedgerError.NOT_FOUND, _NOT_FOUND)

        await self.db.execute(sa_delete(Notification).where(Notification.id == notification.id))
        await self.db.commit()
        return LedgerResult.ok()
