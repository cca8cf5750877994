"""
Health and status probes.
"""

from __future__ import annotations

import logging

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hrledger.api.v1.deps import (get_attendance_ledger,
                                  get_current_active_user, get_db)
from hrledger.core.config import settings
from hrledger.models.attendance import Attendance
from hrledger.models.user import User
from hrledger.schemas.system import HealthResponse, StatusResponse
from hrledger.services.attendance import AttendanceLedger

router = APIRouter(tags=["system"])
logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
async def health(db: AsyncSession = Depends(get_db)) -> HealthResponse:
    """Public health check — DB and Redis connectivity."""
    result = HealthResponse(db=False, redis=False)

    try:
        await db.execute(select(1))
        result.db = True
    except Exception as e:
        logger.error("Health check DB failure: %s", e)

    try:
        r = aioredis.from_url(settings.REDIS_URL, socket_connect_timeout=2)
        await r.ping()
        await r.aclose()
        result.redis = True
    except Exception as e:
        logger.error("Health check Redis failure: %s", e)

    return result


@router.get("/status", response_model=StatusResponse)
async def system_status(
    db: AsyncSession = Depends(get_db),
    ledger: AttendanceLedger = Depends(get_attendance_ledger),
    _user: User = Depends(get_current_active_user),
) -> StatusResponse:
    """Active user count and how many of them checked in today."""
    user_count = await db.execute(
        select(func.count(User.id)).where(User.is_active.is_(True))
    )
    checked_in = await db.execute(
        select(func.count(Attendance.id)).where(
            Attendance.date == ledger.today(),
            Attendance.check_in_time.is_not(None),
        )
    )

    return StatusResponse(
        total_users=user_count.scalar() or 0,
        checked_in_today=checked_in.scalar() or 0,
        status="operational",
    )
