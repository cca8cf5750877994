"""
Notification endpoints — the caller's own inbox only.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from hrledger.api.v1.deps import get_current_active_user, get_notification_sink
from hrledger.core.exceptions import raise_for_result
from hrledger.models.user import User
from hrledger.schemas.base import SuccessResponse
from hrledger.schemas.notification import (NotificationList, NotificationRead,
                                           NotificationUpdate, UnreadCount,
                                           UnreadCountResponse)
from hrledger.services.notifications import NotificationSink

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
async def list_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    limit: int = Query(default=50, ge=1, le=200),
    user: User = Depends(get_current_active_user),
    sink: NotificationSink = Depends(get_notification_sink),
) -> NotificationList:
    result = await sink.list(user.id, unread_only=unread_only, limit=limit)
    return NotificationList(data=[NotificationRead.model_validate(n) for n in result.value])


@router.get("/count", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_active_user),
    sink: NotificationSink = Depends(get_notification_sink),
) -> UnreadCountResponse:
    result = await sink.unread_count(user.id)
    return UnreadCountResponse(data=UnreadCount(unread_count=result.value))


@router.put("", response_model=SuccessResponse)
async def update_notifications(
    body: NotificationUpdate,
    user: User = Depends(get_current_active_user),
    sink: NotificationSink = Depends(get_notification_sink),
) -> SuccessResponse:
    if body.action == "readAll":
        result = await sink.mark_all_read(user.id)
        return SuccessResponse(message=f"{result.value} notifications marked as read")

    if body.notification_id is None:
        raise HTTPException(status_code=400, detail="Notification ID is required")
    result = await sink.mark_read(body.notification_id, user.id)
    raise_for_result(result)
    return SuccessResponse(message="Notification marked as read")


@router.delete("", response_model=SuccessResponse)
async def delete_notification(
    notification_id: int = Query(alias="id"),
    user: User = Depends(get_current_active_user),
    sink: NotificationSink = Depends(get_notification_sink),
) -> SuccessResponse:
    result = await sink.delete(notification_id, user.id)
    raise_for_result(result)
    return SuccessResponse(message="Notification deleted successfully")
