"""Pydantic schemas for notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator

from hrledger.core.clock import ensure_utc
from hrledger.schemas.base import CamelModel


class NotificationRead(CamelModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    data: dict[str, Any] = Field(default_factory=dict)
    read_at: datetime | None = None
    created_at: datetime | None = None

    @field_validator("read_at", "created_at")
    @classmethod
    def _utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v)


class NotificationUpdate(CamelModel):
    notification_id: int | None = None
    action: Literal["read", "readAll"]


class NotificationList(CamelModel):
    success: bool = True
    data: list[NotificationRead]


class UnreadCount(CamelModel):
    unread_count: int


class UnreadCountResponse(CamelModel):
    success: bool = True
    data: UnreadCount
