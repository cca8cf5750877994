"""Pydantic schemas for health / status probes."""

from __future__ import annotations

from hrledger.schemas.base import CamelModel


class HealthResponse(CamelModel):
    db: bool
    redis: bool


class StatusResponse(CamelModel):
    total_users: int
    checked_in_today: int
    status: str
