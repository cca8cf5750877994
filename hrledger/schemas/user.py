"""Pydantic schemas for User CRUD and self-service profile."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from hrledger.models.user import ROLES
from hrledger.schemas.base import CamelModel


def _check_role(v: str | None) -> str | None:
    if v is not None and v not in ROLES:
        raise ValueError(f"Role must be one of: {', '.join(ROLES)}")
    return v


class UserCreate(CamelModel):
    email: str
    password: str = Field(min_length=6)
    full_name: str | None = None
    role: str = "employee"
    employee_id: str | None = None
    department: str | None = None
    position: str | None = None
    manager_id: int | None = None

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str) -> str:
        return _check_role(v)  # type: ignore[return-value]

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("Invalid email address")
        return v


class UserRead(CamelModel):
    id: int
    email: str
    full_name: str | None
    employee_id: str | None = None
    role: str
    department: str | None = None
    position: str | None = None
    manager_id: int | None = None
    is_active: bool
    created_at: datetime | None


class UserUpdate(CamelModel):
    full_name: str | None = None
    employee_id: str | None = None
    role: str | None = None
    department: str | None = None
    position: str | None = None
    manager_id: int | None = None
    is_active: bool | None = None
    password: str | None = Field(default=None, min_length=6)

    @field_validator("role")
    @classmethod
    def _validate_role(cls, v: str | None) -> str | None:
        return _check_role(v)

    @field_validator("role", "is_active")
    @classmethod
    def _not_null(cls, v):
        # Omitted means unchanged; both columns are NOT NULL.
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class ProfileUpdate(CamelModel):
    full_name: str | None = None
    department: str | None = None
    position: str | None = None


class PasswordChange(CamelModel):
    current_password: str
    new_password: str
