"""
Tagged success/failure value returned by every ledger operation.

Business-rule failures never raise; the HTTP layer decides the status code.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class LedgerError(str, Enum):
    # Time ledger
    ALREADY_CHECKED_IN = "Already checked in today"
    NO_CHECK_IN = "No check-in found for today"
    BREAK_ALREADY_OPEN = "Break already in progress"
    NO_OPEN_BREAK = "No active break to end"
    NO_RECORD_TODAY = "No attendance record found for today"

    # Leave ledger
    START_DATE_IN_PAST = "Leave start date cannot be in the past"
    INVALID_DATE_RANGE = "Leave end date cannot be before start date"
    INVALID_LEAVE_TYPE = "Invalid leave type"
    OVERLAPPING_REQUEST = "You already have a leave request for these dates"
    RANGE_TOO_LONG = "Leave request cannot span more than 365 days"
    ALREADY_PROCESSED = "Leave request has already been processed"
    COMMENTS_REQUIRED = "Comments are required when rejecting a leave request"
    NOT_PENDING = "Cannot delete processed leave request"
    UNAUTHORIZED = "Unauthorized to modify this resource"

    # Shared
    NOT_FOUND = "Not found"
    USER_NOT_FOUND = "User not found"

    # Directory
    EMAIL_TAKEN = "User with this email already exists"
    EMPLOYEE_ID_TAKEN = "User with this employee ID already exists"
    INVALID_MANAGER = "Manager must be another active user"
    INVALID_PASSWORD = "Current password is incorrect"
    PASSWORD_TOO_SHORT = "New password must be at least 6 characters long"

    @property
    def message(self) -> str:
        return self.value


@dataclass(frozen=True)
class LedgerResult(Generic[T]):
    success: bool
    value: T | None = None
    code: LedgerError | None = None
    error: str | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> "LedgerResult[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, code: LedgerError, error: str | None = None) -> "LedgerResult[T]":
        return cls(success=False, code=code, error=error or code.message)

    def __bool__(self) -> bool:
        return self.success
