"""
Directory — user identity, roles and the manager relationship.

The ledgers only read from it (who is this user, who approves their leave);
user administration and self-service profile updates write through it.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hrledger.core.clock import Clock, utc_now
from hrledger.core.security import get_password_hash, verify_password
from hrledger.models.user import User
from hrledger.services.result import LedgerError, LedgerResult

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class Directory:
    def __init__(self, db: AsyncSession, clock: Clock = utc_now) -> None:
        self.db = db
        self.clock = clock

    # ── Lookups ────────────────────────────────────────────────────
    async def get_user(self, user_id: int, active_only: bool = False) -> User | None:
        query = select(User).where(User.id == user_id)
        if active_only:
            query = query.where(User.is_active.is_(True))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def resolve_approver(self, user_id: int) -> int | None:
        """The user's manager, if that manager still exists and is active."""
        user = await self.get_user(user_id)
        if user is None or user.manager_id is None:
            return None
        manager = await self.get_user(user.manager_id, active_only=True)
        return manager.id if manager else None

    async def list_users(self, include_inactive: bool = False) -> list[User]:
        query = select(User).order_by(User.created_at.asc(), User.id.asc())
        if not include_inactive:
            query = query.where(User.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _employee_id_taken(self, employee_id: str, exclude_user_id: int | None = None) -> bool:
        query = select(User.id).where(User.employee_id == employee_id)
        if exclude_user_id is not None:
            query = query.where(User.id != exclude_user_id)
        result = await self.db.execute(query)
        return result.first() is not None

    async def _valid_manager(self, manager_id: int | None, user_id: int | None = None) -> bool:
        if manager_id is None:
            return True
        if manager_id == user_id:
            return False
        return await self.get_user(manager_id, active_only=True) is not None

    # ── Administration ─────────────────────────────────────────────
    async def create_user(
        self,
        email: str,
        password: str,
        full_name: str | None = None,
        role: str = "employee",
        employee_id: str | None = None,
        department: str | None = None,
        position: str | None = None,
        manager_id: int | None = None,
    ) -> LedgerResult[User]:
        if await self.get_by_email(email) is not None:
            return LedgerResult.fail(LedgerError.EMAIL_TAKEN)
        if employee_id and await self._employee_id_taken(employee_id):
            return LedgerResult.fail(LedgerError.EMPLOYEE_ID_TAKEN)
        if not await self._valid_manager(manager_id):
            return LedgerResult.fail(LedgerError.INVALID_MANAGER)

        user = User(
            email=email.strip().lower(),
            hashed_password=get_password_hash(password),
            full_name=full_name,
            role=role,
            employee_id=employee_id,
            department=department,
            position=position,
            manager_id=manager_id,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("Created user %d (%s, role=%s)", user.id, user.email, user.role)
        return LedgerResult.ok(user)

    async def update_user(self, user_id: int, changes: dict[str, Any]) -> LedgerResult[User]:
        user = await self.get_user(user_id)
        if user is None:
            return LedgerResult.fail(LedgerError.NOT_FOUND, LedgerError.USER_NOT_FOUND.message)

        employee_id = changes.get("employee_id")
        if employee_id and await self._employee_id_taken(employee_id, exclude_user_id=user_id):
            return LedgerResult.fail(LedgerError.EMPLOYEE_ID_TAKEN)
        if "manager_id" in changes and not await self._valid_manager(changes["manager_id"], user_id):
            return LedgerResult.fail(LedgerError.INVALID_MANAGER)

        for field, value in changes.items():
            if field == "password":
                if value:
                    user.hashed_password = get_password_hash(value)
                continue
            setattr(user, field, value)

        await self.db.commit()
        await self.db.refresh(user)
        logger.info("Updated user %d: %s", user_id, sorted(k for k in changes if k != "password"))
        return LedgerResult.ok(user)

    async def deactivate_user(self, user_id: int) -> LedgerResult[User]:
        """Soft delete; the email is rewritten so the address can be registered again."""
        user = await self.get_user(user_id)
        if user is None or not user.is_active:
            return LedgerResult.fail(LedgerError.NOT_FOUND, LedgerError.USER_NOT_FOUND.message)

        stamp = int(self.clock().timestamp())
        user.email = f"{user.email}_deleted_{stamp}"
        user.is_active = False
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("Deactivated user %d", user_id)
        return LedgerResult.ok(user)

    # ── Self-service ───────────────────────────────────────────────
    async def change_password(
        self, user_id: int, current_password: str, new_password: str
    ) -> LedgerResult[None]:
        user = await self.get_user(user_id, active_only=True)
        if user is None:
            return LedgerResult.fail(LedgerError.USER_NOT_FOUND)
        if not verify_password(current_password, user.hashed_password):
            return LedgerResult.fail(LedgerError.INVALID_PASSWORD)
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return LedgerResult.fail(LedgerError.PASSWORD_TOO_SHORT)

        user.hashed_password = get_password_hash(new_password)
        await self.db.commit()
        logger.info("Password changed for user %d", user_id)
        return LedgerResult.ok()
