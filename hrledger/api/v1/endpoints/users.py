"""
User administration (admin-only).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from hrledger.api.v1.deps import get_directory, require_admin
from hrledger.core.exceptions import raise_for_result
from hrledger.models.user import User
from hrledger.schemas.base import SuccessResponse
from hrledger.schemas.user import UserCreate, UserRead, UserUpdate
from hrledger.services.directory import Directory

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserRead])
async def list_users(
    include_inactive: bool = Query(default=False, alias="includeInactive"),
    directory: Directory = Depends(get_directory),
    _admin: User = Depends(require_admin),
) -> list[User]:
    return await directory.list_users(include_inactive=include_inactive)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    directory: Directory = Depends(get_directory),
    _admin: User = Depends(require_admin),
) -> User:
    """Create a new user account."""
    result = await directory.create_user(**body.model_dump())
    raise_for_result(result)
    return result.value


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    body: UserUpdate,
    directory: Directory = Depends(get_directory),
    _admin: User = Depends(require_admin),
) -> User:
    """Partial update; only fields present in the body are touched."""
    result = await directory.update_user(user_id, body.model_dump(exclude_unset=True))
    raise_for_result(result, not_found_status=status.HTTP_404_NOT_FOUND)
    return result.value


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    directory: Directory = Depends(get_directory),
    _admin: User = Depends(require_admin),
) -> SuccessResponse:
    """Soft delete: the account is deactivated and its email freed."""
    result = await directory.deactivate_user(user_id)
    raise_for_result(result, not_found_status=status.HTTP_404_NOT_FOUND)
    return SuccessResponse(message="User deleted successfully")
