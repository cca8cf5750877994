"""
Leave endpoints — request, approve / reject, delete, balances, team view.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from hrledger.api.v1.deps import (get_current_active_user, get_leave_ledger,
                                  require_approver)
from hrledger.core.exceptions import raise_for_result
from hrledger.models.user import User
from hrledger.schemas.base import SuccessResponse
from hrledger.schemas.leave import (LeaveBalanceRead, LeaveBalanceResponse,
                                    LeaveCreated, LeaveDecision,
                                    LeaveRequestCreate, LeaveRequestList,
                                    LeaveRequestRead, LeaveStatus)
from hrledger.services.leave import LeaveLedger

router = APIRouter(prefix="/leave", tags=["leave"])


@router.get("", response_model=LeaveRequestList)
async def list_my_requests(
    user: User = Depends(get_current_active_user),
    ledger: LeaveLedger = Depends(get_leave_ledger),
) -> LeaveRequestList:
    result = await ledger.list_for_user(user.id)
    return LeaveRequestList(data=[LeaveRequestRead.model_validate(v) for v in result.value])


@router.post("", response_model=LeaveCreated, status_code=status.HTTP_201_CREATED)
async def create_request(
    body: LeaveRequestCreate,
    user: User = Depends(get_current_active_user),
    ledger: LeaveLedger = Depends(get_leave_ledger),
) -> LeaveCreated:
    result = await ledger.create_request(
        user.id,
        start_date=body.start_date,
        end_date=body.end_date,
        leave_type=body.leave_type,
        reason=body.reason,
        half_day=body.half_day,
        emergency_contact=body.emergency_contact,
        attachments=body.attachments,
    )
    raise_for_result(result)
    return LeaveCreated(
        message="Leave request submitted successfully",
        leave_request_id=result.value.id,
    )


@router.delete("", response_model=SuccessResponse)
async def delete_request(
    request_id: int = Query(alias="id"),
    user: User = Depends(get_current_active_user),
    ledger: LeaveLedger = Depends(get_leave_ledger),
) -> SuccessResponse:
    """Owners may withdraw a request while it is still pending."""
    result = await ledger.delete_request(request_id, user.id)
    raise_for_result(result)
    return SuccessResponse(message="Leave request deleted successfully")


@router.post("/approve", response_model=SuccessResponse)
async def decide_request(
    body: LeaveDecision,
    approver: User = Depends(require_approver),
    ledger: LeaveLedger = Depends(get_leave_ledger),
) -> SuccessResponse:
    if body.action == "approve":
        result = await ledger.approve_request(body.leave_request_id, approver.id, body.comments)
        raise_for_result(result)
        return SuccessResponse(message="Leave request approved successfully")

    result = await ledger.reject_request(body.leave_request_id, approver.id, body.comments)
    raise_for_result(result)
    return SuccessResponse(message="Leave request rejected successfully")


@router.get("/balance", response_model=LeaveBalanceResponse)
async def balance(
    user: User = Depends(get_current_active_user),
    ledger: LeaveLedger = Depends(get_leave_ledger),
) -> LeaveBalanceResponse:
    result = await ledger.get_balance(user.id)
    return LeaveBalanceResponse(data=LeaveBalanceRead.model_validate(result.value))


@router.get("/team", response_model=LeaveRequestList)
async def team_requests(
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    manager: User = Depends(require_approver),
    ledger: LeaveLedger = Depends(get_leave_ledger),
) -> LeaveRequestList:
    """Requests of the caller's direct reports, newest first."""
    result = await ledger.list_for_team(manager.id, status_filter)
    return LeaveRequestList(data=[LeaveRequestRead.model_validate(v) for v in result.value])
