"""Payout hold ledger REST API.

Admins manage holds for any vendor; vendors may list their own.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.enums import HoldStatus, UserRole
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import require_admin, require_vendor_or_admin
from src.mp_gateway.user.db_models import UserModel
from src.mp_payout.application.hold_service import HoldLedgerService
from src.mp_payout.application.schemas import CreateHoldRequest

router = APIRouter(prefix="/payout-holds", tags=["payout-holds"])

_service = HoldLedgerService()


@router.get("")
async def list_holds(
    current_user: Annotated[UserModel, Depends(require_vendor_or_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: str | None = Query(None, pattern="^(ACTIVE|RELEASED)$"),
    vendor_id: str | None = Query(None),
) -> ApiResponse:
    if current_user.role == UserRole.VENDOR:
        vendor_id = current_user.vendor_id
    if status == HoldStatus.ACTIVE and vendor_id is not None:
        data = await _service.get_active_holds(db, vendor_id)
    else:
        data = await _service.list_holds(db, vendor_id, status)
    return success_response([item.model_dump() for item in data], request)


@router.post("", status_code=201)
async def create_hold(
    body: CreateHoldRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create_hold(
        db,
        vendor_id=body.vendor_id,
        reason=body.reason,
        refund_request_ids=body.refund_request_ids,
        created_by=str(admin.id),
        hold_amount=body.hold_amount_kobo,
        payout_id=body.payout_id,
    )
    return success_response(data.model_dump(), request)


@router.put("/{hold_id}/release")
async def release_hold(
    hold_id: str,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.release_hold(db, hold_id, str(admin.id))
    return success_response(data.model_dump(), request)
