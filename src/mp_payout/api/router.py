"""mp_payout admin REST API: approval gate, bulk actions, reports.

All endpoints require an ADMIN bearer token.
"""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import require_admin
from src.mp_gateway.user.db_models import UserModel
from src.mp_payout.application.bulk_service import BulkActionCoordinator
from src.mp_payout.application.schemas import (
    ApproveRequest,
    BulkApproveRequest,
    BulkRejectRequest,
    RejectRequest,
)
from src.mp_payout.application.service import PayoutApprovalService

router = APIRouter(prefix="/admin", tags=["admin-payouts"])

_service = PayoutApprovalService()
_bulk = BulkActionCoordinator(_service)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@router.get("/payouts")
async def list_payouts(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status: str = Query(
        "PENDING", pattern="^(PENDING|APPROVED|REJECTED|ALL)$", description="ALL disables the filter"
    ),
    vendor_id: str | None = Query(None),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_payouts(
        db, None if status == "ALL" else status, vendor_id, cursor, limit
    )
    return success_response(data.model_dump(), request)


@router.get("/payouts/report")
async def payout_report(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    start: datetime = Query(..., description="Inclusive, ISO 8601"),
    end: datetime = Query(..., description="Inclusive, ISO 8601"),
) -> ApiResponse:
    data = await _service.payout_report(db, _as_utc(start), _as_utc(end))
    return success_response(data.model_dump(), request)


@router.get("/payouts/refund-impact")
async def list_refund_impact(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_refund_impact(db)
    return success_response([item.model_dump() for item in data], request)


@router.post("/payouts/bulk-approve")
async def bulk_approve(
    body: BulkApproveRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _bulk.bulk_approve(db, body.payout_ids, str(admin.id))
    return success_response(data.model_dump(), request)


@router.post("/payouts/bulk-reject")
async def bulk_reject(
    body: BulkRejectRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _bulk.bulk_reject(db, body.payout_ids, str(admin.id), body.reason)
    return success_response(data.model_dump(), request)


@router.get("/payouts/{payout_id}/approval-preview")
async def approval_preview(
    payout_id: str,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.preview_approval(db, payout_id)
    return success_response(data.model_dump(), request)


@router.post("/payouts/{payout_id}/approve")
async def approve_payout(
    payout_id: str,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    body: ApproveRequest | None = None,
) -> ApiResponse:
    amount = body.amount_kobo if body is not None else None
    data = await _service.approve_payout(db, payout_id, str(admin.id), amount)
    return success_response(data.model_dump(), request)


@router.post("/payouts/{payout_id}/reject")
async def reject_payout(
    payout_id: str,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    body: RejectRequest | None = None,
) -> ApiResponse:
    reason = body.reason if body is not None else None
    data = await _service.reject_payout(db, payout_id, str(admin.id), reason)
    return success_response(data.model_dump(), request)


@router.get("/vendors/{vendor_id}/available-balance")
async def vendor_available_balance(
    vendor_id: str,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_vendor_available_balance(db, vendor_id)
    return success_response(data.model_dump(), request)
