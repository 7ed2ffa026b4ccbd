"""Admin refund API: list refund requests and resolve them."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.response import ApiResponse, success_response
from src.mp_gateway.auth.dependencies import require_admin
from src.mp_gateway.user.db_models import UserModel
from src.mp_refund.application.schemas import ResolveRefundRequest
from src.mp_refund.application.service import RefundService

router = APIRouter(prefix="/admin/refunds", tags=["admin-refunds"])

_service = RefundService()


@router.get("")
async def list_refunds(
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    vendor_id: str | None = Query(None),
    status: str | None = Query(None, pattern="^(PENDING|APPROVED|REJECTED)$"),
) -> ApiResponse:
    data = await _service.list_refunds(db, vendor_id, status)
    return success_response([item.model_dump() for item in data], request)


@router.put("/{refund_id}/resolve")
async def resolve_refund(
    refund_id: str,
    body: ResolveRefundRequest,
    admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.resolve_refund(db, refund_id, body.status, str(admin.id))
    return success_response(data.model_dump(), request)
