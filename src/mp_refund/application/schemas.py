"""Pydantic schemas for mp_refund API."""

from typing import Literal

from pydantic import BaseModel

from src.mp_common.datetime_utils import to_iso
from src.mp_common.kobo import kobo_to_display
from src.mp_refund.domain.models import RefundRequest


class ResolveRefundRequest(BaseModel):
    status: Literal["APPROVED", "REJECTED"]


class RefundItem(BaseModel):
    id: str
    vendor_id: str
    customer_id: str | None
    order_item_id: str | None
    refund_amount_kobo: int
    refund_amount_display: str
    status: str
    reason: str | None
    created_at: str | None
    resolved_at: str | None

    @classmethod
    def from_domain(cls, refund: RefundRequest) -> "RefundItem":
        return cls(
            id=refund.id,
            vendor_id=refund.vendor_id,
            customer_id=refund.customer_id,
            order_item_id=refund.order_item_id,
            refund_amount_kobo=refund.refund_amount,
            refund_amount_display=kobo_to_display(refund.refund_amount),
            status=refund.status,
            reason=refund.reason,
            created_at=to_iso(refund.created_at),
            resolved_at=to_iso(refund.resolved_at),
        )


class RefundResolution(BaseModel):
    refund: RefundItem
    released_hold_ids: list[str]
    reduced_hold_ids: list[str] = []
