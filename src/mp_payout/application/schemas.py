"""Pydantic schemas and cursor utilities for mp_payout API."""

import base64
import json
from datetime import datetime

from pydantic import BaseModel, Field

from src.mp_common.datetime_utils import to_iso
from src.mp_common.kobo import kobo_to_display
from src.mp_payout.domain.models import (
    PayoutHold,
    PayoutRequest,
    PayoutStatusTotals,
    RefundImpact,
)

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_payout: PayoutRequest) -> str:
    """Encode composite cursor from last payout in page."""
    created_at = last_payout.created_at.isoformat() if last_payout.created_at else None
    payload = {"ts": created_at, "id": last_payout.id}
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode composite cursor -> (ts_iso, payout_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        ts, payout_id = data["ts"], data["id"]
        datetime.fromisoformat(ts)
    except (ValueError, KeyError, TypeError):
        return None, None
    return ts, payout_id


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ApproveRequest(BaseModel):
    amount_kobo: int | None = Field(
        None, gt=0, description="Confirmed amount when holds reduce the payout"
    )


class RejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class BulkApproveRequest(BaseModel):
    payout_ids: list[str] = Field(..., min_length=1, max_length=100)


class BulkRejectRequest(BaseModel):
    payout_ids: list[str] = Field(..., min_length=1, max_length=100)
    reason: str | None = Field(None, max_length=500)


class CreateHoldRequest(BaseModel):
    vendor_id: str = Field(..., min_length=1, max_length=64)
    reason: str = Field(..., min_length=1, max_length=1000)
    refund_request_ids: list[str] = Field(..., min_length=1)
    hold_amount_kobo: int | None = Field(
        None, ge=0, description="Defaults to the total of the referenced refunds"
    )
    payout_id: str | None = None


# ---------------------------------------------------------------------------
# Payout
# ---------------------------------------------------------------------------


class PayoutItem(BaseModel):
    id: str
    vendor_id: str
    status: str
    request_amount_kobo: int
    request_amount_display: str
    approved_amount_kobo: int | None
    approved_amount_display: str | None
    rejection_reason: str | None
    bank_details: dict
    decided_by: str | None
    decided_at: str | None
    version: int
    created_at: str | None

    @classmethod
    def from_domain(cls, payout: PayoutRequest) -> "PayoutItem":
        approved = payout.approved_amount
        return cls(
            id=payout.id,
            vendor_id=payout.vendor_id,
            status=payout.status,
            request_amount_kobo=payout.request_amount,
            request_amount_display=kobo_to_display(payout.request_amount),
            approved_amount_kobo=approved,
            approved_amount_display=kobo_to_display(approved) if approved is not None else None,
            rejection_reason=payout.rejection_reason,
            bank_details=payout.bank_details,
            decided_by=payout.decided_by,
            decided_at=to_iso(payout.decided_at),
            version=payout.version,
            created_at=to_iso(payout.created_at),
        )


class PayoutListResponse(BaseModel):
    items: list[PayoutItem]
    next_cursor: str | None
    has_more: bool


class ApprovalOutcome(BaseModel):
    """Result of the hold-aware approval gate.

    requires_confirmation=True means nothing was written: holds reduce the
    payout and the admin must resubmit with the adjusted (or a lower) amount.
    """

    payout_id: str
    status: str
    requested_amount_kobo: int
    hold_amount_kobo: int
    adjusted_amount_kobo: int
    adjusted_amount_display: str
    approved_amount_kobo: int | None = None
    approved_amount_display: str | None = None
    requires_confirmation: bool = False


class PayoutDecision(BaseModel):
    payout_id: str
    status: str
    rejection_reason: str | None
    decided_by: str | None


# ---------------------------------------------------------------------------
# Holds
# ---------------------------------------------------------------------------


class HoldItem(BaseModel):
    id: str
    vendor_id: str
    payout_id: str | None
    hold_amount_kobo: int
    hold_amount_display: str
    reason: str
    status: str
    refund_request_ids: list[str]
    created_by: str | None
    created_at: str | None
    released_at: str | None
    released_by: str | None

    @classmethod
    def from_domain(cls, hold: PayoutHold) -> "HoldItem":
        return cls(
            id=hold.id,
            vendor_id=hold.vendor_id,
            payout_id=hold.payout_id,
            hold_amount_kobo=hold.hold_amount,
            hold_amount_display=kobo_to_display(hold.hold_amount),
            reason=hold.reason,
            status=hold.status,
            refund_request_ids=list(hold.refund_request_ids),
            created_by=hold.created_by,
            created_at=to_iso(hold.created_at),
            released_at=to_iso(hold.released_at),
            released_by=hold.released_by,
        )


class HoldReleaseResult(BaseModel):
    hold: HoldItem
    already_released: bool


# ---------------------------------------------------------------------------
# Refund impact
# ---------------------------------------------------------------------------


class RefundImpactOut(BaseModel):
    vendor_id: str
    requested_amount_kobo: int
    requested_amount_display: str
    pending_refunds: int
    pending_refund_amount_kobo: int
    pending_refund_amount_display: str
    hold_amount_kobo: int
    hold_amount_display: str
    available_for_payout_kobo: int
    available_for_payout_display: str
    risk_level: str

    @classmethod
    def from_domain(cls, impact: RefundImpact) -> "RefundImpactOut":
        return cls(
            vendor_id=impact.vendor_id,
            requested_amount_kobo=impact.requested_amount,
            requested_amount_display=kobo_to_display(impact.requested_amount),
            pending_refunds=impact.pending_refunds,
            pending_refund_amount_kobo=impact.pending_refund_amount,
            pending_refund_amount_display=kobo_to_display(impact.pending_refund_amount),
            hold_amount_kobo=impact.hold_amount,
            hold_amount_display=kobo_to_display(impact.hold_amount),
            available_for_payout_kobo=impact.available_for_payout,
            available_for_payout_display=kobo_to_display(impact.available_for_payout),
            risk_level=impact.risk_level.value,
        )


class ApprovalPreview(BaseModel):
    """What the confirmation dialog shows before an admin approves."""

    payout: PayoutItem
    impact: RefundImpactOut
    active_holds: list[HoldItem]
    adjusted_amount_kobo: int
    adjusted_amount_display: str
    requires_confirmation: bool
    zero_balance: bool


# ---------------------------------------------------------------------------
# Bulk actions
# ---------------------------------------------------------------------------


class BulkItemResult(BaseModel):
    payout_id: str
    success: bool
    error_code: int | None = None
    error: str | None = None


class BulkActionResult(BaseModel):
    success_count: int
    error_count: int
    items: list[BulkItemResult]


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


class StatusTotalOut(BaseModel):
    status: str
    count: int
    amount_kobo: int
    amount_display: str
    approved_amount_kobo: int
    approved_amount_display: str

    @classmethod
    def from_domain(cls, totals: PayoutStatusTotals) -> "StatusTotalOut":
        return cls(
            status=totals.status,
            count=totals.count,
            amount_kobo=totals.amount,
            amount_display=kobo_to_display(totals.amount),
            approved_amount_kobo=totals.approved_amount,
            approved_amount_display=kobo_to_display(totals.approved_amount),
        )


class PayoutReport(BaseModel):
    start: str
    end: str
    total_count: int
    total_requested_kobo: int
    total_approved_kobo: int
    total_approved_display: str
    by_status: list[StatusTotalOut]
