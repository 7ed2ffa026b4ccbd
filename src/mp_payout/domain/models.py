"""Domain models for mp_payout: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.mp_common.enums import HoldStatus, PayoutStatus, RiskLevel


@dataclass
class PayoutRequest:
    id: str
    vendor_id: str
    request_amount: int              # kobo, > 0
    status: str                      # PayoutStatus value
    version: int
    approved_amount: int | None = None   # kobo, set only on APPROVED
    rejection_reason: str | None = None
    bank_details: dict[str, Any] = field(default_factory=dict)
    decided_by: str | None = None
    decided_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == PayoutStatus.PENDING


@dataclass
class PayoutHold:
    id: str
    vendor_id: str
    hold_amount: int                 # kobo, >= 0
    reason: str
    status: str                      # HoldStatus value
    refund_request_ids: list[str] = field(default_factory=list)
    payout_id: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    released_at: datetime | None = None
    released_by: str | None = None

    @property
    def is_active(self) -> bool:
        return self.status == HoldStatus.ACTIVE


@dataclass(frozen=True)
class RefundImpact:
    """Read-time aggregation; never persisted."""

    vendor_id: str
    requested_amount: int
    pending_refunds: int
    pending_refund_amount: int
    hold_amount: int
    available_for_payout: int
    risk_level: RiskLevel


@dataclass(frozen=True)
class PayoutStatusTotals:
    status: str
    count: int
    amount: int                      # kobo, requested amounts
    approved_amount: int             # kobo, 0 unless APPROVED
