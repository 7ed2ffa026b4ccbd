"""Domain models for mp_refund: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.mp_common.enums import RefundStatus


@dataclass
class RefundRequest:
    id: str
    vendor_id: str
    refund_amount: int               # kobo, > 0
    status: str                      # RefundStatus value
    customer_id: str | None = None
    order_item_id: str | None = None
    reason: str | None = None
    created_at: datetime | None = None
    resolved_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status == RefundStatus.PENDING


@dataclass(frozen=True)
class RefundExposure:
    """Pending refund totals for one vendor."""

    vendor_id: str
    pending_count: int = 0
    pending_amount: int = 0          # kobo
