"""Repository Protocols: dependency inversion for testability.

Unit tests inject AsyncMock objects that conform to these Protocols.
The infrastructure layer provides the real implementations.

Methods suffixed `_for_update` take row locks and must run inside the
caller's transaction.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_payout.domain.models import PayoutHold, PayoutRequest, PayoutStatusTotals


class PayoutRepositoryProtocol(Protocol):
    async def get_payout(self, db: AsyncSession, payout_id: str) -> PayoutRequest | None: ...

    async def get_payout_for_update(
        self, db: AsyncSession, payout_id: str
    ) -> PayoutRequest | None: ...

    async def lock_vendor(self, db: AsyncSession, vendor_id: str) -> None: ...

    async def mark_approved(
        self,
        db: AsyncSession,
        payout_id: str,
        expected_version: int,
        approved_amount: int,
        decided_by: str,
    ) -> PayoutRequest | None: ...

    async def mark_rejected(
        self,
        db: AsyncSession,
        payout_id: str,
        expected_version: int,
        reason: str,
        decided_by: str,
    ) -> PayoutRequest | None: ...

    async def list_payouts(
        self,
        db: AsyncSession,
        status: str | None,
        vendor_id: str | None,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[PayoutRequest]: ...

    async def sum_pending_requests(self, db: AsyncSession, vendor_id: str) -> int: ...

    async def pending_totals_by_vendor(self, db: AsyncSession) -> dict[str, int]: ...

    async def status_totals(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> list[PayoutStatusTotals]: ...


class HoldRepositoryProtocol(Protocol):
    async def get_hold_for_update(self, db: AsyncSession, hold_id: str) -> PayoutHold | None: ...

    async def list_active_holds(
        self, db: AsyncSession, vendor_id: str, for_update: bool = False
    ) -> list[PayoutHold]: ...

    async def list_holds(
        self, db: AsyncSession, vendor_id: str | None, status: str | None
    ) -> list[PayoutHold]: ...

    async def active_totals_by_vendor(self, db: AsyncSession) -> dict[str, int]: ...

    async def insert_hold(self, db: AsyncSession, hold: PayoutHold) -> PayoutHold: ...

    async def mark_released(
        self, db: AsyncSession, hold_id: str, released_by: str | None
    ) -> PayoutHold | None: ...

    async def list_releasable_holds_for_update(
        self, db: AsyncSession, refund_id: str
    ) -> list[PayoutHold]: ...

    async def reduce_hold(
        self, db: AsyncSession, hold_id: str, hold_amount: int
    ) -> PayoutHold | None: ...
