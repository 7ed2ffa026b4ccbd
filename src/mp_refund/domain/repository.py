"""Repository Protocol for refund reads/writes used by the payout core."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_refund.domain.models import RefundExposure, RefundRequest


class RefundRepositoryProtocol(Protocol):
    async def get_refund_for_update(
        self, db: AsyncSession, refund_id: str
    ) -> RefundRequest | None: ...

    async def get_refunds_by_ids(
        self, db: AsyncSession, refund_ids: list[str]
    ) -> list[RefundRequest]: ...

    async def list_refunds(
        self, db: AsyncSession, vendor_id: str | None, status: str | None
    ) -> list[RefundRequest]: ...

    async def get_exposure(self, db: AsyncSession, vendor_id: str) -> RefundExposure: ...

    async def exposure_by_vendor(self, db: AsyncSession) -> dict[str, RefundExposure]: ...

    async def mark_resolved(
        self, db: AsyncSession, refund_id: str, status: str
    ) -> RefundRequest | None: ...
