"""RefundService: refund listing and resolution.

Resolving a refund and adjusting the holds it affects happen in one
transaction under the vendor lock, so a balance read never sees a resolved
refund still held and a concurrent hold creation sees the final status.
Holds whose refunds are all resolved are released; the remaining ACTIVE
holds are then trimmed to the vendor's pending exposure.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import RefundNotFoundError, RefundNotPendingError
from src.mp_common.transaction import read_only, unit_of_work
from src.mp_payout.application.hold_service import HoldLedgerService
from src.mp_refund.application.schemas import RefundItem, RefundResolution
from src.mp_refund.domain.repository import RefundRepositoryProtocol
from src.mp_refund.infrastructure.persistence import RefundRepository

logger = logging.getLogger(__name__)


class RefundService:
    def __init__(
        self,
        repo: RefundRepositoryProtocol | None = None,
        hold_service: HoldLedgerService | None = None,
    ) -> None:
        self._repo: RefundRepositoryProtocol = repo or RefundRepository()
        self._hold_service = hold_service or HoldLedgerService()

    async def list_refunds(
        self, db: AsyncSession, vendor_id: str | None, status: str | None
    ) -> list[RefundItem]:
        refunds = await read_only("list refunds", self._repo.list_refunds(db, vendor_id, status))
        return [RefundItem.from_domain(r) for r in refunds]

    async def resolve_refund(
        self, db: AsyncSession, refund_id: str, status: str, admin_id: str
    ) -> RefundResolution:
        async with unit_of_work(db, "resolve refund", refund_id):
            refund = await self._repo.get_refund_for_update(db, refund_id)
            if refund is None:
                raise RefundNotFoundError(refund_id)
            if not refund.is_pending:
                raise RefundNotPendingError(refund_id, refund.status)
            await self._hold_service.lock_vendor(db, refund.vendor_id)
            resolved = await self._repo.mark_resolved(db, refund_id, status)
            if resolved is None:
                raise RefundNotPendingError(refund_id, refund.status)
            released = await self._hold_service.release_resolved_holds(db, refund_id, admin_id)
            trimmed = await self._hold_service.trim_to_exposure(db, refund.vendor_id, admin_id)

        released += [h for h in trimmed if not h.is_active]
        reduced = [h for h in trimmed if h.is_active]

        logger.info(
            "Refund resolved: refund=%s status=%s released_holds=%d reduced_holds=%d",
            refund_id,
            status,
            len(released),
            len(reduced),
        )
        await self._hold_service.notify_released(released)
        return RefundResolution(
            refund=RefundItem.from_domain(resolved),
            released_hold_ids=[h.id for h in released],
            reduced_hold_ids=[h.id for h in reduced],
        )
