"""HoldLedgerService: the payout hold ledger.

Holds reserve part of a vendor's payouts against pending refunds. Creating a
hold takes the same vendor advisory lock as approval, so a hold and an
approval for one vendor never interleave.

Release is idempotent: releasing a RELEASED hold succeeds without writing
and without a second vendor notification.

Refund resolution takes the vendor lock too, so a hold can never be created
against a refund that is being resolved and then miss its automatic release.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import HoldStatus
from src.mp_common.errors import (
    HoldExceedsExposureError,
    HoldNotFoundError,
    InternalError,
    InvalidHoldRefundsError,
    PayoutNotFoundError,
)
from src.mp_common.id_generator import generate_id
from src.mp_common.transaction import read_only, unit_of_work
from src.mp_notification.application.service import NotificationService
from src.mp_payout.application.schemas import HoldItem, HoldReleaseResult
from src.mp_payout.domain.balance import plan_exposure_trim, sum_active_holds
from src.mp_payout.domain.models import PayoutHold
from src.mp_payout.domain.repository import HoldRepositoryProtocol, PayoutRepositoryProtocol
from src.mp_payout.infrastructure.persistence import HoldRepository, PayoutRepository
from src.mp_refund.domain.models import RefundRequest
from src.mp_refund.domain.repository import RefundRepositoryProtocol
from src.mp_refund.infrastructure.persistence import RefundRepository

logger = logging.getLogger(__name__)


def _check_refunds(
    vendor_id: str, refund_ids: list[str], refunds: list[RefundRequest]
) -> None:
    found = {r.id for r in refunds}
    missing = [rid for rid in refund_ids if rid not in found]
    if missing:
        raise InvalidHoldRefundsError(f"unknown refund ids {', '.join(missing)}")
    foreign = [r.id for r in refunds if r.vendor_id != vendor_id]
    if foreign:
        raise InvalidHoldRefundsError(
            f"refunds {', '.join(foreign)} do not belong to vendor {vendor_id}"
        )
    resolved = [r.id for r in refunds if not r.is_pending]
    if resolved:
        raise InvalidHoldRefundsError(f"refunds {', '.join(resolved)} are not pending")


class HoldLedgerService:
    def __init__(
        self,
        hold_repo: HoldRepositoryProtocol | None = None,
        payout_repo: PayoutRepositoryProtocol | None = None,
        refund_repo: RefundRepositoryProtocol | None = None,
        notifier: NotificationService | None = None,
    ) -> None:
        self._holds: HoldRepositoryProtocol = hold_repo or HoldRepository()
        self._payouts: PayoutRepositoryProtocol = payout_repo or PayoutRepository()
        self._refunds: RefundRepositoryProtocol = refund_repo or RefundRepository()
        self._notifier = notifier or NotificationService()

    async def get_active_holds(self, db: AsyncSession, vendor_id: str) -> list[HoldItem]:
        holds = await read_only(
            "read active holds", self._holds.list_active_holds(db, vendor_id)
        )
        return [HoldItem.from_domain(h) for h in holds]

    async def list_holds(
        self, db: AsyncSession, vendor_id: str | None, status: str | None
    ) -> list[HoldItem]:
        holds = await read_only("list payout holds", self._holds.list_holds(db, vendor_id, status))
        return [HoldItem.from_domain(h) for h in holds]

    async def create_hold(
        self,
        db: AsyncSession,
        vendor_id: str,
        reason: str,
        refund_request_ids: list[str],
        created_by: str,
        hold_amount: int | None = None,
        payout_id: str | None = None,
    ) -> HoldItem:
        refund_ids = list(dict.fromkeys(refund_request_ids))
        if not refund_ids:
            raise InvalidHoldRefundsError("at least one refund id is required")

        async with unit_of_work(db, "create payout hold", vendor_id):
            await self._payouts.lock_vendor(db, vendor_id)
            if payout_id is not None:
                payout = await self._payouts.get_payout(db, payout_id)
                if payout is None or payout.vendor_id != vendor_id:
                    raise PayoutNotFoundError(payout_id)

            refunds = await self._refunds.get_refunds_by_ids(db, refund_ids)
            _check_refunds(vendor_id, refund_ids, refunds)
            amount = (
                hold_amount if hold_amount is not None else sum(r.refund_amount for r in refunds)
            )

            # Active holds may never exceed what the vendor could still owe in refunds
            existing = await self._holds.list_active_holds(db, vendor_id, for_update=True)
            exposure = await self._refunds.get_exposure(db, vendor_id)
            total = sum_active_holds(existing) + amount
            if total > exposure.pending_amount:
                raise HoldExceedsExposureError(total, exposure.pending_amount)

            created = await self._holds.insert_hold(
                db,
                PayoutHold(
                    id=generate_id("HLD"),
                    vendor_id=vendor_id,
                    hold_amount=amount,
                    reason=reason,
                    status=HoldStatus.ACTIVE.value,
                    refund_request_ids=refund_ids,
                    payout_id=payout_id,
                    created_by=created_by,
                ),
            )

        logger.info(
            "Payout hold created: hold=%s vendor=%s amount=%d refunds=%s",
            created.id,
            vendor_id,
            amount,
            refund_ids,
        )
        await self._notifier.hold_created(created)
        return HoldItem.from_domain(created)

    async def release_hold(
        self, db: AsyncSession, hold_id: str, released_by: str
    ) -> HoldReleaseResult:
        async with unit_of_work(db, "release payout hold", hold_id):
            hold = await self._holds.get_hold_for_update(db, hold_id)
            if hold is None:
                raise HoldNotFoundError(hold_id)
            if not hold.is_active:
                released = hold
            else:
                released = await self._holds.mark_released(db, hold_id, released_by)
                if released is None:
                    # Row is locked FOR UPDATE above; a miss here is a bug
                    raise InternalError(f"Hold {hold_id} could not be released")

        if not hold.is_active:
            logger.info("Payout hold already released: hold=%s", hold_id)
            return HoldReleaseResult(hold=HoldItem.from_domain(released), already_released=True)

        logger.info("Payout hold released: hold=%s by=%s", hold_id, released_by)
        await self._notifier.hold_released(released)
        return HoldReleaseResult(hold=HoldItem.from_domain(released), already_released=False)

    async def lock_vendor(self, db: AsyncSession, vendor_id: str) -> None:
        """Serialize hold ledger changes for one vendor until the transaction ends."""
        await self._payouts.lock_vendor(db, vendor_id)

    async def release_resolved_holds(
        self, db: AsyncSession, refund_id: str, released_by: str | None = None
    ) -> list[PayoutHold]:
        """Release ACTIVE holds on `refund_id` whose refunds are all resolved.

        Runs inside the caller's transaction; the caller commits and then
        calls `notify_released` with the returned holds.
        """
        releasable = await self._holds.list_releasable_holds_for_update(db, refund_id)
        released: list[PayoutHold] = []
        for hold in releasable:
            updated = await self._holds.mark_released(db, hold.id, released_by)
            if updated is not None:
                released.append(updated)
        return released

    async def trim_to_exposure(
        self, db: AsyncSession, vendor_id: str, released_by: str | None = None
    ) -> list[PayoutHold]:
        """Reduce the newest ACTIVE holds until they fit the pending exposure.

        Runs inside the caller's transaction after a refund resolves. A hold
        cut to zero is released instead. Returns the updated holds.
        """
        holds = await self._holds.list_active_holds(db, vendor_id, for_update=True)
        exposure = await self._refunds.get_exposure(db, vendor_id)
        adjusted: list[PayoutHold] = []
        for hold, amount in plan_exposure_trim(holds, exposure.pending_amount):
            if amount == 0:
                updated = await self._holds.mark_released(db, hold.id, released_by)
            else:
                updated = await self._holds.reduce_hold(db, hold.id, amount)
            if updated is None:
                raise InternalError(f"Hold {hold.id} could not be trimmed")
            logger.info(
                "Payout hold trimmed to exposure: hold=%s vendor=%s %d -> %d",
                hold.id,
                vendor_id,
                hold.hold_amount,
                amount,
            )
            adjusted.append(updated)
        return adjusted

    async def notify_released(self, holds: list[PayoutHold]) -> None:
        for hold in holds:
            logger.info("Payout hold auto-released: hold=%s vendor=%s", hold.id, hold.vendor_id)
            await self._notifier.hold_released(hold)
