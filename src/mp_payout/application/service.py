"""PayoutApprovalService: the hold-aware approval gate and payout reads.

Every decision runs read-compute-write inside one `unit_of_work`:

  1. SELECT payout FOR UPDATE          (row lock, status check)
  2. pg_advisory_xact_lock(vendor)     (serializes hold creation vs approval)
  3. SELECT active holds FOR UPDATE
  4. adjusted = max(0, request - holds)
  5. UPDATE ... WHERE status='PENDING' AND version=:v

Vendor notifications are sent only after the transaction commits.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import PayoutStatus, RiskLevel
from src.mp_common.errors import (
    AmountExceedsAvailableError,
    InvalidReportRangeError,
    PayoutNotFoundError,
    PayoutNotPendingError,
    ZeroBalanceError,
)
from src.mp_common.kobo import kobo_to_display
from src.mp_common.transaction import read_only, unit_of_work
from src.mp_notification.application.service import NotificationService
from src.mp_payout.application.schemas import (
    ApprovalOutcome,
    ApprovalPreview,
    HoldItem,
    PayoutDecision,
    PayoutItem,
    PayoutListResponse,
    PayoutReport,
    RefundImpactOut,
    StatusTotalOut,
    cursor_decode,
    cursor_encode,
)
from src.mp_payout.domain.balance import (
    build_refund_impact,
    compute_available_for_payout,
    sum_active_holds,
)
from src.mp_payout.domain.models import PayoutHold, PayoutRequest, RefundImpact
from src.mp_payout.domain.repository import HoldRepositoryProtocol, PayoutRepositoryProtocol
from src.mp_payout.infrastructure.persistence import HoldRepository, PayoutRepository
from src.mp_refund.domain.models import RefundExposure
from src.mp_refund.domain.repository import RefundRepositoryProtocol
from src.mp_refund.infrastructure.persistence import RefundRepository

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "Rejected by admin"

_RISK_ORDER = {RiskLevel.HIGH: 0, RiskLevel.MEDIUM: 1, RiskLevel.LOW: 2}


def _resolve_approved_amount(
    payout: PayoutRequest, adjusted: int, confirmed_amount: int | None
) -> int | None:
    """Amount to approve, or None when the admin still has to confirm a reduction."""
    if confirmed_amount is None:
        return payout.request_amount if adjusted == payout.request_amount else None
    if confirmed_amount <= 0 or confirmed_amount > adjusted:
        raise AmountExceedsAvailableError(confirmed_amount, adjusted)
    return confirmed_amount


class PayoutApprovalService:
    def __init__(
        self,
        payout_repo: PayoutRepositoryProtocol | None = None,
        hold_repo: HoldRepositoryProtocol | None = None,
        refund_repo: RefundRepositoryProtocol | None = None,
        notifier: NotificationService | None = None,
    ) -> None:
        self._payouts: PayoutRepositoryProtocol = payout_repo or PayoutRepository()
        self._holds: HoldRepositoryProtocol = hold_repo or HoldRepository()
        self._refunds: RefundRepositoryProtocol = refund_repo or RefundRepository()
        self._notifier = notifier or NotificationService()

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def approve_with_holds(
        self,
        db: AsyncSession,
        payout_id: str,
        admin_id: str,
        confirmed_amount: int | None = None,
    ) -> ApprovalOutcome:
        approved: PayoutRequest | None = None
        async with unit_of_work(db, "approve payout", payout_id):
            payout = await self._lock_pending_payout(db, payout_id)
            await self._payouts.lock_vendor(db, payout.vendor_id)
            holds = await self._holds.list_active_holds(db, payout.vendor_id, for_update=True)
            hold_amount = sum_active_holds(holds)
            adjusted = compute_available_for_payout(payout.request_amount, hold_amount)

            if adjusted == 0:
                logger.info(
                    "Approval blocked, zero balance: payout=%s hold=%d", payout_id, hold_amount
                )
                raise ZeroBalanceError(payout_id, hold_amount)

            amount = _resolve_approved_amount(payout, adjusted, confirmed_amount)
            if amount is not None:
                approved = await self._payouts.mark_approved(
                    db, payout_id, payout.version, amount, admin_id
                )
                if approved is None:
                    raise PayoutNotPendingError(payout_id, payout.status)

        outcome = ApprovalOutcome(
            payout_id=payout_id,
            status=PayoutStatus.PENDING.value,
            requested_amount_kobo=payout.request_amount,
            hold_amount_kobo=hold_amount,
            adjusted_amount_kobo=adjusted,
            adjusted_amount_display=kobo_to_display(adjusted),
            requires_confirmation=approved is None,
        )
        if approved is None:
            logger.info(
                "Approval needs confirmation: payout=%s requested=%d adjusted=%d",
                payout_id,
                payout.request_amount,
                adjusted,
            )
            return outcome

        logger.info(
            "Payout approved: payout=%s vendor=%s amount=%d by=%s",
            payout_id,
            approved.vendor_id,
            approved.approved_amount,
            admin_id,
        )
        await self._notifier.payout_approved(approved)
        return outcome.model_copy(
            update={
                "status": approved.status,
                "approved_amount_kobo": approved.approved_amount,
                "approved_amount_display": kobo_to_display(approved.approved_amount or 0),
            }
        )

    async def approve_payout(
        self,
        db: AsyncSession,
        payout_id: str,
        admin_id: str,
        amount: int | None = None,
    ) -> ApprovalOutcome:
        """Admin action entry point; `amount` confirms a hold-reduced payout."""
        return await self.approve_with_holds(db, payout_id, admin_id, confirmed_amount=amount)

    async def reject_payout(
        self,
        db: AsyncSession,
        payout_id: str,
        admin_id: str,
        reason: str | None = None,
    ) -> PayoutDecision:
        reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
        async with unit_of_work(db, "reject payout", payout_id):
            payout = await self._lock_pending_payout(db, payout_id)
            rejected = await self._payouts.mark_rejected(
                db, payout_id, payout.version, reason, admin_id
            )
            if rejected is None:
                raise PayoutNotPendingError(payout_id, payout.status)

        logger.info("Payout rejected: payout=%s by=%s reason=%s", payout_id, admin_id, reason)
        await self._notifier.payout_rejected(rejected)
        return PayoutDecision(
            payout_id=rejected.id,
            status=rejected.status,
            rejection_reason=rejected.rejection_reason,
            decided_by=rejected.decided_by,
        )

    async def _lock_pending_payout(self, db: AsyncSession, payout_id: str) -> PayoutRequest:
        payout = await self._payouts.get_payout_for_update(db, payout_id)
        if payout is None:
            raise PayoutNotFoundError(payout_id)
        if not payout.is_pending:
            raise PayoutNotPendingError(payout_id, payout.status)
        return payout

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def preview_approval(self, db: AsyncSession, payout_id: str) -> ApprovalPreview:
        payout, holds, exposure = await read_only(
            "preview payout approval", self._load_preview(db, payout_id)
        )
        hold_amount = sum_active_holds(holds)
        impact = build_refund_impact(payout.vendor_id, payout.request_amount, exposure, hold_amount)
        adjusted = impact.available_for_payout
        return ApprovalPreview(
            payout=PayoutItem.from_domain(payout),
            impact=RefundImpactOut.from_domain(impact),
            active_holds=[HoldItem.from_domain(h) for h in holds],
            adjusted_amount_kobo=adjusted,
            adjusted_amount_display=kobo_to_display(adjusted),
            requires_confirmation=0 < adjusted < payout.request_amount,
            zero_balance=adjusted == 0,
        )

    async def _load_preview(
        self, db: AsyncSession, payout_id: str
    ) -> tuple[PayoutRequest, list[PayoutHold], RefundExposure]:
        payout = await self._payouts.get_payout(db, payout_id)
        if payout is None:
            raise PayoutNotFoundError(payout_id)
        if not payout.is_pending:
            raise PayoutNotPendingError(payout_id, payout.status)
        holds = await self._holds.list_active_holds(db, payout.vendor_id)
        exposure = await self._refunds.get_exposure(db, payout.vendor_id)
        return payout, holds, exposure

    async def get_vendor_available_balance(
        self, db: AsyncSession, vendor_id: str
    ) -> RefundImpactOut:
        """Vendor's pending payout total net of active holds, with refund risk."""
        impact = await read_only(
            "read vendor available balance", self._vendor_impact(db, vendor_id)
        )
        return RefundImpactOut.from_domain(impact)

    async def _vendor_impact(self, db: AsyncSession, vendor_id: str) -> RefundImpact:
        requested = await self._payouts.sum_pending_requests(db, vendor_id)
        holds = await self._holds.list_active_holds(db, vendor_id)
        exposure = await self._refunds.get_exposure(db, vendor_id)
        return build_refund_impact(vendor_id, requested, exposure, sum_active_holds(holds))

    async def list_refund_impact(self, db: AsyncSession) -> list[RefundImpactOut]:
        impacts = await read_only("read refund impact", self._all_impacts(db))
        impacts.sort(key=lambda i: (_RISK_ORDER[i.risk_level], i.vendor_id))
        return [RefundImpactOut.from_domain(i) for i in impacts]

    async def _all_impacts(self, db: AsyncSession) -> list[RefundImpact]:
        pending = await self._payouts.pending_totals_by_vendor(db)
        holds = await self._holds.active_totals_by_vendor(db)
        exposures = await self._refunds.exposure_by_vendor(db)
        vendor_ids = set(pending) | set(holds) | set(exposures)
        return [
            build_refund_impact(
                vendor_id,
                pending.get(vendor_id, 0),
                exposures.get(vendor_id, RefundExposure(vendor_id=vendor_id)),
                holds.get(vendor_id, 0),
            )
            for vendor_id in vendor_ids
        ]

    async def list_payouts(
        self,
        db: AsyncSession,
        status: str | None,
        vendor_id: str | None,
        cursor: str | None,
        limit: int,
    ) -> PayoutListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        payouts = await read_only(
            "list payouts",
            self._payouts.list_payouts(db, status, vendor_id, cursor_ts, cursor_id, limit + 1),
        )
        has_more = len(payouts) > limit
        page = payouts[:limit]
        next_cursor = cursor_encode(page[-1]) if has_more and page else None
        return PayoutListResponse(
            items=[PayoutItem.from_domain(p) for p in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def payout_report(
        self, db: AsyncSession, start: datetime, end: datetime
    ) -> PayoutReport:
        if start > end:
            raise InvalidReportRangeError(start.isoformat(), end.isoformat())
        totals = await read_only(
            "build payout report", self._payouts.status_totals(db, start, end)
        )
        total_approved = sum(t.approved_amount for t in totals)
        return PayoutReport(
            start=start.isoformat(),
            end=end.isoformat(),
            total_count=sum(t.count for t in totals),
            total_requested_kobo=sum(t.amount for t in totals),
            total_approved_kobo=total_approved,
            total_approved_display=kobo_to_display(total_approved),
            by_status=[StatusTotalOut.from_domain(t) for t in totals],
        )
