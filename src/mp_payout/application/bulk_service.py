"""BulkActionCoordinator: sequential bulk approve/reject.

Each payout is decided in its own transaction through the single-item
service, so one failure never rolls back or blocks the others. Bulk approve
never applies a hold-reduced amount: those payouts are reported as
ConfirmationRequiredError and left PENDING for individual review.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.errors import AppError, ConfirmationRequiredError
from src.mp_payout.application.schemas import BulkActionResult, BulkItemResult
from src.mp_payout.application.service import PayoutApprovalService

logger = logging.getLogger(__name__)


def _unique(payout_ids: list[str]) -> list[str]:
    return list(dict.fromkeys(payout_ids))


def _failure(payout_id: str, exc: AppError) -> BulkItemResult:
    return BulkItemResult(
        payout_id=payout_id, success=False, error_code=exc.code, error=exc.message
    )


def _summarize(items: list[BulkItemResult]) -> BulkActionResult:
    success_count = sum(1 for item in items if item.success)
    return BulkActionResult(
        success_count=success_count,
        error_count=len(items) - success_count,
        items=items,
    )


class BulkActionCoordinator:
    def __init__(self, payout_service: PayoutApprovalService | None = None) -> None:
        self._payouts = payout_service or PayoutApprovalService()

    async def bulk_approve(
        self, db: AsyncSession, payout_ids: list[str], admin_id: str
    ) -> BulkActionResult:
        items: list[BulkItemResult] = []
        for payout_id in _unique(payout_ids):
            try:
                outcome = await self._payouts.approve_with_holds(db, payout_id, admin_id)
                if outcome.requires_confirmation:
                    raise ConfirmationRequiredError(
                        payout_id, outcome.requested_amount_kobo, outcome.adjusted_amount_kobo
                    )
            except AppError as exc:
                items.append(_failure(payout_id, exc))
                continue
            items.append(BulkItemResult(payout_id=payout_id, success=True))

        result = _summarize(items)
        logger.info(
            "Bulk approve finished: admin=%s success=%d errors=%d",
            admin_id,
            result.success_count,
            result.error_count,
        )
        return result

    async def bulk_reject(
        self,
        db: AsyncSession,
        payout_ids: list[str],
        admin_id: str,
        reason: str | None = None,
    ) -> BulkActionResult:
        items: list[BulkItemResult] = []
        for payout_id in _unique(payout_ids):
            try:
                await self._payouts.reject_payout(db, payout_id, admin_id, reason)
            except AppError as exc:
                items.append(_failure(payout_id, exc))
                continue
            items.append(BulkItemResult(payout_id=payout_id, success=True))

        result = _summarize(items)
        logger.info(
            "Bulk reject finished: admin=%s success=%d errors=%d",
            admin_id,
            result.success_count,
            result.error_count,
        )
        return result
