"""Unit tests for BulkActionCoordinator."""

from dataclasses import replace
from unittest.mock import AsyncMock

from src.mp_common.enums import PayoutStatus
from src.mp_common.errors import PayoutNotFoundError, PayoutNotPendingError, ZeroBalanceError
from src.mp_payout.application.bulk_service import BulkActionCoordinator
from src.mp_payout.application.schemas import ApprovalOutcome, PayoutDecision
from src.mp_payout.application.service import PayoutApprovalService
from src.mp_payout.domain.models import PayoutRequest


def _outcome(payout_id: str, requested: int = 10_000, adjusted: int = 10_000) -> ApprovalOutcome:
    reduced = adjusted < requested
    return ApprovalOutcome(
        payout_id=payout_id,
        status="PENDING" if reduced else "APPROVED",
        requested_amount_kobo=requested,
        hold_amount_kobo=requested - adjusted,
        adjusted_amount_kobo=adjusted,
        adjusted_amount_display="",
        approved_amount_kobo=None if reduced else adjusted,
        requires_confirmation=reduced,
    )


class TestBulkApprove:
    async def test_one_invalid_id_does_not_block_others(self) -> None:
        payouts = AsyncMock()

        async def approve(db, payout_id, admin_id):  # type: ignore[no-untyped-def]
            if payout_id == "PO-BAD":
                raise PayoutNotFoundError(payout_id)
            return _outcome(payout_id)

        payouts.approve_with_holds.side_effect = approve
        coordinator = BulkActionCoordinator(payout_service=payouts)

        result = await coordinator.bulk_approve(AsyncMock(), ["PO-1", "PO-BAD", "PO-2"], "admin-1")

        assert result.success_count == 2
        assert result.error_count == 1
        assert [i.payout_id for i in result.items] == ["PO-1", "PO-BAD", "PO-2"]
        bad = result.items[1]
        assert bad.success is False
        assert bad.error_code == 2001
        assert "PO-BAD" in (bad.error or "")
        assert payouts.approve_with_holds.await_count == 3

    async def test_hold_reduced_payout_needs_single_review(self) -> None:
        payouts = AsyncMock()
        payouts.approve_with_holds.return_value = _outcome("PO-1", requested=10_000, adjusted=5_000)
        coordinator = BulkActionCoordinator(payout_service=payouts)

        result = await coordinator.bulk_approve(AsyncMock(), ["PO-1"], "admin-1")

        assert result.success_count == 0
        assert result.items[0].error_code == 2004
        # bulk never passes a confirmed amount
        call = payouts.approve_with_holds.await_args
        assert call.args[1:] == ("PO-1", "admin-1")
        assert call.kwargs == {}

    async def test_zero_balance_reported(self) -> None:
        payouts = AsyncMock()
        payouts.approve_with_holds.side_effect = ZeroBalanceError("PO-1", 1_000)
        coordinator = BulkActionCoordinator(payout_service=payouts)

        result = await coordinator.bulk_approve(AsyncMock(), ["PO-1"], "admin-1")

        assert result.error_count == 1
        assert result.items[0].error_code == 2003

    async def test_duplicates_processed_once(self) -> None:
        payouts = AsyncMock()
        payouts.approve_with_holds.side_effect = lambda db, pid, admin: _outcome(pid)
        coordinator = BulkActionCoordinator(payout_service=payouts)

        result = await coordinator.bulk_approve(AsyncMock(), ["PO-1", "PO-1", "PO-2"], "admin-1")

        assert result.success_count == 2
        assert payouts.approve_with_holds.await_count == 2


class TestBulkReject:
    async def test_mixed_results(self) -> None:
        payouts = AsyncMock()

        async def reject(db, payout_id, admin_id, reason):  # type: ignore[no-untyped-def]
            if payout_id == "PO-DONE":
                raise PayoutNotPendingError(payout_id, "APPROVED")
            return PayoutDecision(
                payout_id=payout_id, status="REJECTED", rejection_reason=reason, decided_by=admin_id
            )

        payouts.reject_payout.side_effect = reject
        coordinator = BulkActionCoordinator(payout_service=payouts)
        db = AsyncMock()

        result = await coordinator.bulk_reject(db, ["PO-1", "PO-DONE"], "admin-1", "Fraud review")

        assert result.success_count == 1
        assert result.error_count == 1
        assert result.items[1].error_code == 2002
        payouts.reject_payout.assert_any_await(db, "PO-1", "admin-1", "Fraud review")


class TestBulkApproveTransitions:
    """Bulk approve driven through the real approval gate with mocked repositories."""

    @staticmethod
    def _pending(payout_id: str) -> PayoutRequest:
        return PayoutRequest(
            id=payout_id,
            vendor_id="V-1",
            request_amount=10_000,
            status=PayoutStatus.PENDING.value,
            version=0,
        )

    async def test_valid_payouts_become_approved(self) -> None:
        payouts = {"PO-V1": self._pending("PO-V1"), "PO-V2": self._pending("PO-V2")}

        async def approve(db, payout_id, expected_version, approved_amount, decided_by):  # type: ignore[no-untyped-def]
            approved = replace(
                payouts[payout_id],
                status=PayoutStatus.APPROVED.value,
                version=expected_version + 1,
                approved_amount=approved_amount,
                decided_by=decided_by,
            )
            payouts[payout_id] = approved
            return approved

        payout_repo = AsyncMock()
        payout_repo.get_payout_for_update.side_effect = lambda db, pid: payouts.get(pid)
        payout_repo.mark_approved.side_effect = approve
        hold_repo = AsyncMock()
        hold_repo.list_active_holds.return_value = []
        service = PayoutApprovalService(
            payout_repo=payout_repo,
            hold_repo=hold_repo,
            refund_repo=AsyncMock(),
            notifier=AsyncMock(),
        )
        coordinator = BulkActionCoordinator(payout_service=service)
        db = AsyncMock()

        result = await coordinator.bulk_approve(db, ["PO-V1", "PO-BAD", "PO-V2"], "admin-1")

        assert result.success_count == 2
        assert result.error_count == 1
        assert result.items[1].error_code == 2001
        approved_ids = [c.args[1] for c in payout_repo.mark_approved.await_args_list]
        assert approved_ids == ["PO-V1", "PO-V2"]
        assert payouts["PO-V1"].status == PayoutStatus.APPROVED.value
        assert payouts["PO-V2"].status == PayoutStatus.APPROVED.value
        assert payouts["PO-V1"].approved_amount == 10_000
        # one transaction per payout, the failed one rolled back
        assert db.commit.await_count == 2
        assert db.rollback.await_count == 1
