"""Tests for the balance calculator and refund impact assembly."""

import pytest

from src.mp_common.enums import HoldStatus, RiskLevel
from src.mp_payout.domain.balance import (
    build_refund_impact,
    compute_available_for_payout,
    plan_exposure_trim,
    sum_active_holds,
)
from src.mp_payout.domain.models import PayoutHold
from src.mp_refund.domain.models import RefundExposure


def _make_hold(amount: int, status: str = HoldStatus.ACTIVE.value, hold_id: str = "HLD-1") -> PayoutHold:
    return PayoutHold(
        id=hold_id, vendor_id="V-1", hold_amount=amount, reason="refund", status=status
    )


class TestComputeAvailableForPayout:
    def test_no_holds(self) -> None:
        assert compute_available_for_payout(10_000, 0) == 10_000

    def test_partial_hold(self) -> None:
        assert compute_available_for_payout(10_000, 5_000) == 5_000

    def test_hold_equal_to_request(self) -> None:
        assert compute_available_for_payout(1_000, 1_000) == 0

    def test_hold_above_request_floors_at_zero(self) -> None:
        assert compute_available_for_payout(1_000, 2_500) == 0

    def test_never_negative(self) -> None:
        for request in [0, 1, 999, 10_000]:
            for hold in [0, 1, 500, 10_000, 50_000]:
                assert compute_available_for_payout(request, hold) >= 0

    def test_monotone_in_hold_amount(self) -> None:
        results = [compute_available_for_payout(10_000, hold) for hold in range(0, 15_000, 250)]
        assert all(a >= b for a, b in zip(results, results[1:]))

    def test_negative_inputs_raise(self) -> None:
        with pytest.raises(ValueError):
            compute_available_for_payout(-1, 0)
        with pytest.raises(ValueError):
            compute_available_for_payout(100, -1)


class TestSumActiveHolds:
    def test_ignores_released(self) -> None:
        holds = [
            _make_hold(3_000, hold_id="HLD-1"),
            _make_hold(2_000, hold_id="HLD-2"),
            _make_hold(9_999, HoldStatus.RELEASED.value, hold_id="HLD-3"),
        ]
        assert sum_active_holds(holds) == 5_000

    def test_empty(self) -> None:
        assert sum_active_holds([]) == 0


class TestBuildRefundImpact:
    def test_assembles_view(self) -> None:
        exposure = RefundExposure(vendor_id="V-1", pending_count=3, pending_amount=2_000)
        impact = build_refund_impact("V-1", 10_000, exposure, 1_500)

        assert impact.vendor_id == "V-1"
        assert impact.requested_amount == 10_000
        assert impact.pending_refunds == 3
        assert impact.pending_refund_amount == 2_000
        assert impact.hold_amount == 1_500
        assert impact.available_for_payout == 8_500
        assert impact.risk_level == RiskLevel.MEDIUM

    def test_no_exposure_is_low_risk(self) -> None:
        impact = build_refund_impact("V-2", 10_000, RefundExposure(vendor_id="V-2"), 0)
        assert impact.available_for_payout == 10_000
        assert impact.risk_level == RiskLevel.LOW


class TestPlanExposureTrim:
    def test_within_exposure_needs_nothing(self) -> None:
        holds = [_make_hold(3_000, hold_id="HLD-1"), _make_hold(2_000, hold_id="HLD-2")]
        assert plan_exposure_trim(holds, 5_000) == []

    def test_newest_hold_reduced_first(self) -> None:
        older = _make_hold(3_000, hold_id="HLD-1")
        newer = _make_hold(2_000, hold_id="HLD-2")

        plan = plan_exposure_trim([older, newer], 4_000)

        assert [(h.id, amount) for h, amount in plan] == [("HLD-2", 1_000)]

    def test_excess_spills_into_older_holds(self) -> None:
        older = _make_hold(3_000, hold_id="HLD-1")
        newer = _make_hold(2_000, hold_id="HLD-2")

        plan = plan_exposure_trim([older, newer], 1_000)

        assert [(h.id, amount) for h, amount in plan] == [("HLD-2", 0), ("HLD-1", 1_000)]

    def test_no_exposure_releases_everything(self) -> None:
        holds = [_make_hold(3_000, hold_id="HLD-1"), _make_hold(2_000, hold_id="HLD-2")]

        plan = plan_exposure_trim(holds, 0)

        assert all(amount == 0 for _, amount in plan)
        assert len(plan) == 2

    def test_result_fits_exposure(self) -> None:
        holds = [_make_hold(a, hold_id=f"HLD-{a}") for a in (700, 1_300, 2_100, 50)]
        for exposure in [0, 1, 999, 2_000, 4_150, 9_000]:
            plan = {h.id: amount for h, amount in plan_exposure_trim(holds, exposure)}
            total = sum(plan.get(h.id, h.hold_amount) for h in holds)
            assert total == min(sum_active_holds(holds), exposure)

    def test_released_holds_untouched(self) -> None:
        released = _make_hold(5_000, status=HoldStatus.RELEASED.value, hold_id="HLD-9")
        active = _make_hold(2_000, hold_id="HLD-1")

        plan = plan_exposure_trim([active, released], 1_500)

        assert [(h.id, amount) for h, amount in plan] == [("HLD-1", 1_500)]
