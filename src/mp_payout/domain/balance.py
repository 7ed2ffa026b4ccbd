"""Balance calculation: pure functions over kobo integers.

available_for_payout = max(0, requested - active holds)

A vendor's ACTIVE holds never exceed its PENDING refund exposure; when a
refund resolves, `plan_exposure_trim` restores that bound.
"""

from collections.abc import Iterable

from src.mp_common.kobo import validate_amount
from src.mp_payout.domain.models import PayoutHold, RefundImpact
from src.mp_payout.domain.risk import classify_risk
from src.mp_refund.domain.models import RefundExposure


def compute_available_for_payout(request_amount: int, active_hold_amount: int) -> int:
    validate_amount(request_amount, "request_amount")
    validate_amount(active_hold_amount, "active_hold_amount")
    return max(0, request_amount - active_hold_amount)


def sum_active_holds(holds: Iterable[PayoutHold]) -> int:
    """Total of ACTIVE holds; released holds never reduce a balance."""
    return sum(h.hold_amount for h in holds if h.is_active)


def build_refund_impact(
    vendor_id: str,
    requested_amount: int,
    exposure: RefundExposure,
    hold_amount: int,
) -> RefundImpact:
    return RefundImpact(
        vendor_id=vendor_id,
        requested_amount=requested_amount,
        pending_refunds=exposure.pending_count,
        pending_refund_amount=exposure.pending_amount,
        hold_amount=hold_amount,
        available_for_payout=compute_available_for_payout(requested_amount, hold_amount),
        risk_level=classify_risk(
            exposure.pending_count, exposure.pending_amount, requested_amount
        ),
    )


def plan_exposure_trim(
    holds: list[PayoutHold], pending_exposure: int
) -> list[tuple[PayoutHold, int]]:
    """Reductions that bring a vendor's ACTIVE holds back within exposure.

    `holds` is in creation order; the newest holds give way first. Returns
    (hold, new_amount) pairs, where a new amount of 0 means release.
    """
    validate_amount(pending_exposure, "pending_exposure")
    excess = sum_active_holds(holds) - pending_exposure
    plan: list[tuple[PayoutHold, int]] = []
    for hold in reversed(holds):
        if excess <= 0:
            break
        if not hold.is_active or hold.hold_amount == 0:
            continue
        cut = min(hold.hold_amount, excess)
        plan.append((hold, hold.hold_amount - cut))
        excess -= cut
    return plan
