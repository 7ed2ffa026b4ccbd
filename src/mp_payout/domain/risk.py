"""Refund risk classification for a vendor's pending payout.

Thresholds are fixed business rules:
  HIGH   : more than 5 pending refunds, or pending refunds > 30% of the request
  MEDIUM : more than 2 pending refunds, or pending refunds > 10% of the request
  LOW    : otherwise

Percentages are compared in integer arithmetic (amount * 10 > request * 3)
so boundaries are exact: 300 of 1000 is not above 30%.
"""

from src.mp_common.enums import RiskLevel
from src.mp_common.kobo import validate_amount

HIGH_RISK_COUNT = 5
MEDIUM_RISK_COUNT = 2
# Ratios as (numerator, denominator): 3/10 = 30%, 1/10 = 10%
HIGH_RISK_RATIO = (3, 10)
MEDIUM_RISK_RATIO = (1, 10)


def _exceeds(amount: int, request_amount: int, ratio: tuple[int, int]) -> bool:
    numerator, denominator = ratio
    return amount * denominator > request_amount * numerator


def classify_risk(
    pending_refund_count: int, pending_refund_amount: int, request_amount: int
) -> RiskLevel:
    if pending_refund_count < 0:
        raise ValueError(f"pending_refund_count must be >= 0, got {pending_refund_count}")
    validate_amount(pending_refund_amount, "pending_refund_amount")
    validate_amount(request_amount, "request_amount")

    if request_amount == 0:
        # Any outstanding refund exposure against an empty request is unbounded
        if pending_refund_amount > 0 or pending_refund_count > HIGH_RISK_COUNT:
            return RiskLevel.HIGH
        if pending_refund_count > MEDIUM_RISK_COUNT:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW

    if pending_refund_count > HIGH_RISK_COUNT or _exceeds(
        pending_refund_amount, request_amount, HIGH_RISK_RATIO
    ):
        return RiskLevel.HIGH
    if pending_refund_count > MEDIUM_RISK_COUNT or _exceeds(
        pending_refund_amount, request_amount, MEDIUM_RISK_RATIO
    ):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
