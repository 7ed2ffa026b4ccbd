"""Global enums: must match DB CHECK constraints exactly."""

from enum import Enum


class PayoutStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class HoldStatus(str, Enum):
    ACTIVE = "ACTIVE"
    RELEASED = "RELEASED"


class RefundStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    VENDOR = "VENDOR"
    CUSTOMER = "CUSTOMER"


class NotificationType(str, Enum):
    PAYOUT_PROCESSED = "PAYOUT_PROCESSED"
    PAYOUT_FAILED = "PAYOUT_FAILED"
    PAYOUT_ON_HOLD = "PAYOUT_ON_HOLD"
    PAYOUT_HOLD_RELEASED = "PAYOUT_HOLD_RELEASED"
