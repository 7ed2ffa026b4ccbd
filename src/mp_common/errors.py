"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Access
  2xxx: Payout
  3xxx: Payout hold
  4xxx: Refund
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class NotFoundError(AppError):
    """A referenced payout, hold or refund does not exist."""


class InvalidStateError(AppError):
    """Transition attempted from a terminal state."""


# --- 1xxx: Auth/Access ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid or expired token", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Account is disabled", 403)


class AccessDeniedError(AppError):
    def __init__(self, required_role: str) -> None:
        super().__init__(1003, f"Access denied: {required_role} role required", 403)


# --- 2xxx: Payout ---

class PayoutNotFoundError(NotFoundError):
    def __init__(self, payout_id: str) -> None:
        super().__init__(2001, f"Payout not found: {payout_id}", 404)


class PayoutNotPendingError(InvalidStateError):
    def __init__(self, payout_id: str, status: str) -> None:
        super().__init__(
            2002, f"Payout {payout_id} in status {status} can no longer be decided", 409
        )


class ZeroBalanceError(AppError):
    def __init__(self, payout_id: str, hold_amount: int) -> None:
        super().__init__(
            2003,
            f"Payout {payout_id} has nothing left to approve after "
            f"{hold_amount} kobo of active holds",
            422,
        )


class ConfirmationRequiredError(AppError):
    def __init__(self, payout_id: str, requested: int, adjusted: int) -> None:
        super().__init__(
            2004,
            f"Payout {payout_id} would be approved at {adjusted} kobo instead of "
            f"{requested} kobo; approve it individually to confirm",
            409,
        )


class AmountExceedsAvailableError(AppError):
    def __init__(self, amount: int, available: int) -> None:
        super().__init__(
            2005,
            f"Approved amount {amount} kobo must be between 1 and {available} kobo",
            422,
        )


class InvalidReportRangeError(AppError):
    def __init__(self, start: str, end: str) -> None:
        super().__init__(2006, f"Report range start {start} is after end {end}", 422)


# --- 3xxx: Payout hold ---

class HoldNotFoundError(NotFoundError):
    def __init__(self, hold_id: str) -> None:
        super().__init__(3001, f"Payout hold not found: {hold_id}", 404)


class HoldExceedsExposureError(AppError):
    def __init__(self, requested_total: int, exposure: int) -> None:
        super().__init__(
            3002,
            f"Active holds would total {requested_total} kobo, above the "
            f"pending refund exposure of {exposure} kobo",
            422,
        )


class InvalidHoldRefundsError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3003, f"Invalid refund references: {detail}", 422)


# --- 4xxx: Refund ---

class RefundNotFoundError(NotFoundError):
    def __init__(self, refund_id: str) -> None:
        super().__init__(4001, f"Refund request not found: {refund_id}", 404)


class RefundNotPendingError(InvalidStateError):
    def __init__(self, refund_id: str, status: str) -> None:
        super().__init__(4002, f"Refund {refund_id} is already {status}", 409)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class DataAccessError(AppError):
    """Store read/write failed. The transaction was rolled back; safe to retry."""

    def __init__(self, operation: str) -> None:
        super().__init__(9003, f"Failed to {operation}", 503)
