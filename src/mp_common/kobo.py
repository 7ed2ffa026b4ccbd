"""Integer arithmetic utilities for kobo-denominated money.

All amounts, holds and balances use int (kobo, 1 NGN = 100 kobo).
No float, no Decimal.
"""


def validate_amount(amount: int, name: str = "amount") -> None:
    """Reject negative or non-integer money values."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"{name} must be an integer number of kobo, got {amount!r}")
    if amount < 0:
        raise ValueError(f"{name} must be >= 0 kobo, got {amount}")


def kobo_to_display(kobo: int) -> str:
    """Convert kobo to display string: 150000 -> '₦1,500.00', -1200 -> '-₦12.00'."""
    if kobo < 0:
        abs_kobo = -kobo
        return f"-₦{abs_kobo // 100:,}.{abs_kobo % 100:02d}"
    return f"₦{kobo // 100:,}.{kobo % 100:02d}"
