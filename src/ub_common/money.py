"""Integer arithmetic utilities for minor-unit balances.

All balances and amounts are int (kopecks). Floats appear only in
currency-converted balance reads.
"""


def minor_to_display(amount: int) -> str:
    """Convert minor units to display string: 150050 -> '1,500.50', -1200 -> '-12.00'."""
    if amount < 0:
        abs_amount = -amount
        return f"-{abs_amount // 100:,}.{abs_amount % 100:02d}"
    return f"{amount // 100:,}.{amount % 100:02d}"


def convert(balance: int, rate: float) -> float:
    """Apply a base-to-foreign ratio to a minor-unit balance, no rounding."""
    return balance * rate
