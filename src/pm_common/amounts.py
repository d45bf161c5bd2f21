"""Float helpers for play-money amounts, share quantities and probabilities.

Balances and pool reserves are floats. Comparisons go through a small
tolerance so that repeated CPMM arithmetic never leaves dust positions.
"""

EPSILON = 1e-9


def is_zero(value: float) -> bool:
    return abs(value) < EPSILON


def at_least(value: float, required: float) -> bool:
    """True when value covers required, allowing rounding dust."""
    return value + EPSILON >= required


def to_display(amount: float) -> str:
    """Convert an amount to a display string: 6500.5 -> '$6,500.50', -12 -> '-$12.00'."""
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def to_percent(probability: float) -> str:
    """0.6543 -> '65.4%'."""
    return f"{probability * 100:.1f}%"
