"""Integer arithmetic utilities for cents-based money.

All prices, amounts, balances and market caps use int (cents). No float, no Decimal.
"""


def div_round_half_up(numerator: int, denominator: int) -> int:
    """Integer division rounded half away from zero: 5/2 -> 3, -5/2 -> -3."""
    if denominator <= 0:
        raise ValueError(f"denominator must be positive, got {denominator}")
    if numerator < 0:
        return -div_round_half_up(-numerator, denominator)
    return (2 * numerator + denominator) // (2 * denominator)


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"


def apply_bps(amount: int, rate_bps: int) -> int:
    """Floor of amount * rate_bps / 10000; the payer never gives more than the rate."""
    if amount <= 0 or rate_bps <= 0:
        return 0
    return (amount * rate_bps) // 10000
