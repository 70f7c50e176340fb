"""Fixed-shares valuation model.

A club's total share count is constant; price moves only with market cap:

    share_price = market_cap / total_shares   (rounded half-up to the cent)

Every chargeable amount is computed once, in cents, at execution time
(price_cents * quantity), so wallet debits and market-cap credits match
exactly and repeated trades accumulate no rounding drift.
"""

from decimal import ROUND_HALF_UP, Decimal

from config.settings import settings
from src.cs_common.cents import div_round_half_up

DEFAULT_SHARE_PRICE_CENTS: int = settings.DEFAULT_SHARE_PRICE_CENTS


def share_price_cents(
    market_cap_cents: int,
    total_shares: int,
    default_price_cents: int = DEFAULT_SHARE_PRICE_CENTS,
) -> int:
    """Price per share in cents; ``default_price_cents`` when there are no shares."""
    if total_shares <= 0:
        return default_price_cents
    return div_round_half_up(market_cap_cents, total_shares)


def trade_amount_cents(price_cents: int, quantity: int) -> int:
    return price_cents * quantity


def profit_loss_cents(current_cents: int, purchase_cents: int) -> int:
    return current_cents - purchase_cents


def percent_change(current: int, purchase: int) -> float:
    """Percent change from ``purchase`` to ``current``, 2 decimals; 0 with no base."""
    if purchase <= 0:
        return 0.0
    return round((current - purchase) / purchase * 100, 2)


def average_cost_cents(total_invested_cents: int, quantity: int) -> int:
    if quantity <= 0:
        return 0
    return div_round_half_up(total_invested_cents, quantity)


def proportional_cost_cents(total_invested_cents: int, held: int, sold: int) -> int:
    """Cost basis leaving the position when ``sold`` of ``held`` shares are sold.

    Selling the whole position removes the whole basis, so a closed position
    never keeps a rounding residue.
    """
    if held <= 0 or sold <= 0:
        return 0
    if sold >= held:
        return total_invested_cents
    return div_round_half_up(total_invested_cents * sold, held)


def portfolio_percentage(item_value_cents: int, total_value_cents: int) -> float:
    if total_value_cents <= 0:
        return 0.0
    return round(item_value_cents / total_value_cents * 100, 2)


def share_price_impact_cents(
    market_cap_after_cents: int,
    market_cap_before_cents: int,
    total_shares: int,
) -> int:
    """Per-share price move caused by a market-cap change."""
    return share_price_cents(market_cap_after_cents, total_shares) - share_price_cents(
        market_cap_before_cents, total_shares
    )


_RETURN_FLOOR = Decimal("-0.99")
_RETURN_CEILING = Decimal("10")
_RETURN_QUANTUM = Decimal("0.000001")


def period_return(start_value_cents: int, end_value_cents: int, funding_cents: int) -> float:
    """Fractional return over a period, net of money paid in during it.

    ``(end - start - funding) / (start + funding)``, clamped to [-0.99, 10]
    and rounded half-up to six places. No capital, or a period with only
    deposits and no gain or loss, returns 0.
    """
    denominator = start_value_cents + funding_cents
    if denominator <= 0:
        return 0.0
    numerator = end_value_cents - start_value_cents - funding_cents
    if numerator == 0:
        return 0.0
    ratio = Decimal(numerator) / Decimal(denominator)
    ratio = min(max(ratio, _RETURN_FLOOR), _RETURN_CEILING)
    return float(ratio.quantize(_RETURN_QUANTUM, rounding=ROUND_HALF_UP))
