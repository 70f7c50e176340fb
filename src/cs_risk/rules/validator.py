"""Trade Validator — composes the individual rules in a fixed order.

Runs twice per trade: once against the caller's snapshot (cheap early
rejection) and again inside the executor against the freshly locked state.
"""

from src.cs_risk.rules.balance_check import check_funds
from src.cs_risk.rules.holdings_check import check_holdings, check_inventory
from src.cs_risk.rules.limits import TradingRules
from src.cs_risk.rules.order_limit import check_order_quantity
from src.cs_risk.rules.price_check import check_price_positive, check_price_tolerance
from src.cs_risk.rules.trading_window import check_trading_window


def validate_buy(
    *,
    club_id: int,
    quantity: int,
    price_cents: int,
    wallet_balance_cents: int,
    available_shares: int,
    window_open: bool,
    rules: TradingRules,
    expected_price_cents: int | None = None,
) -> int:
    """Validate a purchase and return the amount to charge in cents."""
    check_order_quantity(quantity, rules.max_order_quantity)
    check_price_positive(price_cents)
    check_price_tolerance(expected_price_cents, price_cents, rules.price_tolerance_cents)
    if rules.trading_window_enabled:
        check_trading_window(club_id, window_open)
    check_inventory(quantity, available_shares)
    return check_funds(price_cents, quantity, wallet_balance_cents)


def validate_sell(
    *,
    club_id: int,
    quantity: int,
    price_cents: int,
    held_quantity: int,
    window_open: bool,
    rules: TradingRules,
    expected_price_cents: int | None = None,
) -> None:
    check_order_quantity(quantity, rules.max_order_quantity)
    check_price_positive(price_cents)
    check_price_tolerance(expected_price_cents, price_cents, rules.price_tolerance_cents)
    if rules.trading_window_enabled:
        check_trading_window(club_id, window_open)
    check_holdings(club_id, quantity, held_quantity)
