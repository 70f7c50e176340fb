from src.cs_common.errors import InsufficientFundsError
from src.cs_valuation.domain.pricing import trade_amount_cents


def check_funds(price_cents: int, quantity: int, wallet_balance_cents: int) -> int:
    """Return the purchase amount, or raise InsufficientFundsError (2001).

    Uses the same cent arithmetic the executor charges with.
    """
    amount = trade_amount_cents(price_cents, quantity)
    if amount > wallet_balance_cents:
        raise InsufficientFundsError(amount, wallet_balance_cents)
    return amount
