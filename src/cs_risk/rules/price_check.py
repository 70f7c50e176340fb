from src.cs_common.errors import InvalidPriceError, PriceChangedError


def check_price_positive(price_cents: int) -> None:
    """Raise InvalidPriceError (1002) for a zero or negative share price."""
    if price_cents <= 0:
        raise InvalidPriceError(price_cents)


def check_price_tolerance(
    expected_cents: int | None, actual_cents: int, tolerance_cents: int
) -> None:
    """Reject when the price the user was shown has since moved beyond tolerance.

    ``expected_cents`` is only a guard; the trade always executes at
    ``actual_cents``, the price derived from the freshly locked market cap.
    """
    if expected_cents is None:
        return
    if abs(expected_cents - actual_cents) > tolerance_cents:
        raise PriceChangedError(expected_cents, actual_cents)
