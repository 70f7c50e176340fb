from src.cs_common.errors import QuantityOutOfRangeError


def check_order_quantity(quantity: int, max_quantity: int) -> None:
    """Raise QuantityOutOfRangeError (1001) unless quantity is an int in [1, max_quantity]."""
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise QuantityOutOfRangeError(quantity, max_quantity)
    if not (1 <= quantity <= max_quantity):
        raise QuantityOutOfRangeError(quantity, max_quantity)
