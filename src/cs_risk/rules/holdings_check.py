from src.cs_common.errors import InsufficientSharesError, NoPositionError, SharesUnavailableError


def check_holdings(club_id: int, quantity: int, held_quantity: int) -> None:
    """SELL side: the user must hold at least ``quantity`` shares of the club."""
    if held_quantity <= 0:
        raise NoPositionError(club_id)
    if quantity > held_quantity:
        raise InsufficientSharesError(quantity, held_quantity)


def check_inventory(quantity: int, available_shares: int) -> None:
    """BUY side: the platform must still have ``quantity`` shares to sell."""
    if quantity > available_shares:
        raise SharesUnavailableError(quantity, available_shares)
