"""Domain models for cs_trading."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TradeRequest:
    user_id: str
    club_id: int
    side: str                                # OrderSide value
    quantity: int
    expected_price_cents: int | None = None  # price the user was shown, if any


@dataclass
class Order:
    """Immutable audit record of one filled trade."""

    id: int
    user_id: str
    club_id: int
    side: str
    quantity: int
    price_per_share: int       # cents, authoritative price at execution
    total_amount: int          # cents
    status: str
    market_cap_before: int
    market_cap_after: int
    position_quantity_after: int
    executed_at: datetime | None = None


@dataclass(frozen=True)
class TradeResult:
    order_id: int
    side: str
    quantity: int
    price_per_share: int
    total_amount: int
    wallet_balance: int
    market_cap: int
    share_price_after: int
    position_quantity: int
