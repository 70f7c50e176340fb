"""Domain models for cs_club — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.cs_valuation.domain.pricing import share_price_cents


@dataclass
class Club:
    id: int
    name: str
    market_cap: int          # cents, never below the market-cap floor
    total_shares: int        # fixed price divisor, not circulating supply
    available_shares: int    # platform inventory still for sale
    launch_price: int        # cents per share at season start
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def share_price(self) -> int:
        return share_price_cents(self.market_cap, self.total_shares)


@dataclass
class ClubLedgerEntry:
    """Append-only market-cap timeline row (one per trade or settlement leg)."""

    id: int
    club_id: int
    entry_type: str                  # ClubLedgerType value
    market_cap_before: int
    market_cap_after: int
    share_price_before: int
    share_price_after: int
    amount: int = 0                  # cents moved by the event
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
