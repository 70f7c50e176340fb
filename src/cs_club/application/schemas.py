"""Pydantic schemas for cs_club API."""

from pydantic import BaseModel, Field

from src.cs_club.domain.models import Club, ClubLedgerEntry
from src.cs_common.cents import cents_to_display
from src.cs_valuation.domain.pricing import percent_change

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateClubRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    launch_market_cap_cents: int | None = Field(
        None, description="Launch market cap in cents; configured default when omitted"
    )
    total_shares: int | None = Field(None, description="Fixed share count; default when omitted")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ClubItem(BaseModel):
    id: int
    name: str
    market_cap_cents: int
    market_cap_display: str
    share_price_cents: int
    share_price_display: str
    launch_price_cents: int
    price_change_percent: float
    total_shares: int
    available_shares: int

    @classmethod
    def from_domain(cls, club: Club) -> "ClubItem":
        price = club.share_price
        return cls(
            id=club.id,
            name=club.name,
            market_cap_cents=club.market_cap,
            market_cap_display=cents_to_display(club.market_cap),
            share_price_cents=price,
            share_price_display=cents_to_display(price),
            launch_price_cents=club.launch_price,
            price_change_percent=percent_change(price, club.launch_price),
            total_shares=club.total_shares,
            available_shares=club.available_shares,
        )


class ClubListResponse(BaseModel):
    items: list[ClubItem]


class ClubLedgerItem(BaseModel):
    id: int
    entry_type: str
    market_cap_before_cents: int
    market_cap_after_cents: int
    share_price_before_cents: int
    share_price_after_cents: int
    amount_cents: int
    amount_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str

    @classmethod
    def from_domain(cls, entry: ClubLedgerEntry) -> "ClubLedgerItem":
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            market_cap_before_cents=entry.market_cap_before,
            market_cap_after_cents=entry.market_cap_after,
            share_price_before_cents=entry.share_price_before,
            share_price_after_cents=entry.share_price_after,
            amount_cents=entry.amount,
            amount_display=cents_to_display(entry.amount),
            reference_type=entry.reference_type,
            reference_id=entry.reference_id,
            description=entry.description,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class ClubLedgerResponse(BaseModel):
    items: list[ClubLedgerItem]
    next_cursor: str | None
    has_more: bool
