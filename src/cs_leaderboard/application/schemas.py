"""Pydantic schemas for cs_leaderboard API."""

from pydantic import BaseModel

from src.cs_common.cents import cents_to_display
from src.cs_leaderboard.domain.models import LeaderboardEntry


class LeaderboardItem(BaseModel):
    rank: int
    user_id: str
    cash_cents: int
    portfolio_value_cents: int
    account_value_cents: int
    account_value_display: str
    start_account_value_cents: int
    funding_cents: int
    period_return: float

    @classmethod
    def from_entry(cls, entry: LeaderboardEntry) -> "LeaderboardItem":
        return cls(
            rank=entry.rank,
            user_id=entry.user_id,
            cash_cents=entry.cash,
            portfolio_value_cents=entry.portfolio_value,
            account_value_cents=entry.account_value,
            account_value_display=cents_to_display(entry.account_value),
            start_account_value_cents=entry.start_value,
            funding_cents=entry.funding,
            period_return=entry.period_return,
        )


class LeaderboardResponse(BaseModel):
    since: str
    order_by: str
    total: int
    items: list[LeaderboardItem]
