"""Domain models for cs_leaderboard."""

from dataclasses import dataclass
from enum import Enum


class RankBy(str, Enum):
    ACCOUNT_VALUE = "account_value"
    RETURN = "return"


@dataclass(frozen=True)
class Holding:
    user_id: str
    club_id: int
    quantity: int


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    user_id: str
    cash: int                   # cents
    portfolio_value: int        # cents, open shares at the current price
    start_value: int            # cents, cash + portfolio when the period opened
    funding: int                # cents, net deposits and credit loans in the period
    period_return: float        # fraction, not percent

    @property
    def account_value(self) -> int:
        return self.cash + self.portfolio_value
