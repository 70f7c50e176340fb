"""Domain models for cs_settlement."""

from dataclasses import dataclass
from datetime import datetime

from src.cs_common.enums import FixtureStatus, MatchResult


@dataclass
class Fixture:
    id: int
    home_club_id: int
    away_club_id: int
    kickoff_at: datetime
    buy_close_at: datetime
    result: str = MatchResult.PENDING
    status: str = FixtureStatus.PENDING
    home_score: int | None = None
    away_score: int | None = None
    applied_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_applied(self) -> bool:
        return self.status == FixtureStatus.APPLIED


@dataclass(frozen=True)
class Settlement:
    """What one applied fixture did to the two clubs' market caps."""

    fixture_id: int
    outcome: str                     # MatchResult value, never PENDING
    home_club_id: int
    away_club_id: int
    home_cap_before: int
    home_cap_after: int
    away_cap_before: int
    away_cap_after: int
    transfer_amount: int             # cents actually moved (0 for a draw)
    winner_club_id: int | None = None
    loser_club_id: int | None = None
    applied_at: datetime | None = None

    @property
    def winner_new_cap(self) -> int | None:
        if self.winner_club_id is None:
            return None
        return self.home_cap_after if self.winner_club_id == self.home_club_id else self.away_cap_after

    @property
    def loser_new_cap(self) -> int | None:
        if self.loser_club_id is None:
            return None
        return self.home_cap_after if self.loser_club_id == self.home_club_id else self.away_cap_after


@dataclass(frozen=True)
class SettlementOutcome:
    settlement: Settlement
    already_applied: bool = False

    @property
    def outcome(self) -> str:
        return self.settlement.outcome

    @property
    def transfer_amount(self) -> int:
        return self.settlement.transfer_amount

    @property
    def winner_new_cap(self) -> int | None:
        return self.settlement.winner_new_cap

    @property
    def loser_new_cap(self) -> int | None:
        return self.settlement.loser_new_cap
