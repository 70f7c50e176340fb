"""Pydantic schemas for cs_settlement (fixtures) API."""

from datetime import datetime

from pydantic import BaseModel, Field

from src.cs_common.cents import cents_to_display
from src.cs_settlement.domain.models import Fixture, SettlementOutcome

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ScheduleFixtureRequest(BaseModel):
    home_club_id: int
    away_club_id: int
    kickoff_at: datetime
    buy_close_at: datetime | None = Field(
        None, description="Defaults to a configured number of minutes before kickoff"
    )


class RecordResultRequest(BaseModel):
    home_score: int = Field(..., ge=0)
    away_score: int = Field(..., ge=0)
    apply: bool = Field(True, description="Apply the market-cap settlement immediately")


class ApplyResultRequest(BaseModel):
    strict: bool = Field(False, description="Fail instead of no-op when already applied")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class FixtureItem(BaseModel):
    id: int
    home_club_id: int
    away_club_id: int
    kickoff_at: str
    buy_close_at: str
    result: str
    status: str
    home_score: int | None
    away_score: int | None
    applied_at: str | None

    @classmethod
    def from_domain(cls, fixture: Fixture) -> "FixtureItem":
        return cls(
            id=fixture.id,
            home_club_id=fixture.home_club_id,
            away_club_id=fixture.away_club_id,
            kickoff_at=fixture.kickoff_at.isoformat(),
            buy_close_at=fixture.buy_close_at.isoformat(),
            result=fixture.result,
            status=fixture.status,
            home_score=fixture.home_score,
            away_score=fixture.away_score,
            applied_at=fixture.applied_at.isoformat() if fixture.applied_at else None,
        )


class FixtureListResponse(BaseModel):
    items: list[FixtureItem]


class SettlementResponse(BaseModel):
    fixture_id: int
    outcome: str
    already_applied: bool
    transfer_amount_cents: int
    transfer_amount_display: str
    winner_club_id: int | None
    loser_club_id: int | None
    winner_new_cap_cents: int | None
    loser_new_cap_cents: int | None
    home_cap_before_cents: int
    home_cap_after_cents: int
    away_cap_before_cents: int
    away_cap_after_cents: int

    @classmethod
    def from_outcome(cls, result: SettlementOutcome) -> "SettlementResponse":
        s = result.settlement
        return cls(
            fixture_id=s.fixture_id,
            outcome=s.outcome,
            already_applied=result.already_applied,
            transfer_amount_cents=s.transfer_amount,
            transfer_amount_display=cents_to_display(s.transfer_amount),
            winner_club_id=s.winner_club_id,
            loser_club_id=s.loser_club_id,
            winner_new_cap_cents=s.winner_new_cap,
            loser_new_cap_cents=s.loser_new_cap,
            home_cap_before_cents=s.home_cap_before,
            home_cap_after_cents=s.home_cap_after,
            away_cap_before_cents=s.away_cap_before,
            away_cap_after_cents=s.away_cap_after,
        )


class RecordResultResponse(BaseModel):
    fixture: FixtureItem
    settlement: SettlementResponse | None
