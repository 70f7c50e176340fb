"""Match-result market-cap transfer — pure integer arithmetic.

A decisive result moves ``TRANSFER_RATE`` of the loser's cap to the winner,
clamped so the loser never drops below the market-cap floor. The winner only
receives what the loser actually gave up, so the pair's combined cap is
conserved to the cent. A draw moves nothing.
"""

from dataclasses import dataclass

from src.cs_common.cents import apply_bps
from src.cs_common.enums import MatchResult
from src.cs_settlement.domain.models import Fixture, Settlement


@dataclass(frozen=True)
class MarketCapTransfer:
    transfer_amount: int
    winner_new_cap: int
    loser_new_cap: int


def compute_transfer(
    winner_cap: int, loser_cap: int, rate_bps: int, min_cap: int
) -> MarketCapTransfer:
    if loser_cap <= min_cap:
        # Nothing can be extracted from a club already at the floor.
        return MarketCapTransfer(0, winner_cap, loser_cap)
    naive = apply_bps(loser_cap, rate_bps)
    loser_new = max(loser_cap - naive, min_cap)
    actual = loser_cap - loser_new
    return MarketCapTransfer(actual, winner_cap + actual, loser_new)


def outcome_from_score(home_score: int, away_score: int) -> MatchResult:
    if home_score > away_score:
        return MatchResult.HOME_WIN
    if away_score > home_score:
        return MatchResult.AWAY_WIN
    return MatchResult.DRAW


def settle_fixture(
    fixture: Fixture,
    home_cap: int,
    away_cap: int,
    *,
    rate_bps: int,
    min_cap: int,
) -> Settlement:
    """Compute the settlement of a finished fixture from the clubs' current caps."""
    outcome = MatchResult(fixture.result)
    if outcome == MatchResult.PENDING:
        raise ValueError(f"fixture {fixture.id} has no result")

    if outcome == MatchResult.DRAW:
        return Settlement(
            fixture_id=fixture.id,
            outcome=outcome.value,
            home_club_id=fixture.home_club_id,
            away_club_id=fixture.away_club_id,
            home_cap_before=home_cap,
            home_cap_after=home_cap,
            away_cap_before=away_cap,
            away_cap_after=away_cap,
            transfer_amount=0,
        )

    home_won = outcome == MatchResult.HOME_WIN
    winner_cap, loser_cap = (home_cap, away_cap) if home_won else (away_cap, home_cap)
    move = compute_transfer(winner_cap, loser_cap, rate_bps, min_cap)
    if home_won:
        home_after, away_after = move.winner_new_cap, move.loser_new_cap
        winner_id, loser_id = fixture.home_club_id, fixture.away_club_id
    else:
        home_after, away_after = move.loser_new_cap, move.winner_new_cap
        winner_id, loser_id = fixture.away_club_id, fixture.home_club_id

    return Settlement(
        fixture_id=fixture.id,
        outcome=outcome.value,
        home_club_id=fixture.home_club_id,
        away_club_id=fixture.away_club_id,
        home_cap_before=home_cap,
        home_cap_after=home_after,
        away_cap_before=away_cap,
        away_cap_after=away_after,
        transfer_amount=move.transfer_amount,
        winner_club_id=winner_id,
        loser_club_id=loser_id,
    )
