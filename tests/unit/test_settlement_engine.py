"""SettlementEngine against the in-memory store."""

import asyncio
import copy
from datetime import timedelta

import pytest

from src.cs_common.errors import (
    ConflictError,
    FixtureAlreadyAppliedError,
    FixtureNotFinishedError,
    FixtureNotFoundError,
)
from src.cs_risk.rules.limits import TradingRules
from src.cs_settlement.engine.settlement_engine import SettlementEngine
from tests.fakes import T0, FakeSession, db_error, seed_club, seed_fixture


def finished(store, home_cap: int, away_cap: int, result: str, score=(1, 0)):  # type: ignore[no-untyped-def]
    home = seed_club(store, "Home FC", home_cap)
    away = seed_club(store, "Away FC", away_cap)
    fixture = seed_fixture(
        store,
        home,
        away,
        buy_close_at=T0 - timedelta(hours=2),
        result=result,
        home_score=score[0],
        away_score=score[1],
    )
    return home, away, fixture


class TestApply:
    @pytest.mark.asyncio
    async def test_home_win_moves_ten_percent(self, store, session, engine, publisher) -> None:
        home, away, fixture = finished(store, 500_000, 300_000, "HOME_WIN")

        outcome = await engine.apply_fixture_result(session, fixture.id)

        assert outcome.already_applied is False
        assert outcome.outcome == "HOME_WIN"
        assert outcome.transfer_amount == 30_000
        assert outcome.winner_new_cap == 530_000
        assert outcome.loser_new_cap == 270_000
        state = store.committed
        assert state.clubs[home.id].market_cap == 530_000
        assert state.clubs[away.id].market_cap == 270_000
        assert state.fixtures[fixture.id].status == "APPLIED"
        assert state.fixtures[fixture.id].applied_at == T0
        assert state.settlements[fixture.id].transfer_amount == 30_000

        entries = {e.club_id: e for e in state.ledger}
        assert entries[home.id].entry_type == "MATCH_WIN"
        assert entries[away.id].entry_type == "MATCH_LOSS"
        assert entries[away.id].share_price_after == 270

        caps = {e.club_id: e.market_cap_cents for e in publisher.of_type("market_cap_changed")}  # type: ignore[attr-defined]
        assert caps == {home.id: 530_000, away.id: 270_000}

    @pytest.mark.asyncio
    async def test_away_win(self, store, session, engine) -> None:
        home, away, fixture = finished(store, 500_000, 300_000, "AWAY_WIN", score=(0, 2))
        outcome = await engine.apply_fixture_result(session, fixture.id)
        assert outcome.transfer_amount == 50_000
        assert store.committed.clubs[away.id].market_cap == 350_000
        assert store.committed.clubs[home.id].market_cap == 450_000

    @pytest.mark.asyncio
    async def test_draw_changes_no_cap(self, store, session, engine, publisher) -> None:
        home, away, fixture = finished(store, 500_000, 300_000, "DRAW", score=(1, 1))

        outcome = await engine.apply_fixture_result(session, fixture.id)

        assert outcome.transfer_amount == 0
        assert outcome.winner_new_cap is None
        state = store.committed
        assert state.clubs[home.id].market_cap == 500_000
        assert state.clubs[away.id].market_cap == 300_000
        assert state.fixtures[fixture.id].status == "APPLIED"
        assert {e.entry_type for e in state.ledger} == {"MATCH_DRAW"}
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_loser_is_clamped_at_floor(self, store, session, engine) -> None:
        home, away, fixture = finished(store, 500_000, 1050, "HOME_WIN")
        outcome = await engine.apply_fixture_result(session, fixture.id)
        assert outcome.transfer_amount == 50
        assert store.committed.clubs[away.id].market_cap == 1000
        assert store.committed.clubs[home.id].market_cap == 500_050

    @pytest.mark.asyncio
    async def test_configured_floor_below_the_default(
        self, store, session, club_repo, fixture_repo, publisher, locks, clock
    ) -> None:
        engine = SettlementEngine(
            club_repo=club_repo,
            fixture_repo=fixture_repo,
            publisher=publisher,
            locks=locks,
            rules=TradingRules(min_market_cap_cents=100, lock_timeout_seconds=1.0),
            clock=clock,
            retry_backoff_seconds=0,
        )
        home, away, fixture = finished(store, 500_000, 1050, "HOME_WIN")
        outcome = await engine.apply_fixture_result(session, fixture.id)
        assert outcome.transfer_amount == 105
        assert store.committed.clubs[away.id].market_cap == 945
        assert store.committed.clubs[home.id].market_cap == 501_050

    @pytest.mark.asyncio
    async def test_total_cap_conserved(self, store, session, engine) -> None:
        home, away, fixture = finished(store, 123_457, 98_765, "AWAY_WIN")
        await engine.apply_fixture_result(session, fixture.id)
        clubs = store.committed.clubs
        assert clubs[home.id].market_cap + clubs[away.id].market_cap == 123_457 + 98_765


class TestIdempotence:
    @pytest.mark.asyncio
    async def test_second_apply_is_a_no_op(self, store, session, engine, publisher) -> None:
        home, _, fixture = finished(store, 500_000, 300_000, "HOME_WIN")
        first = await engine.apply_fixture_result(session, fixture.id)
        snapshot = copy.deepcopy(store.committed)
        published = len(publisher.events)

        again = await engine.apply_fixture_result(session, fixture.id)

        assert again.already_applied is True
        assert again.transfer_amount == first.transfer_amount
        assert store.committed == snapshot
        assert len(publisher.events) == published
        assert store.committed.clubs[home.id].market_cap == 530_000

    @pytest.mark.asyncio
    async def test_strict_second_apply_raises(self, store, session, engine) -> None:
        _, _, fixture = finished(store, 500_000, 300_000, "HOME_WIN")
        await engine.apply_fixture_result(session, fixture.id)
        with pytest.raises(FixtureAlreadyAppliedError):
            await engine.apply_fixture_result(session, fixture.id, strict=True)

    @pytest.mark.asyncio
    async def test_concurrent_applies_transfer_once(self, store, engine) -> None:
        home, away, fixture = finished(store, 500_000, 300_000, "HOME_WIN")

        outcomes = await asyncio.gather(
            *(engine.apply_fixture_result(FakeSession(store), fixture.id) for _ in range(4))
        )

        assert sum(not o.already_applied for o in outcomes) == 1
        assert store.committed.clubs[home.id].market_cap == 530_000
        assert store.committed.clubs[away.id].market_cap == 270_000


class TestRejections:
    @pytest.mark.asyncio
    async def test_unknown_fixture(self, session, engine) -> None:
        with pytest.raises(FixtureNotFoundError):
            await engine.apply_fixture_result(session, 404)

    @pytest.mark.asyncio
    async def test_no_result_yet(self, store, session, engine) -> None:
        _, _, fixture = finished(store, 500_000, 300_000, "PENDING", score=(None, None))
        before = copy.deepcopy(store.committed)
        with pytest.raises(FixtureNotFinishedError):
            await engine.apply_fixture_result(session, fixture.id)
        assert store.committed == before

    @pytest.mark.asyncio
    async def test_contention_outlasting_retries(self, store, session, engine) -> None:
        _, _, fixture = finished(store, 500_000, 300_000, "HOME_WIN")
        before = copy.deepcopy(store.committed)
        session.commit_failures = [db_error("55P03") for _ in range(3)]
        with pytest.raises(ConflictError):
            await engine.apply_fixture_result(session, fixture.id)
        assert store.committed == before

    @pytest.mark.asyncio
    async def test_retry_then_success_applies_once(self, store, session, engine) -> None:
        home, _, fixture = finished(store, 500_000, 300_000, "HOME_WIN")
        session.commit_failures = [db_error("40001")]
        outcome = await engine.apply_fixture_result(session, fixture.id)
        assert outcome.already_applied is False
        assert store.committed.clubs[home.id].market_cap == 530_000
