"""TradeExecutor against the in-memory store.

Covers the happy paths, every rejection (which must leave the store exactly
as it was), conservation of shares and money, concurrent trades and the
retry / failure mapping.
"""

import asyncio
import copy
from dataclasses import replace
from datetime import timedelta

import pytest

from src.cs_account.domain.models import Position
from src.cs_common.errors import (
    ClubNotFoundError,
    ConflictError,
    InsufficientFundsError,
    InsufficientSharesError,
    InvalidSideError,
    MarketCapFloorError,
    NoPositionError,
    PersistenceFailureError,
    PriceChangedError,
    QuantityOutOfRangeError,
    SharesUnavailableError,
    WindowClosedError,
)
from src.cs_common.locks import club_key
from src.cs_risk.rules.limits import TradingRules
from src.cs_trading.domain.models import TradeRequest
from src.cs_trading.engine.executor import TradeExecutor
from tests.fakes import (
    T0,
    FakeSession,
    db_error,
    seed_club,
    seed_fixture,
    seed_wallet,
)


def buy(club_id: int, quantity: int, user: str = "u1", **kw) -> TradeRequest:  # type: ignore[no-untyped-def]
    return TradeRequest(user_id=user, club_id=club_id, side="BUY", quantity=quantity, **kw)


def sell(club_id: int, quantity: int, user: str = "u1", **kw) -> TradeRequest:  # type: ignore[no-untyped-def]
    return TradeRequest(user_id=user, club_id=club_id, side="SELL", quantity=quantity, **kw)


def hold(store, user: str, club_id: int, quantity: int, invested: int) -> None:  # type: ignore[no-untyped-def]
    store.committed.positions[(user, club_id)] = Position(
        user_id=user, club_id=club_id, quantity=quantity, total_invested=invested
    )
    club = store.committed.clubs[club_id]
    store.committed.clubs[club_id] = replace(
        club, available_shares=club.available_shares - quantity
    )


@pytest.fixture
def club(store):  # type: ignore[no-untyped-def]
    return seed_club(store, "Rovers", 500_000)


class TestBuyThenSell:
    @pytest.mark.asyncio
    async def test_price_rises_with_a_win_then_sell(
        self, store, session, executor, engine, clock, club, publisher
    ) -> None:
        rival = seed_club(store, "United", 450_000)
        seed_wallet(store, "u1", 100_000)
        fixture = seed_fixture(store, club, rival, buy_close_at=T0 + timedelta(hours=1))

        bought = await executor.execute_trade(session, buy(club.id, 10))
        assert bought.price_per_share == 500
        assert bought.total_amount == 5000
        assert bought.wallet_balance == 95_000
        assert bought.market_cap == 505_000
        assert bought.share_price_after == 505
        assert bought.position_quantity == 10

        store.committed.fixtures[fixture.id] = replace(
            store.committed.fixtures[fixture.id], result="HOME_WIN", home_score=2, away_score=0
        )
        clock.now = T0 + timedelta(hours=3)
        settled = await engine.apply_fixture_result(session, fixture.id)
        assert settled.transfer_amount == 45_000
        assert store.committed.clubs[club.id].market_cap == 550_000

        sold = await executor.execute_trade(session, sell(club.id, 10))
        assert sold.price_per_share == 550
        assert sold.total_amount == 5500
        assert sold.wallet_balance == 100_500
        assert sold.market_cap == 544_500
        assert sold.position_quantity == 0

        position = store.committed.positions[("u1", club.id)]
        assert position.quantity == 0
        assert position.total_invested == 0
        assert position.realized_pnl == 500
        assert store.committed.clubs[club.id].available_shares == 1000
        assert len(publisher.of_type("order_filled")) == 2

    @pytest.mark.asyncio
    async def test_buy_writes_every_record(self, store, session, executor, club) -> None:
        seed_wallet(store, "u1", 10_000)
        result = await executor.execute_trade(session, buy(club.id, 10))
        state = store.committed

        assert state.clubs[club.id].available_shares == 990
        assert state.wallets["u1"].balance == 5000

        (order,) = state.orders
        assert order.id == result.order_id
        assert (order.side, order.quantity, order.price_per_share) == ("BUY", 10, 500)
        assert (order.market_cap_before, order.market_cap_after) == (500_000, 505_000)
        assert order.status == "FILLED"

        (tx,) = state.transactions
        assert (tx.tx_type, tx.amount, tx.balance_after) == ("PURCHASE", -5000, 5000)
        assert tx.reference == f"order:{order.id}"

        (entry,) = state.ledger
        assert entry.entry_type == "SHARE_PURCHASE"
        assert (entry.share_price_before, entry.share_price_after) == (500, 505)
        assert entry.reference_id == str(order.id)

    @pytest.mark.asyncio
    async def test_partial_sell_uses_proportional_cost(
        self, store, session, executor, club
    ) -> None:
        seed_wallet(store, "u1", 10_000)
        await executor.execute_trade(session, buy(club.id, 10))
        result = await executor.execute_trade(session, sell(club.id, 4))

        assert result.price_per_share == 505
        position = store.committed.positions[("u1", club.id)]
        assert position.quantity == 6
        assert position.total_invested == 3000
        assert position.realized_pnl == 4 * 505 - 2000

    @pytest.mark.asyncio
    async def test_sell_without_wallet_creates_one(self, store, session, executor, club) -> None:
        hold(store, "u2", club.id, 5, 2500)
        result = await executor.execute_trade(session, sell(club.id, 5, user="u2"))
        assert result.wallet_balance == 2500
        assert store.committed.wallets["u2"].balance == 2500

    @pytest.mark.asyncio
    async def test_events_follow_commit(self, session, store, executor, club, publisher) -> None:
        seed_wallet(store, "u1", 10_000)
        result = await executor.execute_trade(session, buy(club.id, 2))
        types = [e.event_type for e in publisher.events]
        assert types == ["market_cap_changed", "order_filled", "wallet_changed"]
        cap_event = publisher.events[0]
        assert cap_event.market_cap_cents == result.market_cap  # type: ignore[attr-defined]


class TestRejections:
    @pytest.fixture(autouse=True)
    def funded(self, store, club):  # type: ignore[no-untyped-def]
        seed_wallet(store, "u1", 4999)

    async def _assert_rejected(self, store, session, executor, publisher, request, error) -> None:  # type: ignore[no-untyped-def]
        before = copy.deepcopy(store.committed)
        with pytest.raises(error):
            await executor.execute_trade(session, request)
        assert store.committed == before
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, store, session, executor, publisher, club) -> None:
        await self._assert_rejected(
            store, session, executor, publisher, buy(club.id, 10), InsufficientFundsError
        )

    @pytest.mark.asyncio
    async def test_no_wallet(self, store, session, executor, publisher, club) -> None:
        await self._assert_rejected(
            store, session, executor, publisher, buy(club.id, 1, user="nobody"),
            InsufficientFundsError,
        )

    @pytest.mark.asyncio
    async def test_sell_without_position(self, store, session, executor, publisher, club) -> None:
        await self._assert_rejected(
            store, session, executor, publisher, sell(club.id, 1), NoPositionError
        )

    @pytest.mark.asyncio
    async def test_sell_more_than_held(self, store, session, executor, publisher, club) -> None:
        hold(store, "u1", club.id, 3, 1500)
        await self._assert_rejected(
            store, session, executor, publisher, sell(club.id, 4), InsufficientSharesError
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("side", ["HOLD", "buy", ""])
    async def test_invalid_side(self, store, session, executor, publisher, club, side) -> None:
        request = TradeRequest(user_id="u1", club_id=club.id, side=side, quantity=1)
        await self._assert_rejected(
            store, session, executor, publisher, request, InvalidSideError
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -1, 10_001])
    async def test_quantity_out_of_range(
        self, store, session, executor, publisher, club, quantity
    ) -> None:
        await self._assert_rejected(
            store, session, executor, publisher, buy(club.id, quantity), QuantityOutOfRangeError
        )

    @pytest.mark.asyncio
    async def test_unknown_club(self, store, session, executor, publisher) -> None:
        await self._assert_rejected(
            store, session, executor, publisher, buy(999, 1), ClubNotFoundError
        )

    @pytest.mark.asyncio
    async def test_stale_price(self, store, session, executor, publisher, club) -> None:
        await self._assert_rejected(
            store, session, executor, publisher,
            buy(club.id, 1, expected_price_cents=480), PriceChangedError,
        )

    @pytest.mark.asyncio
    async def test_platform_out_of_shares(self, store, session, executor, publisher) -> None:
        scarce = seed_club(store, "Scarce", 500_000, available_shares=0)
        await self._assert_rejected(
            store, session, executor, publisher, buy(scarce.id, 1), SharesUnavailableError
        )

    @pytest.mark.asyncio
    async def test_window_closed(self, store, session, executor, publisher, club) -> None:
        rival = seed_club(store, "United", 450_000)
        seed_fixture(store, club, rival, buy_close_at=T0 - timedelta(minutes=1))
        hold(store, "u1", club.id, 3, 1500)
        await self._assert_rejected(
            store, session, executor, publisher, buy(club.id, 1), WindowClosedError
        )
        await self._assert_rejected(
            store, session, executor, publisher, sell(club.id, 1), WindowClosedError
        )

    @pytest.mark.asyncio
    async def test_sale_below_floor(self, store, session, executor, publisher) -> None:
        small = seed_club(store, "Small", 6000)
        hold(store, "u1", small.id, 900, 5400)
        # 900 shares at 6 cents would take the cap from 6000 to 600
        await self._assert_rejected(
            store, session, executor, publisher, sell(small.id, 900), MarketCapFloorError
        )
        result = await executor.execute_trade(session, sell(small.id, 800))
        assert result.market_cap == 1200


class TestWithinTolerance:
    @pytest.mark.asyncio
    async def test_executes_at_authoritative_price(self, store, session, executor, club) -> None:
        seed_wallet(store, "u1", 10_000)
        result = await executor.execute_trade(session, buy(club.id, 1, expected_price_cents=501))
        assert result.price_per_share == 500


class TestConservation:
    @pytest.mark.asyncio
    async def test_shares_and_money_are_conserved(self, store, executor, club) -> None:
        users = ["a", "b", "c"]
        for user in users:
            seed_wallet(store, user, 50_000)
        session = FakeSession(store)
        script = [
            buy(club.id, 10, "a"), buy(club.id, 7, "b"), sell(club.id, 3, "a"),
            buy(club.id, 20, "c"), sell(club.id, 7, "b"), sell(club.id, 5, "c"),
        ]
        for request in script:
            await executor.execute_trade(session, request)

        state = store.committed
        held = sum(p.quantity for p in state.positions.values())
        assert state.clubs[club.id].available_shares + held == 1000

        cash_out = sum(50_000 - state.wallets[u].balance for u in users)
        assert state.clubs[club.id].market_cap - 500_000 == cash_out
        assert all(w.balance >= 0 for w in state.wallets.values())

        for order in state.orders:
            assert order.total_amount == order.price_per_share * order.quantity


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_parallel_buyers_serialize_on_the_club(self, store, executor, club) -> None:
        users = [f"user{i}" for i in range(5)]
        for user in users:
            seed_wallet(store, user, 10_000)

        results = await asyncio.gather(
            *(executor.execute_trade(FakeSession(store), buy(club.id, 1, u)) for u in users)
        )

        state = store.committed
        assert state.clubs[club.id].market_cap == 500_000 + sum(r.total_amount for r in results)
        assert state.clubs[club.id].available_shares == 995
        assert len(state.orders) == 5
        # each buyer pays the price left behind by the one before it
        prices = sorted(r.price_per_share for r in results)
        assert prices == [500, 501, 501, 502, 502]
        assert state.orders[0].market_cap_before == 500_000
        for before, after in zip(state.orders, state.orders[1:]):
            assert after.market_cap_before == before.market_cap_after
        assert state.orders[-1].market_cap_after == state.clubs[club.id].market_cap

    @pytest.mark.asyncio
    async def test_oversubscribed_inventory(self, store, executor) -> None:
        scarce = seed_club(store, "Scarce", 500_000, available_shares=3)
        users = [f"user{i}" for i in range(5)]
        for user in users:
            seed_wallet(store, user, 10_000)

        outcomes = await asyncio.gather(
            *(executor.execute_trade(FakeSession(store), buy(scarce.id, 1, u)) for u in users),
            return_exceptions=True,
        )

        failures = [o for o in outcomes if isinstance(o, Exception)]
        assert len(failures) == 2
        assert all(isinstance(f, SharesUnavailableError) for f in failures)
        assert store.committed.clubs[scarce.id].available_shares == 0

    @pytest.mark.asyncio
    async def test_double_sell_cannot_oversell(self, store, executor, club) -> None:
        seed_wallet(store, "u1", 0)
        hold(store, "u1", club.id, 10, 5000)

        outcomes = await asyncio.gather(
            executor.execute_trade(FakeSession(store), sell(club.id, 7)),
            executor.execute_trade(FakeSession(store), sell(club.id, 7)),
            return_exceptions=True,
        )

        assert sum(isinstance(o, InsufficientSharesError) for o in outcomes) == 1
        assert store.committed.positions[("u1", club.id)].quantity == 3


class TestFailures:
    @pytest.fixture(autouse=True)
    def funded(self, store, club):  # type: ignore[no-untyped-def]
        seed_wallet(store, "u1", 10_000)

    @pytest.mark.asyncio
    async def test_contention_is_retried(self, store, session, executor, club) -> None:
        session.commit_failures = [db_error("40001")]
        result = await executor.execute_trade(session, buy(club.id, 2))
        assert result.market_cap == 501_000
        assert len(store.committed.orders) == 1
        assert store.committed.wallets["u1"].balance == 9000

    @pytest.mark.asyncio
    async def test_contention_outlasting_retries(
        self, store, session, executor, publisher, club
    ) -> None:
        before = copy.deepcopy(store.committed)
        session.commit_failures = [db_error("40P01") for _ in range(3)]
        with pytest.raises(ConflictError):
            await executor.execute_trade(session, buy(club.id, 2))
        assert store.committed == before
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_store_failure(self, store, session, executor, publisher, club) -> None:
        before = copy.deepcopy(store.committed)
        session.commit_failures = [db_error("XX000")]
        with pytest.raises(PersistenceFailureError):
            await executor.execute_trade(session, buy(club.id, 2))
        assert store.committed == before
        assert publisher.events == []

    @pytest.mark.asyncio
    async def test_lock_wait_timeout(
        self, store, session, club_repo, account_repo, order_repo, fixture_repo, publisher,
        locks, club,
    ) -> None:
        executor = TradeExecutor(
            club_repo=club_repo,
            account_repo=account_repo,
            order_repo=order_repo,
            fixture_repo=fixture_repo,
            publisher=publisher,
            locks=locks,
            rules=TradingRules(lock_timeout_seconds=0.05),
            retry_backoff_seconds=0,
        )
        async with locks.acquire(club_key(club.id), timeout=1):
            with pytest.raises(ConflictError):
                await executor.execute_trade(session, buy(club.id, 1))
        assert store.committed.orders == []
