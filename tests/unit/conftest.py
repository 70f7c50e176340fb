"""Unit-test fixtures: an in-memory store wired into the real engines."""

import pytest

from src.cs_common.locks import KeyedLockRegistry
from src.cs_risk.rules.limits import TradingRules
from src.cs_settlement.engine.settlement_engine import SettlementEngine
from src.cs_trading.engine.executor import TradeExecutor
from tests.fakes import (
    FakeAccountRepository,
    FakeClubRepository,
    FakeFixtureRepository,
    FakeOrderRepository,
    FakeSession,
    FakeStore,
    MutableClock,
    RecordingPublisher,
)


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def session(store: FakeStore) -> FakeSession:
    return FakeSession(store)


@pytest.fixture
def rules() -> TradingRules:
    return TradingRules(lock_timeout_seconds=1.0, max_retries=2)


@pytest.fixture
def clock() -> MutableClock:
    return MutableClock()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def locks() -> KeyedLockRegistry:
    return KeyedLockRegistry()


@pytest.fixture
def club_repo() -> FakeClubRepository:
    return FakeClubRepository()


@pytest.fixture
def account_repo() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture
def order_repo() -> FakeOrderRepository:
    return FakeOrderRepository()


@pytest.fixture
def fixture_repo() -> FakeFixtureRepository:
    return FakeFixtureRepository()


@pytest.fixture
def executor(
    club_repo, account_repo, order_repo, fixture_repo, publisher, locks, rules, clock
) -> TradeExecutor:
    return TradeExecutor(
        club_repo=club_repo,
        account_repo=account_repo,
        order_repo=order_repo,
        fixture_repo=fixture_repo,
        publisher=publisher,
        locks=locks,
        rules=rules,
        clock=clock,
        retry_backoff_seconds=0,
    )


@pytest.fixture
def engine(club_repo, fixture_repo, publisher, locks, rules, clock) -> SettlementEngine:
    return SettlementEngine(
        club_repo=club_repo,
        fixture_repo=fixture_repo,
        publisher=publisher,
        locks=locks,
        rules=rules,
        clock=clock,
        retry_backoff_seconds=0,
    )
