"""SettlementEngine — applies a finished fixture's result to market caps.

The PENDING -> APPLIED check and transition share one transaction with the
cap updates: fixture row first, then both clubs in id order, all FOR UPDATE.
A fixture is therefore applied at most once no matter how many callers race.
"""

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_club.domain.models import Club
from src.cs_club.domain.repository import ClubRepositoryProtocol
from src.cs_club.infrastructure.persistence import ClubRepository
from src.cs_common.database import set_lock_timeout
from src.cs_common.datetime_utils import utc_now
from src.cs_common.enums import ClubLedgerType, MatchResult
from src.cs_common.errors import (
    ClubNotFoundError,
    FixtureAlreadyAppliedError,
    FixtureNotFinishedError,
    FixtureNotFoundError,
    InternalError,
)
from src.cs_common.events import (
    DomainEvent,
    EventPublisherProtocol,
    MarketCapChanged,
    RedisEventPublisher,
)
from src.cs_common.locks import KeyedLockRegistry, club_key, fixture_key, get_lock_registry
from src.cs_common.retry import run_with_db_retry
from src.cs_risk.rules.limits import TradingRules
from src.cs_settlement.domain.models import Fixture, Settlement, SettlementOutcome
from src.cs_settlement.domain.repository import FixtureRepositoryProtocol
from src.cs_settlement.domain.transfer import settle_fixture
from src.cs_settlement.infrastructure.persistence import FixtureRepository
from src.cs_valuation.domain.pricing import share_price_cents

logger = logging.getLogger(__name__)


class SettlementEngine:
    def __init__(
        self,
        club_repo: ClubRepositoryProtocol | None = None,
        fixture_repo: FixtureRepositoryProtocol | None = None,
        publisher: EventPublisherProtocol | None = None,
        locks: KeyedLockRegistry | None = None,
        rules: TradingRules | None = None,
        clock: Callable[[], datetime] = utc_now,
        retry_backoff_seconds: float = 0.05,
    ) -> None:
        self._clubs: ClubRepositoryProtocol = club_repo or ClubRepository()
        self._fixtures: FixtureRepositoryProtocol = fixture_repo or FixtureRepository()
        self._publisher: EventPublisherProtocol = publisher or RedisEventPublisher()
        self._locks = locks or get_lock_registry()
        self._rules = rules or TradingRules.from_settings()
        self._clock = clock
        self._backoff = retry_backoff_seconds

    async def apply_fixture_result(
        self, db: AsyncSession, fixture_id: int, strict: bool = False
    ) -> SettlementOutcome:
        """Move market cap from loser to winner for a finished fixture.

        Re-applying returns the recorded settlement with ``already_applied``
        set, or raises FixtureAlreadyAppliedError when ``strict``.
        """
        try:
            fixture = await self._fixtures.get_fixture(db, fixture_id)
        finally:
            await db.rollback()
        if fixture is None:
            raise FixtureNotFoundError(fixture_id)

        outcome, events = await run_with_db_retry(
            lambda: self._apply_serialized(db, fixture, strict),
            max_retries=self._rules.max_retries,
            backoff_seconds=self._backoff,
            label=f"Settlement fixture={fixture_id}",
        )
        await self._publisher.publish(events)
        return outcome

    async def _apply_serialized(
        self, db: AsyncSession, snapshot: Fixture, strict: bool
    ) -> tuple[SettlementOutcome, list[DomainEvent]]:
        keys = (
            fixture_key(snapshot.id),
            club_key(snapshot.home_club_id),
            club_key(snapshot.away_club_id),
        )
        async with self._locks.acquire(*keys, timeout=self._rules.lock_timeout_seconds):
            try:
                await set_lock_timeout(db, self._rules.lock_timeout_seconds)
                fixture = await self._fixtures.get_fixture_for_update(db, snapshot.id)
                if fixture is None:
                    raise FixtureNotFoundError(snapshot.id)
                if fixture.is_applied:
                    recorded = await self._fixtures.get_settlement(db, fixture.id)
                    await db.rollback()
                    if strict:
                        raise FixtureAlreadyAppliedError(fixture.id)
                    if recorded is None:
                        raise InternalError(
                            f"Fixture {fixture.id} is applied but has no settlement"
                        )
                    logger.info("Fixture %d already applied, returning record", fixture.id)
                    return SettlementOutcome(recorded, already_applied=True), []
                if fixture.result == MatchResult.PENDING:
                    raise FixtureNotFinishedError(fixture.id)

                clubs = await self._lock_clubs(db, fixture)
                home, away = clubs[fixture.home_club_id], clubs[fixture.away_club_id]
                settlement = replace(
                    settle_fixture(
                        fixture,
                        home.market_cap,
                        away.market_cap,
                        rate_bps=self._rules.transfer_rate_bps,
                        min_cap=self._rules.min_market_cap_cents,
                    ),
                    applied_at=self._clock(),
                )
                await self._write(db, fixture, settlement, home, away)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Fixture %d applied: outcome=%s transfer=%d home_cap %d->%d away_cap %d->%d",
            settlement.fixture_id,
            settlement.outcome,
            settlement.transfer_amount,
            settlement.home_cap_before,
            settlement.home_cap_after,
            settlement.away_cap_before,
            settlement.away_cap_after,
        )
        events: list[DomainEvent] = []
        if settlement.transfer_amount > 0:
            events = [
                MarketCapChanged(club.id, cap, self._price(club, cap))
                for club, cap in (
                    (home, settlement.home_cap_after),
                    (away, settlement.away_cap_after),
                )
            ]
        return SettlementOutcome(settlement), events

    async def _lock_clubs(self, db: AsyncSession, fixture: Fixture) -> dict[int, Club]:
        clubs: dict[int, Club] = {}
        for club_id in sorted({fixture.home_club_id, fixture.away_club_id}):
            club = await self._clubs.get_club_for_update(db, club_id)
            if club is None:
                raise ClubNotFoundError(club_id)
            clubs[club_id] = club
        return clubs

    def _price(self, club: Club, market_cap: int) -> int:
        return share_price_cents(
            market_cap, club.total_shares, self._rules.default_share_price_cents
        )

    async def _write(
        self,
        db: AsyncSession,
        fixture: Fixture,
        settlement: Settlement,
        home: Club,
        away: Club,
    ) -> None:
        legs = (
            (home, settlement.home_cap_before, settlement.home_cap_after),
            (away, settlement.away_cap_before, settlement.away_cap_after),
        )
        for club, before, after in legs:
            if settlement.outcome == MatchResult.DRAW:
                entry_type = ClubLedgerType.MATCH_DRAW
            elif club.id == settlement.winner_club_id:
                entry_type = ClubLedgerType.MATCH_WIN
            else:
                entry_type = ClubLedgerType.MATCH_LOSS
            if after != before:
                await self._clubs.update_club_state(db, club.id, after, club.available_shares)
            await self._clubs.insert_club_ledger(
                db,
                club.id,
                entry_type.value,
                before,
                after,
                self._price(club, before),
                self._price(club, after),
                settlement.transfer_amount,
                "fixture",
                str(fixture.id),
                f"{fixture.home_score}-{fixture.away_score} vs club "
                f"{away.id if club.id == home.id else home.id}",
            )
        await self._fixtures.insert_settlement(db, settlement)
        await self._fixtures.mark_fixture_applied(
            db, fixture.id, settlement.applied_at or self._clock()
        )


_engine: SettlementEngine | None = None


def get_settlement_engine() -> SettlementEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = SettlementEngine()
    return _engine
