"""FixtureApplicationService — fixture lifecycle around the settlement engine.

schedule -> record result -> apply. Recording a result is serialized on the
fixture like application is, so a score can never change under a settlement
that is being applied.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cs_club.domain.repository import ClubRepositoryProtocol
from src.cs_club.infrastructure.persistence import ClubRepository
from src.cs_common.database import set_lock_timeout
from src.cs_common.datetime_utils import ensure_utc
from src.cs_common.errors import (
    ClubNotFoundError,
    FixtureAlreadyAppliedError,
    FixtureNotFoundError,
    InvalidFixtureError,
)
from src.cs_common.locks import KeyedLockRegistry, fixture_key, get_lock_registry
from src.cs_common.retry import run_with_db_retry
from src.cs_risk.rules.limits import TradingRules
from src.cs_settlement.application.schemas import (
    FixtureItem,
    FixtureListResponse,
    RecordResultResponse,
    SettlementResponse,
)
from src.cs_settlement.domain.models import Fixture
from src.cs_settlement.domain.repository import FixtureRepositoryProtocol
from src.cs_settlement.domain.transfer import outcome_from_score
from src.cs_settlement.engine.settlement_engine import SettlementEngine, get_settlement_engine
from src.cs_settlement.infrastructure.persistence import FixtureRepository

logger = logging.getLogger(__name__)


class FixtureApplicationService:
    def __init__(
        self,
        repo: FixtureRepositoryProtocol | None = None,
        club_repo: ClubRepositoryProtocol | None = None,
        engine: SettlementEngine | None = None,
        locks: KeyedLockRegistry | None = None,
        rules: TradingRules | None = None,
        buy_close_minutes: int | None = None,
        retry_backoff_seconds: float = 0.05,
    ) -> None:
        self._repo: FixtureRepositoryProtocol = repo or FixtureRepository()
        self._clubs: ClubRepositoryProtocol = club_repo or ClubRepository()
        self._engine = engine
        self._locks = locks or get_lock_registry()
        self._rules = rules or TradingRules.from_settings()
        self._buy_close = timedelta(
            minutes=settings.BUY_CLOSE_MINUTES_BEFORE_KICKOFF
            if buy_close_minutes is None
            else buy_close_minutes
        )
        self._backoff = retry_backoff_seconds

    @property
    def engine(self) -> SettlementEngine:
        return self._engine or get_settlement_engine()

    async def list_fixtures(
        self, db: AsyncSession, club_id: int | None = None, status: str | None = None
    ) -> FixtureListResponse:
        fixtures = await self._repo.list_fixtures(db, club_id, status)
        return FixtureListResponse(items=[FixtureItem.from_domain(f) for f in fixtures])

    async def get_fixture(self, db: AsyncSession, fixture_id: int) -> FixtureItem:
        fixture = await self._repo.get_fixture(db, fixture_id)
        if fixture is None:
            raise FixtureNotFoundError(fixture_id)
        return FixtureItem.from_domain(fixture)

    async def schedule_fixture(
        self,
        db: AsyncSession,
        home_club_id: int,
        away_club_id: int,
        kickoff_at: datetime,
        buy_close_at: datetime | None = None,
    ) -> FixtureItem:
        if home_club_id == away_club_id:
            raise InvalidFixtureError("a club cannot play itself")
        kickoff = ensure_utc(kickoff_at)
        close = ensure_utc(buy_close_at) if buy_close_at else kickoff - self._buy_close
        if close > kickoff:
            raise InvalidFixtureError("buy_close_at must not be after kickoff_at")

        try:
            for club_id in (home_club_id, away_club_id):
                if await self._clubs.get_club(db, club_id) is None:
                    raise ClubNotFoundError(club_id)
            fixture = await self._repo.create_fixture(
                db, home_club_id, away_club_id, kickoff, close
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Fixture %d scheduled: %d vs %d kickoff=%s buy_close=%s",
            fixture.id,
            home_club_id,
            away_club_id,
            kickoff.isoformat(),
            close.isoformat(),
        )
        return FixtureItem.from_domain(fixture)

    async def record_fixture_result(
        self,
        db: AsyncSession,
        fixture_id: int,
        home_score: int,
        away_score: int,
        apply: bool = True,
    ) -> RecordResultResponse:
        """Store the final score; optionally settle market caps right away."""
        for score in (home_score, away_score):
            if isinstance(score, bool) or not isinstance(score, int) or score < 0:
                raise InvalidFixtureError(f"score must be a non-negative integer, got {score!r}")
        result = outcome_from_score(home_score, away_score)

        async def _record() -> Fixture:
            async with self._locks.acquire(
                fixture_key(fixture_id), timeout=self._rules.lock_timeout_seconds
            ):
                try:
                    await set_lock_timeout(db, self._rules.lock_timeout_seconds)
                    fixture = await self._repo.get_fixture_for_update(db, fixture_id)
                    if fixture is None:
                        raise FixtureNotFoundError(fixture_id)
                    if fixture.is_applied:
                        raise FixtureAlreadyAppliedError(fixture_id)
                    updated = await self._repo.record_fixture_result(
                        db, fixture_id, home_score, away_score, result.value
                    )
                    await db.commit()
                except Exception:
                    await db.rollback()
                    raise
            return updated

        fixture = await run_with_db_retry(
            _record,
            max_retries=self._rules.max_retries,
            backoff_seconds=self._backoff,
            label=f"Record result fixture={fixture_id}",
        )
        logger.info(
            "Fixture %d result recorded: %d-%d (%s)",
            fixture_id,
            home_score,
            away_score,
            result.value,
        )

        settlement = None
        if apply:
            outcome = await self.engine.apply_fixture_result(db, fixture_id)
            settlement = SettlementResponse.from_outcome(outcome)
            fixture = await self._repo.get_fixture(db, fixture_id) or fixture
        return RecordResultResponse(fixture=FixtureItem.from_domain(fixture), settlement=settlement)

    async def apply_fixture_result(
        self, db: AsyncSession, fixture_id: int, strict: bool = False
    ) -> SettlementResponse:
        outcome = await self.engine.apply_fixture_result(db, fixture_id, strict=strict)
        return SettlementResponse.from_outcome(outcome)
