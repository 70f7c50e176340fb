"""Repository Protocol for fixtures and their settlements."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_settlement.domain.models import Fixture, Settlement


class FixtureRepositoryProtocol(Protocol):
    async def get_fixture(self, db: AsyncSession, fixture_id: int) -> Fixture | None: ...

    async def get_fixture_for_update(
        self, db: AsyncSession, fixture_id: int
    ) -> Fixture | None: ...

    async def create_fixture(
        self,
        db: AsyncSession,
        home_club_id: int,
        away_club_id: int,
        kickoff_at: datetime,
        buy_close_at: datetime,
    ) -> Fixture: ...

    async def record_fixture_result(
        self,
        db: AsyncSession,
        fixture_id: int,
        home_score: int,
        away_score: int,
        result: str,
    ) -> Fixture: ...

    async def mark_fixture_applied(
        self, db: AsyncSession, fixture_id: int, applied_at: datetime
    ) -> None: ...

    async def insert_settlement(self, db: AsyncSession, settlement: Settlement) -> None: ...

    async def get_settlement(self, db: AsyncSession, fixture_id: int) -> Settlement | None: ...

    async def list_fixtures(
        self, db: AsyncSession, club_id: int | None, status: str | None
    ) -> list[Fixture]: ...

    async def is_trading_window_open(
        self, db: AsyncSession, club_id: int, now: datetime
    ) -> bool: ...
