"""LeaderboardRepositoryProtocol — read-only snapshots across all accounts."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_leaderboard.domain.models import Holding


class LeaderboardRepositoryProtocol(Protocol):
    async def current_balances(self, db: AsyncSession) -> dict[str, int]: ...

    async def current_holdings(self, db: AsyncSession) -> list[Holding]: ...

    async def balances_before(self, db: AsyncSession, since: datetime) -> dict[str, int]:
        """Each wallet's balance after its last transaction before ``since``."""
        ...

    async def holdings_before(self, db: AsyncSession, since: datetime) -> list[Holding]:
        """Each (user, club) quantity after the last order executed before ``since``."""
        ...

    async def funding_since(self, db: AsyncSession, since: datetime) -> dict[str, int]:
        """Net deposits, credit loans and reversals per user from ``since`` on."""
        ...

    async def share_prices_before(self, db: AsyncSession, since: datetime) -> dict[int, int]:
        """Each club's share price after its last ledger entry before ``since``."""
        ...
