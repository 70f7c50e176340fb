"""LeaderboardApplicationService — ranks every account by value or by return.

Reads only. Current values use live wallet balances, open positions and club
prices; the opening values are rebuilt from the history tables as of
``since`` (Monday 00:00 UTC of the current week unless given).
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_club.domain.repository import ClubRepositoryProtocol
from src.cs_club.infrastructure.persistence import ClubRepository
from src.cs_common.datetime_utils import ensure_utc, utc_now
from src.cs_common.errors import InvalidLeaderboardQueryError
from src.cs_leaderboard.application.schemas import LeaderboardItem, LeaderboardResponse
from src.cs_leaderboard.domain.models import RankBy
from src.cs_leaderboard.domain.ranking import portfolio_values, rank_accounts, start_of_week
from src.cs_leaderboard.domain.repository import LeaderboardRepositoryProtocol
from src.cs_leaderboard.infrastructure.persistence import LeaderboardRepository

logger = logging.getLogger(__name__)


class LeaderboardApplicationService:
    def __init__(
        self,
        repo: LeaderboardRepositoryProtocol | None = None,
        club_repo: ClubRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo: LeaderboardRepositoryProtocol = repo or LeaderboardRepository()
        self._clubs: ClubRepositoryProtocol = club_repo or ClubRepository()
        self._clock = clock

    async def get_leaderboard(
        self,
        db: AsyncSession,
        order_by: str = RankBy.ACCOUNT_VALUE.value,
        limit: int = 50,
        since: datetime | None = None,
    ) -> LeaderboardResponse:
        try:
            rank_by = RankBy(order_by)
        except ValueError as exc:
            raise InvalidLeaderboardQueryError(f"cannot order by {order_by!r}") from exc
        if limit < 1:
            raise InvalidLeaderboardQueryError(f"limit must be positive, got {limit}")
        now = self._clock()
        since = ensure_utc(since) if since is not None else start_of_week(now)
        if since > now:
            raise InvalidLeaderboardQueryError("period cannot start in the future")

        clubs = await self._clubs.list_clubs(db)
        prices = {club.id: club.share_price for club in clubs}
        # A club with no ledger entry before the period is valued at today's price.
        opening_prices = {**prices, **await self._repo.share_prices_before(db, since)}

        entries = rank_accounts(
            cash=await self._repo.current_balances(db),
            portfolio=portfolio_values(await self._repo.current_holdings(db), prices),
            start_cash=await self._repo.balances_before(db, since),
            start_portfolio=portfolio_values(
                await self._repo.holdings_before(db, since), opening_prices
            ),
            funding=await self._repo.funding_since(db, since),
            order_by=rank_by,
        )
        logger.debug("Leaderboard since %s ranked %d accounts", since.isoformat(), len(entries))
        return LeaderboardResponse(
            since=since.isoformat(),
            order_by=rank_by.value,
            total=len(entries),
            items=[LeaderboardItem.from_entry(e) for e in entries[:limit]],
        )
