"""ClubApplicationService — club snapshots, market-cap timeline, club creation.

Reads run without an explicit transaction. ``create_club`` writes the club
and its INITIAL ledger entry in one commit.
"""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cs_club.application.schemas import (
    ClubItem,
    ClubLedgerItem,
    ClubLedgerResponse,
    ClubListResponse,
)
from src.cs_club.domain.repository import ClubRepositoryProtocol
from src.cs_club.infrastructure.persistence import ClubRepository
from src.cs_common.enums import ClubLedgerType
from src.cs_common.errors import ClubNotFoundError, InvalidClubError
from src.cs_common.pagination import cursor_decode, cursor_encode
from src.cs_risk.rules.limits import TradingRules
from src.cs_valuation.domain.pricing import share_price_cents

logger = logging.getLogger(__name__)


class ClubApplicationService:
    def __init__(
        self,
        repo: ClubRepositoryProtocol | None = None,
        rules: TradingRules | None = None,
        launch_market_cap_cents: int | None = None,
        total_shares: int | None = None,
    ) -> None:
        self._repo: ClubRepositoryProtocol = repo or ClubRepository()
        self._rules = rules or TradingRules.from_settings()
        self._launch_cap = launch_market_cap_cents or settings.LAUNCH_MARKET_CAP_CENTS
        self._total_shares = total_shares or settings.TOTAL_SHARES

    async def list_clubs(self, db: AsyncSession) -> ClubListResponse:
        clubs = await self._repo.list_clubs(db)
        return ClubListResponse(items=[ClubItem.from_domain(c) for c in clubs])

    async def get_club(self, db: AsyncSession, club_id: int) -> ClubItem:
        club = await self._repo.get_club(db, club_id)
        if club is None:
            raise ClubNotFoundError(club_id)
        return ClubItem.from_domain(club)

    async def list_ledger(
        self, db: AsyncSession, club_id: int, cursor: str | None, limit: int
    ) -> ClubLedgerResponse:
        if await self._repo.get_club(db, club_id) is None:
            raise ClubNotFoundError(club_id)
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_club_ledger(db, club_id, cursor_id, limit + 1)
        has_more = len(entries) > limit
        page = entries[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return ClubLedgerResponse(
            items=[ClubLedgerItem.from_domain(e) for e in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def create_club(
        self,
        db: AsyncSession,
        name: str,
        launch_market_cap_cents: int | None = None,
        total_shares: int | None = None,
    ) -> ClubItem:
        market_cap = (
            self._launch_cap if launch_market_cap_cents is None else launch_market_cap_cents
        )
        shares = self._total_shares if total_shares is None else total_shares
        name = name.strip()
        if not name:
            raise InvalidClubError("name must not be blank")
        if shares <= 0:
            raise InvalidClubError(f"total_shares must be positive, got {shares}")
        if market_cap < self._rules.min_market_cap_cents:
            raise InvalidClubError(
                f"market cap {market_cap} is below the floor {self._rules.min_market_cap_cents}"
            )

        price = share_price_cents(market_cap, shares, self._rules.default_share_price_cents)
        try:
            club = await self._repo.create_club(db, name, market_cap, shares, price)
            await self._repo.insert_club_ledger(
                db,
                club.id,
                ClubLedgerType.INITIAL.value,
                0,
                market_cap,
                0,
                price,
                market_cap,
                "club",
                str(club.id),
                "Club listed",
            )
            await db.commit()
        except IntegrityError as exc:
            await db.rollback()
            raise InvalidClubError(f"a club named {name!r} already exists") from exc
        except Exception:
            await db.rollback()
            raise
        logger.info("Club %d listed: name=%s cap=%d shares=%d", club.id, name, market_cap, shares)
        return ClubItem.from_domain(club)
