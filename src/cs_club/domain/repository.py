"""Repository Protocol — dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_club.domain.models import Club, ClubLedgerEntry


class ClubRepositoryProtocol(Protocol):
    async def get_club(self, db: AsyncSession, club_id: int) -> Club | None: ...

    async def get_club_for_update(self, db: AsyncSession, club_id: int) -> Club | None: ...

    async def list_clubs(self, db: AsyncSession) -> list[Club]: ...

    async def create_club(
        self,
        db: AsyncSession,
        name: str,
        market_cap: int,
        total_shares: int,
        launch_price: int,
    ) -> Club: ...

    async def update_club_state(
        self, db: AsyncSession, club_id: int, market_cap: int, available_shares: int
    ) -> None: ...

    async def insert_club_ledger(
        self,
        db: AsyncSession,
        club_id: int,
        entry_type: str,
        market_cap_before: int,
        market_cap_after: int,
        share_price_before: int,
        share_price_after: int,
        amount: int,
        reference_type: str | None,
        reference_id: str | None,
        description: str | None,
    ) -> None: ...

    async def list_club_ledger(
        self, db: AsyncSession, club_id: int, cursor_id: int | None, limit: int
    ) -> list[ClubLedgerEntry]: ...
