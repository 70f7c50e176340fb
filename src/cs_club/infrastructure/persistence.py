"""ClubRepository — concrete implementation of ClubRepositoryProtocol.

All queries use raw text() SQL (no ORM).

Transaction ownership: The CALLER (executor or application service) is
responsible for committing or rolling back. ``get_club_for_update`` takes a
row lock that is held until then.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_club.domain.models import Club, ClubLedgerEntry
from src.cs_common.errors import ClubNotFoundError, InternalError

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_CLUB_COLUMNS = """
    id, name, market_cap, total_shares, available_shares, launch_price,
    created_at, updated_at
"""

_GET_CLUB_SQL = text(f"SELECT {_CLUB_COLUMNS} FROM clubs WHERE id = :club_id")

_GET_CLUB_FOR_UPDATE_SQL = text(
    f"SELECT {_CLUB_COLUMNS} FROM clubs WHERE id = :club_id FOR UPDATE"
)

_LIST_CLUBS_SQL = text(f"SELECT {_CLUB_COLUMNS} FROM clubs ORDER BY market_cap DESC, id")

_INSERT_CLUB_SQL = text(f"""
    INSERT INTO clubs (name, market_cap, total_shares, available_shares, launch_price)
    VALUES (:name, :market_cap, :total_shares, :total_shares, :launch_price)
    RETURNING {_CLUB_COLUMNS}
""")

_UPDATE_CLUB_STATE_SQL = text("""
    UPDATE clubs
    SET market_cap = :market_cap,
        available_shares = :available_shares,
        updated_at = NOW()
    WHERE id = :club_id
""")

_INSERT_LEDGER_SQL = text("""
    INSERT INTO club_ledger
        (club_id, entry_type, market_cap_before, market_cap_after,
         share_price_before, share_price_after, amount,
         reference_type, reference_id, description)
    VALUES
        (:club_id, :entry_type, :market_cap_before, :market_cap_after,
         :share_price_before, :share_price_after, :amount,
         :reference_type, :reference_id, :description)
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, club_id, entry_type, market_cap_before, market_cap_after,
           share_price_before, share_price_after, amount,
           reference_type, reference_id, description, created_at
    FROM club_ledger
    WHERE club_id = :club_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_club(row: object) -> Club:
    return Club(
        id=row.id,  # type: ignore[attr-defined]
        name=row.name,  # type: ignore[attr-defined]
        market_cap=row.market_cap,  # type: ignore[attr-defined]
        total_shares=row.total_shares,  # type: ignore[attr-defined]
        available_shares=row.available_shares,  # type: ignore[attr-defined]
        launch_price=row.launch_price,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_ledger(row: object) -> ClubLedgerEntry:
    return ClubLedgerEntry(
        id=row.id,  # type: ignore[attr-defined]
        club_id=row.club_id,  # type: ignore[attr-defined]
        entry_type=row.entry_type,  # type: ignore[attr-defined]
        market_cap_before=row.market_cap_before,  # type: ignore[attr-defined]
        market_cap_after=row.market_cap_after,  # type: ignore[attr-defined]
        share_price_before=row.share_price_before,  # type: ignore[attr-defined]
        share_price_after=row.share_price_after,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        reference_type=row.reference_type,  # type: ignore[attr-defined]
        reference_id=row.reference_id,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class ClubRepository:
    async def get_club(self, db: AsyncSession, club_id: int) -> Club | None:
        row = (await db.execute(_GET_CLUB_SQL, {"club_id": club_id})).fetchone()
        return _row_to_club(row) if row else None

    async def get_club_for_update(self, db: AsyncSession, club_id: int) -> Club | None:
        row = (await db.execute(_GET_CLUB_FOR_UPDATE_SQL, {"club_id": club_id})).fetchone()
        return _row_to_club(row) if row else None

    async def list_clubs(self, db: AsyncSession) -> list[Club]:
        rows = (await db.execute(_LIST_CLUBS_SQL)).fetchall()
        return [_row_to_club(row) for row in rows]

    async def create_club(
        self,
        db: AsyncSession,
        name: str,
        market_cap: int,
        total_shares: int,
        launch_price: int,
    ) -> Club:
        row = (
            await db.execute(
                _INSERT_CLUB_SQL,
                {
                    "name": name,
                    "market_cap": market_cap,
                    "total_shares": total_shares,
                    "launch_price": launch_price,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Club insert returned no rows")
        return _row_to_club(row)

    async def update_club_state(
        self, db: AsyncSession, club_id: int, market_cap: int, available_shares: int
    ) -> None:
        result = await db.execute(
            _UPDATE_CLUB_STATE_SQL,
            {"club_id": club_id, "market_cap": market_cap, "available_shares": available_shares},
        )
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise ClubNotFoundError(club_id)

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
    ) -> None:
        await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "club_id": club_id,
                "entry_type": entry_type,
                "market_cap_before": market_cap_before,
                "market_cap_after": market_cap_after,
                "share_price_before": share_price_before,
                "share_price_after": share_price_after,
                "amount": amount,
                "reference_type": reference_type,
                "reference_id": reference_id,
                "description": description,
            },
        )

    async def list_club_ledger(
        self, db: AsyncSession, club_id: int, cursor_id: int | None, limit: int
    ) -> list[ClubLedgerEntry]:
        rows = (
            await db.execute(
                _LIST_LEDGER_SQL,
                {"club_id": club_id, "cursor_id": cursor_id, "limit": limit},
            )
        ).fetchall()
        return [_row_to_ledger(row) for row in rows]
