"""FixtureRepository — raw SQL for fixtures and settlements.

``settlements.fixture_id`` is the primary key, so a second application of
the same fixture fails at the database even if the status check is bypassed.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.enums import FixtureStatus
from src.cs_common.errors import FixtureNotFoundError, InternalError
from src.cs_settlement.domain.models import Fixture, Settlement

# ---------------------------------------------------------------------------
# SQL: fixtures
# ---------------------------------------------------------------------------

_FIXTURE_COLUMNS = """
    id, home_club_id, away_club_id, kickoff_at, buy_close_at, result, status,
    home_score, away_score, applied_at, created_at
"""

_GET_FIXTURE_SQL = text(f"SELECT {_FIXTURE_COLUMNS} FROM fixtures WHERE id = :fixture_id")

_GET_FIXTURE_FOR_UPDATE_SQL = text(
    f"SELECT {_FIXTURE_COLUMNS} FROM fixtures WHERE id = :fixture_id FOR UPDATE"
)

_INSERT_FIXTURE_SQL = text(f"""
    INSERT INTO fixtures (home_club_id, away_club_id, kickoff_at, buy_close_at)
    VALUES (:home_club_id, :away_club_id, :kickoff_at, :buy_close_at)
    RETURNING {_FIXTURE_COLUMNS}
""")

_RECORD_RESULT_SQL = text(f"""
    UPDATE fixtures
    SET home_score = :home_score,
        away_score = :away_score,
        result = :result,
        updated_at = NOW()
    WHERE id = :fixture_id
    RETURNING {_FIXTURE_COLUMNS}
""")

_MARK_APPLIED_SQL = text("""
    UPDATE fixtures
    SET status = :status,
        applied_at = :applied_at,
        updated_at = NOW()
    WHERE id = :fixture_id
""")

_LIST_FIXTURES_SQL = text(f"""
    SELECT {_FIXTURE_COLUMNS}
    FROM fixtures
    WHERE (CAST(:club_id AS INTEGER) IS NULL
           OR home_club_id = CAST(:club_id AS INTEGER)
           OR away_club_id = CAST(:club_id AS INTEGER))
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY kickoff_at, id
""")

# A club is frozen for trading from buy_close_at of any fixture it plays in
# until that fixture's result has been applied.
_WINDOW_CLOSED_SQL = text("""
    SELECT EXISTS (
        SELECT 1 FROM fixtures
        WHERE (home_club_id = :club_id OR away_club_id = :club_id)
          AND status = 'PENDING'
          AND buy_close_at <= :now
    )
""")

# ---------------------------------------------------------------------------
# SQL: settlements
# ---------------------------------------------------------------------------

_SETTLEMENT_COLUMNS = """
    fixture_id, outcome, home_club_id, away_club_id,
    home_cap_before, home_cap_after, away_cap_before, away_cap_after,
    transfer_amount, winner_club_id, loser_club_id, applied_at
"""

_INSERT_SETTLEMENT_SQL = text("""
    INSERT INTO settlements
        (fixture_id, outcome, home_club_id, away_club_id,
         home_cap_before, home_cap_after, away_cap_before, away_cap_after,
         transfer_amount, winner_club_id, loser_club_id, applied_at)
    VALUES
        (:fixture_id, :outcome, :home_club_id, :away_club_id,
         :home_cap_before, :home_cap_after, :away_cap_before, :away_cap_after,
         :transfer_amount, :winner_club_id, :loser_club_id, :applied_at)
""")

_GET_SETTLEMENT_SQL = text(
    f"SELECT {_SETTLEMENT_COLUMNS} FROM settlements WHERE fixture_id = :fixture_id"
)

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_fixture(row: object) -> Fixture:
    return Fixture(
        id=row.id,  # type: ignore[attr-defined]
        home_club_id=row.home_club_id,  # type: ignore[attr-defined]
        away_club_id=row.away_club_id,  # type: ignore[attr-defined]
        kickoff_at=row.kickoff_at,  # type: ignore[attr-defined]
        buy_close_at=row.buy_close_at,  # type: ignore[attr-defined]
        result=row.result,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        home_score=row.home_score,  # type: ignore[attr-defined]
        away_score=row.away_score,  # type: ignore[attr-defined]
        applied_at=row.applied_at,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_settlement(row: object) -> Settlement:
    return Settlement(
        fixture_id=row.fixture_id,  # type: ignore[attr-defined]
        outcome=row.outcome,  # type: ignore[attr-defined]
        home_club_id=row.home_club_id,  # type: ignore[attr-defined]
        away_club_id=row.away_club_id,  # type: ignore[attr-defined]
        home_cap_before=row.home_cap_before,  # type: ignore[attr-defined]
        home_cap_after=row.home_cap_after,  # type: ignore[attr-defined]
        away_cap_before=row.away_cap_before,  # type: ignore[attr-defined]
        away_cap_after=row.away_cap_after,  # type: ignore[attr-defined]
        transfer_amount=row.transfer_amount,  # type: ignore[attr-defined]
        winner_club_id=row.winner_club_id,  # type: ignore[attr-defined]
        loser_club_id=row.loser_club_id,  # type: ignore[attr-defined]
        applied_at=row.applied_at,  # type: ignore[attr-defined]
    )


class FixtureRepository:
    async def get_fixture(self, db: AsyncSession, fixture_id: int) -> Fixture | None:
        row = (await db.execute(_GET_FIXTURE_SQL, {"fixture_id": fixture_id})).fetchone()
        return _row_to_fixture(row) if row else None

    async def get_fixture_for_update(
        self, db: AsyncSession, fixture_id: int
    ) -> Fixture | None:
        row = (
            await db.execute(_GET_FIXTURE_FOR_UPDATE_SQL, {"fixture_id": fixture_id})
        ).fetchone()
        return _row_to_fixture(row) if row else None

    async def create_fixture(
        self,
        db: AsyncSession,
        home_club_id: int,
        away_club_id: int,
        kickoff_at: datetime,
        buy_close_at: datetime,
    ) -> Fixture:
        row = (
            await db.execute(
                _INSERT_FIXTURE_SQL,
                {
                    "home_club_id": home_club_id,
                    "away_club_id": away_club_id,
                    "kickoff_at": kickoff_at,
                    "buy_close_at": buy_close_at,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Fixture insert returned no rows")
        return _row_to_fixture(row)

    async def record_fixture_result(
        self,
        db: AsyncSession,
        fixture_id: int,
        home_score: int,
        away_score: int,
        result: str,
    ) -> Fixture:
        row = (
            await db.execute(
                _RECORD_RESULT_SQL,
                {
                    "fixture_id": fixture_id,
                    "home_score": home_score,
                    "away_score": away_score,
                    "result": result,
                },
            )
        ).fetchone()
        if row is None:
            raise FixtureNotFoundError(fixture_id)
        return _row_to_fixture(row)

    async def mark_fixture_applied(
        self, db: AsyncSession, fixture_id: int, applied_at: datetime
    ) -> None:
        await db.execute(
            _MARK_APPLIED_SQL,
            {
                "fixture_id": fixture_id,
                "status": FixtureStatus.APPLIED.value,
                "applied_at": applied_at,
            },
        )

    async def insert_settlement(self, db: AsyncSession, settlement: Settlement) -> None:
        await db.execute(
            _INSERT_SETTLEMENT_SQL,
            {
                "fixture_id": settlement.fixture_id,
                "outcome": settlement.outcome,
                "home_club_id": settlement.home_club_id,
                "away_club_id": settlement.away_club_id,
                "home_cap_before": settlement.home_cap_before,
                "home_cap_after": settlement.home_cap_after,
                "away_cap_before": settlement.away_cap_before,
                "away_cap_after": settlement.away_cap_after,
                "transfer_amount": settlement.transfer_amount,
                "winner_club_id": settlement.winner_club_id,
                "loser_club_id": settlement.loser_club_id,
                "applied_at": settlement.applied_at,
            },
        )

    async def get_settlement(self, db: AsyncSession, fixture_id: int) -> Settlement | None:
        row = (await db.execute(_GET_SETTLEMENT_SQL, {"fixture_id": fixture_id})).fetchone()
        return _row_to_settlement(row) if row else None

    async def list_fixtures(
        self, db: AsyncSession, club_id: int | None, status: str | None
    ) -> list[Fixture]:
        rows = (
            await db.execute(_LIST_FIXTURES_SQL, {"club_id": club_id, "status": status})
        ).fetchall()
        return [_row_to_fixture(row) for row in rows]

    async def is_trading_window_open(
        self, db: AsyncSession, club_id: int, now: datetime
    ) -> bool:
        result = await db.execute(_WINDOW_CLOSED_SQL, {"club_id": club_id, "now": now})
        return not bool(result.scalar_one())
