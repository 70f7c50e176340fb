# tests/unit/test_club_persistence.py
"""Unit tests for ClubRepository using MagicMock AsyncSession."""
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.cs_club.infrastructure.persistence import ClubRepository
from src.cs_common.errors import ClubNotFoundError, InternalError


def _make_club_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", 1)
    row.name = kwargs.get("name", "Rovers")
    row.market_cap = kwargs.get("market_cap", 500_000)
    row.total_shares = kwargs.get("total_shares", 1000)
    row.available_shares = kwargs.get("available_shares", 1000)
    row.launch_price = kwargs.get("launch_price", 500)
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _result(one=None, many=None):
    result = MagicMock()
    result.fetchone.return_value = one
    result.fetchall.return_value = many or []
    return result


@pytest.fixture
def db():
    return MagicMock()


class TestGetClub:
    @pytest.mark.asyncio
    async def test_maps_row(self, db):
        db.execute = AsyncMock(return_value=_result(_make_club_row(id=7, market_cap=550_000)))
        club = await ClubRepository().get_club(db, 7)
        assert club is not None
        assert club.id == 7
        assert club.market_cap == 550_000
        assert club.share_price == 550

    @pytest.mark.asyncio
    async def test_missing(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        assert await ClubRepository().get_club(db, 7) is None

    @pytest.mark.asyncio
    async def test_for_update_locks_row(self, db):
        db.execute = AsyncMock(return_value=_result(_make_club_row()))
        await ClubRepository().get_club_for_update(db, 1)
        sql = str(db.execute.call_args.args[0])
        assert "FOR UPDATE" in sql


class TestWrites:
    @pytest.mark.asyncio
    async def test_create_returns_club(self, db):
        db.execute = AsyncMock(return_value=_result(_make_club_row(id=3, name="City")))
        club = await ClubRepository().create_club(db, "City", 500_000, 1000, 500)
        assert club.id == 3
        params = db.execute.call_args.args[1]
        assert params == {
            "name": "City",
            "market_cap": 500_000,
            "total_shares": 1000,
            "launch_price": 500,
        }

    @pytest.mark.asyncio
    async def test_create_without_row_is_internal_error(self, db):
        db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(InternalError):
            await ClubRepository().create_club(db, "City", 500_000, 1000, 500)

    @pytest.mark.asyncio
    async def test_update_missing_club(self, db):
        result = MagicMock()
        result.rowcount = 0
        db.execute = AsyncMock(return_value=result)
        with pytest.raises(ClubNotFoundError):
            await ClubRepository().update_club_state(db, 9, 500_000, 1000)

    @pytest.mark.asyncio
    async def test_update_passes_state(self, db):
        result = MagicMock()
        result.rowcount = 1
        db.execute = AsyncMock(return_value=result)
        await ClubRepository().update_club_state(db, 9, 505_000, 990)
        assert db.execute.call_args.args[1] == {
            "club_id": 9,
            "market_cap": 505_000,
            "available_shares": 990,
        }


class TestLists:
    @pytest.mark.asyncio
    async def test_list_clubs(self, db):
        rows = [_make_club_row(id=i) for i in range(3)]
        db.execute = AsyncMock(return_value=_result(many=rows))
        clubs = await ClubRepository().list_clubs(db)
        assert [c.id for c in clubs] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_ledger_cursor_params(self, db):
        db.execute = AsyncMock(return_value=_result(many=[]))
        await ClubRepository().list_club_ledger(db, 4, 100, 21)
        assert db.execute.call_args.args[1] == {"club_id": 4, "cursor_id": 100, "limit": 21}
