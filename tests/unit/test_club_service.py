# tests/unit/test_club_service.py
"""Unit tests for ClubApplicationService."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.cs_club.application.service import ClubApplicationService
from src.cs_common.errors import ClubNotFoundError, InvalidClubError
from src.cs_risk.rules.limits import TradingRules
from tests.fakes import FakeClubRepository, seed_club


@pytest.fixture
def service() -> ClubApplicationService:
    return ClubApplicationService(
        repo=FakeClubRepository(),
        rules=TradingRules(),
        launch_market_cap_cents=500_000,
        total_shares=1000,
    )


class TestCreateClub:
    @pytest.mark.asyncio
    async def test_lists_club_with_initial_ledger(self, store, session, service) -> None:
        item = await service.create_club(session, "  Rovers ")

        assert item.name == "Rovers"
        assert item.market_cap_cents == 500_000
        assert item.share_price_cents == 500
        assert item.launch_price_cents == 500
        assert item.available_shares == 1000
        assert item.price_change_percent == 0.0
        (entry,) = store.committed.ledger
        assert entry.entry_type == "INITIAL"
        assert entry.market_cap_after == 500_000

    @pytest.mark.asyncio
    async def test_overrides(self, session, service) -> None:
        item = await service.create_club(session, "Big", 2_000_000, 500)
        assert item.share_price_cents == 4000
        assert item.total_shares == 500

    @pytest.mark.asyncio
    async def test_duplicate_name(self, store, session, service) -> None:
        await service.create_club(session, "Rovers")
        with pytest.raises(InvalidClubError, match="already exists"):
            await service.create_club(session, "Rovers")
        assert len(store.committed.clubs) == 1
        assert len(store.committed.ledger) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name, cap, shares",
        [("   ", None, None), ("Tiny", 999, None), ("NoShares", None, 0)],
    )
    async def test_invalid(self, store, session, service, name, cap, shares) -> None:
        with pytest.raises(InvalidClubError):
            await service.create_club(session, name, cap, shares)
        assert store.committed.clubs == {}


class TestReads:
    @pytest.mark.asyncio
    async def test_list_is_ordered_by_market_cap(self, store, session, service) -> None:
        seed_club(store, "Small", 100_000)
        seed_club(store, "Large", 900_000)
        resp = await service.list_clubs(session)
        assert [c.name for c in resp.items] == ["Large", "Small"]

    @pytest.mark.asyncio
    async def test_price_change_against_launch(self, store, session, service) -> None:
        club = seed_club(store, "Rovers", 500_000)
        store.committed.clubs[club.id].market_cap = 550_000
        item = await service.get_club(session, club.id)
        assert item.share_price_cents == 550
        assert item.price_change_percent == 10.0

    @pytest.mark.asyncio
    async def test_get_missing(self, session, service) -> None:
        with pytest.raises(ClubNotFoundError):
            await service.get_club(session, 42)

    @pytest.mark.asyncio
    async def test_ledger_pagination(self, store, session, service) -> None:
        item = await service.create_club(session, "Rovers")
        repo = FakeClubRepository()
        for i in range(2):
            await repo.insert_club_ledger(
                session, item.id, "SHARE_PURCHASE", 500_000 + i, 500_001 + i,
                500, 500, 1, "order", str(i), None,
            )
        await session.commit()

        first = await service.list_ledger(session, item.id, cursor=None, limit=2)
        assert first.has_more is True
        assert [e.entry_type for e in first.items] == ["SHARE_PURCHASE", "SHARE_PURCHASE"]

        second = await service.list_ledger(session, item.id, cursor=first.next_cursor, limit=2)
        assert second.has_more is False
        assert second.next_cursor is None
        assert [e.entry_type for e in second.items] == ["INITIAL"]

    @pytest.mark.asyncio
    async def test_ledger_of_missing_club(self, session, service) -> None:
        with pytest.raises(ClubNotFoundError):
            await service.list_ledger(session, 42, cursor=None, limit=20)


class TestWithMockRepo:
    @pytest.mark.asyncio
    async def test_unexpected_error_rolls_back(self) -> None:
        db = MagicMock()
        db.rollback = AsyncMock()
        db.commit = AsyncMock()
        repo = MagicMock()
        repo.create_club = AsyncMock(side_effect=RuntimeError("boom"))
        svc = ClubApplicationService(repo=repo, rules=TradingRules())

        with pytest.raises(RuntimeError):
            await svc.create_club(db, "Rovers", 500_000, 1000)

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()
