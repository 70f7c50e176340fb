# tests/unit/test_invariants.py
"""Unit tests for the global invariant sweep and AdminService."""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.cs_admin.application.service import AdminService
from src.cs_admin.domain.invariants import verify_global_invariants
from src.cs_risk.rules.limits import TradingRules


def _results(*row_sets: list) -> list[MagicMock]:
    results = []
    for rows in row_sets:
        result = MagicMock()
        result.fetchall.return_value = rows
        results.append(result)
    return results


def _db(*row_sets: list) -> MagicMock:
    db = MagicMock()
    db.execute = AsyncMock(side_effect=_results(*row_sets))
    return db


@pytest.mark.asyncio
async def test_sound_store_has_no_violations() -> None:
    db = _db([], [], [], [], [])
    assert await verify_global_invariants(db, 1000) == []
    assert db.execute.await_count == 5


@pytest.mark.asyncio
async def test_floor_is_passed_to_query() -> None:
    db = _db([], [], [], [], [])
    await verify_global_invariants(db, 2500)
    floor_call = db.execute.await_args_list[2]
    assert floor_call.args[1] == {"min_cap": 2500}


@pytest.mark.asyncio
async def test_each_violation_is_reported() -> None:
    db = _db(
        [SimpleNamespace(user_id="u1", balance=-5)],
        [SimpleNamespace(user_id="u2", club_id=3, quantity=-1, total_invested=0)],
        [SimpleNamespace(id=4, market_cap=999)],
        [SimpleNamespace(id=5, total_shares=1000, available_shares=990, held=20)],
        [SimpleNamespace(fixture_id=6, before_total=800_000, after_total=800_001)],
    )

    violations = await verify_global_invariants(db, 1000)

    assert len(violations) == 5
    assert "wallet u1" in violations[0]
    assert "position u2/3" in violations[1]
    assert "club 4" in violations[2] and "below floor 1000" in violations[2]
    assert "club 5 shares not conserved" in violations[3]
    assert "fixture 6" in violations[4]


@pytest.mark.asyncio
async def test_admin_service_wraps_result() -> None:
    service = AdminService(rules=TradingRules(min_market_cap_cents=1000))

    ok = await service.check_invariants(_db([], [], [], [], []))
    assert ok == {"ok": True, "violations": []}

    bad = await service.check_invariants(
        _db([SimpleNamespace(user_id="u1", balance=-1)], [], [], [], [])
    )
    assert bad["ok"] is False
    assert len(bad["violations"]) == 1
