"""Admin application service."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_admin.domain.invariants import verify_global_invariants
from src.cs_risk.rules.limits import TradingRules


class AdminService:
    def __init__(self, rules: TradingRules | None = None) -> None:
        self._rules = rules or TradingRules.from_settings()

    async def check_invariants(self, db: AsyncSession) -> dict[str, Any]:
        violations = await verify_global_invariants(db, self._rules.min_market_cap_cents)
        return {"ok": not violations, "violations": violations}
