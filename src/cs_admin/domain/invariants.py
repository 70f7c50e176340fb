"""Global consistency checks over the whole store.

Each check is a single aggregate query; any returned row is a violation.
"""

import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_NEGATIVE_WALLETS_SQL = text(
    "SELECT user_id, balance FROM wallets WHERE balance < 0 ORDER BY user_id"
)

_NEGATIVE_POSITIONS_SQL = text("""
    SELECT user_id, club_id, quantity, total_invested
    FROM positions
    WHERE quantity < 0 OR total_invested < 0
    ORDER BY user_id, club_id
""")

_CAP_BELOW_FLOOR_SQL = text(
    "SELECT id, market_cap FROM clubs WHERE market_cap < :min_cap ORDER BY id"
)

# Shares are conserved per club: platform inventory plus every holder's
# quantity always equals the fixed total.
_SHARE_CONSERVATION_SQL = text("""
    SELECT c.id, c.total_shares, c.available_shares,
           COALESCE(SUM(p.quantity), 0) AS held
    FROM clubs c
    LEFT JOIN positions p ON p.club_id = c.id
    GROUP BY c.id, c.total_shares, c.available_shares
    HAVING c.available_shares + COALESCE(SUM(p.quantity), 0) <> c.total_shares
    ORDER BY c.id
""")

_SETTLEMENT_CONSERVATION_SQL = text("""
    SELECT fixture_id,
           home_cap_before + away_cap_before AS before_total,
           home_cap_after + away_cap_after AS after_total
    FROM settlements
    WHERE home_cap_before + away_cap_before <> home_cap_after + away_cap_after
    ORDER BY fixture_id
""")


async def verify_global_invariants(db: AsyncSession, min_market_cap: int) -> list[str]:
    """Return one human-readable string per violated invariant (empty when sound)."""
    violations: list[str] = []

    for row in (await db.execute(_NEGATIVE_WALLETS_SQL)).fetchall():
        violations.append(f"wallet {row.user_id} has negative balance {row.balance}")

    for row in (await db.execute(_NEGATIVE_POSITIONS_SQL)).fetchall():
        violations.append(
            f"position {row.user_id}/{row.club_id} is negative: "
            f"quantity={row.quantity} total_invested={row.total_invested}"
        )

    floor_rows = (await db.execute(_CAP_BELOW_FLOOR_SQL, {"min_cap": min_market_cap})).fetchall()
    for row in floor_rows:
        violations.append(
            f"club {row.id} market cap {row.market_cap} is below floor {min_market_cap}"
        )

    for row in (await db.execute(_SHARE_CONSERVATION_SQL)).fetchall():
        violations.append(
            f"club {row.id} shares not conserved: available({row.available_shares}) + "
            f"held({row.held}) != total({row.total_shares})"
        )

    for row in (await db.execute(_SETTLEMENT_CONSERVATION_SQL)).fetchall():
        violations.append(
            f"fixture {row.fixture_id} settlement changed total cap "
            f"{row.before_total} -> {row.after_total}"
        )

    for msg in violations:
        logger.error("Invariant violated: %s", msg)
    return violations
