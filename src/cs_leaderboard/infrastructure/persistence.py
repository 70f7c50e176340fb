"""LeaderboardRepository — concrete implementation of LeaderboardRepositoryProtocol.

All queries use raw text() SQL (no ORM) and only read. Point-in-time values
come from the append-only histories: ``wallet_transactions.balance_after``,
``orders.position_quantity_after`` and ``club_ledger.share_price_after``.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.enums import WalletTransactionType
from src.cs_leaderboard.domain.models import Holding

_FUNDING_TYPES = (
    WalletTransactionType.DEPOSIT.value,
    WalletTransactionType.CREDIT_LOAN.value,
    WalletTransactionType.CREDIT_REVERSAL.value,
)

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_CURRENT_BALANCES_SQL = text("SELECT user_id, balance FROM wallets")

_CURRENT_HOLDINGS_SQL = text("""
    SELECT user_id, club_id, quantity FROM positions
    WHERE quantity > 0
""")

_BALANCES_BEFORE_SQL = text("""
    SELECT DISTINCT ON (user_id) user_id, balance_after AS balance
    FROM wallet_transactions
    WHERE created_at < :since
    ORDER BY user_id, id DESC
""")

_HOLDINGS_BEFORE_SQL = text("""
    SELECT DISTINCT ON (user_id, club_id)
           user_id, club_id, position_quantity_after AS quantity
    FROM orders
    WHERE executed_at < :since
    ORDER BY user_id, club_id, id DESC
""")

_FUNDING_SINCE_SQL = text("""
    SELECT user_id, SUM(amount) AS amount
    FROM wallet_transactions
    WHERE created_at >= :since AND tx_type IN (:deposit, :loan, :reversal)
    GROUP BY user_id
""")

_PRICES_BEFORE_SQL = text("""
    SELECT DISTINCT ON (club_id) club_id, share_price_after AS price
    FROM club_ledger
    WHERE created_at < :since
    ORDER BY club_id, id DESC
""")


def _row_to_holding(row: object) -> Holding:
    return Holding(
        user_id=row.user_id,  # type: ignore[attr-defined]
        club_id=row.club_id,  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
    )


class LeaderboardRepository:
    async def current_balances(self, db: AsyncSession) -> dict[str, int]:
        result = await db.execute(_CURRENT_BALANCES_SQL)
        return {row.user_id: row.balance for row in result.fetchall()}

    async def current_holdings(self, db: AsyncSession) -> list[Holding]:
        result = await db.execute(_CURRENT_HOLDINGS_SQL)
        return [_row_to_holding(row) for row in result.fetchall()]

    async def balances_before(self, db: AsyncSession, since: datetime) -> dict[str, int]:
        result = await db.execute(_BALANCES_BEFORE_SQL, {"since": since})
        return {row.user_id: row.balance for row in result.fetchall()}

    async def holdings_before(self, db: AsyncSession, since: datetime) -> list[Holding]:
        result = await db.execute(_HOLDINGS_BEFORE_SQL, {"since": since})
        return [_row_to_holding(row) for row in result.fetchall() if row.quantity > 0]

    async def funding_since(self, db: AsyncSession, since: datetime) -> dict[str, int]:
        deposit, loan, reversal = _FUNDING_TYPES
        result = await db.execute(
            _FUNDING_SINCE_SQL,
            {"since": since, "deposit": deposit, "loan": loan, "reversal": reversal},
        )
        return {row.user_id: int(row.amount) for row in result.fetchall()}

    async def share_prices_before(self, db: AsyncSession, since: datetime) -> dict[int, int]:
        result = await db.execute(_PRICES_BEFORE_SQL, {"since": since})
        return {row.club_id: row.price for row in result.fetchall()}
