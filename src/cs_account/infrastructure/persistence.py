"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

Wallet and position mutations are plain writes of values the caller has
already validated against rows it read FOR UPDATE; the table CHECK
constraints (balance >= 0, quantity >= 0) are the last line of defence.

Transaction ownership: The CALLER (executor or application service) is
responsible for committing or rolling back.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_account.domain.models import Position, Wallet, WalletTransaction
from src.cs_common.enums import WalletTransactionType
from src.cs_common.errors import InternalError, WalletNotFoundError

# ---------------------------------------------------------------------------
# SQL: wallets
# ---------------------------------------------------------------------------

_WALLET_COLUMNS = "user_id, balance, version, created_at, updated_at"

_GET_WALLET_SQL = text(f"SELECT {_WALLET_COLUMNS} FROM wallets WHERE user_id = :user_id")

_GET_WALLET_FOR_UPDATE_SQL = text(
    f"SELECT {_WALLET_COLUMNS} FROM wallets WHERE user_id = :user_id FOR UPDATE"
)

_CREATE_WALLET_SQL = text("""
    INSERT INTO wallets (user_id, balance)
    VALUES (:user_id, 0)
    ON CONFLICT (user_id) DO NOTHING
""")

_SET_WALLET_BALANCE_SQL = text(f"""
    UPDATE wallets
    SET balance = :balance,
        version = version + 1,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_WALLET_COLUMNS}
""")

_TX_COLUMNS = "id, user_id, tx_type, amount, balance_after, reference, created_at"

_INSERT_TX_SQL = text(f"""
    INSERT INTO wallet_transactions (user_id, tx_type, amount, balance_after, reference)
    VALUES (:user_id, :tx_type, :amount, :balance_after, :reference)
    RETURNING {_TX_COLUMNS}
""")

_LIST_TX_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")

_GET_TX_SQL = text(f"SELECT {_TX_COLUMNS} FROM wallet_transactions WHERE id = :tx_id")

_HAS_REVERSAL_SQL = text("""
    SELECT EXISTS (
        SELECT 1 FROM wallet_transactions
        WHERE tx_type = :tx_type AND reference = :reference
    )
""")

# ---------------------------------------------------------------------------
# SQL: positions
# ---------------------------------------------------------------------------

_POSITION_COLUMNS = """
    user_id, club_id, quantity, total_invested, realized_pnl, created_at, updated_at
"""

_GET_POSITION_SQL = text(f"""
    SELECT {_POSITION_COLUMNS} FROM positions
    WHERE user_id = :user_id AND club_id = :club_id
""")

_GET_POSITION_FOR_UPDATE_SQL = text(f"""
    SELECT {_POSITION_COLUMNS} FROM positions
    WHERE user_id = :user_id AND club_id = :club_id
    FOR UPDATE
""")

_UPSERT_POSITION_SQL = text(f"""
    INSERT INTO positions (user_id, club_id, quantity, total_invested, realized_pnl)
    VALUES (:user_id, :club_id, :quantity, :total_invested, :realized_pnl)
    ON CONFLICT (user_id, club_id) DO UPDATE
        SET quantity = EXCLUDED.quantity,
            total_invested = EXCLUDED.total_invested,
            realized_pnl = EXCLUDED.realized_pnl,
            updated_at = NOW()
    RETURNING {_POSITION_COLUMNS}
""")

_LIST_POSITIONS_SQL = text(f"""
    SELECT {_POSITION_COLUMNS} FROM positions
    WHERE user_id = :user_id AND (CAST(:include_closed AS BOOLEAN) OR quantity > 0)
    ORDER BY club_id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_wallet(row: object) -> Wallet:
    return Wallet(
        user_id=row.user_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_tx(row: object) -> WalletTransaction:
    return WalletTransaction(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        tx_type=row.tx_type,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        balance_after=row.balance_after,  # type: ignore[attr-defined]
        reference=row.reference,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


def _row_to_position(row: object) -> Position:
    return Position(
        user_id=row.user_id,  # type: ignore[attr-defined]
        club_id=row.club_id,  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
        total_invested=row.total_invested,  # type: ignore[attr-defined]
        realized_pnl=row.realized_pnl,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


class AccountRepository:
    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None:
        row = (await db.execute(_GET_WALLET_SQL, {"user_id": user_id})).fetchone()
        return _row_to_wallet(row) if row else None

    async def get_wallet_for_update(self, db: AsyncSession, user_id: str) -> Wallet | None:
        row = (await db.execute(_GET_WALLET_FOR_UPDATE_SQL, {"user_id": user_id})).fetchone()
        return _row_to_wallet(row) if row else None

    async def ensure_wallet_for_update(self, db: AsyncSession, user_id: str) -> Wallet:
        """Lock the user's wallet, creating an empty one on first credit."""
        await db.execute(_CREATE_WALLET_SQL, {"user_id": user_id})
        wallet = await self.get_wallet_for_update(db, user_id)
        if wallet is None:
            raise InternalError(f"Wallet for {user_id} vanished after insert")
        return wallet

    async def set_wallet_balance(self, db: AsyncSession, user_id: str, balance: int) -> Wallet:
        row = (
            await db.execute(_SET_WALLET_BALANCE_SQL, {"user_id": user_id, "balance": balance})
        ).fetchone()
        if row is None:
            raise WalletNotFoundError(user_id)
        return _row_to_wallet(row)

    async def insert_wallet_transaction(
        self,
        db: AsyncSession,
        user_id: str,
        tx_type: str,
        amount: int,
        balance_after: int,
        reference: str | None,
    ) -> WalletTransaction:
        row = (
            await db.execute(
                _INSERT_TX_SQL,
                {
                    "user_id": user_id,
                    "tx_type": tx_type,
                    "amount": amount,
                    "balance_after": balance_after,
                    "reference": reference,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Wallet transaction insert returned no rows")
        return _row_to_tx(row)

    async def list_wallet_transactions(
        self, db: AsyncSession, user_id: str, cursor_id: int | None, limit: int
    ) -> list[WalletTransaction]:
        rows = (
            await db.execute(
                _LIST_TX_SQL, {"user_id": user_id, "cursor_id": cursor_id, "limit": limit}
            )
        ).fetchall()
        return [_row_to_tx(row) for row in rows]

    async def get_wallet_transaction(
        self, db: AsyncSession, tx_id: int
    ) -> WalletTransaction | None:
        row = (await db.execute(_GET_TX_SQL, {"tx_id": tx_id})).fetchone()
        return _row_to_tx(row) if row else None

    async def has_reversal_for(self, db: AsyncSession, tx_id: int) -> bool:
        result = await db.execute(
            _HAS_REVERSAL_SQL,
            {"tx_type": WalletTransactionType.CREDIT_REVERSAL.value, "reference": f"tx:{tx_id}"},
        )
        return bool(result.scalar_one())

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    async def get_position(
        self, db: AsyncSession, user_id: str, club_id: int
    ) -> Position | None:
        row = (
            await db.execute(_GET_POSITION_SQL, {"user_id": user_id, "club_id": club_id})
        ).fetchone()
        return _row_to_position(row) if row else None

    async def get_position_for_update(
        self, db: AsyncSession, user_id: str, club_id: int
    ) -> Position | None:
        row = (
            await db.execute(
                _GET_POSITION_FOR_UPDATE_SQL, {"user_id": user_id, "club_id": club_id}
            )
        ).fetchone()
        return _row_to_position(row) if row else None

    async def save_position(self, db: AsyncSession, position: Position) -> Position:
        row = (
            await db.execute(
                _UPSERT_POSITION_SQL,
                {
                    "user_id": position.user_id,
                    "club_id": position.club_id,
                    "quantity": position.quantity,
                    "total_invested": position.total_invested,
                    "realized_pnl": position.realized_pnl,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Position upsert returned no rows")
        return _row_to_position(row)

    async def list_positions(
        self, db: AsyncSession, user_id: str, include_closed: bool = False
    ) -> list[Position]:
        rows = (
            await db.execute(
                _LIST_POSITIONS_SQL, {"user_id": user_id, "include_closed": include_closed}
            )
        ).fetchall()
        return [_row_to_position(row) for row in rows]
