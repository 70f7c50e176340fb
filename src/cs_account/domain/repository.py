"""Repository Protocol — dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_account.domain.models import Position, Wallet, WalletTransaction


class AccountRepositoryProtocol(Protocol):
    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None: ...

    async def get_wallet_for_update(self, db: AsyncSession, user_id: str) -> Wallet | None: ...

    async def ensure_wallet_for_update(self, db: AsyncSession, user_id: str) -> Wallet: ...

    async def set_wallet_balance(
        self, db: AsyncSession, user_id: str, balance: int
    ) -> Wallet: ...

    async def insert_wallet_transaction(
        self,
        db: AsyncSession,
        user_id: str,
        tx_type: str,
        amount: int,
        balance_after: int,
        reference: str | None,
    ) -> WalletTransaction: ...

    async def list_wallet_transactions(
        self, db: AsyncSession, user_id: str, cursor_id: int | None, limit: int
    ) -> list[WalletTransaction]: ...

    async def get_wallet_transaction(
        self, db: AsyncSession, tx_id: int
    ) -> WalletTransaction | None: ...

    async def has_reversal_for(self, db: AsyncSession, tx_id: int) -> bool: ...

    async def get_position(
        self, db: AsyncSession, user_id: str, club_id: int
    ) -> Position | None: ...

    async def get_position_for_update(
        self, db: AsyncSession, user_id: str, club_id: int
    ) -> Position | None: ...

    async def save_position(self, db: AsyncSession, position: Position) -> Position: ...

    async def list_positions(
        self, db: AsyncSession, user_id: str, include_closed: bool = False
    ) -> list[Position]: ...
