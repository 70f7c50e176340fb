"""Repository Protocol for the append-only order history."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_trading.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def insert_order(self, db: AsyncSession, order: Order) -> Order: ...

    async def list_orders(
        self,
        db: AsyncSession,
        user_id: str,
        club_id: int | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[Order]: ...
