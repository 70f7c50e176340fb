"""OrderRepository — raw SQL for the orders table.

Orders are written once, in the same transaction as the wallet, position and
club updates they describe, and never updated afterwards (a trigger in the
schema rejects UPDATE and DELETE).
"""

from dataclasses import replace

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.errors import InternalError
from src.cs_trading.domain.models import Order

_ORDER_COLUMNS = """
    id, user_id, club_id, side, quantity, price_per_share, total_amount, status,
    market_cap_before, market_cap_after, position_quantity_after, executed_at
"""

_INSERT_ORDER_SQL = text("""
    INSERT INTO orders
        (user_id, club_id, side, quantity, price_per_share, total_amount, status,
         market_cap_before, market_cap_after, position_quantity_after)
    VALUES
        (:user_id, :club_id, :side, :quantity, :price_per_share, :total_amount, :status,
         :market_cap_before, :market_cap_after, :position_quantity_after)
    RETURNING id, executed_at
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM orders
    WHERE user_id = :user_id
      AND (CAST(:club_id AS INTEGER) IS NULL OR club_id = CAST(:club_id AS INTEGER))
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_order(row: object) -> Order:
    return Order(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        club_id=row.club_id,  # type: ignore[attr-defined]
        side=row.side,  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
        price_per_share=row.price_per_share,  # type: ignore[attr-defined]
        total_amount=row.total_amount,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        market_cap_before=row.market_cap_before,  # type: ignore[attr-defined]
        market_cap_after=row.market_cap_after,  # type: ignore[attr-defined]
        position_quantity_after=row.position_quantity_after,  # type: ignore[attr-defined]
        executed_at=row.executed_at,  # type: ignore[attr-defined]
    )


class OrderRepository:
    async def insert_order(self, db: AsyncSession, order: Order) -> Order:
        """Insert and return ``order`` with its database id and timestamp."""
        row = (
            await db.execute(
                _INSERT_ORDER_SQL,
                {
                    "user_id": order.user_id,
                    "club_id": order.club_id,
                    "side": order.side,
                    "quantity": order.quantity,
                    "price_per_share": order.price_per_share,
                    "total_amount": order.total_amount,
                    "status": order.status,
                    "market_cap_before": order.market_cap_before,
                    "market_cap_after": order.market_cap_after,
                    "position_quantity_after": order.position_quantity_after,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Order insert returned no rows")
        return replace(order, id=row.id, executed_at=row.executed_at)  # type: ignore[attr-defined]

    async def list_orders(
        self,
        db: AsyncSession,
        user_id: str,
        club_id: int | None,
        cursor_id: int | None,
        limit: int,
    ) -> list[Order]:
        rows = (
            await db.execute(
                _LIST_ORDERS_SQL,
                {"user_id": user_id, "club_id": club_id, "cursor_id": cursor_id, "limit": limit},
            )
        ).fetchall()
        return [_row_to_order(row) for row in rows]
