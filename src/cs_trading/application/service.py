"""TradingApplicationService — request/response mapping around the executor."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_common.pagination import cursor_decode, cursor_encode
from src.cs_trading.application.schemas import (
    OrderItem,
    OrderListResponse,
    PlaceTradeRequest,
    TradeResponse,
)
from src.cs_trading.domain.models import TradeRequest
from src.cs_trading.domain.repository import OrderRepositoryProtocol
from src.cs_trading.engine.executor import TradeExecutor, get_trade_executor
from src.cs_trading.infrastructure.persistence import OrderRepository


class TradingApplicationService:
    def __init__(
        self,
        executor: TradeExecutor | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
    ) -> None:
        self._executor = executor
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()

    @property
    def executor(self) -> TradeExecutor:
        # Resolved lazily so the process-wide executor is shared.
        return self._executor or get_trade_executor()

    async def place_trade(
        self, db: AsyncSession, user_id: str, body: PlaceTradeRequest
    ) -> TradeResponse:
        result = await self.executor.execute_trade(
            db,
            TradeRequest(
                user_id=user_id,
                club_id=body.club_id,
                side=body.side.upper(),
                quantity=body.quantity,
                expected_price_cents=body.expected_price_cents,
            ),
        )
        return TradeResponse.from_result(result)

    async def list_orders(
        self,
        db: AsyncSession,
        user_id: str,
        club_id: int | None,
        cursor: str | None,
        limit: int,
    ) -> OrderListResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        orders = await self._orders.list_orders(db, user_id, club_id, cursor_id, limit + 1)
        has_more = len(orders) > limit
        page = orders[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return OrderListResponse(
            items=[OrderItem.from_domain(o) for o in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
