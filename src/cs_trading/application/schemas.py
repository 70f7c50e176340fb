"""Pydantic schemas for cs_trading API."""

from pydantic import BaseModel, Field

from src.cs_common.cents import cents_to_display
from src.cs_trading.domain.models import Order, TradeResult

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PlaceTradeRequest(BaseModel):
    club_id: int
    side: str = Field(..., description="BUY or SELL")
    quantity: int = Field(..., description="Whole shares")
    expected_price_cents: int | None = Field(
        None, description="Price the user was shown; rejected if the price has moved"
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TradeResponse(BaseModel):
    order_id: int
    side: str
    quantity: int
    price_per_share_cents: int
    price_per_share_display: str
    total_amount_cents: int
    total_amount_display: str
    wallet_balance_cents: int
    wallet_balance_display: str
    market_cap_cents: int
    share_price_after_cents: int
    position_quantity: int

    @classmethod
    def from_result(cls, result: TradeResult) -> "TradeResponse":
        return cls(
            order_id=result.order_id,
            side=result.side,
            quantity=result.quantity,
            price_per_share_cents=result.price_per_share,
            price_per_share_display=cents_to_display(result.price_per_share),
            total_amount_cents=result.total_amount,
            total_amount_display=cents_to_display(result.total_amount),
            wallet_balance_cents=result.wallet_balance,
            wallet_balance_display=cents_to_display(result.wallet_balance),
            market_cap_cents=result.market_cap,
            share_price_after_cents=result.share_price_after,
            position_quantity=result.position_quantity,
        )


class OrderItem(BaseModel):
    id: int
    club_id: int
    side: str
    quantity: int
    price_per_share_cents: int
    total_amount_cents: int
    total_amount_display: str
    status: str
    market_cap_before_cents: int
    market_cap_after_cents: int
    position_quantity_after: int
    executed_at: str

    @classmethod
    def from_domain(cls, order: Order) -> "OrderItem":
        return cls(
            id=order.id,
            club_id=order.club_id,
            side=order.side,
            quantity=order.quantity,
            price_per_share_cents=order.price_per_share,
            total_amount_cents=order.total_amount,
            total_amount_display=cents_to_display(order.total_amount),
            status=order.status,
            market_cap_before_cents=order.market_cap_before,
            market_cap_after_cents=order.market_cap_after,
            position_quantity_after=order.position_quantity_after,
            executed_at=order.executed_at.isoformat() if order.executed_at else "",
        )


class OrderListResponse(BaseModel):
    items: list[OrderItem]
    next_cursor: str | None
    has_more: bool
