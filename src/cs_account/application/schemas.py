"""Pydantic schemas for cs_account API."""

from typing import Literal

from pydantic import BaseModel, Field

from src.cs_account.domain.models import Position, WalletTransaction
from src.cs_common.cents import cents_to_display
from src.cs_valuation.domain.pricing import average_cost_cents

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreditWalletRequest(BaseModel):
    user_id: str = Field(..., min_length=1, max_length=64)
    amount_cents: int = Field(..., gt=0, description="Amount to credit in cents")
    kind: Literal["DEPOSIT", "CREDIT_LOAN"] = "DEPOSIT"
    reference: str | None = Field(None, max_length=128)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WalletResponse(BaseModel):
    user_id: str
    balance_cents: int
    balance_display: str

    @classmethod
    def from_cents(cls, user_id: str, balance: int) -> "WalletResponse":
        return cls(user_id=user_id, balance_cents=balance, balance_display=cents_to_display(balance))


class WalletChangeResponse(BaseModel):
    user_id: str
    transaction_id: int
    tx_type: str
    amount_cents: int
    balance_cents: int
    balance_display: str

    @classmethod
    def from_transaction(cls, tx: WalletTransaction) -> "WalletChangeResponse":
        return cls(
            user_id=tx.user_id,
            transaction_id=tx.id,
            tx_type=tx.tx_type,
            amount_cents=tx.amount,
            balance_cents=tx.balance_after,
            balance_display=cents_to_display(tx.balance_after),
        )


class WalletTransactionItem(BaseModel):
    id: int
    tx_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference: str | None
    created_at: str


class WalletTransactionResponse(BaseModel):
    items: list[WalletTransactionItem]
    next_cursor: str | None
    has_more: bool


class PositionItem(BaseModel):
    club_id: int
    quantity: int
    total_invested_cents: int
    average_cost_cents: int
    realized_pnl_cents: int
    is_open: bool

    @classmethod
    def from_domain(cls, position: Position) -> "PositionItem":
        return cls(
            club_id=position.club_id,
            quantity=position.quantity,
            total_invested_cents=position.total_invested,
            average_cost_cents=average_cost_cents(position.total_invested, position.quantity),
            realized_pnl_cents=position.realized_pnl,
            is_open=position.is_open,
        )


class PositionListResponse(BaseModel):
    items: list[PositionItem]


class PortfolioItem(BaseModel):
    club_id: int
    club_name: str
    quantity: int
    current_price_cents: int
    market_value_cents: int
    market_value_display: str
    total_invested_cents: int
    average_cost_cents: int
    unrealized_pnl_cents: int
    unrealized_pnl_display: str
    percent_change: float
    realized_pnl_cents: int
    portfolio_percentage: float


class PortfolioResponse(BaseModel):
    user_id: str
    cash_balance_cents: int
    total_market_value_cents: int
    total_market_value_display: str
    total_invested_cents: int
    total_unrealized_pnl_cents: int
    total_realized_pnl_cents: int
    items: list[PortfolioItem]
