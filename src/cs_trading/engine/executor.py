"""TradeExecutor — the single writer of trade effects.

One trade is one unit of work:

  1. take the in-process serialization points for the club and the user;
  2. in one transaction lock club -> wallet -> position rows (FOR UPDATE);
  3. price from the locked cap, re-validate, write every effect, commit;
  4. release, then publish events.

Anything that fails inside (2)-(3) rolls the whole transaction back, so a
rejected or failed trade leaves no trace.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_account.domain.models import Position, Wallet
from src.cs_account.domain.repository import AccountRepositoryProtocol
from src.cs_account.infrastructure.persistence import AccountRepository
from src.cs_club.domain.models import Club
from src.cs_club.domain.repository import ClubRepositoryProtocol
from src.cs_club.infrastructure.persistence import ClubRepository
from src.cs_common.database import set_lock_timeout
from src.cs_common.datetime_utils import utc_now
from src.cs_common.enums import ClubLedgerType, OrderSide, OrderStatus, WalletTransactionType
from src.cs_common.errors import ClubNotFoundError, InvalidSideError, MarketCapFloorError
from src.cs_common.events import (
    DomainEvent,
    EventPublisherProtocol,
    MarketCapChanged,
    OrderFilled,
    RedisEventPublisher,
    WalletChanged,
)
from src.cs_common.locks import KeyedLockRegistry, club_key, get_lock_registry, user_key
from src.cs_common.retry import run_with_db_retry
from src.cs_risk.rules.limits import TradingRules
from src.cs_risk.rules.order_limit import check_order_quantity
from src.cs_risk.rules.validator import validate_buy, validate_sell
from src.cs_settlement.domain.repository import FixtureRepositoryProtocol
from src.cs_settlement.infrastructure.persistence import FixtureRepository
from src.cs_trading.domain.models import Order, TradeRequest, TradeResult
from src.cs_trading.domain.repository import OrderRepositoryProtocol
from src.cs_trading.infrastructure.persistence import OrderRepository
from src.cs_valuation.domain.pricing import (
    proportional_cost_cents,
    share_price_cents,
    trade_amount_cents,
)

logger = logging.getLogger(__name__)


@dataclass
class _LockedState:
    club: Club
    wallet: Wallet | None
    position: Position | None
    window_open: bool


class TradeExecutor:
    def __init__(
        self,
        club_repo: ClubRepositoryProtocol | None = None,
        account_repo: AccountRepositoryProtocol | None = None,
        order_repo: OrderRepositoryProtocol | None = None,
        fixture_repo: FixtureRepositoryProtocol | None = None,
        publisher: EventPublisherProtocol | None = None,
        locks: KeyedLockRegistry | None = None,
        rules: TradingRules | None = None,
        clock: Callable[[], datetime] = utc_now,
        retry_backoff_seconds: float = 0.05,
    ) -> None:
        self._clubs: ClubRepositoryProtocol = club_repo or ClubRepository()
        self._accounts: AccountRepositoryProtocol = account_repo or AccountRepository()
        self._orders: OrderRepositoryProtocol = order_repo or OrderRepository()
        self._fixtures: FixtureRepositoryProtocol = fixture_repo or FixtureRepository()
        self._publisher: EventPublisherProtocol = publisher or RedisEventPublisher()
        self._locks = locks or get_lock_registry()
        self._rules = rules or TradingRules.from_settings()
        self._clock = clock
        self._backoff = retry_backoff_seconds

    async def execute_trade(self, db: AsyncSession, request: TradeRequest) -> TradeResult:
        """Execute one BUY or SELL at the authoritative current price."""
        try:
            side = OrderSide(request.side)
        except ValueError as exc:
            raise InvalidSideError(request.side) from exc
        request = replace(request, side=side.value)
        check_order_quantity(request.quantity, self._rules.max_order_quantity)

        # Cheap rejection against an unlocked snapshot before queueing for locks.
        await self._precheck(db, request)

        result, events = await run_with_db_retry(
            lambda: self._execute_serialized(db, request),
            max_retries=self._rules.max_retries,
            backoff_seconds=self._backoff,
            label=f"Trade {request.side} club={request.club_id} user={request.user_id}",
        )
        await self._publisher.publish(events)
        return result

    # ------------------------------------------------------------------
    # Phases
    # ------------------------------------------------------------------

    async def _precheck(self, db: AsyncSession, request: TradeRequest) -> None:
        try:
            club = await self._clubs.get_club(db, request.club_id)
            if club is None:
                raise ClubNotFoundError(request.club_id)
            state = _LockedState(
                club=club,
                wallet=await self._accounts.get_wallet(db, request.user_id),
                position=await self._accounts.get_position(db, request.user_id, club.id),
                window_open=await self._fixtures.is_trading_window_open(
                    db, club.id, self._clock()
                ),
            )
            self._validate(request, state)
        finally:
            await db.rollback()

    async def _execute_serialized(
        self, db: AsyncSession, request: TradeRequest
    ) -> tuple[TradeResult, list[DomainEvent]]:
        keys = (club_key(request.club_id), user_key(request.user_id))
        async with self._locks.acquire(*keys, timeout=self._rules.lock_timeout_seconds):
            try:
                await set_lock_timeout(db, self._rules.lock_timeout_seconds)
                state = await self._lock_rows(db, request)
                if request.side == OrderSide.BUY:
                    result = await self._apply_buy(db, request, state)
                else:
                    result = await self._apply_sell(db, request, state)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Trade filled: order=%d user=%s club=%d side=%s qty=%d price=%d amount=%d cap=%d",
            result.order_id,
            request.user_id,
            request.club_id,
            result.side,
            result.quantity,
            result.price_per_share,
            result.total_amount,
            result.market_cap,
        )
        events: list[DomainEvent] = [
            MarketCapChanged(request.club_id, result.market_cap, result.share_price_after),
            OrderFilled(
                result.order_id,
                request.user_id,
                request.club_id,
                result.side,
                result.quantity,
                result.total_amount,
            ),
            WalletChanged(request.user_id, result.wallet_balance),
        ]
        return result, events

    async def _lock_rows(self, db: AsyncSession, request: TradeRequest) -> _LockedState:
        # Fixed order: club -> wallet -> position.
        club = await self._clubs.get_club_for_update(db, request.club_id)
        if club is None:
            raise ClubNotFoundError(request.club_id)
        wallet = await self._accounts.get_wallet_for_update(db, request.user_id)
        if wallet is None and request.side == OrderSide.SELL:
            wallet = await self._accounts.ensure_wallet_for_update(db, request.user_id)
        position = await self._accounts.get_position_for_update(db, request.user_id, club.id)
        window_open = await self._fixtures.is_trading_window_open(db, club.id, self._clock())
        return _LockedState(club, wallet, position, window_open)

    def _price(self, club: Club) -> int:
        return share_price_cents(
            club.market_cap, club.total_shares, self._rules.default_share_price_cents
        )

    def _validate(self, request: TradeRequest, state: _LockedState) -> int:
        """Run every rule against ``state``; return the trade amount in cents."""
        club = state.club
        price = self._price(club)
        if request.side == OrderSide.BUY:
            return validate_buy(
                club_id=club.id,
                quantity=request.quantity,
                price_cents=price,
                wallet_balance_cents=state.wallet.balance if state.wallet else 0,
                available_shares=club.available_shares,
                window_open=state.window_open,
                rules=self._rules,
                expected_price_cents=request.expected_price_cents,
            )

        validate_sell(
            club_id=club.id,
            quantity=request.quantity,
            price_cents=price,
            held_quantity=state.position.quantity if state.position else 0,
            window_open=state.window_open,
            rules=self._rules,
            expected_price_cents=request.expected_price_cents,
        )
        amount = trade_amount_cents(price, request.quantity)
        new_cap = club.market_cap - amount
        if new_cap < self._rules.min_market_cap_cents:
            raise MarketCapFloorError(club.id, new_cap, self._rules.min_market_cap_cents)
        return amount

    async def _apply_buy(
        self, db: AsyncSession, request: TradeRequest, state: _LockedState
    ) -> TradeResult:
        amount = self._validate(request, state)
        assert state.wallet is not None  # a missing wallet fails the funds check
        club = state.club
        price = self._price(club)
        quantity = request.quantity

        new_cap = club.market_cap + amount
        await self._clubs.update_club_state(
            db, club.id, new_cap, club.available_shares - quantity
        )
        wallet = await self._accounts.set_wallet_balance(
            db, request.user_id, state.wallet.balance - amount
        )
        current = state.position or Position(user_id=request.user_id, club_id=club.id)
        position = await self._accounts.save_position(
            db,
            replace(
                current,
                quantity=current.quantity + quantity,
                total_invested=current.total_invested + amount,
            ),
        )
        return await self._record(
            db, request, club, price, amount, new_cap, wallet, position,
            WalletTransactionType.PURCHASE.value, ClubLedgerType.SHARE_PURCHASE.value,
        )

    async def _apply_sell(
        self, db: AsyncSession, request: TradeRequest, state: _LockedState
    ) -> TradeResult:
        amount = self._validate(request, state)
        assert state.wallet is not None and state.position is not None
        club = state.club
        price = self._price(club)
        quantity = request.quantity
        held = state.position

        new_cap = club.market_cap - amount
        await self._clubs.update_club_state(
            db, club.id, new_cap, club.available_shares + quantity
        )
        wallet = await self._accounts.set_wallet_balance(
            db, request.user_id, state.wallet.balance + amount
        )
        cost = proportional_cost_cents(held.total_invested, held.quantity, quantity)
        position = await self._accounts.save_position(
            db,
            replace(
                held,
                quantity=held.quantity - quantity,
                total_invested=held.total_invested - cost,
                realized_pnl=held.realized_pnl + amount - cost,
            ),
        )
        return await self._record(
            db, request, club, price, amount, new_cap, wallet, position,
            WalletTransactionType.SALE.value, ClubLedgerType.SHARE_SALE.value,
        )

    async def _record(
        self,
        db: AsyncSession,
        request: TradeRequest,
        club: Club,
        price: int,
        amount: int,
        new_cap: int,
        wallet: Wallet,
        position: Position,
        tx_type: str,
        ledger_type: str,
    ) -> TradeResult:
        """Append the order, wallet transaction and club-ledger rows."""
        order = await self._orders.insert_order(
            db,
            Order(
                id=0,
                user_id=request.user_id,
                club_id=club.id,
                side=request.side,
                quantity=request.quantity,
                price_per_share=price,
                total_amount=amount,
                status=OrderStatus.FILLED.value,
                market_cap_before=club.market_cap,
                market_cap_after=new_cap,
                position_quantity_after=position.quantity,
            ),
        )
        signed = -amount if request.side == OrderSide.BUY else amount
        await self._accounts.insert_wallet_transaction(
            db, request.user_id, tx_type, signed, wallet.balance, f"order:{order.id}"
        )
        price_after = self._price(replace(club, market_cap=new_cap))
        await self._clubs.insert_club_ledger(
            db,
            club.id,
            ledger_type,
            club.market_cap,
            new_cap,
            price,
            price_after,
            amount,
            "order",
            str(order.id),
            f"{request.side} {request.quantity} @ {price}",
        )
        return TradeResult(
            order_id=order.id,
            side=request.side,
            quantity=request.quantity,
            price_per_share=price,
            total_amount=amount,
            wallet_balance=wallet.balance,
            market_cap=new_cap,
            share_price_after=price_after,
            position_quantity=position.quantity,
        )


_executor: TradeExecutor | None = None


def get_trade_executor() -> TradeExecutor:
    global _executor  # noqa: PLW0603
    if _executor is None:
        _executor = TradeExecutor()
    return _executor
