"""AccountApplicationService — wallet, positions, portfolio and wallet credits.

Reads run without an explicit transaction. Credits and credit reversals are
serialized on the user's wallet exactly like trades are: the ``user:<id>``
lock, a FOR UPDATE row lock, one commit, then a ``wallet_changed`` event.
"""

import logging
from collections.abc import Awaitable, Callable

from sqlalchemy.ext.asyncio import AsyncSession

from src.cs_account.application.schemas import (
    PortfolioItem,
    PortfolioResponse,
    PositionItem,
    PositionListResponse,
    WalletChangeResponse,
    WalletResponse,
    WalletTransactionItem,
    WalletTransactionResponse,
)
from src.cs_account.domain.models import Position, WalletTransaction
from src.cs_account.domain.repository import AccountRepositoryProtocol
from src.cs_account.infrastructure.persistence import AccountRepository
from src.cs_club.domain.repository import ClubRepositoryProtocol
from src.cs_club.infrastructure.persistence import ClubRepository
from src.cs_common.cents import cents_to_display
from src.cs_common.database import set_lock_timeout
from src.cs_common.enums import WalletTransactionType
from src.cs_common.errors import (
    ClubNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
    InvalidCreditKindError,
    InvalidReversalError,
    WalletNotFoundError,
)
from src.cs_common.events import EventPublisherProtocol, RedisEventPublisher, WalletChanged
from src.cs_common.locks import KeyedLockRegistry, get_lock_registry, user_key
from src.cs_common.pagination import cursor_decode, cursor_encode
from src.cs_common.retry import run_with_db_retry
from src.cs_risk.rules.limits import TradingRules
from src.cs_valuation.domain.pricing import (
    average_cost_cents,
    percent_change,
    portfolio_percentage,
    profit_loss_cents,
)

logger = logging.getLogger(__name__)

_CREDIT_KINDS = (WalletTransactionType.DEPOSIT.value, WalletTransactionType.CREDIT_LOAN.value)


class AccountApplicationService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        club_repo: ClubRepositoryProtocol | None = None,
        publisher: EventPublisherProtocol | None = None,
        locks: KeyedLockRegistry | None = None,
        rules: TradingRules | None = None,
        retry_backoff_seconds: float = 0.05,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._clubs: ClubRepositoryProtocol = club_repo or ClubRepository()
        self._publisher: EventPublisherProtocol = publisher or RedisEventPublisher()
        self._locks = locks or get_lock_registry()
        self._rules = rules or TradingRules.from_settings()
        self._backoff = retry_backoff_seconds

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_wallet(self, db: AsyncSession, user_id: str) -> WalletResponse:
        wallet = await self._repo.get_wallet(db, user_id)
        # Wallets are created on first credit; before that the balance is 0.
        return WalletResponse.from_cents(user_id, wallet.balance if wallet else 0)

    async def list_transactions(
        self, db: AsyncSession, user_id: str, cursor: str | None, limit: int
    ) -> WalletTransactionResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        txs = await self._repo.list_wallet_transactions(db, user_id, cursor_id, limit + 1)
        has_more = len(txs) > limit
        page = txs[:limit]

        items = [
            WalletTransactionItem(
                id=t.id,
                tx_type=t.tx_type,
                amount_cents=t.amount,
                amount_display=cents_to_display(t.amount),
                balance_after_cents=t.balance_after,
                balance_after_display=cents_to_display(t.balance_after),
                reference=t.reference,
                created_at=t.created_at.isoformat() if t.created_at else "",
            )
            for t in page
        ]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return WalletTransactionResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def get_position(self, db: AsyncSession, user_id: str, club_id: int) -> PositionItem:
        if await self._clubs.get_club(db, club_id) is None:
            raise ClubNotFoundError(club_id)
        position = await self._repo.get_position(db, user_id, club_id)
        return PositionItem.from_domain(position or Position(user_id=user_id, club_id=club_id))

    async def list_positions(
        self, db: AsyncSession, user_id: str, include_closed: bool = False
    ) -> PositionListResponse:
        positions = await self._repo.list_positions(db, user_id, include_closed)
        return PositionListResponse(items=[PositionItem.from_domain(p) for p in positions])

    async def get_portfolio(self, db: AsyncSession, user_id: str) -> PortfolioResponse:
        """Value every open position at the current share price."""
        wallet = await self._repo.get_wallet(db, user_id)
        positions = await self._repo.list_positions(db, user_id, include_closed=True)

        rows: list[tuple[Position, str, int, int]] = []
        for position in positions:
            if not position.is_open:
                continue
            club = await self._clubs.get_club(db, position.club_id)
            if club is None:
                raise ClubNotFoundError(position.club_id)
            price = club.share_price
            rows.append((position, club.name, price, price * position.quantity))

        total_value = sum(value for _, _, _, value in rows)
        items = [
            PortfolioItem(
                club_id=p.club_id,
                club_name=name,
                quantity=p.quantity,
                current_price_cents=price,
                market_value_cents=value,
                market_value_display=cents_to_display(value),
                total_invested_cents=p.total_invested,
                average_cost_cents=average_cost_cents(p.total_invested, p.quantity),
                unrealized_pnl_cents=profit_loss_cents(value, p.total_invested),
                unrealized_pnl_display=cents_to_display(value - p.total_invested),
                percent_change=percent_change(value, p.total_invested),
                realized_pnl_cents=p.realized_pnl,
                portfolio_percentage=portfolio_percentage(value, total_value),
            )
            for p, name, price, value in rows
        ]
        total_invested = sum(p.total_invested for p, _, _, _ in rows)
        return PortfolioResponse(
            user_id=user_id,
            cash_balance_cents=wallet.balance if wallet else 0,
            total_market_value_cents=total_value,
            total_market_value_display=cents_to_display(total_value),
            total_invested_cents=total_invested,
            total_unrealized_pnl_cents=total_value - total_invested,
            total_realized_pnl_cents=sum(p.realized_pnl for p in positions),
            items=items,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def credit_wallet(
        self,
        db: AsyncSession,
        user_id: str,
        amount_cents: int,
        kind: str = WalletTransactionType.DEPOSIT.value,
        reference: str | None = None,
    ) -> WalletChangeResponse:
        """Credit a wallet (deposit or credit loan), creating it if needed."""
        _check_amount(amount_cents)
        if kind not in _CREDIT_KINDS:
            raise InvalidCreditKindError(kind)

        async def _credit() -> WalletTransaction:
            wallet = await self._repo.ensure_wallet_for_update(db, user_id)
            updated = await self._repo.set_wallet_balance(
                db, user_id, wallet.balance + amount_cents
            )
            return await self._repo.insert_wallet_transaction(
                db, user_id, kind, amount_cents, updated.balance, reference
            )

        tx = await self._serialized(db, user_id, _credit, f"Credit user={user_id}")
        logger.info("Wallet credited: user=%s type=%s amount=%d", user_id, kind, amount_cents)
        return WalletChangeResponse.from_transaction(tx)

    async def reverse_credit(self, db: AsyncSession, transaction_id: int) -> WalletChangeResponse:
        """Take back one credit loan; never lets the wallet go negative."""
        try:
            original = await self._repo.get_wallet_transaction(db, transaction_id)
        finally:
            await db.rollback()
        if original is None or original.tx_type != WalletTransactionType.CREDIT_LOAN:
            raise InvalidReversalError(f"transaction {transaction_id} is not a credit loan")
        user_id = original.user_id

        async def _reverse() -> WalletTransaction:
            wallet = await self._repo.get_wallet_for_update(db, user_id)
            if wallet is None:
                raise WalletNotFoundError(user_id)
            # Checked under the wallet lock so two reversals cannot both pass.
            if await self._repo.has_reversal_for(db, transaction_id):
                raise InvalidReversalError(f"transaction {transaction_id} was already reversed")
            if wallet.balance < original.amount:
                raise InsufficientFundsError(original.amount, wallet.balance)
            updated = await self._repo.set_wallet_balance(
                db, user_id, wallet.balance - original.amount
            )
            return await self._repo.insert_wallet_transaction(
                db,
                user_id,
                WalletTransactionType.CREDIT_REVERSAL.value,
                -original.amount,
                updated.balance,
                f"tx:{transaction_id}",
            )

        tx = await self._serialized(
            db, user_id, _reverse, f"Reverse credit tx={transaction_id}"
        )
        logger.info(
            "Credit loan reversed: user=%s tx=%d amount=%d",
            user_id,
            transaction_id,
            original.amount,
        )
        return WalletChangeResponse.from_transaction(tx)

    async def _serialized(
        self,
        db: AsyncSession,
        user_id: str,
        body: Callable[[], Awaitable[WalletTransaction]],
        label: str,
    ) -> WalletTransaction:
        async def _attempt() -> WalletTransaction:
            async with self._locks.acquire(
                user_key(user_id), timeout=self._rules.lock_timeout_seconds
            ):
                try:
                    await set_lock_timeout(db, self._rules.lock_timeout_seconds)
                    tx = await body()
                    await db.commit()
                except Exception:
                    await db.rollback()
                    raise
            return tx

        tx = await run_with_db_retry(
            _attempt,
            max_retries=self._rules.max_retries,
            backoff_seconds=self._backoff,
            label=label,
        )
        await self._publisher.publish([WalletChanged(user_id, tx.balance_after)])
        return tx


def _check_amount(amount_cents: int) -> None:
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        raise InvalidAmountError(amount_cents)
