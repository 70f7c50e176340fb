"""Domain models for cs_account — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Wallet:
    user_id: str
    balance: int          # cents, never negative
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Position:
    """Latest holding of one user in one club.

    A position sold down to zero stays as a closed record so its realized
    P&L survives; ``is_open`` tells the two apart.
    """

    user_id: str
    club_id: int
    quantity: int = 0
    total_invested: int = 0     # cents, cost basis of the shares still held
    realized_pnl: int = 0       # cents, accumulated over sales
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.quantity > 0


@dataclass
class WalletTransaction:
    id: int
    user_id: str
    tx_type: str                     # WalletTransactionType value
    amount: int                      # cents, positive=credit negative=debit
    balance_after: int
    reference: str | None = None
    created_at: datetime | None = None
