"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderStatus(str, Enum):
    # Orders execute immediately at the observed price or are rejected;
    # there are no resting or partially filled orders.
    FILLED = "FILLED"


class WalletTransactionType(str, Enum):
    DEPOSIT = "DEPOSIT"
    CREDIT_LOAN = "CREDIT_LOAN"
    CREDIT_REVERSAL = "CREDIT_REVERSAL"
    PURCHASE = "PURCHASE"
    SALE = "SALE"


class ClubLedgerType(str, Enum):
    INITIAL = "INITIAL"
    SHARE_PURCHASE = "SHARE_PURCHASE"
    SHARE_SALE = "SHARE_SALE"
    MATCH_WIN = "MATCH_WIN"
    MATCH_LOSS = "MATCH_LOSS"
    MATCH_DRAW = "MATCH_DRAW"


class MatchResult(str, Enum):
    PENDING = "PENDING"
    HOME_WIN = "HOME_WIN"
    AWAY_WIN = "AWAY_WIN"
    DRAW = "DRAW"


class FixtureStatus(str, Enum):
    PENDING = "PENDING"
    APPLIED = "APPLIED"
