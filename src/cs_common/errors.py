"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Validation (malformed / out-of-range input)
  2xxx: Wallet
  3xxx: Club
  4xxx: Order / trading
  5xxx: Position
  6xxx: Fixture / settlement
  9xxx: System

Every error carries a ``kind`` (stable, machine-readable) and a ``retryable``
flag so callers can tell "try again" apart from "you can't do this".
"""


class AppError(Exception):
    """Base application error."""

    kind: str = "INTERNAL"
    retryable: bool = False

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Validation ---

class ValidationError(AppError):
    """Malformed or out-of-range input. Never retried, never changes state."""

    kind = "VALIDATION"

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 400)


class QuantityOutOfRangeError(ValidationError):
    def __init__(self, quantity: object, max_quantity: int) -> None:
        super().__init__(1001, f"Quantity {quantity} must be an integer in [1, {max_quantity}]")


class InvalidPriceError(ValidationError):
    def __init__(self, price: int) -> None:
        super().__init__(1002, f"Price must be positive, got {price} cents")


class InvalidAmountError(ValidationError):
    def __init__(self, amount: int) -> None:
        super().__init__(1003, f"Amount must be positive, got {amount} cents")


class InvalidFixtureError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(1004, f"Invalid fixture: {detail}")


class InvalidClubError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(1005, f"Invalid club: {detail}")


class InvalidSideError(ValidationError):
    def __init__(self, side: object) -> None:
        super().__init__(1006, f"Side must be BUY or SELL, got {side!r}")


class InvalidReversalError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(1007, f"Invalid credit reversal: {detail}")


class InvalidCreditKindError(ValidationError):
    def __init__(self, kind: object) -> None:
        super().__init__(1008, f"Credit kind must be DEPOSIT or CREDIT_LOAN, got {kind!r}")


class InvalidLeaderboardQueryError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(1009, f"Invalid leaderboard query: {detail}")


# --- 2xxx: Wallet ---

class InsufficientFundsError(AppError):
    kind = "INSUFFICIENT_FUNDS"

    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
        )


class WalletNotFoundError(AppError):
    kind = "NOT_FOUND"

    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Wallet not found for user {user_id}", 404)


# --- 3xxx: Club ---

class ClubNotFoundError(AppError):
    kind = "NOT_FOUND"

    def __init__(self, club_id: int) -> None:
        super().__init__(3001, f"Club not found: {club_id}", 404)


class MarketCapFloorError(AppError):
    kind = "MARKET_CAP_FLOOR"

    def __init__(self, club_id: int, new_cap: int, floor: int) -> None:
        super().__init__(
            3002,
            f"Club {club_id} market cap would fall to {new_cap} cents, below the {floor} cents floor",
            422,
        )


class SharesUnavailableError(AppError):
    kind = "SHARES_UNAVAILABLE"

    def __init__(self, requested: int, available: int) -> None:
        super().__init__(
            3003,
            f"Not enough shares available: requested {requested}, available {available}",
            422,
        )


# --- 4xxx: Order / trading ---

class WindowClosedError(AppError):
    kind = "WINDOW_CLOSED"

    def __init__(self, club_id: int) -> None:
        super().__init__(4001, f"Trading window is closed for club {club_id}", 422)


class PriceChangedError(AppError):
    kind = "PRICE_CHANGED"

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(
            4002,
            f"Share price moved: quoted {expected} cents, current {actual} cents",
            422,
        )


# --- 5xxx: Position ---

class InsufficientSharesError(AppError):
    kind = "INSUFFICIENT_SHARES"

    def __init__(self, requested: int, held: int) -> None:
        super().__init__(
            5001,
            f"Insufficient shares: requested {requested}, held {held}",
            422,
        )


class NoPositionError(AppError):
    kind = "NO_POSITION"

    def __init__(self, club_id: int) -> None:
        super().__init__(5002, f"You do not hold any shares of club {club_id}", 422)


# --- 6xxx: Fixture / settlement ---

class FixtureNotFoundError(AppError):
    kind = "NOT_FOUND"

    def __init__(self, fixture_id: int) -> None:
        super().__init__(6001, f"Fixture not found: {fixture_id}", 404)


class FixtureAlreadyAppliedError(AppError):
    kind = "FIXTURE_ALREADY_APPLIED"

    def __init__(self, fixture_id: int) -> None:
        super().__init__(6002, f"Fixture {fixture_id} has already been applied", 409)


class FixtureNotFinishedError(AppError):
    kind = "FIXTURE_NOT_FINISHED"

    def __init__(self, fixture_id: int) -> None:
        super().__init__(6003, f"Fixture {fixture_id} has no final result yet", 422)


# --- 9xxx: System ---

class ForbiddenError(AppError):
    kind = "FORBIDDEN"

    def __init__(self) -> None:
        super().__init__(9001, "Forbidden", 403)


class UnauthorizedError(AppError):
    kind = "UNAUTHORIZED"

    def __init__(self) -> None:
        super().__init__(9005, "Missing or invalid access token", 401)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ConflictError(AppError):
    """Serialization contention that outlived the internal retries."""

    kind = "CONFLICT"
    retryable = True

    def __init__(self, detail: str = "Too much concurrent activity, please retry") -> None:
        super().__init__(9003, detail, 409)


class PersistenceFailureError(AppError):
    """The store failed; message is deliberately generic."""

    kind = "PERSISTENCE_FAILURE"

    def __init__(self) -> None:
        super().__init__(9004, "Service temporarily unavailable, please try again later", 503)
