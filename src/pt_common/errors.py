"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Account
  3xxx: Market data
  4xxx: Trade
  5xxx: Holding
  9xxx: System
"""

from decimal import Decimal


class AppError(Exception):
    """Base application error."""

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


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


# --- 2xxx: Account ---

class InsufficientFundsError(AppError):
    def __init__(self, required: Decimal, available: Decimal) -> None:
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient funds: required ${required:,.2f}, available ${available:,.2f}",
            422,
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Paper account not found for user {user_id}", 404)


# --- 3xxx: Market data ---

class QuoteUnavailableError(AppError):
    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(3001, f"No price available for {symbol}", 404)


# --- 4xxx: Trade ---

class InvalidTradeInputError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid trade input: {detail}", 400)


class TradeTooLargeError(AppError):
    def __init__(self, total: Decimal, max_allowed: Decimal) -> None:
        self.total = total
        self.max_allowed = max_allowed
        super().__init__(
            4002,
            f"Trade value ${total:,.2f} exceeds the per-trade limit of ${max_allowed:,.2f}",
            422,
        )


class DailyLimitExceededError(AppError):
    def __init__(self, max_trades: int) -> None:
        super().__init__(
            4003, f"Daily trade limit reached ({max_trades} trades per day)", 429
        )


class DuplicateTradeInProgressError(AppError):
    def __init__(self) -> None:
        super().__init__(4004, "An identical trade is already being processed", 409)


# --- 5xxx: Holding ---

class InsufficientSharesError(AppError):
    def __init__(self, symbol: str, owned: int, requested: int) -> None:
        self.owned = owned
        self.requested = requested
        super().__init__(
            5001,
            f"Insufficient shares of {symbol}: own {owned}, requested {requested}",
            422,
        )


# --- 9xxx: System ---

class RateLimitError(AppError):
    def __init__(self) -> None:
        super().__init__(9001, "Rate limit exceeded", 429)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class PersistenceFailureError(AppError):
    def __init__(self, detail: str = "Trade could not be saved, no changes were made") -> None:
        super().__init__(9003, detail, 503)
