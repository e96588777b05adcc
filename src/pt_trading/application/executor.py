"""TradeExecutor: runs one BUY or SELL against a user's paper account.

Order of checks (each step short-circuits):

    1. validate quantity and quote price          -> InvalidTradeInputError
    2. per-user rate limit                        -> RateLimitError
    3. idempotency fingerprint, check + pending   -> cached result / DuplicateTradeInProgressError
    4. total = round(price * quantity, 2)
    5. per-trade value cap                        -> TradeTooLargeError
    6. reserve a daily quota slot                 -> DailyLimitExceededError
    7. one DB transaction: lock account row, cash + holding + transaction row
                                                  -> InsufficientFunds/SharesError, PersistenceFailureError
    8. cache the result under the fingerprint

Any failure after step 3 marks the fingerprint failed so the client may retry.
A failure in step 7 also hands the quota slot back.
Guard state is process-local; see pt_guard.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_account.domain.models import Holding, PaperAccount, TransactionRecord
from src.pt_account.domain.repository import PortfolioRepositoryProtocol
from src.pt_common.enums import TradeSide
from src.pt_common.errors import (
    AccountNotFoundError,
    AppError,
    DailyLimitExceededError,
    DuplicateTradeInProgressError,
    InsufficientFundsError,
    InsufficientSharesError,
    InvalidTradeInputError,
    PersistenceFailureError,
    RateLimitError,
    TradeTooLargeError,
)
from src.pt_common.money import (
    MAX_SHARES_PER_TRADE,
    Number,
    calculate_new_average_cost,
    calculate_realized_gain,
    calculate_total_cost,
    is_valid_price,
    is_valid_quantity,
    money_to_display,
    round_average_cost,
    round_currency,
    to_decimal,
)
from src.pt_guard.daily_quota import DailyTradeQuota
from src.pt_guard.idempotency import IdempotencyGuard
from src.pt_guard.rate_limit import RateLimiter
from src.pt_guard.trade_value import MAX_TRADE_VALUE, check_trade_value
from src.pt_trading.application.schemas import (
    HoldingSnapshot,
    TradeResult,
    TransactionSnapshot,
)

logger = logging.getLogger(__name__)


def _plural(quantity: int) -> str:
    return "share" if quantity == 1 else "shares"


class TradeExecutor:
    def __init__(
        self,
        repo: PortfolioRepositoryProtocol,
        idempotency: IdempotencyGuard,
        rate_limiter: RateLimiter,
        daily_quota: DailyTradeQuota,
        max_trade_value: Decimal = MAX_TRADE_VALUE,
    ) -> None:
        self._repo = repo
        self.idempotency = idempotency
        self.rate_limiter = rate_limiter
        self.daily_quota = daily_quota
        self.max_trade_value = max_trade_value

    async def execute(
        self,
        db: AsyncSession,
        user_id: str,
        symbol: str,
        side: TradeSide | str,
        quantity: int,
        price: Number | None,
    ) -> TradeResult:
        symbol = symbol.strip().upper()
        side = TradeSide(side)

        if not symbol:
            raise InvalidTradeInputError("symbol is required")
        if not is_valid_quantity(quantity):
            raise InvalidTradeInputError(
                f"quantity must be a whole number between 1 and {MAX_SHARES_PER_TRADE}"
            )
        if price is None or not is_valid_price(price):
            raise InvalidTradeInputError(f"no valid price for {symbol}")
        price = to_decimal(price)

        if not self.rate_limiter.allow(user_id):
            logger.warning("Trade rate limited: user=%s", user_id)
            raise RateLimitError()

        key = self.idempotency.fingerprint(user_id, symbol, side.value, quantity)
        check = self.idempotency.try_begin(key)
        if check.is_duplicate:
            if check.existing_result is not None:
                logger.info("Trade idempotency hit: key=%s", key)
                return check.existing_result  # type: ignore[no-any-return]
            logger.warning("Duplicate trade still in progress: key=%s", key)
            raise DuplicateTradeInProgressError()

        try:
            result = await self._execute_guarded(db, user_id, symbol, side, quantity, price)
        except BaseException:
            # Cancellation included: the fingerprint must never stay pending.
            self.idempotency.mark_failed(key)
            raise

        self.idempotency.mark_completed(key, result)
        return result

    async def _execute_guarded(
        self,
        db: AsyncSession,
        user_id: str,
        symbol: str,
        side: TradeSide,
        quantity: int,
        price: Decimal,
    ) -> TradeResult:
        total = calculate_total_cost(price, quantity)

        value_check = check_trade_value(total, self.max_trade_value)
        if not value_check.allowed:
            logger.warning(
                "Trade too large: user=%s %s %d %s total=%s",
                user_id, side.value, quantity, symbol, total,
            )
            raise TradeTooLargeError(total, value_check.max_allowed)

        quota = self.daily_quota.try_reserve(user_id)
        if not quota.allowed:
            logger.warning("Daily trade limit reached: user=%s", user_id)
            raise DailyLimitExceededError(self.daily_quota.max_trades_per_day)

        try:
            result = await self._apply_in_transaction(
                db, user_id, symbol, side, quantity, price, total
            )
        except BaseException:
            self.daily_quota.release(user_id, quota.day)
            raise

        logger.info(
            "Trade executed: user=%s %s %d %s @ %s total=%s cash=%s",
            user_id, side.value, quantity, symbol, price, total, result.new_cash,
        )
        return result

    async def _apply_in_transaction(
        self,
        db: AsyncSession,
        user_id: str,
        symbol: str,
        side: TradeSide,
        quantity: int,
        price: Decimal,
        total: Decimal,
    ) -> TradeResult:
        """Cash, holding and transaction row commit together or not at all."""
        try:
            if side is TradeSide.BUY:
                result = await self._apply_buy(db, user_id, symbol, quantity, price, total)
            else:
                result = await self._apply_sell(db, user_id, symbol, quantity, price, total)
            await db.commit()
        except AppError:
            await db.rollback()
            raise
        except Exception as exc:
            await db.rollback()
            logger.exception("Trade persistence failed: user=%s %s %s", user_id, side.value, symbol)
            raise PersistenceFailureError() from exc
        return result

    async def _lock_account(self, db: AsyncSession, user_id: str) -> PaperAccount:
        account = await self._repo.get_account_for_update(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    async def _apply_buy(
        self,
        db: AsyncSession,
        user_id: str,
        symbol: str,
        quantity: int,
        price: Decimal,
        total: Decimal,
    ) -> TradeResult:
        account = await self._lock_account(db, user_id)
        if total > account.current_cash:
            raise InsufficientFundsError(total, account.current_cash)

        existing = await self._repo.get_holding(db, account.id, symbol)
        if existing is None:
            new_quantity = quantity
            new_average = round_average_cost(price)
        else:
            new_quantity = existing.quantity + quantity
            new_average = calculate_new_average_cost(
                existing.quantity, existing.average_cost, quantity, price
            )

        holding = await self._repo.upsert_holding(
            db, account.id, symbol, new_quantity, new_average
        )
        account = await self._repo.update_cash(
            db, account.id, round_currency(account.current_cash - total)
        )
        record = await self._repo.insert_transaction(
            db, account.id, symbol, TradeSide.BUY.value, quantity, price, total
        )
        return TradeResult(
            side=TradeSide.BUY,
            message=(
                f"Bought {quantity} {_plural(quantity)} of {symbol} "
                f"for {money_to_display(total)}"
            ),
            new_cash=account.current_cash,
            holding=_holding_snapshot(holding),
            transaction=_transaction_snapshot(record),
        )

    async def _apply_sell(
        self,
        db: AsyncSession,
        user_id: str,
        symbol: str,
        quantity: int,
        price: Decimal,
        total: Decimal,
    ) -> TradeResult:
        account = await self._lock_account(db, user_id)
        existing = await self._repo.get_holding(db, account.id, symbol)
        owned = existing.quantity if existing is not None else 0
        if existing is None or owned < quantity:
            raise InsufficientSharesError(symbol, owned, quantity)

        # Cost basis of the remaining shares is unchanged by a sell.
        remaining = existing.quantity - quantity
        holding: Holding | None
        if remaining == 0:
            await self._repo.delete_holding(db, existing.id)
            holding = None
        else:
            holding = await self._repo.upsert_holding(
                db, account.id, symbol, remaining, existing.average_cost
            )

        account = await self._repo.update_cash(
            db, account.id, round_currency(account.current_cash + total)
        )
        record = await self._repo.insert_transaction(
            db, account.id, symbol, TradeSide.SELL.value, quantity, price, total
        )
        gain = calculate_realized_gain(existing.average_cost, price, quantity)
        return TradeResult(
            side=TradeSide.SELL,
            message=(
                f"Sold {quantity} {_plural(quantity)} of {symbol} for "
                f"{money_to_display(total)} ({'gain' if gain >= 0 else 'loss'} "
                f"{money_to_display(abs(gain))})"
            ),
            new_cash=account.current_cash,
            holding=_holding_snapshot(holding) if holding is not None else None,
            transaction=_transaction_snapshot(record),
            realized_gain=gain,
        )


def _holding_snapshot(holding: Holding) -> HoldingSnapshot:
    return HoldingSnapshot(
        symbol=holding.symbol,
        quantity=holding.quantity,
        average_cost=holding.average_cost,
    )


def _transaction_snapshot(record: TransactionRecord) -> TransactionSnapshot:
    return TransactionSnapshot(
        id=record.id,
        symbol=record.symbol,
        side=TradeSide(record.transaction_type),
        quantity=record.quantity,
        price_per_share=record.price_per_share,
        total_amount=record.total_amount,
        executed_at=record.executed_at,
    )
