"""TradingApplicationService: thin composition layer for the trading API.

Fetches the live quote, hands it to the TradeExecutor, and serves the
read-only portfolio / history / limits queries. A failed quote lookup is passed
on as a missing price so the executor rejects it as invalid input; no stale or
zero price ever reaches execution.
"""

import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.pt_account.domain.repository import PortfolioRepositoryProtocol
from src.pt_account.infrastructure.persistence import PortfolioRepository
from src.pt_common.enums import TradeSide
from src.pt_common.errors import AccountNotFoundError, QuoteUnavailableError
from src.pt_common.money import MAX_SHARES_PER_TRADE, round_currency
from src.pt_guard.daily_quota import DailyTradeQuota
from src.pt_guard.idempotency import IdempotencyGuard
from src.pt_guard.rate_limit import RateLimiter
from src.pt_guard.sweeper import GuardSweeper
from src.pt_market.application.service import get_quote_provider
from src.pt_market.domain.ports import QuoteProviderProtocol
from src.pt_trading.application.executor import TradeExecutor
from src.pt_trading.application.schemas import (
    HistoryResponse,
    Pagination,
    PortfolioHolding,
    PortfolioResponse,
    PortfolioSummary,
    TradeLimitsResponse,
    TradeRequest,
    TradeResult,
    TransactionItem,
)

logger = logging.getLogger(__name__)

_HUNDRED = Decimal(100)


def _percent(part: Decimal, whole: Decimal) -> Decimal:
    if whole <= 0:
        return Decimal("0.00")
    return round_currency(part / whole * _HUNDRED)


class TradingApplicationService:
    def __init__(
        self,
        executor: TradeExecutor,
        quotes: QuoteProviderProtocol,
        repo: PortfolioRepositoryProtocol | None = None,
    ) -> None:
        self.executor = executor
        self._quotes = quotes
        self._repo: PortfolioRepositoryProtocol = repo or PortfolioRepository()

    async def buy(self, db: AsyncSession, user_id: str, req: TradeRequest) -> TradeResult:
        return await self._trade(db, user_id, req, TradeSide.BUY)

    async def sell(self, db: AsyncSession, user_id: str, req: TradeRequest) -> TradeResult:
        return await self._trade(db, user_id, req, TradeSide.SELL)

    async def _trade(
        self, db: AsyncSession, user_id: str, req: TradeRequest, side: TradeSide
    ) -> TradeResult:
        price: Decimal | None
        try:
            price = (await self._quotes.get_quote(req.symbol)).price
        except QuoteUnavailableError:
            logger.info("No quote for %s, rejecting %s", req.symbol, side.value)
            price = None
        return await self.executor.execute(db, user_id, req.symbol, side, req.quantity, price)

    async def get_portfolio(self, db: AsyncSession, user_id: str) -> PortfolioResponse:
        account = await self._repo.get_account(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)

        holdings = await self._repo.list_holdings(db, account.id)
        quotes = await self._quotes.get_quotes([h.symbol for h in holdings]) if holdings else {}

        items: list[PortfolioHolding] = []
        holdings_value = Decimal("0.00")
        for h in holdings:
            quote = quotes.get(h.symbol)
            current_price = quote.price if quote is not None else Decimal("0")
            current_value = round_currency(current_price * h.quantity)
            cost_basis = round_currency(h.cost_basis)
            gain_loss = current_value - cost_basis
            holdings_value += current_value
            items.append(
                PortfolioHolding(
                    symbol=h.symbol,
                    name=quote.name if quote is not None else h.symbol,
                    quantity=h.quantity,
                    average_cost=h.average_cost,
                    current_price=current_price,
                    price_available=quote is not None,
                    current_value=current_value,
                    gain_loss=gain_loss,
                    gain_loss_percent=_percent(gain_loss, cost_basis),
                )
            )

        total_value = round_currency(account.current_cash + holdings_value)
        total_gain_loss = total_value - account.starting_balance
        return PortfolioResponse(
            summary=PortfolioSummary(
                total_value=total_value,
                cash_balance=account.current_cash,
                holdings_value=round_currency(holdings_value),
                total_gain_loss=total_gain_loss,
                total_gain_loss_percent=_percent(total_gain_loss, account.starting_balance),
                starting_balance=account.starting_balance,
            ),
            holdings=items,
        )

    async def list_history(
        self,
        db: AsyncSession,
        user_id: str,
        limit: int,
        offset: int,
        symbol: str | None,
    ) -> HistoryResponse:
        account = await self._repo.get_account(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)

        records, total = await self._repo.list_transactions(
            db, account.id, symbol.upper() if symbol else None, limit, offset
        )
        return HistoryResponse(
            transactions=[
                TransactionItem(
                    id=r.id,
                    symbol=r.symbol,
                    transaction_type=r.transaction_type,
                    quantity=r.quantity,
                    price_per_share=r.price_per_share,
                    total_amount=r.total_amount,
                    executed_at=r.executed_at.isoformat() if r.executed_at else "",
                )
                for r in records
            ],
            pagination=Pagination(
                total=total,
                limit=limit,
                offset=offset,
                has_more=total > offset + limit,
            ),
        )

    def get_limits(self, user_id: str) -> TradeLimitsResponse:
        quota = self.executor.daily_quota.check_limit(user_id)
        return TradeLimitsResponse(
            trades_remaining_today=quota.remaining,
            max_trades_per_day=self.executor.daily_quota.max_trades_per_day,
            max_trade_value=self.executor.max_trade_value,
            max_shares_per_trade=MAX_SHARES_PER_TRADE,
            rate_limit_max_requests=self.executor.rate_limiter.max_requests,
            rate_limit_window_seconds=self.executor.rate_limiter.window_seconds,
        )


# ---------------------------------------------------------------------------
# Process-wide singletons (guard state lives for the life of the process)
# ---------------------------------------------------------------------------

_executor: TradeExecutor | None = None
_service: TradingApplicationService | None = None


def get_trade_executor() -> TradeExecutor:
    global _executor  # noqa: PLW0603
    if _executor is None:
        _executor = TradeExecutor(
            repo=PortfolioRepository(),
            idempotency=IdempotencyGuard(
                window_seconds=settings.IDEMPOTENCY_WINDOW_SECONDS,
                retention_seconds=settings.IDEMPOTENCY_RETENTION_SECONDS,
            ),
            rate_limiter=RateLimiter(
                max_requests=settings.TRADE_RATE_LIMIT_MAX,
                window_seconds=settings.TRADE_RATE_LIMIT_WINDOW_SECONDS,
            ),
            daily_quota=DailyTradeQuota(max_trades_per_day=settings.MAX_TRADES_PER_DAY),
            max_trade_value=settings.MAX_TRADE_VALUE,
        )
    return _executor


def get_trading_service() -> TradingApplicationService:
    global _service  # noqa: PLW0603
    if _service is None:
        _service = TradingApplicationService(get_trade_executor(), get_quote_provider())
    return _service


def build_guard_sweeper(executor: TradeExecutor) -> GuardSweeper:
    return GuardSweeper(
        [executor.idempotency, executor.rate_limiter, executor.daily_quota],
        interval_seconds=settings.GUARD_SWEEP_INTERVAL_SECONDS,
    )
