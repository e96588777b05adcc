"""Integration-test fixtures.

Needs PostgreSQL with migrations applied (``alembic upgrade head``) and
``PT_INTEGRATION=1`` in the environment; otherwise every test here is skipped.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool (created at import time) remains valid across
the entire test session. Quotes come from a fixed in-process provider so the
flow does not depend on Yahoo Finance being reachable.
"""

import os
from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pt_account.infrastructure.persistence import PortfolioRepository
from src.pt_common.errors import QuoteUnavailableError
from src.pt_guard.daily_quota import DailyTradeQuota
from src.pt_guard.idempotency import IdempotencyGuard
from src.pt_guard.rate_limit import RateLimiter
from src.pt_market.domain.models import Quote
from src.pt_trading.application.executor import TradeExecutor
from src.pt_trading.application.service import (
    TradingApplicationService,
    get_trading_service,
)

FIXED_PRICES = {
    "AAPL": Decimal("150.00"),
    "MSFT": Decimal("160.00"),
}


class FixedQuoteProvider:
    async def get_quote(self, symbol: str) -> Quote:
        price = FIXED_PRICES.get(symbol.upper())
        if price is None:
            raise QuoteUnavailableError(symbol)
        return Quote(symbol.upper(), price, symbol.upper())

    async def get_quotes(self, symbols: list[str]) -> dict[str, Quote]:
        return {
            s.upper(): Quote(s.upper(), FIXED_PRICES[s.upper()], s.upper())
            for s in symbols
            if s.upper() in FIXED_PRICES
        }


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if os.environ.get("PT_INTEGRATION") == "1":
        return
    skip = pytest.mark.skip(reason="set PT_INTEGRATION=1 with a migrated database")
    for item in items:
        if "integration" in item.nodeid.split("/"):
            item.add_marker(skip)


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    service = TradingApplicationService(
        TradeExecutor(
            repo=PortfolioRepository(),
            idempotency=IdempotencyGuard(),
            rate_limiter=RateLimiter(max_requests=1000),
            daily_quota=DailyTradeQuota(max_trades_per_day=1000),
        ),
        FixedQuoteProvider(),
    )
    app.dependency_overrides[get_trading_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
