"""HTTP-level tests for /api/v1/trading with dependencies overridden."""

import uuid
from collections.abc import AsyncGenerator
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from src.main import app
from src.pt_common.database import get_db_session
from src.pt_gateway.auth.dependencies import get_current_user
from src.pt_gateway.user.db_models import UserModel
from src.pt_guard.daily_quota import DailyTradeQuota
from src.pt_guard.idempotency import IdempotencyGuard
from src.pt_guard.rate_limit import RateLimiter
from src.pt_market.domain.models import Quote
from src.pt_trading.application.executor import TradeExecutor
from src.pt_trading.application.service import (
    TradingApplicationService,
    get_trading_service,
)

USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000001")


async def _fake_db() -> AsyncGenerator[AsyncMock, None]:
    yield AsyncMock()


def _user() -> UserModel:
    user = UserModel()
    user.id = USER_ID
    user.username = "alice"
    user.email = "alice@example.com"
    user.is_active = True
    return user


@pytest.fixture
def quotes() -> AsyncMock:
    provider = AsyncMock()
    provider.get_quote.return_value = Quote("AAPL", Decimal("150"), "Apple Inc.")
    provider.get_quotes.return_value = {}
    return provider


@pytest.fixture
def trading_client(client: AsyncClient, portfolio_repo, clock, quotes: AsyncMock) -> AsyncClient:  # noqa: ANN001
    portfolio_repo.add_account(str(USER_ID))
    executor = TradeExecutor(
        repo=portfolio_repo,
        idempotency=IdempotencyGuard(clock=clock),
        rate_limiter=RateLimiter(max_requests=10, window_seconds=60, clock=clock),
        daily_quota=DailyTradeQuota(),
    )
    service = TradingApplicationService(executor, quotes, repo=portfolio_repo)
    app.dependency_overrides[get_trading_service] = lambda: service
    app.dependency_overrides[get_current_user] = _user
    app.dependency_overrides[get_db_session] = _fake_db
    return client


class TestBuy:
    async def test_success_envelope(self, trading_client: AsyncClient) -> None:
        resp = await trading_client.post(
            "/api/v1/trading/buy", json={"symbol": "aapl", "quantity": 10}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["code"] == 0
        assert body["message"] == "Bought 10 shares of AAPL for $1,500.00"
        assert body["data"]["new_cash"] == "8500.00"
        assert body["data"]["holding"]["average_cost"] == "150.0000"
        assert body["data"]["transaction"]["side"] == "BUY"
        assert resp.headers["X-Request-ID"] == body["request_id"]

    async def test_too_large_maps_to_422(self, trading_client: AsyncClient) -> None:
        resp = await trading_client.post(
            "/api/v1/trading/buy", json={"symbol": "AAPL", "quantity": 14}
        )

        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == 4002
        assert body["data"] is None
        assert resp.headers["X-Request-ID"] == body["request_id"]

    async def test_zero_quantity_is_invalid_input(self, trading_client: AsyncClient) -> None:
        resp = await trading_client.post(
            "/api/v1/trading/buy", json={"symbol": "AAPL", "quantity": 0}
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == 4001

    async def test_malformed_symbol_rejected_by_schema(
        self, trading_client: AsyncClient
    ) -> None:
        resp = await trading_client.post(
            "/api/v1/trading/buy", json={"symbol": "AA PL", "quantity": 1}
        )
        assert resp.status_code == 422

    async def test_requires_auth(self, trading_client: AsyncClient) -> None:
        del app.dependency_overrides[get_current_user]
        resp = await trading_client.post(
            "/api/v1/trading/buy", json={"symbol": "AAPL", "quantity": 1}
        )
        assert resp.status_code == 401


class TestSell:
    async def test_insufficient_shares(self, trading_client: AsyncClient) -> None:
        resp = await trading_client.post(
            "/api/v1/trading/sell", json={"symbol": "AAPL", "quantity": 1}
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 5001


class TestReadEndpoints:
    async def test_portfolio(self, trading_client: AsyncClient) -> None:
        resp = await trading_client.get("/api/v1/trading/portfolio")
        assert resp.status_code == 200
        summary = resp.json()["data"]["summary"]
        assert summary["cash_balance"] == "10000.00"
        assert summary["total_value"] == "10000.00"

    async def test_history_limit_bounds(self, trading_client: AsyncClient) -> None:
        assert (await trading_client.get("/api/v1/trading/history?limit=101")).status_code == 422
        assert (await trading_client.get("/api/v1/trading/history?offset=-1")).status_code == 422

    async def test_history_after_trade(self, trading_client: AsyncClient) -> None:
        await trading_client.post("/api/v1/trading/buy", json={"symbol": "AAPL", "quantity": 2})

        resp = await trading_client.get("/api/v1/trading/history?limit=10&symbol=aapl")

        data = resp.json()["data"]
        assert data["pagination"] == {"total": 1, "limit": 10, "offset": 0, "has_more": False}
        assert data["transactions"][0]["total_amount"] == "300.00"

    async def test_limits(self, trading_client: AsyncClient) -> None:
        resp = await trading_client.get("/api/v1/trading/limits")
        data = resp.json()["data"]
        assert data["trades_remaining_today"] == 50
        assert data["max_trade_value"] == "2000"
        assert data["max_shares_per_trade"] == 10000


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
