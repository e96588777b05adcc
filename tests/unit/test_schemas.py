"""Unit tests for request/response schemas (gateway + trading)."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.pt_common.enums import TradeSide
from src.pt_gateway.user.schemas import LoginResponse, RegisterRequest, RegisterResponse, UserInfo
from src.pt_trading.application.schemas import (
    TradeRequest,
    TradeResult,
    TransactionSnapshot,
)

class TestRegisterRequest:
    def test_valid_input(self) -> None:
        req = RegisterRequest(username="alice", email="alice@example.com", password="SecureP@ss1")
        assert req.username == "alice"

    @pytest.mark.parametrize("username", ["ab", "a" * 65, "alice!"])
    def test_bad_username(self, username: str) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username=username, email="a@b.com", password="SecureP@ss1")

    def test_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username="alice", email="not-an-email", password="SecureP@ss1")

    @pytest.mark.parametrize("password", ["Ab1", "alllower1", "ALLUPPER1", "NoDigitPass"])
    def test_weak_password(self, password: str) -> None:
        with pytest.raises(ValidationError):
            RegisterRequest(username="alice", email="a@b.com", password=password)

    def test_weak_password_names_the_missing_character(self) -> None:
        with pytest.raises(ValidationError, match="a digit"):
            RegisterRequest(username="alice", email="a@b.com", password="NoDigitPass")


class TestAuthResponses:
    def test_register_response_carries_user_fields_and_cash(self) -> None:
        resp = RegisterResponse(
            user_id="u-1",
            username="alice",
            email="alice@example.com",
            starting_cash=Decimal("10000.00"),
            created_at="2026-03-02T00:00:00+00:00",
        )
        assert isinstance(resp, UserInfo)
        assert resp.model_dump(mode="json")["starting_cash"] == "10000.00"

    def test_login_response_requires_expiry(self) -> None:
        user = UserInfo(user_id="u-1", username="alice", email="alice@example.com")
        with pytest.raises(ValidationError):
            LoginResponse(access_token="a", refresh_token="r", user=user)  # type: ignore[call-arg]

        resp = LoginResponse(access_token="a", refresh_token="r", expires_in=1800, user=user)
        assert resp.token_type == "Bearer"


class TestTradeRequest:
    def test_symbol_is_trimmed_and_uppercased(self) -> None:
        assert TradeRequest(symbol=" aapl ", quantity=1).symbol == "AAPL"

    @pytest.mark.parametrize("symbol", ["BRK.B", "BF-B", "7203.T"])
    def test_accepts_exchange_suffixes(self, symbol: str) -> None:
        assert TradeRequest(symbol=symbol, quantity=1).symbol == symbol

    @pytest.mark.parametrize("symbol", ["", "AA PL", "$AAPL", "A" * 17])
    def test_rejects_malformed_symbol(self, symbol: str) -> None:
        with pytest.raises(ValidationError):
            TradeRequest(symbol=symbol, quantity=1)

    def test_quantity_must_be_integer(self) -> None:
        with pytest.raises(ValidationError):
            TradeRequest(symbol="AAPL", quantity=1.5)


class TestTradeResult:
    def _result(self) -> TradeResult:
        return TradeResult(
            side=TradeSide.BUY,
            message="Bought 1 share of AAPL for $150.00",
            new_cash=Decimal("9850.00"),
            holding=None,
            transaction=TransactionSnapshot(
                id=1,
                symbol="AAPL",
                side=TradeSide.BUY,
                quantity=1,
                price_per_share=Decimal("150"),
                total_amount=Decimal("150.00"),
                executed_at=datetime(2026, 3, 2, tzinfo=UTC),
            ),
        )

    def test_is_immutable(self) -> None:
        result = self._result()
        with pytest.raises(ValidationError):
            result.new_cash = Decimal("0")  # type: ignore[misc]

    def test_money_serialises_as_strings(self) -> None:
        dumped = self._result().model_dump(mode="json")
        assert dumped["new_cash"] == "9850.00"
        assert dumped["transaction"]["total_amount"] == "150.00"
        assert dumped["side"] == "BUY"
        assert dumped["realized_gain"] is None
