# src/pt_trading/application/schemas.py
import re
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.pt_common.enums import TradeSide

_SYMBOL_RE = re.compile(r"^[A-Z0-9][A-Z0-9.\-^=]{0,15}$")


class TradeRequest(BaseModel):
    symbol: str = Field(..., min_length=1, max_length=16)
    quantity: int  # range is enforced by the executor (InvalidTradeInputError)

    @field_validator("symbol")
    @classmethod
    def normalise_symbol(cls, v: str) -> str:
        symbol = v.strip().upper()
        if not _SYMBOL_RE.match(symbol):
            raise ValueError("symbol must be a ticker such as AAPL or BRK.B")
        return symbol


class HoldingSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    quantity: int
    average_cost: Decimal


class TransactionSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    symbol: str
    side: TradeSide
    quantity: int
    price_per_share: Decimal
    total_amount: Decimal
    executed_at: datetime | None = None


class TradeResult(BaseModel):
    """Outcome of one executed trade; cached verbatim for duplicate submissions."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    side: TradeSide
    message: str
    new_cash: Decimal
    holding: HoldingSnapshot | None  # None once a SELL closes the position
    transaction: TransactionSnapshot
    realized_gain: Decimal | None = None  # SELL only


class PortfolioHolding(BaseModel):
    symbol: str
    name: str
    quantity: int
    average_cost: Decimal
    current_price: Decimal
    price_available: bool
    current_value: Decimal
    gain_loss: Decimal
    gain_loss_percent: Decimal


class PortfolioSummary(BaseModel):
    total_value: Decimal
    cash_balance: Decimal
    holdings_value: Decimal
    total_gain_loss: Decimal
    total_gain_loss_percent: Decimal
    starting_balance: Decimal


class PortfolioResponse(BaseModel):
    summary: PortfolioSummary
    holdings: list[PortfolioHolding]


class TransactionItem(BaseModel):
    id: int
    symbol: str
    transaction_type: str
    quantity: int
    price_per_share: Decimal
    total_amount: Decimal
    executed_at: str  # ISO8601 string


class Pagination(BaseModel):
    total: int
    limit: int
    offset: int
    has_more: bool


class HistoryResponse(BaseModel):
    transactions: list[TransactionItem]
    pagination: Pagination


class TradeLimitsResponse(BaseModel):
    trades_remaining_today: int
    max_trades_per_day: int
    max_trade_value: Decimal
    max_shares_per_trade: int
    rate_limit_max_requests: int
    rate_limit_window_seconds: float
