# src/pt_market/application/service.py
from decimal import Decimal

from pydantic import BaseModel

from src.pt_market.domain.ports import QuoteProviderProtocol
from src.pt_market.infrastructure.yfinance_provider import YFinanceQuoteProvider

_provider: QuoteProviderProtocol | None = None


def get_quote_provider() -> QuoteProviderProtocol:
    global _provider  # noqa: PLW0603
    if _provider is None:
        _provider = YFinanceQuoteProvider()
    return _provider


class QuoteResponse(BaseModel):
    symbol: str
    name: str
    price: Decimal
    currency: str


async def get_quote(symbol: str, provider: QuoteProviderProtocol) -> QuoteResponse:
    quote = await provider.get_quote(symbol.strip().upper())
    return QuoteResponse(
        symbol=quote.symbol, name=quote.name, price=quote.price, currency=quote.currency
    )
