"""Infrastructure adapter: yfinance -> QuoteProviderProtocol.

All yfinance-specific details (Ticker, fast_info, info) are confined here.
yfinance is blocking, so each lookup runs in a worker thread.
"""

import asyncio
import logging
import math
from collections.abc import Sequence
from decimal import Decimal

import yfinance as yf

from src.pt_common.errors import QuoteUnavailableError
from src.pt_market.domain.models import Quote

logger = logging.getLogger(__name__)


class YFinanceQuoteProvider:
    """Fetches live quotes from Yahoo Finance."""

    async def get_quote(self, symbol: str) -> Quote:
        symbol = symbol.upper()
        try:
            return await asyncio.to_thread(self._fetch_quote, symbol)
        except QuoteUnavailableError:
            raise
        except Exception as exc:
            logger.warning("Quote lookup failed for %s: %s", symbol, exc)
            raise QuoteUnavailableError(symbol) from exc

    async def get_quotes(self, symbols: Sequence[str]) -> dict[str, Quote]:
        unique = sorted({s.upper() for s in symbols})
        results = await asyncio.gather(
            *(self.get_quote(s) for s in unique), return_exceptions=True
        )
        quotes: dict[str, Quote] = {}
        for symbol, result in zip(unique, results):
            if isinstance(result, Quote):
                quotes[symbol] = result
            elif isinstance(result, QuoteUnavailableError):
                continue
            elif isinstance(result, BaseException):
                raise result
        return quotes

    def _fetch_quote(self, symbol: str) -> Quote:
        ticker = yf.Ticker(symbol)
        fast_info = ticker.fast_info
        price = getattr(fast_info, "last_price", None)
        info = ticker.info or {}
        if price is None:
            price = info.get("regularMarketPrice") or info.get("currentPrice")
        if price is None or not math.isfinite(float(price)):
            raise QuoteUnavailableError(symbol)

        return Quote(
            symbol=symbol,
            price=Decimal(str(price)),
            name=info.get("shortName") or info.get("longName") or symbol,
            currency=info.get("currency", "USD"),
        )
