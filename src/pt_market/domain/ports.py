"""Port for market-data providers.

The trading core depends only on this Protocol; the yfinance adapter lives in
infrastructure and tests inject a fake.
"""

from collections.abc import Sequence
from typing import Protocol

from src.pt_market.domain.models import Quote


class QuoteProviderProtocol(Protocol):
    async def get_quote(self, symbol: str) -> Quote:
        """Return the live quote or raise QuoteUnavailableError."""
        ...

    async def get_quotes(self, symbols: Sequence[str]) -> dict[str, Quote]:
        """Quotes for every symbol that has one; unknown symbols are omitted."""
        ...
