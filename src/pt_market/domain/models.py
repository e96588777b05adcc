"""Domain models for pt_market."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Quote:
    symbol: str
    price: Decimal
    name: str
    currency: str = "USD"
