"""Domain models for pt_account: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class PaperAccount:
    id: str
    user_id: str
    account_name: str
    starting_balance: Decimal   # immutable after creation
    current_cash: Decimal       # always currency-rounded, never negative
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Holding:
    id: str
    paper_account_id: str
    symbol: str
    quantity: int               # > 0 while the row exists
    average_cost: Decimal       # 4 decimal places
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def cost_basis(self) -> Decimal:
        return self.average_cost * self.quantity


@dataclass
class TransactionRecord:
    id: int                     # BIGSERIAL
    paper_account_id: str
    symbol: str
    transaction_type: str       # TradeSide value
    quantity: int
    price_per_share: Decimal
    total_amount: Decimal
    executed_at: datetime | None = None
