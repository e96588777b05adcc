"""Repository Protocol: dependency inversion for testability.

Unit tests inject a fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.

None of these methods commit. A trade's cash update, holding change and
transaction insert run in the caller's single transaction.
"""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_account.domain.models import Holding, PaperAccount, TransactionRecord


class PortfolioRepositoryProtocol(Protocol):
    async def get_account(
        self, db: AsyncSession, user_id: str
    ) -> PaperAccount | None: ...

    async def get_account_for_update(
        self, db: AsyncSession, user_id: str
    ) -> PaperAccount | None: ...

    async def create_account(
        self, db: AsyncSession, user_id: str, starting_balance: Decimal
    ) -> PaperAccount: ...

    async def update_cash(
        self, db: AsyncSession, account_id: str, new_cash: Decimal
    ) -> PaperAccount: ...

    async def get_holding(
        self, db: AsyncSession, account_id: str, symbol: str
    ) -> Holding | None: ...

    async def list_holdings(
        self, db: AsyncSession, account_id: str
    ) -> list[Holding]: ...

    async def upsert_holding(
        self,
        db: AsyncSession,
        account_id: str,
        symbol: str,
        quantity: int,
        average_cost: Decimal,
    ) -> Holding: ...

    async def delete_holding(self, db: AsyncSession, holding_id: str) -> None: ...

    async def insert_transaction(
        self,
        db: AsyncSession,
        account_id: str,
        symbol: str,
        transaction_type: str,
        quantity: int,
        price_per_share: Decimal,
        total_amount: Decimal,
    ) -> TransactionRecord: ...

    async def list_transactions(
        self,
        db: AsyncSession,
        account_id: str,
        symbol: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[TransactionRecord], int]: ...
