"""Shared test fixtures."""

import os

# Settings() requires a JWT secret; set one before any src import reads it.
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")

import asyncio
import dataclasses
import uuid
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pt_account.domain.models import Holding, PaperAccount, TransactionRecord


class FakeClock:
    """Manually advanced clock for the time-based guards."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryPortfolioRepository:
    """PortfolioRepositoryProtocol backed by dicts; no locking, no rollback."""

    def __init__(self) -> None:
        self.accounts: dict[str, PaperAccount] = {}
        self.holdings: dict[tuple[str, str], Holding] = {}
        self.transactions: list[TransactionRecord] = []
        self.fail_on_insert_transaction = False
        # Seconds to yield inside get_account_for_update so concurrent trades interleave.
        self.lock_delay = 0.0

    def add_account(self, user_id: str, cash: Decimal = Decimal("10000.00")) -> PaperAccount:
        account = PaperAccount(
            id=str(uuid.uuid4()),
            user_id=user_id,
            account_name="My Portfolio",
            starting_balance=cash,
            current_cash=cash,
            version=0,
            created_at=datetime.now(UTC),
        )
        self.accounts[user_id] = account
        return account

    def add_holding(
        self, user_id: str, symbol: str, quantity: int, average_cost: Decimal
    ) -> Holding:
        account = self.accounts[user_id]
        holding = Holding(
            id=str(uuid.uuid4()),
            paper_account_id=account.id,
            symbol=symbol,
            quantity=quantity,
            average_cost=average_cost,
        )
        self.holdings[(account.id, symbol)] = holding
        return holding

    def _by_id(self, account_id: str) -> PaperAccount:
        for account in self.accounts.values():
            if account.id == account_id:
                return account
        raise KeyError(account_id)

    async def get_account(self, db: object, user_id: str) -> PaperAccount | None:
        return self.accounts.get(user_id)

    async def get_account_for_update(self, db: object, user_id: str) -> PaperAccount | None:
        if self.lock_delay:
            await asyncio.sleep(self.lock_delay)
        return self.accounts.get(user_id)

    async def create_account(
        self, db: object, user_id: str, starting_balance: Decimal
    ) -> PaperAccount:
        return self.add_account(user_id, starting_balance)

    async def update_cash(self, db: object, account_id: str, new_cash: Decimal) -> PaperAccount:
        account = self._by_id(account_id)
        updated = dataclasses.replace(
            account, current_cash=new_cash, version=account.version + 1
        )
        self.accounts[account.user_id] = updated
        return updated

    async def get_holding(self, db: object, account_id: str, symbol: str) -> Holding | None:
        return self.holdings.get((account_id, symbol))

    async def list_holdings(self, db: object, account_id: str) -> list[Holding]:
        return sorted(
            (h for (aid, _), h in self.holdings.items() if aid == account_id),
            key=lambda h: h.symbol,
        )

    async def upsert_holding(
        self,
        db: object,
        account_id: str,
        symbol: str,
        quantity: int,
        average_cost: Decimal,
    ) -> Holding:
        existing = self.holdings.get((account_id, symbol))
        holding = Holding(
            id=existing.id if existing is not None else str(uuid.uuid4()),
            paper_account_id=account_id,
            symbol=symbol,
            quantity=quantity,
            average_cost=average_cost,
        )
        self.holdings[(account_id, symbol)] = holding
        return holding

    async def delete_holding(self, db: object, holding_id: str) -> None:
        for key, holding in list(self.holdings.items()):
            if holding.id == holding_id:
                del self.holdings[key]

    async def insert_transaction(
        self,
        db: object,
        account_id: str,
        symbol: str,
        transaction_type: str,
        quantity: int,
        price_per_share: Decimal,
        total_amount: Decimal,
    ) -> TransactionRecord:
        if self.fail_on_insert_transaction:
            raise ConnectionError("connection reset by peer")
        record = TransactionRecord(
            id=len(self.transactions) + 1,
            paper_account_id=account_id,
            symbol=symbol,
            transaction_type=transaction_type,
            quantity=quantity,
            price_per_share=price_per_share,
            total_amount=total_amount,
            executed_at=datetime.now(UTC),
        )
        self.transactions.append(record)
        return record

    async def list_transactions(
        self,
        db: object,
        account_id: str,
        symbol: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[TransactionRecord], int]:
        matching = [
            t for t in reversed(self.transactions)
            if t.paper_account_id == account_id and (symbol is None or t.symbol == symbol)
        ]
        return matching[offset:offset + limit], len(matching)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def portfolio_repo() -> InMemoryPortfolioRepository:
    return InMemoryPortfolioRepository()


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
