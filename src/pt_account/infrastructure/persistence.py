"""PortfolioRepository: concrete implementation of PortfolioRepositoryProtocol.

Raw SQL against PostgreSQL. The account row is read with ``FOR UPDATE`` inside a
trade, which serialises concurrent trades on the same account until the
caller's transaction ends.

Transaction ownership: the CALLER (trade executor) commits or rolls back.
"""

from decimal import Decimal

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.pt_account.domain.models import Holding, PaperAccount, TransactionRecord
from src.pt_common.errors import AccountNotFoundError, InternalError

# ---------------------------------------------------------------------------
# SQL: paper_accounts
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = (
    "id, user_id, account_name, starting_balance, current_cash, "
    "version, created_at, updated_at"
)

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM paper_accounts
    WHERE user_id = :user_id
""")

_GET_ACCOUNT_FOR_UPDATE_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM paper_accounts
    WHERE user_id = :user_id
    FOR UPDATE
""")

_CREATE_ACCOUNT_SQL = text(f"""
    INSERT INTO paper_accounts (user_id, starting_balance, current_cash)
    VALUES (:user_id, :starting_balance, :starting_balance)
    RETURNING {_ACCOUNT_COLUMNS}
""")

_UPDATE_CASH_SQL = text(f"""
    UPDATE paper_accounts
    SET current_cash = :new_cash,
        version = version + 1,
        updated_at = NOW()
    WHERE id = :account_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: holdings
# ---------------------------------------------------------------------------

_HOLDING_COLUMNS = (
    "id, paper_account_id, symbol, quantity, average_cost, created_at, updated_at"
)

_GET_HOLDING_SQL = text(f"""
    SELECT {_HOLDING_COLUMNS}
    FROM holdings
    WHERE paper_account_id = :account_id AND symbol = :symbol
    FOR UPDATE
""")

_LIST_HOLDINGS_SQL = text(f"""
    SELECT {_HOLDING_COLUMNS}
    FROM holdings
    WHERE paper_account_id = :account_id
    ORDER BY symbol
""")

_UPSERT_HOLDING_SQL = text(f"""
    INSERT INTO holdings (paper_account_id, symbol, quantity, average_cost)
    VALUES (:account_id, :symbol, :quantity, :average_cost)
    ON CONFLICT (paper_account_id, symbol) DO UPDATE
        SET quantity = EXCLUDED.quantity,
            average_cost = EXCLUDED.average_cost,
            updated_at = NOW()
    RETURNING {_HOLDING_COLUMNS}
""")

_DELETE_HOLDING_SQL = text("DELETE FROM holdings WHERE id = :holding_id")

# ---------------------------------------------------------------------------
# SQL: transactions (append-only)
# ---------------------------------------------------------------------------

_TRANSACTION_COLUMNS = (
    "id, paper_account_id, symbol, transaction_type, quantity, "
    "price_per_share, total_amount, executed_at"
)

_INSERT_TRANSACTION_SQL = text(f"""
    INSERT INTO transactions
        (paper_account_id, symbol, transaction_type, quantity,
         price_per_share, total_amount)
    VALUES
        (:account_id, :symbol, :transaction_type, :quantity,
         :price_per_share, :total_amount)
    RETURNING {_TRANSACTION_COLUMNS}
""")

_LIST_TRANSACTIONS_SQL = text(f"""
    SELECT {_TRANSACTION_COLUMNS}
    FROM transactions
    WHERE paper_account_id = :account_id
      AND (CAST(:symbol AS VARCHAR) IS NULL OR symbol = :symbol)
    ORDER BY executed_at DESC, id DESC
    LIMIT :limit OFFSET :offset
""")

_COUNT_TRANSACTIONS_SQL = text("""
    SELECT COUNT(*)
    FROM transactions
    WHERE paper_account_id = :account_id
      AND (CAST(:symbol AS VARCHAR) IS NULL OR symbol = :symbol)
""")


def _row_to_account(row: object) -> PaperAccount:
    return PaperAccount(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        account_name=row.account_name,  # type: ignore[attr-defined]
        starting_balance=Decimal(row.starting_balance),  # type: ignore[attr-defined]
        current_cash=Decimal(row.current_cash),  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_holding(row: object) -> Holding:
    return Holding(
        id=str(row.id),  # type: ignore[attr-defined]
        paper_account_id=str(row.paper_account_id),  # type: ignore[attr-defined]
        symbol=row.symbol,  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
        average_cost=Decimal(row.average_cost),  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_transaction(row: object) -> TransactionRecord:
    return TransactionRecord(
        id=row.id,  # type: ignore[attr-defined]
        paper_account_id=str(row.paper_account_id),  # type: ignore[attr-defined]
        symbol=row.symbol,  # type: ignore[attr-defined]
        transaction_type=row.transaction_type,  # type: ignore[attr-defined]
        quantity=row.quantity,  # type: ignore[attr-defined]
        price_per_share=Decimal(row.price_per_share),  # type: ignore[attr-defined]
        total_amount=Decimal(row.total_amount),  # type: ignore[attr-defined]
        executed_at=row.executed_at,  # type: ignore[attr-defined]
    )


class PortfolioRepository:
    """Concrete repository: no method commits."""

    async def get_account(
        self, db: AsyncSession, user_id: str
    ) -> PaperAccount | None:
        result = await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def get_account_for_update(
        self, db: AsyncSession, user_id: str
    ) -> PaperAccount | None:
        result = await db.execute(_GET_ACCOUNT_FOR_UPDATE_SQL, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_account(row) if row else None

    async def create_account(
        self, db: AsyncSession, user_id: str, starting_balance: Decimal
    ) -> PaperAccount:
        result = await db.execute(
            _CREATE_ACCOUNT_SQL,
            {"user_id": user_id, "starting_balance": starting_balance},
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Account insert returned no rows: this should never happen")
        return _row_to_account(row)

    async def update_cash(
        self, db: AsyncSession, account_id: str, new_cash: Decimal
    ) -> PaperAccount:
        result = await db.execute(
            _UPDATE_CASH_SQL, {"account_id": account_id, "new_cash": new_cash}
        )
        row = result.fetchone()
        if row is None:
            raise AccountNotFoundError(account_id)
        return _row_to_account(row)

    async def get_holding(
        self, db: AsyncSession, account_id: str, symbol: str
    ) -> Holding | None:
        result = await db.execute(
            _GET_HOLDING_SQL, {"account_id": account_id, "symbol": symbol}
        )
        row = result.fetchone()
        return _row_to_holding(row) if row else None

    async def list_holdings(
        self, db: AsyncSession, account_id: str
    ) -> list[Holding]:
        result = await db.execute(_LIST_HOLDINGS_SQL, {"account_id": account_id})
        return [_row_to_holding(row) for row in result.fetchall()]

    async def upsert_holding(
        self,
        db: AsyncSession,
        account_id: str,
        symbol: str,
        quantity: int,
        average_cost: Decimal,
    ) -> Holding:
        result = await db.execute(
            _UPSERT_HOLDING_SQL,
            {
                "account_id": account_id,
                "symbol": symbol,
                "quantity": quantity,
                "average_cost": average_cost,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Holding upsert returned no rows: this should never happen")
        return _row_to_holding(row)

    async def delete_holding(self, db: AsyncSession, holding_id: str) -> None:
        await db.execute(_DELETE_HOLDING_SQL, {"holding_id": holding_id})

    async def insert_transaction(
        self,
        db: AsyncSession,
        account_id: str,
        symbol: str,
        transaction_type: str,
        quantity: int,
        price_per_share: Decimal,
        total_amount: Decimal,
    ) -> TransactionRecord:
        result = await db.execute(
            _INSERT_TRANSACTION_SQL,
            {
                "account_id": account_id,
                "symbol": symbol,
                "transaction_type": transaction_type,
                "quantity": quantity,
                "price_per_share": price_per_share,
                "total_amount": total_amount,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows: this should never happen")
        return _row_to_transaction(row)

    async def list_transactions(
        self,
        db: AsyncSession,
        account_id: str,
        symbol: str | None,
        limit: int,
        offset: int,
    ) -> tuple[list[TransactionRecord], int]:
        params = {"account_id": account_id, "symbol": symbol}
        result = await db.execute(
            _LIST_TRANSACTIONS_SQL, {**params, "limit": limit, "offset": offset}
        )
        records = [_row_to_transaction(row) for row in result.fetchall()]
        total = (await db.execute(_COUNT_TRANSACTIONS_SQL, params)).scalar_one()
        return records, int(total)
