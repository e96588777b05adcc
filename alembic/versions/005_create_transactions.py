"""005: create transactions table

Revision ID: 005
Revises: 004
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id                  BIGSERIAL       PRIMARY KEY,
            paper_account_id    UUID            NOT NULL
                REFERENCES paper_accounts (id) ON DELETE CASCADE,
            symbol              VARCHAR(16)     NOT NULL,
            transaction_type    VARCHAR(4)      NOT NULL,
            quantity            INTEGER         NOT NULL,
            price_per_share     NUMERIC(18, 6)  NOT NULL,
            total_amount        NUMERIC(14, 2)  NOT NULL,
            executed_at         TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transactions_type     CHECK (transaction_type IN ('BUY', 'SELL')),
            CONSTRAINT ck_transactions_qty_gt_0 CHECK (quantity > 0),
            CONSTRAINT ck_transactions_price_gt_0 CHECK (price_per_share > 0)
        );
    """)
    op.execute("""
        CREATE INDEX idx_transactions_account_executed
            ON transactions (paper_account_id, executed_at DESC);
    """)
    op.execute("COMMENT ON TABLE transactions IS 'Append-only trade log';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
