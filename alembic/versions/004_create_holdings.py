"""004: create holdings table

Revision ID: 004
Revises: 003
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE holdings (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            paper_account_id    UUID            NOT NULL
                REFERENCES paper_accounts (id) ON DELETE CASCADE,
            symbol              VARCHAR(16)     NOT NULL,
            quantity            INTEGER         NOT NULL,
            average_cost        NUMERIC(14, 4)  NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_holdings_account_symbol UNIQUE (paper_account_id, symbol),
            CONSTRAINT ck_holdings_quantity_gt_0  CHECK (quantity > 0),
            CONSTRAINT ck_holdings_avg_cost_gt_0  CHECK (average_cost > 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_holdings_updated_at
            BEFORE UPDATE ON holdings
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE holdings IS 'Open positions; a row is deleted when quantity reaches 0';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS holdings CASCADE;")
