"""003: create paper_accounts table

Revision ID: 003
Revises: 002
Create Date: 2026-10-12
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE paper_accounts (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id             VARCHAR(64)     NOT NULL,
            account_name        VARCHAR(100)    NOT NULL DEFAULT 'My Portfolio',
            starting_balance    NUMERIC(14, 2)  NOT NULL,
            current_cash        NUMERIC(14, 2)  NOT NULL,
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_paper_accounts_user_id    UNIQUE (user_id),
            CONSTRAINT ck_paper_accounts_cash_gte_0 CHECK (current_cash >= 0),
            CONSTRAINT ck_paper_accounts_start_gt_0 CHECK (starting_balance > 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_paper_accounts_updated_at
            BEFORE UPDATE ON paper_accounts
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("COMMENT ON TABLE paper_accounts IS 'Simulated cash account, amounts in dollars';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS paper_accounts CASCADE;")
