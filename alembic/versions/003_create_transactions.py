"""003: create transactions table

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
        CREATE TABLE transactions (
            id                  BIGSERIAL       PRIMARY KEY,
            sender_id           VARCHAR(36),
            recipient_id        VARCHAR(36),
            amount              BIGINT          NOT NULL,
            description         VARCHAR(100)    NOT NULL DEFAULT '',
            occurred_at         TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            idempotency_key     VARCHAR(64),
            CONSTRAINT ck_transactions_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_transactions_has_party CHECK (
                sender_id IS NOT NULL OR recipient_id IS NOT NULL
            ),
            CONSTRAINT uq_transactions_idempotency_key UNIQUE (idempotency_key)
        );
    """)
    op.execute(
        "CREATE INDEX idx_transactions_sender_time ON transactions (sender_id, occurred_at);"
    )
    op.execute(
        "CREATE INDEX idx_transactions_recipient_time ON transactions (recipient_id, occurred_at);"
    )
    op.execute("""
        CREATE TRIGGER trg_transactions_append_only
            BEFORE UPDATE OR DELETE ON transactions
            FOR EACH ROW EXECUTE FUNCTION fn_reject_ledger_mutation();
    """)
    op.execute("COMMENT ON TABLE transactions IS 'Ledger: append-only, never updated or deleted';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
