"""SQLAlchemy ORM model for ub_ledger.

Maps to the table created by alembic migration 003. Tests build the schema
from this metadata, so constraints here mirror the migration.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.ub_common.database import Base


class TransactionORM(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_gt_0"),
        CheckConstraint(
            "sender_id IS NOT NULL OR recipient_id IS NOT NULL",
            name="ck_transactions_has_party",
        ),
        UniqueConstraint("idempotency_key", name="uq_transactions_idempotency_key"),
        Index("idx_transactions_sender_time", "sender_id", "occurred_at"),
        Index("idx_transactions_recipient_time", "recipient_id", "occurred_at"),
    )

    # BigInteger on PostgreSQL, plain INTEGER elsewhere so SQLite autoincrements
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
    )
    sender_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    recipient_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    description: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    idempotency_key: Mapped[str | None] = mapped_column(String(64), nullable=True)
    # NOTE: No updated_at, transactions is append-only
