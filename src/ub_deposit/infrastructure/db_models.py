"""SQLAlchemy ORM model for ub_deposit.

Maps to the table created by alembic migration 002. Tests build the schema
from this metadata, so constraints here mirror the migration.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from src.ub_common.database import Base


class DepositORM(Base):
    __tablename__ = "deposits"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_deposits_balance_gte_0"),
    )

    owner_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    version: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
