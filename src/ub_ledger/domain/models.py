"""Domain models for ub_ledger: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.ub_common.enums import TransactionKind


@dataclass(frozen=True)
class Transaction:
    """One immutable ledger record.

    sender_id is None for a top-up, recipient_id is None for a withdrawal,
    both are set for a transfer between two deposits.
    """

    sender_id: str | None
    recipient_id: str | None
    amount: int                      # minor units, always positive
    description: str
    occurred_at: datetime            # UTC, assigned by the balance service
    id: int | None = None            # BIGSERIAL, None until appended
    idempotency_key: str | None = None

    @property
    def kind(self) -> TransactionKind:
        if self.sender_id is None:
            return TransactionKind.TOP_UP
        if self.recipient_id is None:
            return TransactionKind.WITHDRAWAL
        return TransactionKind.TRANSFER
