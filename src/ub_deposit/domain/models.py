"""Domain models for ub_deposit: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass
class Deposit:
    owner_id: str
    balance: int                     # minor units (kopecks), never negative once stored
    version: int = 0                 # bumped by every successful update
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def with_delta(self, amount: int) -> "Deposit":
        """Return a copy with amount applied; the caller checks the floor."""
        return replace(self, balance=self.balance + amount)
