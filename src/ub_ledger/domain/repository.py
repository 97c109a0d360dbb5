"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ub_common.enums import HistoryOrderBy, SortDirection
from src.ub_ledger.domain.models import Transaction


class TransactionRepositoryProtocol(Protocol):
    async def append(self, db: AsyncSession, tx: Transaction) -> Transaction: ...

    async def get_by_idempotency_key(
        self, db: AsyncSession, key: str
    ) -> Transaction | None: ...

    async def list_for_account(
        self,
        db: AsyncSession,
        owner_id: str,
        order_by: HistoryOrderBy | None,
        direction: SortDirection | None,
        offset: int,
        limit: int,
    ) -> list[Transaction]: ...

    async def count(self, db: AsyncSession) -> int: ...
