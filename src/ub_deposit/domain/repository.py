"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ub_deposit.domain.models import Deposit


class DepositRepositoryProtocol(Protocol):
    async def get(
        self, db: AsyncSession, owner_id: str, for_update: bool = False
    ) -> Deposit | None: ...

    async def create(self, db: AsyncSession, deposit: Deposit) -> Deposit: ...

    async def get_or_create(self, db: AsyncSession, owner_id: str) -> Deposit: ...

    async def update(self, db: AsyncSession, deposit: Deposit) -> Deposit: ...

    async def count(self, db: AsyncSession) -> int: ...
