"""DepositRepository: concrete implementation of DepositRepositoryProtocol.

Writes are guarded twice: the balance >= 0 CHECK in the table, and an
optimistic version match on UPDATE. A result of 0 rows from the UPDATE means
another writer got there first.

Row locks (SELECT ... FOR UPDATE) are only emitted on PostgreSQL; SQLite
serializes writers at the database level instead.

Transaction ownership: The CALLER (balance service) is responsible for
committing or rolling back.
"""

from sqlalchemy import DateTime, bindparam, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.ub_common.database import storage_errors
from src.ub_common.datetime_utils import as_utc, utc_now
from src.ub_common.errors import (
    ConcurrentUpdateError,
    ConstraintViolationError,
    DepositAlreadyExistsError,
    InternalError,
)
from src.ub_deposit.domain.models import Deposit

_COLUMNS = "owner_id, balance, version, created_at, updated_at"
_TS = DateTime(timezone=True)

_GET_DEPOSIT_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM deposits
    WHERE owner_id = :owner_id
""").columns(created_at=_TS, updated_at=_TS)

_GET_DEPOSIT_FOR_UPDATE_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM deposits
    WHERE owner_id = :owner_id
    FOR UPDATE
""").columns(created_at=_TS, updated_at=_TS)

_INSERT_DEPOSIT_SQL = (
    text(f"""
        INSERT INTO deposits (owner_id, balance, version, created_at, updated_at)
        VALUES (:owner_id, :balance, 0, :now, :now)
        ON CONFLICT (owner_id) DO NOTHING
        RETURNING {_COLUMNS}
    """)
    .bindparams(bindparam("now", type_=_TS))
    .columns(created_at=_TS, updated_at=_TS)
)

_UPDATE_DEPOSIT_SQL = (
    text(f"""
        UPDATE deposits
        SET balance = :balance,
            version = version + 1,
            updated_at = :now
        WHERE owner_id = :owner_id AND version = :version
        RETURNING {_COLUMNS}
    """)
    .bindparams(bindparam("now", type_=_TS))
    .columns(created_at=_TS, updated_at=_TS)
)

_COUNT_SQL = text("SELECT COUNT(*) FROM deposits")


def _row_to_deposit(row: object) -> Deposit:
    return Deposit(
        owner_id=row.owner_id,  # type: ignore[attr-defined]
        balance=row.balance,  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=as_utc(row.created_at),  # type: ignore[attr-defined]
        updated_at=as_utc(row.updated_at),  # type: ignore[attr-defined]
    )


def _supports_row_locks(db: AsyncSession) -> bool:
    bind = db.bind
    return bind is not None and bind.dialect.name == "postgresql"


class DepositRepository:
    """Concrete repository over the deposits table."""

    async def get(
        self, db: AsyncSession, owner_id: str, for_update: bool = False
    ) -> Deposit | None:
        sql = (
            _GET_DEPOSIT_FOR_UPDATE_SQL
            if for_update and _supports_row_locks(db)
            else _GET_DEPOSIT_SQL
        )
        with storage_errors("deposit read"):
            result = await db.execute(sql, {"owner_id": owner_id})
        row = result.fetchone()
        return _row_to_deposit(row) if row else None

    async def create(self, db: AsyncSession, deposit: Deposit) -> Deposit:
        if deposit.balance < 0:
            raise ConstraintViolationError(
                f"cannot save deposit {deposit.owner_id} with negative balance"
            )
        row = await self._insert(db, deposit.owner_id, deposit.balance)
        if row is None:
            raise DepositAlreadyExistsError(deposit.owner_id)
        return _row_to_deposit(row)

    async def get_or_create(self, db: AsyncSession, owner_id: str) -> Deposit:
        await self._insert(db, owner_id, 0)
        # Re-read under lock: a concurrent creator may have won the insert
        deposit = await self.get(db, owner_id, for_update=True)
        if deposit is None:
            raise InternalError(f"Deposit {owner_id} vanished after insert")
        return deposit

    async def update(self, db: AsyncSession, deposit: Deposit) -> Deposit:
        if deposit.balance < 0:
            raise ConstraintViolationError(
                f"cannot save deposit {deposit.owner_id} with negative balance"
            )
        try:
            with storage_errors("deposit update"):
                result = await db.execute(
                    _UPDATE_DEPOSIT_SQL,
                    {
                        "owner_id": deposit.owner_id,
                        "balance": deposit.balance,
                        "version": deposit.version,
                        "now": utc_now(),
                    },
                )
        except IntegrityError as exc:
            raise ConstraintViolationError(str(exc.orig)) from exc
        row = result.fetchone()
        if row is None:
            if await self.get(db, deposit.owner_id) is None:
                raise ConstraintViolationError(f"deposit {deposit.owner_id} does not exist")
            raise ConcurrentUpdateError(deposit.owner_id)
        return _row_to_deposit(row)

    async def count(self, db: AsyncSession) -> int:
        with storage_errors("deposit count"):
            result = await db.execute(_COUNT_SQL)
        return int(result.scalar_one())

    async def _insert(self, db: AsyncSession, owner_id: str, balance: int) -> object | None:
        try:
            with storage_errors("deposit insert"):
                result = await db.execute(
                    _INSERT_DEPOSIT_SQL,
                    {"owner_id": owner_id, "balance": balance, "now": utc_now()},
                )
        except IntegrityError as exc:
            raise ConstraintViolationError(str(exc.orig)) from exc
        return result.fetchone()
