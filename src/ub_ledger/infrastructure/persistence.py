"""TransactionRepository: concrete implementation of TransactionRepositoryProtocol.

The ledger is append-only: this module has no UPDATE or DELETE statements.

Transaction ownership: The CALLER (balance service) is responsible for
committing or rolling back, so an append joins the same unit of work as
the balance writes it accounts for.
"""

from sqlalchemy import BigInteger, DateTime, bindparam, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.selectable import TextualSelect

from src.ub_common.database import storage_errors
from src.ub_common.datetime_utils import as_utc
from src.ub_common.enums import HistoryOrderBy, SortDirection
from src.ub_common.errors import (
    ConstraintViolationError,
    DuplicateRequestError,
    InternalError,
)
from src.ub_ledger.domain.models import Transaction

_COLUMNS = "id, sender_id, recipient_id, amount, description, occurred_at, idempotency_key"

_INSERT_TRANSACTION_SQL = (
    text(f"""
        INSERT INTO transactions
            (sender_id, recipient_id, amount, description, occurred_at, idempotency_key)
        VALUES
            (:sender_id, :recipient_id, :amount, :description, :occurred_at, :idempotency_key)
        RETURNING {_COLUMNS}
    """)
    .bindparams(bindparam("occurred_at", type_=DateTime(timezone=True)))
    .columns(id=BigInteger, occurred_at=DateTime(timezone=True))
)

_GET_BY_IDEMPOTENCY_KEY_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM transactions
    WHERE idempotency_key = :key
""").columns(occurred_at=DateTime(timezone=True))

_COUNT_SQL = text("SELECT COUNT(*) FROM transactions")

# Whitelisted ORDER BY fragments; never interpolate caller input directly.
_ORDER_COLUMNS = {
    HistoryOrderBy.TRANSACTION_DATE: "occurred_at",
    HistoryOrderBy.AMOUNT: "amount",
}


def _list_for_account_sql(
    order_by: HistoryOrderBy | None, direction: SortDirection | None
) -> TextualSelect:
    if order_by is None:
        order = "id ASC"
    else:
        dir_sql = (direction or SortDirection.ASC).value
        order = f"{_ORDER_COLUMNS[order_by]} {dir_sql}, id {dir_sql}"
    return text(f"""
        SELECT {_COLUMNS}
        FROM transactions
        WHERE sender_id = :owner_id OR recipient_id = :owner_id
        ORDER BY {order}
        LIMIT :limit OFFSET :offset
    """).columns(occurred_at=DateTime(timezone=True))


def _row_to_transaction(row: object) -> Transaction:
    return Transaction(
        id=row.id,  # type: ignore[attr-defined]
        sender_id=row.sender_id,  # type: ignore[attr-defined]
        recipient_id=row.recipient_id,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        occurred_at=as_utc(row.occurred_at),  # type: ignore[attr-defined]
        idempotency_key=row.idempotency_key,  # type: ignore[attr-defined]
    )


class TransactionRepository:
    """Concrete repository over the transactions table."""

    async def append(self, db: AsyncSession, tx: Transaction) -> Transaction:
        if tx.amount <= 0:
            raise ConstraintViolationError(f"transaction amount must be positive, got {tx.amount}")
        if tx.sender_id is None and tx.recipient_id is None:
            raise ConstraintViolationError("transaction must have a sender or a recipient")
        try:
            with storage_errors("ledger append"):
                result = await db.execute(
                    _INSERT_TRANSACTION_SQL,
                    {
                        "sender_id": tx.sender_id,
                        "recipient_id": tx.recipient_id,
                        "amount": tx.amount,
                        "description": tx.description,
                        "occurred_at": tx.occurred_at,
                        "idempotency_key": tx.idempotency_key,
                    },
                )
        except IntegrityError as exc:
            if tx.idempotency_key is not None and "idempotency_key" in str(exc.orig):
                raise DuplicateRequestError(tx.idempotency_key) from exc
            raise ConstraintViolationError(str(exc.orig)) from exc
        row = result.fetchone()
        if row is None:
            raise InternalError("Ledger insert returned no rows")
        return _row_to_transaction(row)

    async def get_by_idempotency_key(
        self, db: AsyncSession, key: str
    ) -> Transaction | None:
        with storage_errors("ledger lookup"):
            result = await db.execute(_GET_BY_IDEMPOTENCY_KEY_SQL, {"key": key})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def list_for_account(
        self,
        db: AsyncSession,
        owner_id: str,
        order_by: HistoryOrderBy | None,
        direction: SortDirection | None,
        offset: int,
        limit: int,
    ) -> list[Transaction]:
        with storage_errors("ledger history"):
            result = await db.execute(
                _list_for_account_sql(order_by, direction),
                {"owner_id": owner_id, "offset": offset, "limit": limit},
            )
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def count(self, db: AsyncSession) -> int:
        with storage_errors("ledger count"):
            result = await db.execute(_COUNT_SQL)
        return int(result.scalar_one())
