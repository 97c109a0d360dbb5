"""BalanceService: the only writer of deposits and ledger entries.

Every mutation runs as one unit of work on the caller's session: the
deposit write(s) and the ledger append are committed together or rolled
back together, including on cancellation and timeout. A balance change
therefore never exists without its transaction, and vice versa.

Same-account races are closed by the repository: rows are locked for the
duration of the unit of work where the backend supports it, and every
UPDATE carries an optimistic version check. Transfers lock both deposits
in owner_id order so opposite transfers cannot deadlock.

get_balance never writes. Credits (top-ups, transfer recipients)
materialize a missing deposit; a debit against a missing deposit fails
with insufficient funds and creates nothing.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ub_common.database import storage_errors
from src.ub_common.datetime_utils import utc_now
from src.ub_common.enums import HistoryOrderBy, SortDirection
from src.ub_common.errors import (
    IdempotencyKeyMismatchError,
    InsufficientFundsError,
    InvalidArgumentError,
    OperationTimeoutError,
    ServiceUnavailableError,
)
from src.ub_common.money import convert
from src.ub_deposit.application.validation import (
    canonical_owner_id,
    validate_get_balance,
    validate_history,
    validate_transfer,
    validate_update_balance,
)
from src.ub_deposit.domain.models import Deposit
from src.ub_deposit.domain.repository import DepositRepositoryProtocol
from src.ub_deposit.infrastructure.persistence import DepositRepository
from src.ub_exchange.domain.cache import RateCache
from src.ub_ledger.domain.models import Transaction
from src.ub_ledger.domain.repository import TransactionRepositoryProtocol
from src.ub_ledger.infrastructure.persistence import TransactionRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _unit_of_work(db: AsyncSession) -> AsyncIterator[None]:
    # BaseException: CancelledError must roll back too
    try:
        yield
        with storage_errors("commit"):
            await db.commit()
    except BaseException:
        await db.rollback()
        raise


class BalanceService:
    def __init__(
        self,
        rate_cache: RateCache,
        deposit_repo: DepositRepositoryProtocol | None = None,
        transaction_repo: TransactionRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
        default_timeout: float | None = settings.OPERATION_TIMEOUT_SECONDS,
    ) -> None:
        self._rates = rate_cache
        self._deposits: DepositRepositoryProtocol = deposit_repo or DepositRepository()
        self._ledger: TransactionRepositoryProtocol = transaction_repo or TransactionRepository()
        self._clock = clock
        self._default_timeout = default_timeout

    @property
    def base_currency(self) -> str:
        return self._rates.base_currency

    @asynccontextmanager
    async def _deadline(self, operation: str, timeout: float | None) -> AsyncIterator[None]:
        seconds = self._default_timeout if timeout is None else timeout
        try:
            async with asyncio.timeout(seconds):
                yield
        except TimeoutError as exc:
            logger.warning("%s exceeded its %ss deadline", operation, seconds)
            raise OperationTimeoutError(operation) from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_balance(
        self,
        db: AsyncSession,
        owner_id: str,
        currency: str = "",
        timeout: float | None = None,
    ) -> int | float:
        """Return the balance in kopecks, or converted to `currency` as a float."""
        errors = validate_get_balance(owner_id)
        if errors:
            raise InvalidArgumentError(errors)
        owner_id = canonical_owner_id(owner_id)

        async with self._deadline("get_balance", timeout):
            deposit = await self._deposits.get(db, owner_id)
            # Release the connection before any network round-trip
            await db.rollback()
            balance = deposit.balance if deposit is not None else 0

            if not currency or currency.upper() == self._rates.base_currency:
                return balance
            try:
                rate = await self._rates.get(currency)
            except ServiceUnavailableError as exc:
                raise ServiceUnavailableError(
                    "Requested currency is not available at the moment."
                ) from exc
            return convert(balance, rate)

    async def get_history(
        self,
        db: AsyncSession,
        owner_id: str,
        offset: int = 0,
        limit: int = 20,
        order_by: str | None = None,
        direction: str | None = None,
        timeout: float | None = None,
    ) -> list[Transaction]:
        errors = validate_history(owner_id, offset, limit, order_by, direction)
        if errors:
            raise InvalidArgumentError(errors)

        async with self._deadline("get_history", timeout):
            return await self._ledger.list_for_account(
                db,
                canonical_owner_id(owner_id),
                HistoryOrderBy(order_by) if order_by else None,
                SortDirection(direction) if direction else None,
                offset,
                limit,
            )

    async def count_deposits(self, db: AsyncSession) -> int:
        return await self._deposits.count(db)

    async def count_transactions(self, db: AsyncSession) -> int:
        return await self._ledger.count(db)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def update_balance(
        self,
        db: AsyncSession,
        owner_id: str,
        amount: int,
        description: str = "",
        idempotency_key: str | None = None,
        timeout: float | None = None,
    ) -> Transaction:
        """Apply a signed change: amount > 0 is a top-up, amount < 0 a withdrawal."""
        errors = validate_update_balance(owner_id, amount, description, idempotency_key)
        if errors:
            raise InvalidArgumentError(errors)
        owner_id = canonical_owner_id(owner_id)

        async with self._deadline("update_balance", timeout):
            async with _unit_of_work(db):
                existing = await self._find_processed(
                    db,
                    idempotency_key,
                    sender_id=owner_id if amount < 0 else None,
                    recipient_id=owner_id if amount > 0 else None,
                    amount=abs(amount),
                    description=description,
                )
                if existing is not None:
                    return existing

                if amount > 0:
                    deposit = await self._deposits.get_or_create(db, owner_id)
                else:
                    deposit = await self._deposits.get(
                        db, owner_id, for_update=True
                    ) or Deposit(owner_id=owner_id, balance=0)
                updated = await self._apply(db, deposit, amount)

                tx = await self._ledger.append(
                    db,
                    Transaction(
                        sender_id=owner_id if amount < 0 else None,
                        recipient_id=owner_id if amount > 0 else None,
                        amount=abs(amount),
                        description=description,
                        occurred_at=self._clock(),
                        idempotency_key=idempotency_key,
                    ),
                )

        logger.info(
            "Balance of %s changed by %d to %d (tx=%s)",
            owner_id, amount, updated.balance, tx.id,
        )
        return tx

    async def transfer(
        self,
        db: AsyncSession,
        sender_id: str,
        recipient_id: str,
        amount: int,
        description: str = "",
        idempotency_key: str | None = None,
        timeout: float | None = None,
    ) -> Transaction:
        """Move amount from sender to recipient as one ledger record, all-or-nothing."""
        errors = validate_transfer(sender_id, recipient_id, amount, description, idempotency_key)
        if errors:
            raise InvalidArgumentError(errors)
        sender_id = canonical_owner_id(sender_id)
        recipient_id = canonical_owner_id(recipient_id)

        async with self._deadline("transfer", timeout):
            async with _unit_of_work(db):
                existing = await self._find_processed(
                    db,
                    idempotency_key,
                    sender_id=sender_id,
                    recipient_id=recipient_id,
                    amount=amount,
                    description=description,
                )
                if existing is not None:
                    return existing

                for owner_id in sorted((sender_id, recipient_id)):
                    if owner_id == sender_id:
                        sender = await self._deposits.get(
                            db, sender_id, for_update=True
                        ) or Deposit(owner_id=sender_id, balance=0)
                    else:
                        recipient = await self._deposits.get_or_create(db, recipient_id)

                await self._apply(db, sender, -amount)
                await self._apply(db, recipient, amount)

                tx = await self._ledger.append(
                    db,
                    Transaction(
                        sender_id=sender_id,
                        recipient_id=recipient_id,
                        amount=amount,
                        description=description,
                        occurred_at=self._clock(),
                        idempotency_key=idempotency_key,
                    ),
                )

        logger.info("Transferred %d from %s to %s (tx=%s)", amount, sender_id, recipient_id, tx.id)
        return tx

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _find_processed(
        self,
        db: AsyncSession,
        idempotency_key: str | None,
        sender_id: str | None,
        recipient_id: str | None,
        amount: int,
        description: str,
    ) -> Transaction | None:
        """Return the transaction already recorded under this key, if any.

        A hit must describe the same request: same parties, amount and
        description. Anything else is a reused key and is rejected.
        """
        if idempotency_key is None:
            return None
        existing = await self._ledger.get_by_idempotency_key(db, idempotency_key)
        if existing is None:
            return None
        if (existing.sender_id, existing.recipient_id, existing.amount, existing.description) != (
            sender_id, recipient_id, amount, description,
        ):
            logger.warning(
                "Idempotency key %s reused for a different request (stored tx=%s)",
                idempotency_key, existing.id,
            )
            raise IdempotencyKeyMismatchError(idempotency_key)
        logger.info("Idempotency hit: key=%s tx=%s", idempotency_key, existing.id)
        return existing

    async def _apply(self, db: AsyncSession, deposit: Deposit, amount: int) -> Deposit:
        changed = deposit.with_delta(amount)
        if changed.balance < 0:
            logger.info(
                "Insufficient funds on %s: balance %d, change %d",
                deposit.owner_id, deposit.balance, amount,
            )
            raise InsufficientFundsError(required=-amount, available=deposit.balance)
        return await self._deposits.update(db, changed)
