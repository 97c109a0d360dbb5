"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Request validation
  2xxx: Deposit
  3xxx: Currency rates
  9xxx: System

Client-class errors (1xxx/2xxx) are never worth retrying as-is, except
ConcurrentUpdateError. Service-class errors carry retryable=True when the
same request may succeed later.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class AppError(Exception):
    """Base application error."""

    retryable: bool = False

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Request validation ---

class InvalidArgumentError(AppError):
    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        detail = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(1001, f"Invalid argument: {detail}", 400)


# --- 2xxx: Deposit ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        self.required = required
        self.available = available
        super().__init__(
            2001,
            f"Insufficient funds: required {required}, available {available}",
            422,
        )


class DepositAlreadyExistsError(AppError):
    def __init__(self, owner_id: str) -> None:
        super().__init__(2002, f"Deposit already exists for owner {owner_id}", 409)


class ConcurrentUpdateError(AppError):
    retryable = True

    def __init__(self, owner_id: str) -> None:
        super().__init__(
            2003, f"Deposit {owner_id} was modified concurrently, retry the request", 409
        )


class DuplicateRequestError(AppError):
    """Two requests with the same idempotency key raced; the loser gets this."""

    retryable = True

    def __init__(self, idempotency_key: str) -> None:
        super().__init__(
            2004, f"Request with idempotency key {idempotency_key} is already processed", 409
        )


class IdempotencyKeyMismatchError(AppError):
    """The key was already used for a request with different parties or amount."""

    def __init__(self, idempotency_key: str) -> None:
        self.idempotency_key = idempotency_key
        super().__init__(
            2005,
            f"Idempotency key {idempotency_key} was already used for a different request",
            409,
        )


# --- 3xxx: Currency rates ---

class ServiceUnavailableError(AppError):
    retryable = True

    def __init__(self, detail: str = "Service unavailable", code: int = 9003) -> None:
        super().__init__(code, detail, 503)


class CurrencyUnavailableError(ServiceUnavailableError):
    def __init__(self, currency: str) -> None:
        self.currency = currency
        super().__init__(f"Currency is not available: {currency}", 3001)


class RateSourceUnavailableError(ServiceUnavailableError):
    def __init__(self, detail: str) -> None:
        super().__init__(f"Currency rate source unavailable: {detail}", 3002)


# --- 9xxx: System ---

class ConstraintViolationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9001, f"Storage constraint violated: {detail}", 500)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class StorageUnavailableError(ServiceUnavailableError):
    def __init__(self, operation: str) -> None:
        super().__init__(f"Storage unavailable during {operation}", 9004)


class OperationTimeoutError(AppError):
    retryable = True

    def __init__(self, operation: str) -> None:
        super().__init__(9005, f"Operation timed out: {operation}", 504)
