"""Field validation for balance operations.

One function per request shape, each returning every field error it finds
(an empty list means valid). The balance service raises
InvalidArgumentError with the full list before touching storage.
"""

import uuid

from src.ub_common.enums import HistoryOrderBy, SortDirection
from src.ub_common.errors import FieldError

DESCRIPTION_MAX_LENGTH = 100
IDEMPOTENCY_KEY_MAX_LENGTH = 64

_ORDER_BY_VALUES = {o.value for o in HistoryOrderBy}
_DIRECTION_VALUES = {d.value for d in SortDirection}


def canonical_owner_id(value: str) -> str:
    """Normalize any accepted UUID spelling to the stored lowercase form."""
    return str(uuid.UUID(value))


def _check_owner_id(field: str, value: str, errors: list[FieldError]) -> None:
    if not value:
        errors.append(FieldError(field, "is required"))
        return
    try:
        parsed = uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        errors.append(FieldError(field, "must be a valid UUID"))
        return
    if parsed.int == 0:
        errors.append(FieldError(field, "must not be the nil UUID"))


def _check_description(value: str, errors: list[FieldError]) -> None:
    if len(value) > DESCRIPTION_MAX_LENGTH:
        errors.append(
            FieldError("description", f"must be at most {DESCRIPTION_MAX_LENGTH} characters")
        )


def _check_idempotency_key(value: str | None, errors: list[FieldError]) -> None:
    if value is None:
        return
    if not value.strip():
        errors.append(FieldError("idempotency_key", "must not be blank"))
    elif len(value) > IDEMPOTENCY_KEY_MAX_LENGTH:
        errors.append(
            FieldError(
                "idempotency_key", f"must be at most {IDEMPOTENCY_KEY_MAX_LENGTH} characters"
            )
        )


def validate_get_balance(owner_id: str) -> list[FieldError]:
    # Currency codes are resolved by the rate cache; unknown ones fail there
    errors: list[FieldError] = []
    _check_owner_id("owner_id", owner_id, errors)
    return errors


def validate_update_balance(
    owner_id: str, amount: int, description: str, idempotency_key: str | None
) -> list[FieldError]:
    errors: list[FieldError] = []
    _check_owner_id("owner_id", owner_id, errors)
    if amount == 0:
        errors.append(FieldError("amount", "must not be zero"))
    _check_description(description, errors)
    _check_idempotency_key(idempotency_key, errors)
    return errors


def validate_transfer(
    sender_id: str,
    recipient_id: str,
    amount: int,
    description: str,
    idempotency_key: str | None,
) -> list[FieldError]:
    errors: list[FieldError] = []
    _check_owner_id("sender_id", sender_id, errors)
    _check_owner_id("recipient_id", recipient_id, errors)
    if not errors and canonical_owner_id(sender_id) == canonical_owner_id(recipient_id):
        errors.append(FieldError("recipient_id", "must differ from sender_id"))
    if amount <= 0:
        errors.append(FieldError("amount", "must be positive"))
    _check_description(description, errors)
    _check_idempotency_key(idempotency_key, errors)
    return errors


def validate_history(
    owner_id: str,
    offset: int,
    limit: int,
    order_by: str | None,
    direction: str | None,
) -> list[FieldError]:
    errors: list[FieldError] = []
    _check_owner_id("owner_id", owner_id, errors)
    if offset < 0:
        errors.append(FieldError("offset", "must be non-negative"))
    if limit < 1:
        errors.append(FieldError("limit", "must be at least 1"))
    if order_by and order_by not in _ORDER_BY_VALUES:
        errors.append(
            FieldError("order_by", f"must be one of {', '.join(sorted(_ORDER_BY_VALUES))}")
        )
    if direction and direction not in _DIRECTION_VALUES:
        errors.append(FieldError("order_direction", "must be ASC or DESC"))
    return errors
