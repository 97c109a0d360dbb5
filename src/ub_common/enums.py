"""Global enums: values are part of the public API contract."""

from enum import Enum


class HistoryOrderBy(str, Enum):
    TRANSACTION_DATE = "transaction_date"
    AMOUNT = "amount"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class TransactionKind(str, Enum):
    """Derived from which parties a transaction has; not stored."""
    TOP_UP = "TOP_UP"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER = "TRANSFER"
