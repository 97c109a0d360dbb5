"""Pydantic schemas for the deposits API.

Request models only fix the wire types; business validation happens in the
balance service so every caller gets the same field errors.
"""

from pydantic import BaseModel, Field

from src.ub_common.money import minor_to_display
from src.ub_ledger.domain.models import Transaction

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class UpdateBalanceRequest(BaseModel):
    owner_id: str
    amount: int = Field(..., description="Signed amount in kopecks: >0 top-up, <0 withdrawal")
    description: str = ""
    idempotency_key: str | None = None


class TransferRequest(BaseModel):
    sender_id: str
    recipient_id: str
    amount: int = Field(..., description="Amount to move in kopecks")
    description: str = ""
    idempotency_key: str | None = None


class HistoryRequest(BaseModel):
    owner_id: str
    offset: int = 0
    limit: int = 20
    order_by: str | None = Field(None, description="transaction_date or amount")
    order_direction: str | None = Field(None, description="ASC or DESC")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    owner_id: str
    balance: int | float  # int in base currency, float when converted
    currency: str


class TransactionResponse(BaseModel):
    id: int
    kind: str  # TOP_UP, WITHDRAWAL or TRANSFER
    sender_id: str | None
    recipient_id: str | None
    amount: int
    amount_display: str
    description: str
    transaction_date: str  # ISO8601 string

    @classmethod
    def from_domain(cls, tx: Transaction) -> "TransactionResponse":
        return cls(
            id=tx.id or 0,
            kind=tx.kind.value,
            sender_id=tx.sender_id,
            recipient_id=tx.recipient_id,
            amount=tx.amount,
            amount_display=minor_to_display(tx.amount),
            description=tx.description,
            transaction_date=tx.occurred_at.isoformat(),
        )


class HistoryResponse(BaseModel):
    items: list[TransactionResponse]
