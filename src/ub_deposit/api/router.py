"""ub_deposit REST API: balance read, signed change, transfer, history."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.ub_common.database import get_db_session
from src.ub_common.response import ApiResponse, success_response
from src.ub_deposit.api.dependencies import get_balance_service
from src.ub_deposit.application.schemas import (
    BalanceResponse,
    HistoryRequest,
    HistoryResponse,
    TransactionResponse,
    TransferRequest,
    UpdateBalanceRequest,
)
from src.ub_deposit.application.service import BalanceService
from src.ub_deposit.application.validation import canonical_owner_id

router = APIRouter(prefix="/deposits", tags=["deposits"])


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.get("/{owner_id}/balance")
async def get_balance(
    owner_id: str,
    service: Annotated[BalanceService, Depends(get_balance_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    currency: str = Query("", description="ISO 4217 code; empty for the base currency"),
) -> ApiResponse:
    balance = await service.get_balance(db, owner_id, currency)
    data = BalanceResponse(
        owner_id=canonical_owner_id(owner_id),
        balance=balance,
        currency=currency.upper() or service.base_currency,
    )
    return success_response(data.model_dump(), _request_id(request))


@router.post("/change", status_code=status.HTTP_201_CREATED)
async def update_balance(
    body: UpdateBalanceRequest,
    service: Annotated[BalanceService, Depends(get_balance_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    tx = await service.update_balance(
        db, body.owner_id, body.amount, body.description, body.idempotency_key
    )
    data = TransactionResponse.from_domain(tx)
    return success_response(data.model_dump(), _request_id(request))


@router.post("/transfer", status_code=status.HTTP_201_CREATED)
async def transfer(
    body: TransferRequest,
    service: Annotated[BalanceService, Depends(get_balance_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    tx = await service.transfer(
        db,
        body.sender_id,
        body.recipient_id,
        body.amount,
        body.description,
        body.idempotency_key,
    )
    data = TransactionResponse.from_domain(tx)
    return success_response(data.model_dump(), _request_id(request))


@router.post("/history")
async def get_history(
    body: HistoryRequest,
    service: Annotated[BalanceService, Depends(get_balance_service)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    txs = await service.get_history(
        db, body.owner_id, body.offset, body.limit, body.order_by, body.order_direction
    )
    data = HistoryResponse(items=[TransactionResponse.from_domain(tx) for tx in txs])
    return success_response(data.model_dump(), _request_id(request))
