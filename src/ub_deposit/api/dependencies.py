"""FastAPI dependencies for the deposits API."""

from fastapi import Request

from src.ub_deposit.application.service import BalanceService


def get_balance_service(request: Request) -> BalanceService:
    """Return the BalanceService built once in the application lifespan."""
    return request.app.state.balance_service
