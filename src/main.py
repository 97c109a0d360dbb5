"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8080
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.ub_common.database import engine
from src.ub_common.errors import AppError, InvalidArgumentError
from src.ub_common.response import error_response
from src.ub_deposit.api.router import router as deposit_router
from src.ub_deposit.application.service import BalanceService
from src.ub_exchange.domain.cache import RateCache
from src.ub_exchange.infrastructure.http_source import HttpRateSource
from src.ub_gateway.middleware.request_log import RequestLogMiddleware

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB, build the rate cache and balance service. Shutdown: dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    http_client = httpx.AsyncClient(timeout=settings.RATES_HTTP_TIMEOUT_SECONDS)
    rate_cache = RateCache(
        source=HttpRateSource(http_client, settings.RATES_API_URL, settings.BASE_CURRENCY),
        base_currency=settings.BASE_CURRENCY,
        ttl_seconds=settings.RATES_CACHE_TTL_SECONDS,
        cleanup_interval_seconds=settings.RATES_CLEANUP_INTERVAL_SECONDS,
    )
    app.state.balance_service = BalanceService(rate_cache)
    yield
    # Shutdown
    await http_client.aclose()
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    data = None
    if isinstance(exc, InvalidArgumentError):
        data = {"errors": [{"field": e.field, "message": e.message} for e in exc.errors]}
    resp = error_response(
        exc.code,
        exc.message,
        data,
        retryable=exc.retryable,
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    resp = error_response(
        1001,
        "Invalid request body",
        {"errors": errors},
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=400, content=resp.model_dump())


app.include_router(deposit_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
