"""Integration-test fixtures.

Repositories and the balance service run against an in-memory SQLite
database (aiosqlite) whose schema is built from the ORM metadata, so no
external services are needed. StaticPool keeps the single in-memory
connection alive for the whole test.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.main import app
from src.ub_common.database import Base, get_db_session
from src.ub_deposit.application.service import BalanceService
from src.ub_deposit.infrastructure import db_models as _deposit_models  # noqa: F401
from src.ub_exchange.domain.cache import RateCache
from src.ub_ledger.infrastructure import db_models as _ledger_models  # noqa: F401
from tests.fakes import SteppingUtcClock


@pytest_asyncio.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def service(rate_cache: RateCache) -> BalanceService:
    return BalanceService(rate_cache, clock=SteppingUtcClock(), default_timeout=5.0)


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    service: BalanceService,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client over the real app, wired to the SQLite database and fake rates."""

    async def _override_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _override_db
    app.state.balance_service = service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
