"""Shared test fixtures."""

import pytest

from src.ub_exchange.domain.cache import RateCache
from tests.fakes import FakeClock, FakeRateSource


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_source() -> FakeRateSource:
    return FakeRateSource()


@pytest.fixture
def rate_cache(rate_source: FakeRateSource, clock: FakeClock) -> RateCache:
    """RUB-based cache: 30 min TTL, 5 min janitor, fake clock and upstream."""
    return RateCache(
        source=rate_source,
        base_currency="RUB",
        ttl_seconds=1800,
        cleanup_interval_seconds=300,
        clock=clock,
    )
