"""Unit tests for RateCache with a fake clock and a counting fake upstream."""

import asyncio

import pytest

from src.ub_common.errors import CurrencyUnavailableError, RateSourceUnavailableError
from src.ub_exchange.domain.cache import RateCache
from tests.fakes import FakeClock, FakeRateSource


class TestBaseCurrency:
    async def test_base_code_is_one_without_fetch(
        self, rate_cache: RateCache, rate_source: FakeRateSource
    ) -> None:
        assert await rate_cache.get("RUB") == 1.0
        assert await rate_cache.get("rub") == 1.0
        assert rate_source.calls == 0

    async def test_base_code_works_while_upstream_down(
        self, rate_cache: RateCache, rate_source: FakeRateSource
    ) -> None:
        rate_source.failing = True
        assert await rate_cache.get("RUB") == 1.0


class TestMissAndHit:
    async def test_miss_fetches_once_then_hits(
        self, rate_cache: RateCache, rate_source: FakeRateSource
    ) -> None:
        assert await rate_cache.get("USD") == 0.011
        assert await rate_cache.get("USD") == 0.011
        assert rate_source.calls == 1

    async def test_bulk_refresh_populates_every_code(
        self, rate_cache: RateCache, rate_source: FakeRateSource
    ) -> None:
        await rate_cache.get("USD")
        assert await rate_cache.get("EUR") == 0.01
        assert rate_source.calls == 1
        assert len(rate_cache) == 2

    async def test_lowercase_code(self, rate_cache: RateCache) -> None:
        assert await rate_cache.get("usd") == 0.011

    async def test_unknown_code_after_refresh_fails_without_second_call(
        self, rate_cache: RateCache, rate_source: FakeRateSource
    ) -> None:
        await rate_cache.get("USD")
        with pytest.raises(CurrencyUnavailableError):
            await rate_cache.get("XYZ")
        assert rate_source.calls == 1

    async def test_unknown_code_on_cold_cache_fetches_exactly_once(
        self, rate_cache: RateCache, rate_source: FakeRateSource
    ) -> None:
        with pytest.raises(CurrencyUnavailableError):
            await rate_cache.get("XYZ")
        with pytest.raises(CurrencyUnavailableError):
            await rate_cache.get("ABC")
        assert rate_source.calls == 1


class TestExpiry:
    async def test_expired_entry_triggers_new_refresh(
        self, rate_cache: RateCache, rate_source: FakeRateSource, clock: FakeClock
    ) -> None:
        await rate_cache.get("USD")
        rate_source.rates["USD"] = 0.012
        clock.advance(1800)

        assert await rate_cache.get("USD") == 0.012
        assert rate_source.calls == 2

    async def test_entry_fresh_just_before_ttl(
        self, rate_cache: RateCache, rate_source: FakeRateSource, clock: FakeClock
    ) -> None:
        await rate_cache.get("USD")
        clock.advance(1799)
        await rate_cache.get("USD")
        assert rate_source.calls == 1

    async def test_janitor_runs_without_refresh(
        self, rate_source: FakeRateSource, clock: FakeClock
    ) -> None:
        cache = RateCache(rate_source, "RUB", ttl_seconds=60, cleanup_interval_seconds=300, clock=clock)
        await cache.get("USD")
        clock.advance(300)
        rate_source.failing = True
        with pytest.raises(RateSourceUnavailableError):
            await cache.get("USD")
        assert len(cache) == 0


class TestUpstreamFailure:
    async def test_failure_propagates(
        self, rate_cache: RateCache, rate_source: FakeRateSource
    ) -> None:
        rate_source.failing = True
        with pytest.raises(RateSourceUnavailableError):
            await rate_cache.get("USD")

    async def test_failure_leaves_cache_unchanged(
        self, rate_source: FakeRateSource, clock: FakeClock
    ) -> None:
        cache = RateCache(
            rate_source, "RUB", ttl_seconds=1800, cleanup_interval_seconds=10_000, clock=clock
        )
        await cache.get("USD")
        clock.advance(1800)
        rate_source.failing = True
        with pytest.raises(RateSourceUnavailableError):
            await cache.get("USD")
        assert len(cache) == 2

        rate_source.failing = False
        assert await cache.get("USD") == 0.011
        assert rate_source.calls == 3

    async def test_recovers_after_failure(
        self, rate_cache: RateCache, rate_source: FakeRateSource
    ) -> None:
        rate_source.failing = True
        with pytest.raises(RateSourceUnavailableError):
            await rate_cache.get("USD")
        rate_source.failing = False
        assert await rate_cache.get("USD") == 0.011


class TestSingleFlight:
    async def test_concurrent_misses_share_one_fetch(self, clock: FakeClock) -> None:
        release = asyncio.Event()

        class SlowSource(FakeRateSource):
            async def fetch_rates(self) -> dict[str, float]:
                await release.wait()
                return await super().fetch_rates()

        source = SlowSource()
        cache = RateCache(source, "RUB", ttl_seconds=1800, cleanup_interval_seconds=300, clock=clock)

        tasks = [asyncio.create_task(cache.get(code)) for code in ("USD", "EUR", "USD")]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks)

        assert results == [0.011, 0.01, 0.011]
        assert source.calls == 1


class TestConstruction:
    def test_rejects_non_positive_ttl(self, rate_source: FakeRateSource) -> None:
        with pytest.raises(ValueError):
            RateCache(rate_source, "RUB", ttl_seconds=0, cleanup_interval_seconds=300)

    def test_base_currency_is_uppercased(self, rate_source: FakeRateSource) -> None:
        cache = RateCache(rate_source, "rub", ttl_seconds=60, cleanup_interval_seconds=60)
        assert cache.base_currency == "RUB"
