"""RateCache: process-local, time-bounded cache of base→foreign currency ratios.

One instance is built at application startup and handed to every consumer;
the clock and the upstream source are injected so tests can drive both.

Refresh is bulk and single-flight: a miss repopulates the whole table from
one upstream snapshot, and concurrent misses wait on the same refresh
instead of issuing their own calls. While the latest snapshot is still
fresh it is treated as authoritative, so an unknown code fails without
another round-trip.

Expired entries are evicted by a lazy janitor that runs on access at most
once per cleanup interval. Eviction is TTL only; the table has no size bound.
"""

import asyncio
import logging
import time
from collections.abc import Callable

from src.ub_common.errors import CurrencyUnavailableError, RateSourceUnavailableError
from src.ub_exchange.domain.source import RateSourceProtocol

logger = logging.getLogger(__name__)


class RateCache:
    def __init__(
        self,
        source: RateSourceProtocol,
        base_currency: str,
        ttl_seconds: float,
        cleanup_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._source = source
        self._base = base_currency.upper()
        self._ttl = ttl_seconds
        self._cleanup_interval = cleanup_interval_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, float]] = {}  # code -> (rate, expires_at)
        self._snapshot_expires_at: float | None = None
        self._last_cleanup = clock()
        self._refresh_lock = asyncio.Lock()

    @property
    def base_currency(self) -> str:
        return self._base

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, code: str) -> float:
        """Return units of `code` per one unit of base currency."""
        code = code.upper()
        if code == self._base:
            return 1.0

        self._cleanup_if_due()
        rate = self._lookup(code)
        if rate is not None:
            return rate

        async with self._refresh_lock:
            # Another waiter may have refreshed while we were queued
            rate = self._lookup(code)
            if rate is not None:
                return rate
            if not self._snapshot_is_fresh():
                await self._refresh()
                rate = self._lookup(code)
                if rate is not None:
                    return rate

        logger.info("Rate requested for %s, which is absent from the upstream snapshot", code)
        raise CurrencyUnavailableError(code)

    def _lookup(self, code: str) -> float | None:
        entry = self._entries.get(code)
        if entry is None:
            return None
        rate, expires_at = entry
        if expires_at <= self._clock():
            return None
        return rate

    def _snapshot_is_fresh(self) -> bool:
        return self._snapshot_expires_at is not None and self._snapshot_expires_at > self._clock()

    async def _refresh(self) -> None:
        try:
            rates = await self._source.fetch_rates()
        except RateSourceUnavailableError:
            logger.error("Failed to fetch currency rates", exc_info=True)
            raise
        expires_at = self._clock() + self._ttl
        for code, rate in rates.items():
            self._entries[code.upper()] = (rate, expires_at)
        self._snapshot_expires_at = expires_at
        logger.info("Currency rates refreshed: %d codes", len(rates))

    def _cleanup_if_due(self) -> None:
        now = self._clock()
        if now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        expired = [code for code, (_, expires_at) in self._entries.items() if expires_at <= now]
        for code in expired:
            del self._entries[code]
        if expired:
            logger.debug("Evicted %d expired currency rates", len(expired))
