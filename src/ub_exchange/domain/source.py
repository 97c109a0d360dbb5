"""Upstream rate source Protocol.

fetch_rates returns one snapshot {currency_code: units per one base unit}
covering every currency the source knows. Implementations raise
RateSourceUnavailableError for any transport or decoding failure.
"""

from typing import Protocol


class RateSourceProtocol(Protocol):
    async def fetch_rates(self) -> dict[str, float]: ...
