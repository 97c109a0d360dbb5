"""HttpRateSource: fetches a full rate snapshot from an exchangerate.host-style API.

Request:  GET {url}?base={BASE}
Response: {"rates": {"USD": 0.0108, "EUR": 0.0101, ...}, ...}

The upstream is untrusted: anything other than a 2xx JSON object with a
"rates" mapping is a RateSourceUnavailableError. Individual non-numeric
rates are dropped rather than failing the whole snapshot.
"""

import logging

import httpx

from src.ub_common.errors import RateSourceUnavailableError

logger = logging.getLogger(__name__)


class HttpRateSource:
    def __init__(self, client: httpx.AsyncClient, url: str, base_currency: str) -> None:
        self._client = client
        self._url = url
        self._base = base_currency.upper()

    async def fetch_rates(self) -> dict[str, float]:
        try:
            response = await self._client.get(self._url, params={"base": self._base})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise RateSourceUnavailableError(f"{type(exc).__name__}: {exc}") from exc
        except ValueError as exc:
            raise RateSourceUnavailableError("response body is not valid JSON") from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("rates"), dict):
            raise RateSourceUnavailableError("response has no 'rates' object")

        rates: dict[str, float] = {}
        for code, value in payload["rates"].items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                logger.warning("Skipping non-numeric rate for %s: %r", code, value)
                continue
            rates[str(code).upper()] = float(value)
        return rates
