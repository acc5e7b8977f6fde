"""
Polygon.io adapter for daily open/close data.

Endpoint: GET /v1/open-close/{ticker}/{date}. Works for stock tickers as
well as option contracts (``O:SPY251219C00650000``).
"""

from datetime import date
from typing import Any

import aiohttp
import structlog

from market_predictions.exceptions import (
    MalformedPointError,
    NoDataForDateError,
    ProviderUnavailableError,
    RateLimitedError,
    SymbolNotFoundError,
)
from market_predictions.market.providers.base import MarketDataProvider

logger = structlog.get_logger()


def classify_response(status: int, body: Any, symbol: str, day: date) -> dict:
    """Map an HTTP status and decoded body onto a payload or a typed error."""
    message = body.get("message") if isinstance(body, dict) else None

    if status == 429:
        raise RateLimitedError(message or f"Rate limited fetching {symbol} on {day}")
    if status == 404:
        raise NoDataForDateError(symbol, day.isoformat())
    if status == 400:
        raise SymbolNotFoundError(symbol)
    if status in (401, 403):
        raise ProviderUnavailableError(f"Polygon rejected credentials: {message or status}")
    if status >= 500:
        raise ProviderUnavailableError(f"Polygon returned HTTP {status}")
    if status != 200:
        raise ProviderUnavailableError(f"Unexpected Polygon response HTTP {status}")

    if not isinstance(body, dict):
        raise MalformedPointError(f"Unexpected payload for {symbol} on {day}")
    if body.get("status") == "NOT_FOUND":
        raise NoDataForDateError(symbol, day.isoformat())

    return {
        "status": body.get("status", "OK"),
        "symbol": body.get("symbol", symbol),
        "from": body.get("from", day.isoformat()),
        "open": body.get("open"),
        "high": body.get("high"),
        "low": body.get("low"),
        "close": body.get("close"),
        "volume": body.get("volume"),
    }


class PolygonProvider(MarketDataProvider):
    def __init__(self, api_key: str, base_url: str, timeout: float = 10.0) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def get_daily_open_close(self, symbol: str, day: date) -> dict:
        session = await self._get_session()
        url = f"{self._base_url}/v1/open-close/{symbol}/{day.isoformat()}"
        params = {"adjusted": "true", "apiKey": self._api_key}

        try:
            async with session.get(url, params=params) as resp:
                try:
                    body = await resp.json(content_type=None)
                except ValueError as exc:
                    if resp.status == 200:
                        raise MalformedPointError(
                            f"Non-JSON payload for {symbol} on {day}"
                        ) from exc
                    body = None
                return classify_response(resp.status, body, symbol, day)
        except TimeoutError:
            raise
        except aiohttp.ClientError as exc:
            logger.error(
                "polygon_request_error", symbol=symbol, day=day.isoformat(), error=str(exc)
            )
            raise ProviderUnavailableError(f"Polygon unreachable: {exc}") from exc
