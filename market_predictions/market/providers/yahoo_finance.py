import asyncio
from datetime import date, timedelta

import structlog
import yfinance as yf
from yfinance.exceptions import YFRateLimitError

from market_predictions.exceptions import (
    NoDataForDateError,
    ProviderUnavailableError,
    RateLimitedError,
    SymbolNotFoundError,
)
from market_predictions.market.providers.base import MarketDataProvider

logger = structlog.get_logger()


def _fetch_day_history(symbol: str, day: date) -> list[dict]:
    """Fetch the one-day price window synchronously (to be run in a thread)."""
    t = yf.Ticker(symbol)
    hist = t.history(start=day.isoformat(), end=(day + timedelta(days=1)).isoformat())
    if hist.empty:
        recent = t.history(period="1mo")
        if recent.empty:
            raise SymbolNotFoundError(symbol)
        raise NoDataForDateError(symbol, day.isoformat())
    return hist.reset_index().to_dict("records")


def _consume_outcome(task: asyncio.Task) -> None:
    if not task.cancelled():
        task.exception()


class YahooFinanceProvider(MarketDataProvider):
    """yfinance-backed provider.

    A worker thread cannot be interrupted, so when a caller stops waiting on a
    request (e.g. a timeout) the thread is still awaited before the next
    request is issued. At most one yfinance call runs at a time.
    """

    def __init__(self) -> None:
        self._inflight: asyncio.Task | None = None

    async def _run_in_thread(self, symbol: str, day: date) -> list[dict]:
        if self._inflight is not None and not self._inflight.done():
            logger.info("yfinance_waiting_for_inflight", symbol=symbol, day=day.isoformat())
            await asyncio.wait({self._inflight})

        task = asyncio.ensure_future(asyncio.to_thread(_fetch_day_history, symbol, day))
        task.add_done_callback(_consume_outcome)
        self._inflight = task
        return await asyncio.shield(task)

    async def close(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            await asyncio.wait({self._inflight})
        self._inflight = None

    async def get_daily_open_close(self, symbol: str, day: date) -> dict:
        try:
            rows = await self._run_in_thread(symbol, day)
        except (SymbolNotFoundError, NoDataForDateError):
            raise
        except YFRateLimitError as exc:
            raise RateLimitedError(f"Yahoo Finance rate limited {symbol}") from exc
        except Exception as exc:
            logger.error(
                "yfinance_history_error", symbol=symbol, day=day.isoformat(), error=str(exc)
            )
            raise ProviderUnavailableError(f"Failed to fetch {symbol} on {day}: {exc}") from exc

        row = rows[0]
        return {
            "status": "OK",
            "symbol": symbol,
            "from": day.isoformat(),
            "open": _as_float(row.get("Open")),
            "high": _as_float(row.get("High")),
            "low": _as_float(row.get("Low")),
            "close": _as_float(row.get("Close")),
            "volume": _as_int(row.get("Volume")),
        }


def _as_float(value) -> float | None:
    try:
        return round(float(value), 4)
    except (TypeError, ValueError):
        return None


def _as_int(value) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
