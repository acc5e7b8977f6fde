import asyncio
from datetime import date

import structlog

from market_predictions.config import settings
from market_predictions.exceptions import (
    MalformedPointError,
    NoDataForDateError,
    RateLimitedError,
    SymbolNotFoundError,
)
from market_predictions.market.providers.base import MarketDataProvider
from market_predictions.market.repository import MarketDataRepository
from market_predictions.market.schemas import Series
from market_predictions.market.series import derive_series, is_valid_price
from market_predictions.market.trading_days import market_today, trading_day_for_offset

logger = structlog.get_logger()


class HistoricalFetcher:
    """Walks back one calendar month at a time collecting daily open/close points.

    Provider calls are issued sequentially. Per-date failures (rate limits,
    timeouts, missing or malformed data) skip that month; an unknown symbol or
    an unreachable provider aborts the whole fetch.
    """

    def __init__(
        self,
        provider: MarketDataProvider,
        repo: MarketDataRepository,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
    ) -> None:
        self._provider = provider
        self._repo = repo
        self._timeout = timeout if timeout is not None else settings.provider_timeout_seconds
        self._max_retries = (
            max_retries if max_retries is not None else settings.rate_limit_max_retries
        )
        self._backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.rate_limit_backoff_seconds
        )

    async def fetch_series(self, symbol: str, months: int, today: date | None = None) -> Series:
        if months < 1:
            raise ValueError("months must be at least 1")

        today = today or market_today(settings.market_timezone)
        logger.info("market_fetch_started", symbol=symbol, months=months, today=today.isoformat())

        results: list[dict] = []
        rate_limited = 0

        for offset in range(months):
            if len(results) == months:
                break

            day = trading_day_for_offset(today, offset)
            logger.info("market_fetch_date", symbol=symbol, offset=offset, day=day.isoformat())

            try:
                payload = await self._fetch_with_backoff(symbol, day)
            except SymbolNotFoundError:
                logger.warning("market_fetch_symbol_not_found", symbol=symbol, day=day.isoformat())
                raise
            except RateLimitedError as exc:
                rate_limited += 1
                logger.warning(
                    "market_fetch_rate_limited_skip",
                    symbol=symbol,
                    day=day.isoformat(),
                    error=exc.message,
                )
                continue
            except NoDataForDateError:
                logger.info("market_fetch_no_data", symbol=symbol, day=day.isoformat())
                continue
            except MalformedPointError as exc:
                logger.warning(
                    "market_fetch_malformed",
                    symbol=symbol,
                    day=day.isoformat(),
                    error=exc.message,
                )
                continue

            if not is_valid_price(payload.get("close")):
                logger.warning(
                    "market_fetch_invalid_close",
                    symbol=symbol,
                    day=day.isoformat(),
                    close=payload.get("close"),
                )
                continue

            results.append(payload)

        if len(results) < months:
            logger.warning(
                "market_fetch_shortfall",
                symbol=symbol,
                requested=months,
                collected=len(results),
                rate_limited=rate_limited,
            )

        series = derive_series(results, symbol)
        await self._repo.put_fetch_result(symbol, results, series)

        if not results and rate_limited == months:
            raise RateLimitedError(f"Rate limited on every requested date for {symbol}")

        logger.info("market_fetch_completed", symbol=symbol, points=len(series.points))
        return series

    async def _fetch_with_backoff(self, symbol: str, day: date) -> dict:
        attempt = 0
        while True:
            try:
                return await asyncio.wait_for(
                    self._provider.get_daily_open_close(symbol, day),
                    timeout=self._timeout,
                )
            except (RateLimitedError, TimeoutError) as exc:
                if attempt >= self._max_retries:
                    if isinstance(exc, RateLimitedError):
                        raise
                    raise RateLimitedError(
                        f"Timed out fetching {symbol} on {day.isoformat()}"
                    ) from exc
                delay = self._backoff_seconds * 2**attempt
                logger.info(
                    "market_fetch_backoff",
                    symbol=symbol,
                    day=day.isoformat(),
                    attempt=attempt + 1,
                    delay=delay,
                )
                await asyncio.sleep(delay)
                attempt += 1
