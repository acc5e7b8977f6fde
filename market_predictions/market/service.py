import asyncio
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

from market_predictions.config import settings
from market_predictions.exceptions import NoDataFoundError, ValidationError
from market_predictions.market.analyzer import analyze
from market_predictions.market.fetcher import HistoricalFetcher
from market_predictions.market.repository import MarketDataRepository
from market_predictions.market.schemas import DataAlgorithmsResponse, Series
from market_predictions.market.series import derive_series

logger = structlog.get_logger()

_SYMBOL_PATTERN = re.compile(r"^[A-Z0-9.:^=\-]{1,32}$")


class SymbolLocks:
    """One asyncio.Lock per symbol so runs for the same symbol never interleave.

    A symbol's lock is dropped once its last holder or waiter leaves.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    def symbols(self) -> list[str]:
        return list(self._locks)

    @asynccontextmanager
    async def hold(self, symbol: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(symbol, asyncio.Lock())
        self._users[symbol] = self._users.get(symbol, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[symbol] -= 1
            if not self._users[symbol]:
                del self._users[symbol]
                del self._locks[symbol]


def normalize_symbol(symbol: str | None) -> str:
    if symbol is None or not symbol.strip():
        raise ValidationError("marketSymbol is required")
    normalized = symbol.upper().strip()
    if not _SYMBOL_PATTERN.match(normalized):
        raise ValidationError(f"Invalid market symbol: '{symbol}'")
    return normalized


class MarketService:
    def __init__(
        self,
        fetcher: HistoricalFetcher,
        repo: MarketDataRepository,
        locks: SymbolLocks,
        months: int | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._repo = repo
        self._locks = locks
        self._months = months or settings.fetch_months

    async def submit_symbol(self, symbol: str | None) -> Series:
        symbol = normalize_symbol(symbol)
        logger.info("market_submit_symbol", symbol=symbol, months=self._months)

        async with self._locks.hold(symbol):
            series = await self._fetcher.fetch_series(symbol, self._months)
            await self._repo.set_last_symbol(symbol)

        if not series.points:
            raise NoDataFoundError(symbol)
        return series

    async def run_analysis(self, symbol: str | None = None) -> DataAlgorithmsResponse:
        if symbol:
            try:
                symbol = normalize_symbol(symbol)
            except ValidationError as exc:
                logger.warning("market_analysis_invalid_symbol", symbol=symbol, error=exc.message)
                return DataAlgorithmsResponse()
        else:
            symbol = await self._repo.get_last_symbol()
        if symbol is None:
            logger.info("market_analysis_no_symbol")
            return DataAlgorithmsResponse()

        async with self._locks.hold(symbol):
            raw_results = await self._repo.get_raw_results(symbol)
            series = derive_series(raw_results, symbol)
            await self._repo.put_series(series)

        result = analyze(series.points)
        if result is None:
            return DataAlgorithmsResponse(symbol=symbol)

        risk = result.risk
        return DataAlgorithmsResponse(
            symbol=symbol,
            market_trend=result.trend,
            monthly_percent_changes=risk.monthly_percent_changes if risk else [],
            standard_deviation=risk.standard_deviation if risk else None,
            risk_level=risk.risk_level if risk else None,
        )
