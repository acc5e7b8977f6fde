import json
from datetime import UTC, date, datetime

import aiosqlite
import structlog

from market_predictions.exceptions import PersistenceError
from market_predictions.market.schemas import PricePoint, Series

logger = structlog.get_logger()

_LAST_SYMBOL_KEY = "last_symbol"


class MarketDataRepository:
    def __init__(self, db: aiosqlite.Connection) -> None:
        self._db = db

    async def get_raw_results(self, symbol: str) -> list[dict]:
        try:
            cursor = await self._db.execute(
                "SELECT payload FROM raw_fetch_results WHERE symbol = ?",
                (symbol,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Failed to read raw results for {symbol}: {exc}") from exc
        if row is None:
            return []
        try:
            return json.loads(row[0])
        except ValueError as exc:
            raise PersistenceError(f"Corrupt raw results for {symbol}") from exc

    async def put_raw_results(self, symbol: str, raw_results: list[dict]) -> None:
        try:
            await self._write_raw_results(symbol, raw_results)
            await self._db.commit()
        except aiosqlite.Error as exc:
            await self._db.rollback()
            raise PersistenceError(f"Failed to store raw results for {symbol}: {exc}") from exc
        logger.info("raw_results_stored", symbol=symbol, count=len(raw_results))

    async def put_fetch_result(self, symbol: str, raw_results: list[dict], series: Series) -> None:
        """Store raw results and the derived series in one transaction."""
        try:
            await self._write_raw_results(symbol, raw_results)
            await self._write_series(series)
            await self._db.commit()
        except aiosqlite.Error as exc:
            await self._db.rollback()
            raise PersistenceError(f"Failed to store fetch result for {symbol}: {exc}") from exc
        logger.info(
            "fetch_result_stored",
            symbol=symbol,
            raw_count=len(raw_results),
            series_count=len(series.points),
        )

    async def _write_raw_results(self, symbol: str, raw_results: list[dict]) -> None:
        await self._db.execute(
            """
            INSERT INTO raw_fetch_results (symbol, payload, fetched_at)
            VALUES (?, ?, ?)
            ON CONFLICT(symbol) DO UPDATE SET
                payload = excluded.payload,
                fetched_at = excluded.fetched_at
            """,
            (symbol, json.dumps(raw_results, default=str), datetime.now(UTC).isoformat()),
        )

    async def _write_series(self, series: Series) -> None:
        await self._db.execute(
            "DELETE FROM price_series WHERE symbol = ?",
            (series.symbol,),
        )
        await self._db.executemany(
            "INSERT INTO price_series (symbol, date, open, close) VALUES (?, ?, ?, ?)",
            [(series.symbol, p.date.isoformat(), p.open, p.close) for p in series.points],
        )

    async def get_series(self, symbol: str) -> Series:
        try:
            cursor = await self._db.execute(
                "SELECT symbol, date, open, close FROM price_series "
                "WHERE symbol = ? ORDER BY date ASC",
                (symbol,),
            )
            rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Failed to read series for {symbol}: {exc}") from exc
        return Series(
            symbol=symbol,
            points=[
                PricePoint(
                    symbol=row[0],
                    date=date.fromisoformat(row[1]),
                    open=row[2],
                    close=row[3],
                )
                for row in rows
            ],
        )

    async def put_series(self, series: Series) -> None:
        try:
            await self._write_series(series)
            await self._db.commit()
        except aiosqlite.Error as exc:
            await self._db.rollback()
            raise PersistenceError(f"Failed to store series for {series.symbol}: {exc}") from exc
        logger.info("series_stored", symbol=series.symbol, count=len(series.points))

    async def get_last_symbol(self) -> str | None:
        try:
            cursor = await self._db.execute(
                "SELECT value FROM analysis_state WHERE key = ?",
                (_LAST_SYMBOL_KEY,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Failed to read analysis state: {exc}") from exc
        return row[0] if row else None

    async def set_last_symbol(self, symbol: str) -> None:
        try:
            await self._db.execute(
                """
                INSERT INTO analysis_state (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (_LAST_SYMBOL_KEY, symbol),
            )
            await self._db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(f"Failed to store analysis state: {exc}") from exc
