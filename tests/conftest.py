from datetime import date

import aiosqlite
import pytest

from market_predictions.database import create_schema
from market_predictions.market.providers.base import MarketDataProvider
from market_predictions.market.repository import MarketDataRepository
from market_predictions.market.schemas import PricePoint


class FakeProvider(MarketDataProvider):
    """Serves canned payloads or raises canned errors per requested date."""

    def __init__(self, responses: dict[date, object] | None = None, default=None) -> None:
        self.responses = responses or {}
        self.default = default
        self.calls: list[tuple[str, date]] = []

    async def get_daily_open_close(self, symbol: str, day: date) -> dict:
        self.calls.append((symbol, day))
        response = self.responses.get(day, self.default)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return await response(symbol, day)
        if response is None:
            return payload(symbol, day, 100.0, 101.0)
        return response


def payload(symbol: str, day: date, open_: float, close: float) -> dict:
    return {
        "status": "OK",
        "symbol": symbol,
        "from": day.isoformat(),
        "open": open_,
        "high": max(open_, close),
        "low": min(open_, close),
        "close": close,
        "volume": 1000,
    }


def make_points(closes: list[float], opens: list[float] | None = None) -> list[PricePoint]:
    opens = opens or closes
    return [
        PricePoint(symbol="SPY", date=date(2024, month, 10), open=o, close=c)
        for month, (o, c) in enumerate(zip(opens, closes, strict=True), start=1)
    ]


@pytest.fixture
async def db():
    conn = await aiosqlite.connect(":memory:")
    conn.row_factory = aiosqlite.Row
    await create_schema(conn)
    yield conn
    await conn.close()


@pytest.fixture
def repo(db) -> MarketDataRepository:
    return MarketDataRepository(db)
