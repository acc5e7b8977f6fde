from datetime import date

import pytest

from market_predictions.exceptions import PersistenceError
from market_predictions.market.schemas import PricePoint, Series

from conftest import payload


async def test_raw_results_round_trip_and_replace(repo):
    first = [payload("SPY", date(2024, 6, 17), 1.0, 2.0)]
    second = [payload("SPY", date(2024, 7, 15), 3.0, 4.0)]

    assert await repo.get_raw_results("SPY") == []

    await repo.put_raw_results("SPY", first)
    assert await repo.get_raw_results("SPY") == first

    await repo.put_raw_results("SPY", second)
    assert await repo.get_raw_results("SPY") == second


async def test_raw_results_are_keyed_by_symbol(repo):
    await repo.put_raw_results("SPY", [payload("SPY", date(2024, 6, 17), 1.0, 2.0)])
    await repo.put_raw_results("AAPL", [])

    assert len(await repo.get_raw_results("SPY")) == 1
    assert await repo.get_raw_results("AAPL") == []


async def test_put_series_replaces_previous_points(repo):
    old = Series(
        symbol="SPY",
        points=[PricePoint(symbol="SPY", date=date(2024, 1, 11), open=1.0, close=2.0)],
    )
    new = Series(
        symbol="SPY",
        points=[
            PricePoint(symbol="SPY", date=date(2024, 3, 14), open=5.0, close=6.0),
            PricePoint(symbol="SPY", date=date(2024, 2, 15), open=3.0, close=4.0),
        ],
    )

    await repo.put_series(old)
    await repo.put_series(new)
    stored = await repo.get_series("SPY")

    assert [p.date for p in stored.points] == [date(2024, 2, 15), date(2024, 3, 14)]


async def test_last_symbol_is_remembered(repo):
    assert await repo.get_last_symbol() is None

    await repo.set_last_symbol("SPY")
    await repo.set_last_symbol("AAPL")

    assert await repo.get_last_symbol() == "AAPL"


async def test_storage_failure_raises_persistence_error(repo, db):
    await db.execute("DROP TABLE raw_fetch_results")

    with pytest.raises(PersistenceError):
        await repo.put_raw_results("SPY", [])


async def test_failed_series_write_keeps_raw_results_unchanged(repo, db):
    previous = [payload("SPY", date(2024, 6, 17), 1.0, 2.0)]
    await repo.put_raw_results("SPY", previous)
    await db.execute("DROP TABLE price_series")
    await db.commit()

    fresh = [payload("SPY", date(2024, 7, 15), 3.0, 4.0)]
    series = Series(
        symbol="SPY",
        points=[PricePoint(symbol="SPY", date=date(2024, 7, 15), open=3.0, close=4.0)],
    )
    with pytest.raises(PersistenceError):
        await repo.put_fetch_result("SPY", fresh, series)

    assert await repo.get_raw_results("SPY") == previous


async def test_put_fetch_result_stores_raw_and_series(repo):
    raw = [payload("SPY", date(2024, 7, 15), 3.0, 4.0)]
    series = Series(
        symbol="SPY",
        points=[PricePoint(symbol="SPY", date=date(2024, 7, 15), open=3.0, close=4.0)],
    )

    await repo.put_fetch_result("SPY", raw, series)

    assert await repo.get_raw_results("SPY") == raw
    assert [p.close for p in (await repo.get_series("SPY")).points] == [4.0]
