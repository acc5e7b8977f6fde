import math
from datetime import date

import structlog

from market_predictions.market.schemas import PricePoint, Series

logger = structlog.get_logger()


def is_valid_price(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value) and value >= 0


def _parse_day(value) -> date | None:
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def derive_series(raw_results: list[dict], symbol: str | None = None) -> Series:
    """Project raw provider payloads onto a sorted, date-unique series.

    Entries without a usable ``from``/``open``/``close`` triple are dropped.
    When two entries share a date the first one seen is kept.
    """
    fallback = (symbol or "").upper().strip()
    points: dict[date, PricePoint] = {}
    dropped = 0

    for entry in raw_results:
        if not isinstance(entry, dict):
            dropped += 1
            continue
        day = _parse_day(entry.get("from"))
        point_symbol = str(entry.get("symbol") or fallback).upper().strip()
        if (
            day is None
            or not point_symbol
            or not is_valid_price(entry.get("open"))
            or not is_valid_price(entry.get("close"))
        ):
            dropped += 1
            continue
        if day in points:
            logger.debug("series_duplicate_date_dropped", symbol=point_symbol, date=day.isoformat())
            continue
        points[day] = PricePoint(
            symbol=point_symbol,
            date=day,
            open=entry["open"],
            close=entry["close"],
        )

    if dropped:
        logger.info("series_entries_dropped", symbol=fallback, dropped=dropped)

    ordered = [points[day] for day in sorted(points)]
    series_symbol = fallback or (ordered[0].symbol if ordered else "")
    return Series(symbol=series_symbol, points=ordered)
