import calendar
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

# Friday is excluded alongside the weekend; sampled dates depend on it.
NON_TRADING_WEEKDAYS = frozenset({calendar.FRIDAY, calendar.SATURDAY, calendar.SUNDAY})

_SESSION_SETTLE_DAYS = 2


def market_today(timezone: str) -> date:
    """Current calendar date in the market's timezone."""
    return datetime.now(ZoneInfo(timezone)).date()


def subtract_months(day: date, months: int) -> date:
    """Step back whole calendar months, clamping to the target month's last day.

    >>> subtract_months(date(2024, 3, 31), 1)
    datetime.date(2024, 2, 29)
    """
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def adjust_to_trading_day(day: date, today: date) -> date:
    """Move *day* back to the most recent trading day.

    The current session is never complete, so a date equal to *today* first
    steps back two days before the weekday rule is applied.
    """
    adjusted = day
    if adjusted == today:
        adjusted -= timedelta(days=_SESSION_SETTLE_DAYS)
    while adjusted.weekday() in NON_TRADING_WEEKDAYS:
        adjusted -= timedelta(days=1)
    return adjusted


def trading_day_for_offset(today: date, offset: int) -> date:
    return adjust_to_trading_day(subtract_months(today, offset), today)
