import math
from collections.abc import Sequence
from fractions import Fraction

import structlog

from market_predictions.market.models import RiskLevel, Trend
from market_predictions.market.schemas import (
    AnalysisResult,
    PercentChangeEntry,
    PricePoint,
    RiskAssessment,
    TrendResult,
)

logger = structlog.get_logger()

HIGH_RISK_STD_DEV = 10.0
MODERATE_RISK_STD_DEV = 5.0
MODERATE_RISK_MEAN = 5.0
LOW_RISK_STD_DEV = 2.0


def regression_slope(closes: Sequence[float]) -> float:
    """Ordinary least-squares slope of close against 0-based position.

    Evaluated with exact rationals so a flat series yields exactly zero.
    Returns 0.0 when fewer than two points are given.
    """
    n = len(closes)
    if n < 2:
        return 0.0

    ys = [Fraction(c) for c in closes]
    sum_x = Fraction(n * (n - 1), 2)
    sum_x2 = Fraction((n - 1) * n * (2 * n - 1), 6)
    sum_y = sum(ys, Fraction(0))
    sum_xy = sum((k * y for k, y in enumerate(ys)), Fraction(0))

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return 0.0
    return float((n * sum_xy - sum_x * sum_y) / denominator)


def classify_trend(slope: float) -> Trend:
    if slope > 0:
        return Trend.increasing
    if slope < 0:
        return Trend.decreasing
    return Trend.stable


def compute_trend(points: Sequence[PricePoint]) -> TrendResult:
    first_open = points[0].open
    last_close = points[-1].close

    if len(points) == 1:
        return TrendResult(
            first_open=first_open,
            last_close=last_close,
            net_change=0.0,
            trend=Trend.stable,
            slope=0.0,
        )

    slope = regression_slope([p.close for p in points])
    return TrendResult(
        first_open=first_open,
        last_close=last_close,
        net_change=last_close - first_open,
        trend=classify_trend(slope),
        slope=slope,
    )


def format_percent_change(value: float) -> str:
    """Two decimals with an explicit sign; zero renders as ``+0.00``."""
    if value == 0:
        value = 0.0
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.2f}"


def compute_percent_changes(
    points: Sequence[PricePoint],
) -> tuple[list[PercentChangeEntry], list[float]]:
    entries: list[PercentChangeEntry] = []
    values: list[float] = []

    for prev, curr in zip(points, points[1:], strict=False):
        if prev.close == 0:
            logger.debug("percent_change_zero_base_skipped", date=prev.date.isoformat())
            continue
        change = (curr.close - prev.close) / prev.close * 100
        values.append(change)
        entries.append(
            PercentChangeEntry(
                from_date=prev.date,
                to_date=curr.date,
                percent_change=format_percent_change(change),
            )
        )

    return entries, values


def population_std_dev(values: Sequence[float]) -> tuple[float, float]:
    """Return ``(mean, standard deviation)`` over the whole population."""
    m = len(values)
    mean = math.fsum(values) / m
    variance = math.fsum((v - mean) ** 2 for v in values) / m
    return mean, math.sqrt(variance)


def classify_risk(std_dev: float, mean: float) -> RiskLevel:
    if std_dev > HIGH_RISK_STD_DEV and mean < 0:
        return RiskLevel.high
    if std_dev > MODERATE_RISK_STD_DEV or abs(mean) > MODERATE_RISK_MEAN:
        return RiskLevel.moderate
    if mean > 0 and std_dev < LOW_RISK_STD_DEV:
        return RiskLevel.low
    return RiskLevel.moderate


def assess_risk(points: Sequence[PricePoint]) -> RiskAssessment | None:
    entries, values = compute_percent_changes(points)
    if not values:
        return None

    mean, std_dev = population_std_dev(values)
    return RiskAssessment(
        monthly_percent_changes=entries,
        standard_deviation=std_dev,
        mean=mean,
        risk_level=classify_risk(std_dev, mean),
    )


def analyze(points: Sequence[PricePoint]) -> AnalysisResult | None:
    if not points:
        logger.info("market_analysis_no_data")
        return None

    trend = compute_trend(points)
    risk = assess_risk(points)

    logger.info(
        "market_analysis_computed",
        points=len(points),
        trend=trend.trend,
        risk_level=risk.risk_level if risk else None,
    )
    return AnalysisResult(trend=trend, risk=risk)
