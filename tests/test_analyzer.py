from datetime import date

import pytest

from market_predictions.market.analyzer import (
    analyze,
    classify_risk,
    compute_percent_changes,
    format_percent_change,
    population_std_dev,
    regression_slope,
)
from market_predictions.market.models import RiskLevel, Trend

from conftest import make_points


def test_analyze_empty_series_returns_none():
    assert analyze([]) is None


def test_single_point_is_stable_with_no_risk():
    result = analyze(make_points([105.0], opens=[100.0]))

    assert result.trend.trend == Trend.stable
    assert result.trend.net_change == 0
    assert result.trend.first_open == 100.0
    assert result.trend.last_close == 105.0
    assert result.risk is None


def test_strictly_increasing_closes_trend_up():
    result = analyze(make_points([10.0, 11.5, 11.6, 14.0, 20.0]))
    assert result.trend.trend == Trend.increasing
    assert result.trend.slope > 0


def test_strictly_decreasing_closes_trend_down():
    result = analyze(make_points([20.0, 14.0, 11.6, 11.5, 10.0]))
    assert result.trend.trend == Trend.decreasing
    assert result.trend.slope < 0


def test_constant_closes_have_exactly_zero_slope():
    result = analyze(make_points([0.1] * 5))
    assert result.trend.slope == 0
    assert result.trend.trend == Trend.stable


def test_trend_uses_regression_not_net_change():
    # Net change is positive but closes fall overall.
    points = make_points([50.0, 40.0, 30.0, 20.0, 45.0], opens=[10.0, 40.0, 30.0, 20.0, 45.0])
    result = analyze(points)

    assert result.trend.net_change == 35.0
    assert result.trend.trend == Trend.decreasing


def test_regression_slope_matches_closed_form():
    assert regression_slope([1.0, 3.0, 5.0, 7.0]) == pytest.approx(2.0)
    assert regression_slope([4.0]) == 0.0


def test_net_change_is_last_close_minus_first_open():
    result = analyze(make_points([12.0, 13.0, 15.0], opens=[10.0, 12.5, 14.0]))
    assert result.trend.net_change == pytest.approx(5.0)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "+0.00"),
        (-0.0, "+0.00"),
        (-3.4567, "-3.46"),
        (2.5, "+2.50"),
        (12.345678, "+12.35"),
        (-0.001, "-0.00"),
    ],
)
def test_format_percent_change(value, expected):
    assert format_percent_change(value) == expected


def test_percent_changes_pair_consecutive_points():
    entries, values = compute_percent_changes(make_points([100.0, 110.0, 99.0]))

    assert values == pytest.approx([10.0, -10.0])
    assert [e.percent_change for e in entries] == ["+10.00", "-10.00"]
    assert entries[0].from_date == date(2024, 1, 10)
    assert entries[0].to_date == date(2024, 2, 10)


def test_percent_change_skips_zero_base():
    entries, values = compute_percent_changes(make_points([0.0, 10.0, 20.0]))

    assert values == pytest.approx([100.0])
    assert entries[0].from_date == date(2024, 2, 10)


def test_population_std_dev():
    mean, std_dev = population_std_dev([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0])
    assert mean == pytest.approx(5.0)
    assert std_dev == pytest.approx(2.0)


@pytest.mark.parametrize(
    ("std_dev", "mean", "expected"),
    [
        (12.0, -1.0, RiskLevel.high),
        (12.0, 1.0, RiskLevel.moderate),
        (6.0, -1.0, RiskLevel.moderate),
        (1.0, 6.0, RiskLevel.moderate),
        (1.0, -6.0, RiskLevel.moderate),
        (1.5, 0.5, RiskLevel.low),
        (3.0, 0.5, RiskLevel.moderate),
        (0.0, 0.0, RiskLevel.moderate),
        (10.0, -1.0, RiskLevel.moderate),
    ],
)
def test_classify_risk_precedence(std_dev, mean, expected):
    assert classify_risk(std_dev, mean) == expected


def test_volatile_falling_series_is_high_risk():
    result = analyze(make_points([100.0, 80.0, 100.0, 80.0]))

    assert result.risk.mean == pytest.approx(-5.0)
    assert result.risk.standard_deviation == pytest.approx(450**0.5)
    assert result.risk.risk_level == RiskLevel.high


def test_steady_gains_are_low_risk():
    result = analyze(make_points([100.0, 101.0, 102.01]))

    assert result.risk.risk_level == RiskLevel.low
    assert result.risk.standard_deviation < 2


def test_flat_series_defaults_to_moderate_risk():
    result = analyze(make_points([100.0, 100.0, 100.0]))

    assert result.risk.standard_deviation == 0
    assert [e.percent_change for e in result.risk.monthly_percent_changes] == ["+0.00", "+0.00"]
    assert result.risk.risk_level == RiskLevel.moderate


def test_risk_serializes_with_wire_names():
    result = analyze(make_points([100.0, 110.0]))
    data = result.risk.model_dump(mode="json", by_alias=True)

    assert data["riskLevel"] == "Moderate Risk"
    assert data["monthlyPercentChanges"] == [
        {"from": "2024-01-10", "to": "2024-02-10", "percentChange": "+10.00"}
    ]
