from enum import StrEnum


class Trend(StrEnum):
    increasing = "Increasing"
    decreasing = "Decreasing"
    stable = "Stable"


class RiskLevel(StrEnum):
    low = "Low Risk"
    moderate = "Moderate Risk"
    high = "High Risk"
