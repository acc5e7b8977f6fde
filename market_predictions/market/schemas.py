import datetime as dt

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from market_predictions.market.models import RiskLevel, Trend


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PricePoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str = Field(min_length=1)
    date: dt.date
    open: float = Field(ge=0, allow_inf_nan=False)
    close: float = Field(ge=0, allow_inf_nan=False)


class Series(BaseModel):
    symbol: str
    points: list[PricePoint] = Field(default_factory=list)

    def __len__(self) -> int:
        return len(self.points)


class TrendResult(CamelModel):
    first_open: float
    last_close: float
    net_change: float
    trend: Trend
    slope: float


class PercentChangeEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_date: dt.date = Field(alias="from")
    to_date: dt.date = Field(alias="to")
    percent_change: str = Field(alias="percentChange")


class RiskAssessment(CamelModel):
    monthly_percent_changes: list[PercentChangeEntry]
    standard_deviation: float
    mean: float
    risk_level: RiskLevel


class AnalysisResult(BaseModel):
    trend: TrendResult
    risk: RiskAssessment | None = None


class SendSymbolRequest(CamelModel):
    market_symbol: str | None = None


class SendSymbolResponse(BaseModel):
    message: str
    symbol: str
    points: int


class DataAlgorithmsResponse(CamelModel):
    symbol: str | None = None
    market_trend: TrendResult | None = None
    monthly_percent_changes: list[PercentChangeEntry] = Field(default_factory=list)
    standard_deviation: float | None = None
    risk_level: RiskLevel | None = None
