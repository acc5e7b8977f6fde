from market_predictions.config import settings
from market_predictions.exceptions import AppError
from market_predictions.market.providers.base import MarketDataProvider


class ProviderFactory:
    @staticmethod
    def create(provider: str | None = None) -> MarketDataProvider:
        provider = provider or settings.market_data_provider

        match provider:
            case "polygon":
                from market_predictions.market.providers.polygon import PolygonProvider

                if not settings.polygon_api_key:
                    raise AppError(
                        "Polygon API key is not configured", code="PROVIDER_CONFIG_ERROR"
                    )
                return PolygonProvider(
                    api_key=settings.polygon_api_key,
                    base_url=settings.polygon_base_url,
                    timeout=settings.provider_timeout_seconds,
                )

            case "yahoo":
                from market_predictions.market.providers.yahoo_finance import (
                    YahooFinanceProvider,
                )

                return YahooFinanceProvider()

            case _:
                raise AppError(
                    f"Unknown market data provider: '{provider}'", code="PROVIDER_CONFIG_ERROR"
                )
