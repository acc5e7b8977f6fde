from typing import Annotated

from fastapi import Depends

from market_predictions.database import get_db
from market_predictions.market.fetcher import HistoricalFetcher
from market_predictions.market.providers.base import MarketDataProvider
from market_predictions.market.providers.factory import ProviderFactory
from market_predictions.market.repository import MarketDataRepository
from market_predictions.market.service import MarketService, SymbolLocks

_provider: MarketDataProvider | None = None
_symbol_locks = SymbolLocks()


def get_market_provider() -> MarketDataProvider:
    global _provider
    if _provider is None:
        _provider = ProviderFactory.create()
    return _provider


async def close_market_provider() -> None:
    global _provider
    if _provider is not None:
        await _provider.close()
        _provider = None


def get_market_repo() -> MarketDataRepository:
    return MarketDataRepository(get_db())


def get_market_service() -> MarketService:
    repo = get_market_repo()
    return MarketService(
        HistoricalFetcher(get_market_provider(), repo),
        repo,
        _symbol_locks,
    )


MarketServiceDep = Annotated[MarketService, Depends(get_market_service)]
