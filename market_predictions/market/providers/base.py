from abc import ABC, abstractmethod
from datetime import date


class MarketDataProvider(ABC):
    @abstractmethod
    async def get_daily_open_close(self, symbol: str, day: date) -> dict:
        """Return the raw open/close payload for *symbol* on *day*.

        Raises RateLimitedError, SymbolNotFoundError, NoDataForDateError,
        MalformedPointError or ProviderUnavailableError.
        """

    async def close(self) -> None:
        return None
