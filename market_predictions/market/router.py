from fastapi import APIRouter

from market_predictions.dependencies import MarketServiceDep
from market_predictions.market.schemas import (
    DataAlgorithmsResponse,
    SendSymbolRequest,
    SendSymbolResponse,
)

router = APIRouter()


@router.post("/send-market-symbol", response_model=SendSymbolResponse)
async def send_market_symbol(
    data: SendSymbolRequest,
    service: MarketServiceDep,
) -> SendSymbolResponse:
    series = await service.submit_symbol(data.market_symbol)
    return SendSymbolResponse(
        message=f"Fetched {len(series.points)} data points for {series.symbol}",
        symbol=series.symbol,
        points=len(series.points),
    )


@router.get("/data-algorithms", response_model=DataAlgorithmsResponse)
async def data_algorithms(
    service: MarketServiceDep,
    symbol: str | None = None,
) -> DataAlgorithmsResponse:
    return await service.run_analysis(symbol)
