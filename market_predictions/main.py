from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from market_predictions.config import settings
from market_predictions.database import close_database, init_database
from market_predictions.dependencies import close_market_provider
from market_predictions.exception_handlers import register_exception_handlers
from market_predictions.logging_config import setup_logging
from market_predictions.market.router import router as market_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    await init_database()
    yield
    await close_market_provider()
    await close_database()


app = FastAPI(
    title="Market Predictions",
    description="Historical market data trend, volatility and risk analytics",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(market_router, tags=["market"])


@app.get("/api/v1/health")
async def health():
    from market_predictions.database import check_health

    await check_health()
    return {"status": "healthy"}
