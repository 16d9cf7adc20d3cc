"""FastAPI application: routers, rate limiting, CORS and the rate cache lifespan."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from wealth.config import settings
from wealth.rate_limiter import limiter
from wealth.services.currency.rate_cache import RateCache

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the rate cache for the lifetime of the app and refresh it in the background."""
    rate_cache = RateCache()
    app.state.rate_cache = rate_cache
    rate_cache.start()
    try:
        yield
    finally:
        rate_cache.stop()


app = FastAPI(
    title="Wealth Tracker API",
    description="Portfolio valuation and historical analytics engine",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Wealth Tracker API", "version": "0.1.0", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy"}


# Routers import services that read settings, so they load after logging is configured
from wealth.routers import (
    global_assets,
    portfolios,
    positions,
    rates,
    snapshots,
    wealth,
)

app.include_router(portfolios.router)
app.include_router(positions.router)
app.include_router(global_assets.router)
app.include_router(wealth.router)
app.include_router(rates.router)
app.include_router(snapshots.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, reload=True)
