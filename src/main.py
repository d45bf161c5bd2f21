"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.pm_account.api.positions_router import router as positions_router
from src.pm_account.api.router import router as account_router
from src.pm_common.errors import AppError
from src.pm_common.redis_client import close_redis, get_redis, ping_redis
from src.pm_common.response import error_response, request_id_of
from src.pm_exchange.application.service import set_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_gateway.middleware.request_log import RequestLogMiddleware
from src.pm_market.api.router import router as market_router
from src.pm_market.infrastructure.persistence import RedisMarketMirror
from src.pm_multichoice.api.router import router as multichoice_router
from src.pm_oracle.api.router import router as oracle_router
from src.pm_orderbook.api.router import router as orderbook_router
from src.pm_settlement.api.router import router as settlement_router
from src.pm_trade.api.router import router as trade_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: build the exchange over the configured mirror. Shutdown: close Redis."""
    # Startup
    use_redis = settings.MIRROR_BACKEND == "redis"
    if use_redis:
        set_exchange(ExchangeEngine(mirror=RedisMarketMirror(await get_redis())))
    else:
        set_exchange(ExchangeEngine())
    yield
    # Shutdown
    set_exchange(None)
    if use_redis:
        await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error("%s %s failed: [%d] %s", request.method, request.url.path, exc.code, exc.message)
    resp = error_response(exc.code, exc.message, request_id_of(request))
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(account_router, prefix="/api/v1")
app.include_router(positions_router, prefix="/api/v1")
app.include_router(market_router, prefix="/api/v1")
app.include_router(multichoice_router, prefix="/api/v1")
app.include_router(settlement_router, prefix="/api/v1")
app.include_router(trade_router, prefix="/api/v1")
app.include_router(orderbook_router, prefix="/api/v1")
app.include_router(oracle_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    mirror = settings.MIRROR_BACKEND
    if mirror == "redis" and not await ping_redis():
        mirror = "redis (unreachable)"
    return {"status": "ok", "version": "0.1.0", "mirror": mirror}
