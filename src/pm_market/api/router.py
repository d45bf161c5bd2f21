"""pm_market REST endpoints.

POST /markets                         — create binary or multi-choice market
GET  /markets                         — list with cursor pagination
GET  /markets/{market_id}             — full detail
GET  /markets/{market_id}/graduation  — lifecycle progress
GET  /markets/{market_id}/chart       — probability history
POST /markets/{market_id}/liquidity   — add liquidity (binary)
"""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.pm_common.enums import MarketPhase
from src.pm_common.response import ApiResponse, respond
from src.pm_exchange.application.service import get_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_gateway.auth.dependencies import get_current_user_id
from src.pm_market.application.schemas import (
    AddLiquidityRequest,
    CreateMarketRequest,
    MarketDetail,
)
from src.pm_market.application.service import MarketApplicationService

router = APIRouter(prefix="/markets", tags=["markets"])

_service = MarketApplicationService()


@router.post("", status_code=201)
async def create_market(
    body: CreateMarketRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    market = await _service.create_market(engine, user_id, body)
    return respond(request, MarketDetail.from_domain(market).model_dump())


@router.get("")
async def list_markets(
    request: Request,
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
    phase: MarketPhase | None = Query(None, description="Filter by lifecycle phase"),
    limit: int = Query(20, ge=1, le=100),
    cursor: str | None = Query(None),
) -> ApiResponse:
    result = await _service.list_markets(engine, phase.value if phase else None, cursor, limit)
    return respond(request, result.model_dump())


@router.get("/{market_id}")
async def get_market(
    market_id: str,
    request: Request,
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    result = await _service.get_market(engine, market_id)
    return respond(request, result.model_dump())


@router.get("/{market_id}/graduation")
async def get_graduation_status(
    market_id: str,
    request: Request,
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    result = await _service.graduation_status(engine, market_id)
    return respond(request, result.model_dump())


@router.get("/{market_id}/chart")
async def get_chart(
    market_id: str,
    request: Request,
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
    answer_id: str | None = Query(None),
    after: datetime | None = Query(None),
    before: datetime | None = Query(None),
    max_points: int | None = Query(None, ge=2, le=1000),
) -> ApiResponse:
    result = await _service.get_chart(engine, market_id, answer_id, after, before, max_points)
    return respond(request, result.model_dump())


@router.post("/{market_id}/liquidity")
async def add_liquidity(
    market_id: str,
    body: AddLiquidityRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    market = await _service.add_liquidity(engine, user_id, market_id, body.amount)
    return respond(request, MarketDetail.from_domain(market).model_dump())
