# src/pm_trade/api/router.py
"""AMM trade endpoint: POST /trades."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_common.response import ApiResponse, respond
from src.pm_exchange.application.service import get_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_gateway.auth.dependencies import get_current_user_id
from src.pm_trade.application.schemas import TradeRequest, TradeResponse
from src.pm_trade.application.service import TradeService

router = APIRouter(prefix="/trades", tags=["trades"])
_service = TradeService()


@router.post("")
async def execute_trade(
    body: TradeRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    result = await _service.execute_trade(
        engine,
        user_id,
        body.market_id,
        body.side,
        body.outcome,
        body.amount,
        answer_id=body.answer_id,
    )
    return respond(request, TradeResponse.from_result(result).model_dump())
