# src/pm_settlement/api/router.py
"""Manual resolution: POST /markets/{market_id}/resolve (creator only)."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_common.response import ApiResponse, respond
from src.pm_exchange.application.service import get_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_gateway.auth.dependencies import get_current_user_id
from src.pm_settlement.application.schemas import ResolveRequest, SettlementResponse
from src.pm_settlement.application.service import SettlementService

router = APIRouter(prefix="/markets", tags=["resolution"])
_service = SettlementService()


@router.post("/{market_id}/resolve")
async def resolve_market(
    market_id: str,
    body: ResolveRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    result = await _service.resolve_market(
        engine, market_id, user_id, body.resolution, body.probability, body.answer_id
    )
    return respond(request, SettlementResponse.from_result(result).model_dump())
