# src/pm_account/api/positions_router.py
"""Positions REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.pm_account.application.service import AccountService
from src.pm_common.response import ApiResponse, respond
from src.pm_exchange.application.service import get_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/positions", tags=["positions"])
_service = AccountService()


@router.get("")
async def list_positions(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
    market_id: str | None = Query(None, description="Filter by market ID"),
) -> ApiResponse:
    data = await _service.list_positions(engine, user_id, market_id)
    return respond(request, data.model_dump())
