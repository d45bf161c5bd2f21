# src/pm_account/api/router.py
"""Account REST API.

GET /accounts/me          — balances
GET /accounts/me/ledger   — every cash movement of the caller
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_account.application.service import AccountService
from src.pm_common.response import ApiResponse, respond
from src.pm_exchange.application.service import get_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_gateway.auth.dependencies import get_current_user_id

router = APIRouter(prefix="/accounts", tags=["accounts"])
_service = AccountService()


@router.get("/me")
async def get_my_account(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    account = await _service.get_account(engine, user_id)
    return respond(request, account.model_dump())


@router.get("/me/ledger")
async def get_my_ledger(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    entries = await _service.get_ledger(engine, user_id)
    return respond(request, [e.model_dump() for e in entries])
