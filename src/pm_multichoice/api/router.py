# src/pm_multichoice/api/router.py
"""Multi-choice coordinator endpoints.

POST /markets/{market_id}/rebalance  — renormalise a sum-to-one market
POST /markets/{market_id}/convert    — NegRisk NO -> YES + collateral
POST /markets/{market_id}/merge      — YES + NO -> cash
POST /markets/{market_id}/split      — cash -> YES + NO
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_common.response import ApiResponse, respond
from src.pm_exchange.application.service import get_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_gateway.auth.dependencies import get_current_user_id
from src.pm_multichoice.application.schemas import (
    CollateralRequest,
    CollateralResponse,
    ConvertRequest,
    ConvertResponse,
    RebalanceResponse,
)
from src.pm_multichoice.application.service import MultiChoiceService

router = APIRouter(prefix="/markets", tags=["multi-choice"])
_service = MultiChoiceService()


@router.post("/{market_id}/rebalance")
async def rebalance(
    market_id: str,
    request: Request,
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    result = await _service.rebalance(engine, market_id)
    data = RebalanceResponse(
        market_id=result.market_id, sum_before=result.sum_before, sum_after=result.sum_after
    )
    return respond(request, data.model_dump())


@router.post("/{market_id}/convert")
async def convert(
    market_id: str,
    body: ConvertRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    plan = await _service.convert(engine, user_id, market_id, body.index_set, body.amount)
    data = ConvertResponse(
        market_id=market_id,
        amount=plan.amount,
        burned_no=plan.burn_no,
        minted_yes=plan.mint_yes,
        collateral_out=plan.collateral_out,
    )
    return respond(request, data.model_dump())


@router.post("/{market_id}/merge")
async def merge(
    market_id: str,
    body: CollateralRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    amount = await _service.merge(engine, user_id, market_id, body.amount, body.answer_id)
    data = CollateralResponse(market_id=market_id, answer_id=body.answer_id, amount=amount)
    return respond(request, data.model_dump())


@router.post("/{market_id}/split")
async def split(
    market_id: str,
    body: CollateralRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    amount = await _service.split(engine, user_id, market_id, body.amount, body.answer_id)
    data = CollateralResponse(market_id=market_id, answer_id=body.answer_id, amount=amount)
    return respond(request, data.model_dump())
