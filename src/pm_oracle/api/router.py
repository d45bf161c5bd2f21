# src/pm_oracle/api/router.py
"""Oracle dispute protocol endpoints.

POST /oracle/propose     — open a provisional resolution after the deadline
POST /oracle/challenge   — post a bond against the proposal (window open)
POST /oracle/finalize    — settle; challenged markets need a final resolution
POST /oracle/check       — sweep every market with a resolution source
GET  /oracle/{market_id} — oracle state of one market
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from src.pm_common.response import ApiResponse, respond
from src.pm_exchange.application.service import get_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_gateway.auth.dependencies import get_current_user_id
from src.pm_oracle.application.schemas import (
    ChallengeOut,
    ChallengeRequest,
    CheckResponse,
    FinalizeRequest,
    FinalizeResponse,
    OracleStatusResponse,
    ProposalOut,
    ProposeRequest,
)
from src.pm_oracle.application.service import OracleService

router = APIRouter(prefix="/oracle", tags=["oracle"])
_service = OracleService()


@router.post("/propose")
async def propose(
    body: ProposeRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    proposal = await _service.propose(
        engine, body.market_id, user_id, body.resolution, body.reasoning
    )
    return respond(request, ProposalOut.from_domain(proposal).model_dump())


@router.post("/challenge")
async def challenge(
    body: ChallengeRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    result = await _service.challenge(engine, body.market_id, user_id, body.reason)
    return respond(request, ChallengeOut.from_domain(result).model_dump())


@router.post("/finalize")
async def finalize(
    body: FinalizeRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    result = await _service.finalize(engine, body.market_id, body.resolution, user_id)
    return respond(request, FinalizeResponse.from_result(body.market_id, result).model_dump())


@router.post("/check")
async def check(
    request: Request,
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    report = await _service.check(engine)
    return respond(request, CheckResponse.from_report(report).model_dump())


@router.get("/{market_id}")
async def oracle_status(
    market_id: str,
    request: Request,
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    market = await _service.status(engine, market_id)
    return respond(request, OracleStatusResponse.from_domain(market).model_dump())
