# src/pm_orderbook/api/router.py
"""Limit order REST API.

POST /orders                        — place (matches immediately, rests per time-in-force)
POST /orders/{order_id}/cancel      — owner-only cancel
GET  /orders                        — caller's orders
GET  /markets/{market_id}/orderbook — aggregated price levels
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.pm_common.response import ApiResponse, respond
from src.pm_exchange.application.service import get_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_gateway.auth.dependencies import get_current_user_id
from src.pm_orderbook.application.schemas import (
    BookOut,
    FillResponse,
    OrderbookResponse,
    OrderListResponse,
    OrderResponse,
    PlaceOrderRequest,
    PlaceOrderResponse,
    PriceLevelOut,
)
from src.pm_orderbook.application.service import OrderBookService

router = APIRouter(tags=["orders"])
_service = OrderBookService()


@router.post("/orders", status_code=201)
async def place_order(
    body: PlaceOrderRequest,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    order, fills = await _service.place_order(
        engine,
        user_id,
        body.market_id,
        body.answer_id,
        body.side,
        body.outcome,
        body.limit_prob,
        body.quantity,
        expires_at=body.expires_at,
        time_in_force=body.time_in_force,
    )
    data = PlaceOrderResponse(
        order=OrderResponse.from_domain(order),
        fills=[FillResponse.from_domain(f) for f in fills],
    )
    return respond(request, data.model_dump())


@router.post("/orders/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
) -> ApiResponse:
    order = await _service.cancel_order(engine, user_id, order_id)
    return respond(request, OrderResponse.from_domain(order).model_dump())


@router.get("/orders")
async def list_orders(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
    market_id: str | None = Query(None, description="Filter by market ID"),
    include_closed: bool = Query(False, description="Include filled and cancelled orders"),
) -> ApiResponse:
    orders = await _service.list_orders(engine, user_id, market_id, include_closed)
    data = OrderListResponse(
        items=[OrderResponse.from_domain(o) for o in orders], total=len(orders)
    )
    return respond(request, data.model_dump())


@router.get("/markets/{market_id}/orderbook")
async def get_orderbook(
    market_id: str,
    request: Request,
    engine: Annotated[ExchangeEngine, Depends(get_exchange)],
    answer_id: str | None = Query(None),
) -> ApiResponse:
    books = await _service.get_levels(engine, market_id, answer_id)
    data = OrderbookResponse(
        market_id=market_id,
        books=[
            BookOut(
                answer_id=aid,
                outcome=outcome.value,
                bids=[PriceLevelOut.from_domain(lv) for lv in bids],
                asks=[PriceLevelOut.from_domain(lv) for lv in asks],
            )
            for aid, outcome, bids, asks in books
        ],
    )
    return respond(request, data.model_dump())
