# src/pm_orderbook/application/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field

from src.pm_common.enums import OrderSide, Outcome, TimeInForce
from src.pm_orderbook.domain.models import Fill, LimitOrder, PriceLevel


class PlaceOrderRequest(BaseModel):
    market_id: str
    answer_id: str | None = None
    side: OrderSide
    outcome: Outcome
    limit_prob: float = Field(gt=0, lt=1)
    quantity: float = Field(gt=0)
    expires_at: datetime | None = None
    time_in_force: TimeInForce = TimeInForce.GTC


class OrderResponse(BaseModel):
    id: str
    user_id: str
    market_id: str
    answer_id: str | None
    side: str
    outcome: str
    limit_prob: float
    quantity: float
    filled_quantity: float
    remaining_quantity: float
    time_in_force: str
    status: str
    created_at: str
    expires_at: str | None

    @classmethod
    def from_domain(cls, o: LimitOrder) -> "OrderResponse":
        return cls(
            id=o.id,
            user_id=o.user_id,
            market_id=o.market_id,
            answer_id=o.answer_id,
            side=o.side.value,
            outcome=o.outcome.value,
            limit_prob=o.limit_prob,
            quantity=o.quantity,
            filled_quantity=o.filled_quantity,
            remaining_quantity=o.remaining,
            time_in_force=o.time_in_force.value,
            status=o.status,
            created_at=o.created_at.isoformat(),
            expires_at=o.expires_at.isoformat() if o.expires_at else None,
        )


class FillResponse(BaseModel):
    buy_order_id: str
    sell_order_id: str
    maker_order_id: str
    price: float
    quantity: float

    @classmethod
    def from_domain(cls, f: Fill) -> "FillResponse":
        return cls(
            buy_order_id=f.buy_order_id,
            sell_order_id=f.sell_order_id,
            maker_order_id=f.maker_order_id,
            price=f.price,
            quantity=f.quantity,
        )


class PlaceOrderResponse(BaseModel):
    order: OrderResponse
    fills: list[FillResponse]


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int


class PriceLevelOut(BaseModel):
    price: float
    total_quantity: float
    order_count: int

    @classmethod
    def from_domain(cls, lv: PriceLevel) -> "PriceLevelOut":
        return cls(price=lv.price, total_quantity=lv.total_quantity, order_count=lv.order_count)


class BookOut(BaseModel):
    answer_id: str | None
    outcome: str
    bids: list[PriceLevelOut]  # descending by price
    asks: list[PriceLevelOut]  # ascending by price


class OrderbookResponse(BaseModel):
    market_id: str
    books: list[BookOut]
