"""Domain models for pm_orderbook — pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime

from src.pm_common.amounts import EPSILON
from src.pm_common.datetime_utils import ensure_utc
from src.pm_common.enums import OrderSide, Outcome, TimeInForce

# (market_id, answer_id, outcome): one book per tradable contract
BookKey = tuple[str, str | None, Outcome]


@dataclass
class LimitOrder:
    id: str
    user_id: str
    market_id: str
    answer_id: str | None
    side: OrderSide
    outcome: Outcome
    limit_prob: float
    quantity: float
    created_at: datetime
    expires_at: datetime | None = None
    time_in_force: TimeInForce = TimeInForce.GTC
    filled_quantity: float = 0.0
    filled: bool = False
    cancelled: bool = False

    @property
    def remaining(self) -> float:
        return max(0.0, self.quantity - self.filled_quantity)

    @property
    def book_key(self) -> BookKey:
        return (self.market_id, self.answer_id, self.outcome)

    @property
    def is_open(self) -> bool:
        return not self.filled and not self.cancelled

    @property
    def status(self) -> str:
        if self.filled:
            return "FILLED"
        if self.cancelled:
            return "CANCELLED"
        if self.filled_quantity > EPSILON:
            return "PARTIALLY_FILLED"
        return "OPEN"

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and ensure_utc(self.expires_at) <= ensure_utc(now)


@dataclass
class Fill:
    """Single execution between an incoming (taker) and a resting (maker) order."""

    market_id: str
    answer_id: str | None
    outcome: Outcome
    price: float  # resting order's limit probability
    quantity: float
    buy_order_id: str
    sell_order_id: str
    buyer_id: str
    seller_id: str
    maker_order_id: str
    taker_order_id: str
    executed_at: datetime

    @property
    def notional(self) -> float:
        return self.price * self.quantity


@dataclass
class PriceLevel:
    price: float
    total_quantity: float
    order_count: int
