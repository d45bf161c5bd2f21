from collections import deque
from dataclasses import dataclass, field

from src.pm_common.enums import OrderSide
from src.pm_orderbook.domain.models import BookKey, LimitOrder, PriceLevel

_PRICE_DECIMALS = 6


def price_key(prob: float) -> float:
    return round(prob, _PRICE_DECIMALS)


@dataclass
class OrderBook:
    """Bids and asks for one contract, FIFO queues per price level."""

    key: BookKey
    bids: dict[float, deque[LimitOrder]] = field(default_factory=dict)
    asks: dict[float, deque[LimitOrder]] = field(default_factory=dict)
    _order_index: dict[str, tuple[OrderSide, float]] = field(default_factory=dict)
    # _order_index[order_id] = (side, price)

    @property
    def best_bid(self) -> float | None:
        return max(self.bids) if self.bids else None

    @property
    def best_ask(self) -> float | None:
        return min(self.asks) if self.asks else None

    def add_order(self, order: LimitOrder) -> None:
        price = price_key(order.limit_prob)
        levels = self.bids if order.side == OrderSide.BID else self.asks
        levels.setdefault(price, deque()).append(order)
        self._order_index[order.id] = (order.side, price)

    def cancel_order(self, order_id: str) -> LimitOrder | None:
        if order_id not in self._order_index:
            return None
        side, price = self._order_index.pop(order_id)
        levels = self.bids if side == OrderSide.BID else self.asks
        queue = levels.get(price, deque())
        removed = None
        for i, order in enumerate(queue):
            if order.id == order_id:
                removed = order
                del queue[i]
                break
        if not queue:
            levels.pop(price, None)
        return removed

    def remove_at(self, side: OrderSide, price: float, index: int) -> LimitOrder:
        """Remove the order at `index` of a level without disturbing the others."""
        levels = self.bids if side == OrderSide.BID else self.asks
        queue = levels[price]
        order = queue[index]
        del queue[index]
        self._order_index.pop(order.id, None)
        if not queue:
            del levels[price]
        return order

    def orders(self) -> list[LimitOrder]:
        return [o for q in self.bids.values() for o in q] + [o for q in self.asks.values() for o in q]

    def levels(self, side: OrderSide) -> list[PriceLevel]:
        """Aggregated price levels, best price first."""
        source = self.bids if side == OrderSide.BID else self.asks
        prices = sorted(source, reverse=(side == OrderSide.BID))
        return [
            PriceLevel(
                price=p,
                total_quantity=sum(o.remaining for o in source[p]),
                order_count=len(source[p]),
            )
            for p in prices
            if source[p]
        ]

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._order_index


@dataclass
class OrderBookRegistry:
    """Every book plus every order ever placed, indexed by id."""

    books: dict[BookKey, OrderBook] = field(default_factory=dict)
    orders: dict[str, LimitOrder] = field(default_factory=dict)

    def book(self, key: BookKey) -> OrderBook:
        if key not in self.books:
            self.books[key] = OrderBook(key=key)
        return self.books[key]

    def books_for_market(self, market_id: str) -> list[OrderBook]:
        return [b for k, b in self.books.items() if k[0] == market_id]

    def open_orders(self, market_id: str | None = None, user_id: str | None = None) -> list[LimitOrder]:
        return [
            o
            for o in self.orders.values()
            if o.is_open
            and (market_id is None or o.market_id == market_id)
            and (user_id is None or o.user_id == user_id)
        ]
