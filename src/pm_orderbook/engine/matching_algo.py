"""Price-time priority matching for one contract's order book.

Fills execute at the resting order's price. Expired resting orders found
while walking the book are cancelled on the spot and reported back so the
caller can release their reservations.
"""
from dataclasses import dataclass, field
from datetime import datetime

from src.pm_common.amounts import EPSILON
from src.pm_common.enums import OrderSide
from src.pm_orderbook.domain.models import Fill, LimitOrder
from src.pm_orderbook.engine.order_book import OrderBook
from src.pm_risk.rules.self_trade import is_self_trade


@dataclass
class MatchResult:
    fills: list[Fill] = field(default_factory=list)
    expired: list[LimitOrder] = field(default_factory=list)


def _crosses(incoming: LimitOrder, price: float) -> bool:
    if incoming.side == OrderSide.BID:
        return price <= incoming.limit_prob + EPSILON
    return price >= incoming.limit_prob - EPSILON


def _resting_side(incoming: LimitOrder) -> OrderSide:
    return OrderSide.ASK if incoming.side == OrderSide.BID else OrderSide.BID


def _crossing_prices(incoming: LimitOrder, ob: OrderBook) -> list[float]:
    """Opposite-side prices, best first."""
    if incoming.side == OrderSide.BID:
        return sorted(ob.asks)
    return sorted(ob.bids, reverse=True)


def match_order(incoming: LimitOrder, ob: OrderBook, now: datetime) -> MatchResult:
    """Walk each crossing level oldest first; own orders are skipped in place."""
    result = MatchResult()
    resting_side = _resting_side(incoming)
    levels = ob.asks if resting_side == OrderSide.ASK else ob.bids

    for price in _crossing_prices(incoming, ob):
        if incoming.remaining <= EPSILON or not _crosses(incoming, price):
            break
        idx = 0
        while incoming.remaining > EPSILON and price in levels and idx < len(levels[price]):
            resting = levels[price][idx]
            if resting.is_expired(now):
                resting.cancelled = True
                ob.remove_at(resting_side, price, idx)
                result.expired.append(resting)
                continue
            if is_self_trade(incoming.user_id, resting.user_id):
                idx += 1
                continue
            fill_qty = min(incoming.remaining, resting.remaining)
            result.fills.append(_make_fill(incoming, resting, price, fill_qty, now))
            _apply_fill(incoming, resting, fill_qty)
            if not resting.filled:
                # incoming fully filled, resting keeps its place
                break
            ob.remove_at(resting_side, price, idx)
    return result


def crossable_quantity(incoming: LimitOrder, ob: OrderBook, now: datetime) -> float:
    """Quantity the incoming order could fill right now (fill-or-kill pre-check)."""
    levels = ob.asks if _resting_side(incoming) == OrderSide.ASK else ob.bids
    total = 0.0
    for price in _crossing_prices(incoming, ob):
        if not _crosses(incoming, price):
            break
        total += sum(
            o.remaining
            for o in levels[price]
            if not o.is_expired(now) and not is_self_trade(incoming.user_id, o.user_id)
        )
    return total


def _make_fill(
    incoming: LimitOrder, resting: LimitOrder, price: float, qty: float, now: datetime
) -> Fill:
    buy, sell = (incoming, resting) if incoming.side == OrderSide.BID else (resting, incoming)
    return Fill(
        market_id=incoming.market_id,
        answer_id=incoming.answer_id,
        outcome=incoming.outcome,
        price=price,
        quantity=qty,
        buy_order_id=buy.id,
        sell_order_id=sell.id,
        buyer_id=buy.user_id,
        seller_id=sell.user_id,
        maker_order_id=resting.id,  # resting = maker
        taker_order_id=incoming.id,
        executed_at=now,
    )


def _apply_fill(incoming: LimitOrder, resting: LimitOrder, qty: float) -> None:
    for order in (incoming, resting):
        order.filled_quantity += qty
        if order.remaining <= EPSILON:
            order.filled_quantity = order.quantity
            order.filled = True
