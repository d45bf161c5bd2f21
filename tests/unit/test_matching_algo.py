from datetime import UTC, datetime, timedelta

from src.pm_common.enums import OrderSide, Outcome
from src.pm_orderbook.domain.models import LimitOrder
from src.pm_orderbook.engine.matching_algo import crossable_quantity, match_order
from src.pm_orderbook.engine.order_book import OrderBook

NOW = datetime(2026, 1, 1, tzinfo=UTC)
KEY = ("mkt_1", None, Outcome.YES)


def _order(
    order_id: str,
    user: str,
    side: OrderSide,
    prob: float,
    qty: float = 100,
    expires_at: datetime | None = None,
) -> LimitOrder:
    return LimitOrder(
        id=order_id,
        user_id=user,
        market_id="mkt_1",
        answer_id=None,
        side=side,
        outcome=Outcome.YES,
        limit_prob=prob,
        quantity=qty,
        created_at=NOW,
        expires_at=expires_at,
    )


def _book(*resting: LimitOrder) -> OrderBook:
    ob = OrderBook(key=KEY)
    for order in resting:
        ob.add_order(order)
    return ob


class TestMatchBid:
    def test_bid_fills_at_resting_price(self) -> None:
        ob = _book(_order("maker-1", "user-B", OrderSide.ASK, 0.60))
        incoming = _order("taker", "user-A", OrderSide.BID, 0.65)
        result = match_order(incoming, ob, NOW)
        assert len(result.fills) == 1
        fill = result.fills[0]
        assert fill.price == 0.60  # maker price
        assert fill.quantity == 100
        assert fill.buyer_id == "user-A" and fill.seller_id == "user-B"
        assert fill.maker_order_id == "maker-1"
        assert incoming.filled

    def test_no_match_when_prices_do_not_cross(self) -> None:
        ob = _book(_order("maker-1", "user-B", OrderSide.ASK, 0.70))
        incoming = _order("taker", "user-A", OrderSide.BID, 0.65)
        result = match_order(incoming, ob, NOW)
        assert result.fills == []
        assert incoming.remaining == 100  # untouched

    def test_best_price_first_then_time(self) -> None:
        ob = _book(
            _order("late-cheap", "user-C", OrderSide.ASK, 0.55, qty=10),
            _order("early", "user-B", OrderSide.ASK, 0.60, qty=10),
            _order("late", "user-D", OrderSide.ASK, 0.60, qty=10),
        )
        incoming = _order("taker", "user-A", OrderSide.BID, 0.60, qty=25)
        fills = match_order(incoming, ob, NOW).fills
        assert [f.maker_order_id for f in fills] == ["late-cheap", "early", "late"]
        assert [f.quantity for f in fills] == [10, 10, 5]

    def test_partial_fill_updates_remaining(self) -> None:
        maker = _order("maker-1", "user-B", OrderSide.ASK, 0.60, qty=50)
        ob = _book(maker)
        incoming = _order("taker", "user-A", OrderSide.BID, 0.65, qty=100)
        result = match_order(incoming, ob, NOW)
        assert result.fills[0].quantity == 50
        assert incoming.remaining == 50
        assert incoming.filled_quantity == 50
        assert maker.filled
        assert ob.best_ask is None

    def test_resting_order_partially_consumed_stays(self) -> None:
        maker = _order("maker-1", "user-B", OrderSide.ASK, 0.60, qty=100)
        ob = _book(maker)
        match_order(_order("taker", "user-A", OrderSide.BID, 0.60, qty=30), ob, NOW)
        assert maker.remaining == 70
        assert "maker-1" in ob


class TestMatchAsk:
    def test_ask_hits_highest_bid(self) -> None:
        ob = _book(
            _order("b1", "user-B", OrderSide.BID, 0.50),
            _order("b2", "user-C", OrderSide.BID, 0.58),
        )
        incoming = _order("taker", "user-A", OrderSide.ASK, 0.50, qty=100)
        fills = match_order(incoming, ob, NOW).fills
        assert fills[0].maker_order_id == "b2"
        assert fills[0].price == 0.58
        assert fills[0].buyer_id == "user-C"


class TestSelfTrade:
    def test_self_trade_is_skipped(self) -> None:
        ob = _book(_order("maker-1", "user-A", OrderSide.ASK, 0.60))
        result = match_order(_order("taker", "user-A", OrderSide.BID, 0.65), ob, NOW)
        assert result.fills == []  # skipped, not rejected
        assert "maker-1" in ob

    def test_skips_own_order_and_fills_next(self) -> None:
        ob = _book(
            _order("own", "user-A", OrderSide.ASK, 0.60, qty=10),
            _order("other", "user-B", OrderSide.ASK, 0.60, qty=10),
        )
        fills = match_order(_order("taker", "user-A", OrderSide.BID, 0.60, qty=10), ob, NOW).fills
        assert [f.maker_order_id for f in fills] == ["other"]

    def test_skip_keeps_time_priority(self) -> None:
        ob = _book(
            _order("alice-ask", "alice", OrderSide.ASK, 0.60, qty=10),
            _order("bob-ask", "bob", OrderSide.ASK, 0.60, qty=10),
            _order("carol-ask", "carol", OrderSide.ASK, 0.60, qty=10),
        )
        match_order(_order("alice-bid", "alice", OrderSide.BID, 0.60, qty=5), ob, NOW)
        assert [o.id for o in ob.asks[0.60]] == ["alice-ask", "bob-ask", "carol-ask"]

        fills = match_order(_order("dave-bid", "dave", OrderSide.BID, 0.60, qty=15), ob, NOW).fills
        assert [(f.maker_order_id, f.quantity) for f in fills] == [("alice-ask", 10), ("bob-ask", 5)]
        assert [o.id for o in ob.asks[0.60]] == ["carol-ask"]


class TestExpiry:
    def test_expired_resting_order_is_cancelled_not_filled(self) -> None:
        stale = _order("stale", "user-B", OrderSide.ASK, 0.55, expires_at=NOW - timedelta(seconds=1))
        fresh = _order("fresh", "user-C", OrderSide.ASK, 0.60)
        ob = _book(stale, fresh)
        result = match_order(_order("taker", "user-A", OrderSide.BID, 0.60), ob, NOW)
        assert result.expired == [stale]
        assert stale.cancelled
        assert [f.maker_order_id for f in result.fills] == ["fresh"]
        assert "stale" not in ob


class TestCrossableQuantity:
    def test_counts_only_crossing_live_foreign_orders(self) -> None:
        ob = _book(
            _order("a1", "user-B", OrderSide.ASK, 0.55, qty=10),
            _order("a2", "user-A", OrderSide.ASK, 0.56, qty=10),  # own
            _order("a3", "user-C", OrderSide.ASK, 0.57, qty=10, expires_at=NOW),  # expired
            _order("a4", "user-D", OrderSide.ASK, 0.58, qty=10),
            _order("a5", "user-E", OrderSide.ASK, 0.70, qty=10),  # does not cross
        )
        incoming = _order("taker", "user-A", OrderSide.BID, 0.60)
        assert crossable_quantity(incoming, ob, NOW) == 20
