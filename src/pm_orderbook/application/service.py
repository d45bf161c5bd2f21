"""OrderBookService — limit order placement, cancellation and book queries.

Bids reserve limit * quantity of cash when placed; asks escrow the shares.
A bid filled below its limit gets the price improvement back immediately,
so the reservation left on an open bid is always remaining * limit.
"""
import logging
from datetime import datetime

from src.pm_common.amounts import EPSILON
from src.pm_common.datetime_utils import ensure_utc
from src.pm_common.enums import LedgerEntryType, OrderSide, Outcome, TimeInForce
from src.pm_common.errors import (
    InsufficientDepthError,
    NotOrderOwnerError,
    OrderNotCancellableError,
    OrderNotFoundError,
    ValidationError,
)
from src.pm_common.id_generator import generate_id
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_market.domain.models import Market, MultiChoiceMarket
from src.pm_multichoice.domain.coordinator import get_open_answer
from src.pm_orderbook.domain.models import Fill, LimitOrder, PriceLevel
from src.pm_orderbook.engine.matching_algo import crossable_quantity, match_order
from src.pm_orderbook.engine.order_book import OrderBook
from src.pm_risk.rules.market_status import check_accepts_limit_orders
from src.pm_risk.rules.order_limit import check_order_limit
from src.pm_risk.rules.price_range import check_price_range

logger = logging.getLogger(__name__)


def check_contract(market: Market, answer_id: str | None) -> None:
    """answer_id is required on multi-choice markets and forbidden on binary ones."""
    if isinstance(market, MultiChoiceMarket):
        if answer_id is None:
            raise ValidationError("answer_id is required for multi-choice markets")
        get_open_answer(market, answer_id)
    elif answer_id is not None:
        raise ValidationError("answer_id is only valid on multi-choice markets")


def release_order(engine: ExchangeEngine, order: LimitOrder) -> None:
    """Mark cancelled and hand back whatever the unfilled remainder still reserves."""
    order.cancelled = True
    remaining = order.remaining
    if remaining <= EPSILON:
        return
    if order.side == OrderSide.BID:
        engine.portfolio.unfreeze(order.user_id, remaining * order.limit_prob, order.id)
    else:
        engine.portfolio.release_escrow(
            order.user_id, order.market_id, order.answer_id, order.outcome, remaining
        )


def sweep_expired(engine: ExchangeEngine, ob: OrderBook) -> int:
    now = engine.now()
    expired = [o for o in ob.orders() if o.is_expired(now)]
    for order in expired:
        ob.cancel_order(order.id)
        release_order(engine, order)
        logger.info("Order %s expired", order.id)
    return len(expired)


def cancel_open_orders(
    engine: ExchangeEngine, market_id: str, answer_ids: set[str | None] | None = None
) -> int:
    """Cancel and refund every open order on a market (optionally only some answers)."""
    cancelled = 0
    for order in engine.order_books.open_orders(market_id=market_id):
        if answer_ids is not None and order.answer_id not in answer_ids:
            continue
        engine.order_books.book(order.book_key).cancel_order(order.id)
        release_order(engine, order)
        cancelled += 1
    if cancelled:
        logger.info("Cancelled %d open orders on market %s", cancelled, market_id)
    return cancelled


class OrderBookService:
    async def place_order(
        self,
        engine: ExchangeEngine,
        user_id: str,
        market_id: str,
        answer_id: str | None,
        side: OrderSide,
        outcome: Outcome,
        limit_prob: float,
        quantity: float,
        expires_at: datetime | None = None,
        time_in_force: TimeInForce = TimeInForce.GTC,
    ) -> tuple[LimitOrder, list[Fill]]:
        async with engine.lock(market_id):
            market = await engine.load_market(market_id)
            check_accepts_limit_orders(market)
            check_contract(market, answer_id)
            check_price_range(limit_prob)
            check_order_limit(quantity)
            now = engine.now()
            if expires_at is not None and ensure_utc(expires_at) <= now:
                raise ValidationError("expires_at must be in the future")

            order = LimitOrder(
                id=generate_id("ord"),
                user_id=user_id,
                market_id=market_id,
                answer_id=answer_id,
                side=side,
                outcome=outcome,
                limit_prob=limit_prob,
                quantity=quantity,
                created_at=now,
                expires_at=expires_at,
                time_in_force=time_in_force,
            )
            ob = engine.order_books.book(order.book_key)
            sweep_expired(engine, ob)

            if time_in_force == TimeInForce.FOK:
                available = crossable_quantity(order, ob, now)
                if available + EPSILON < quantity:
                    raise InsufficientDepthError(quantity, available)

            # Reserve (raises before any mutation)
            if side == OrderSide.BID:
                engine.portfolio.freeze(user_id, limit_prob * quantity, order.id)
            else:
                engine.portfolio.escrow_shares(user_id, market_id, answer_id, outcome, quantity)
            engine.order_books.orders[order.id] = order

            result = match_order(order, ob, now)
            for stale in result.expired:
                release_order(engine, stale)
            for fill in result.fills:
                self._settle_fill(engine, market, fill)

            if order.is_open:
                if time_in_force == TimeInForce.GTC:
                    ob.add_order(order)
                else:
                    release_order(engine, order)

            engine.tick(market)
            await engine.save(market)
            logger.info(
                "Order %s %s %s %.4f@%.4f: %d fills, status %s",
                order.id, side.value, outcome.value, quantity, limit_prob,
                len(result.fills), order.status,
            )
            return order, result.fills

    def _settle_fill(self, engine: ExchangeEngine, market: Market, fill: Fill) -> None:
        portfolio = engine.portfolio
        buy_order = engine.order_books.orders[fill.buy_order_id]
        notional = fill.notional

        portfolio.spend_frozen(fill.buyer_id, notional, buy_order.id)
        improvement = (buy_order.limit_prob - fill.price) * fill.quantity
        if improvement > EPSILON:
            portfolio.unfreeze(fill.buyer_id, improvement, buy_order.id)
        portfolio.add_shares(
            fill.buyer_id, fill.market_id, fill.answer_id, fill.outcome, fill.quantity, notional
        )

        portfolio.deliver_escrowed(
            fill.seller_id, fill.market_id, fill.answer_id, fill.outcome, fill.quantity
        )
        portfolio.credit(fill.seller_id, notional, LedgerEntryType.FILL_RECEIPT, fill.sell_order_id)

        market.volume += notional
        if isinstance(market, MultiChoiceMarket) and fill.answer_id is not None:
            answer = market.get_answer(fill.answer_id)
            if answer is not None:
                answer.volume += notional

    async def cancel_order(self, engine: ExchangeEngine, user_id: str, order_id: str) -> LimitOrder:
        order = engine.order_books.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if order.user_id != user_id:
            raise NotOrderOwnerError(order_id)
        async with engine.lock(order.market_id):
            if not order.is_open:
                raise OrderNotCancellableError(order_id, order.status)
            engine.order_books.book(order.book_key).cancel_order(order.id)
            release_order(engine, order)
        logger.info("Order %s cancelled by owner", order_id)
        return order

    async def list_orders(
        self,
        engine: ExchangeEngine,
        user_id: str,
        market_id: str | None = None,
        include_closed: bool = False,
    ) -> list[LimitOrder]:
        for mid in {o.market_id for o in engine.order_books.open_orders(market_id, user_id)}:
            async with engine.lock(mid):
                for ob in engine.order_books.books_for_market(mid):
                    sweep_expired(engine, ob)
        orders = [
            o
            for o in engine.order_books.orders.values()
            if o.user_id == user_id and (market_id is None or o.market_id == market_id)
        ]
        if not include_closed:
            orders = [o for o in orders if o.is_open]
        return sorted(orders, key=lambda o: o.created_at)

    async def get_levels(
        self, engine: ExchangeEngine, market_id: str, answer_id: str | None = None
    ) -> list[tuple[str | None, Outcome, list[PriceLevel], list[PriceLevel]]]:
        """[(answer_id, outcome, bids, asks)] for every book of the market."""
        async with engine.lock(market_id):
            await engine.load_market(market_id)
            books = [
                ob
                for ob in engine.order_books.books_for_market(market_id)
                if answer_id is None or ob.key[1] == answer_id
            ]
            for ob in books:
                sweep_expired(engine, ob)
            return [
                (ob.key[1], ob.key[2], ob.levels(OrderSide.BID), ob.levels(OrderSide.ASK))
                for ob in sorted(books, key=lambda b: (b.key[1] or "", b.key[2].value))
            ]
