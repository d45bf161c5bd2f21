"""TradeService — AMM buys and sells against a market's CPMM pool(s).

Flow per trade, all under the market lock:
  1. load + lifecycle tick, phase gate (sandbox / main only)
  2. price the trade (multi-choice: plan every pool that moves)
  3. balance / holdings check
  4. commit pools, cash and shares together
  5. volume, price history, post-trade tick (may start graduation), mirror
"""

import logging
from dataclasses import dataclass

from src.pm_common.enums import LedgerEntryType, Outcome, TradeSide
from src.pm_common.errors import ValidationError
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_market.domain.models import BinaryMarket, Market, MultiChoiceMarket
from src.pm_market.domain.price_history import record_snapshot
from src.pm_multichoice.domain.coordinator import apply_pools, plan_buy, plan_sell
from src.pm_pricing.domain.cpmm import calculate_purchase, calculate_sale
from src.pm_risk.rules.market_status import check_market_tradable
from src.pm_risk.rules.order_limit import check_positive_amount

logger = logging.getLogger(__name__)


@dataclass
class TradeResult:
    market_id: str
    answer_id: str | None
    side: TradeSide
    outcome: Outcome
    shares: float
    payout: float
    prob_before: float
    prob_after: float
    phase: str


class TradeService:
    async def execute_trade(
        self,
        engine: ExchangeEngine,
        user_id: str,
        market_id: str,
        side: TradeSide,
        outcome: Outcome,
        amount: float,
        answer_id: str | None = None,
    ) -> TradeResult:
        """`amount` is cash for a BUY and shares for a SELL."""
        async with engine.lock(market_id):
            market = await engine.load_market(market_id)
            check_market_tradable(market)
            check_positive_amount(amount)
            if side == TradeSide.BUY:
                result = self._buy(engine, market, user_id, outcome, amount, answer_id)
            else:
                result = self._sell(engine, market, user_id, outcome, amount, answer_id)

            record_snapshot(market, engine.now(), engine.config.PRICE_HISTORY_LIMIT)
            engine.tick(market)
            result.phase = market.phase.value
            await engine.save(market)

        logger.info(
            "Trade %s %s %.4f on %s/%s by %s: prob %.4f -> %.4f",
            side.value, outcome.value, amount, market_id, answer_id, user_id,
            result.prob_before, result.prob_after,
        )
        return result

    def _buy(
        self,
        engine: ExchangeEngine,
        market: Market,
        user_id: str,
        outcome: Outcome,
        amount: float,
        answer_id: str | None,
    ) -> TradeResult:
        floor = engine.config.CPMM_MIN_POOL_QTY
        engine.portfolio.check_balance(user_id, amount)
        if isinstance(market, BinaryMarket):
            if answer_id is not None:
                raise ValidationError("answer_id is only valid on multi-choice markets")
            buy = calculate_purchase(market.pool, outcome, amount, market.p, floor)
            market.pool = buy.new_pool
        else:
            answer_id = _require_answer(market, answer_id)
            buy, pools = plan_buy(market, answer_id, outcome, amount, floor)
            apply_pools(market, pools)
            market.get_answer(answer_id).volume += amount  # type: ignore[union-attr]

        engine.portfolio.debit(user_id, amount, LedgerEntryType.AMM_BUY, market.id)
        engine.portfolio.add_shares(user_id, market.id, answer_id, outcome, buy.shares, amount)
        market.volume += amount
        return TradeResult(
            market_id=market.id,
            answer_id=answer_id,
            side=TradeSide.BUY,
            outcome=outcome,
            shares=buy.shares,
            payout=0.0,
            prob_before=buy.prob_before,
            prob_after=buy.prob_after,
            phase=market.phase.value,
        )

    def _sell(
        self,
        engine: ExchangeEngine,
        market: Market,
        user_id: str,
        outcome: Outcome,
        shares: float,
        answer_id: str | None,
    ) -> TradeResult:
        floor = engine.config.CPMM_MIN_POOL_QTY
        if isinstance(market, MultiChoiceMarket):
            answer_id = _require_answer(market, answer_id)
        elif answer_id is not None:
            raise ValidationError("answer_id is only valid on multi-choice markets")
        engine.portfolio.check_shares(user_id, market.id, answer_id, outcome, shares)

        if isinstance(market, BinaryMarket):
            sale = calculate_sale(market.pool, outcome, shares, market.p, floor)
            market.pool = sale.new_pool
        else:
            sale, pools = plan_sell(market, answer_id, outcome, shares, floor)  # type: ignore[arg-type]
            apply_pools(market, pools)
            market.get_answer(answer_id).volume += sale.payout  # type: ignore[arg-type, union-attr]

        engine.portfolio.remove_shares(user_id, market.id, answer_id, outcome, shares)
        engine.portfolio.credit(user_id, sale.payout, LedgerEntryType.AMM_SELL, market.id)
        market.volume += sale.payout
        return TradeResult(
            market_id=market.id,
            answer_id=answer_id,
            side=TradeSide.SELL,
            outcome=outcome,
            shares=shares,
            payout=sale.payout,
            prob_before=sale.prob_before,
            prob_after=sale.prob_after,
            phase=market.phase.value,
        )


def _require_answer(market: MultiChoiceMarket, answer_id: str | None) -> str:
    if answer_id is None:
        raise ValidationError("answer_id is required for multi-choice markets")
    return answer_id
