"""MultiChoiceService — rebalance plus the collateral operations (convert, merge, split)."""

import logging
from dataclasses import dataclass

from src.pm_common.enums import LedgerEntryType, Outcome
from src.pm_common.errors import NotDependentMarketError, ValidationError
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_market.domain.models import Market, MultiChoiceMarket
from src.pm_market.domain.price_history import record_snapshot
from src.pm_multichoice.domain.coordinator import (
    apply_pools,
    get_open_answer,
    plan_rebalance,
    probability_sum,
)
from src.pm_multichoice.domain.negrisk import ConversionPlan, plan_conversion
from src.pm_risk.rules.market_status import check_not_resolved
from src.pm_risk.rules.order_limit import check_positive_amount

logger = logging.getLogger(__name__)


@dataclass
class RebalanceResult:
    market_id: str
    sum_before: float
    sum_after: float


def _contract(market: Market, answer_id: str | None) -> str | None:
    """Validate the answer of a merge / split; binary markets take no answer."""
    if isinstance(market, MultiChoiceMarket):
        if answer_id is None:
            raise ValidationError("answer_id is required for multi-choice markets")
        return get_open_answer(market, answer_id).id
    if answer_id is not None:
        raise ValidationError("answer_id is only valid on multi-choice markets")
    return None


class MultiChoiceService:
    async def rebalance(self, engine: ExchangeEngine, market_id: str) -> RebalanceResult:
        async with engine.lock(market_id):
            market = await engine.load_market(market_id)
            check_not_resolved(market)
            if not isinstance(market, MultiChoiceMarket) or not market.should_answers_sum_to_one:
                raise NotDependentMarketError(market_id)
            before = probability_sum(market)
            apply_pools(market, plan_rebalance(market, engine.config.CPMM_MIN_POOL_QTY))
            after = probability_sum(market)
            record_snapshot(market, engine.now(), engine.config.PRICE_HISTORY_LIMIT)
            await engine.save(market)
        logger.info("Rebalanced market %s: sum %.6f -> %.6f", market_id, before, after)
        return RebalanceResult(market_id=market_id, sum_before=before, sum_after=after)

    async def convert(
        self, engine: ExchangeEngine, user_id: str, market_id: str, index_set: int, amount: float
    ) -> ConversionPlan:
        async with engine.lock(market_id):
            market = await engine.load_market(market_id)
            if not isinstance(market, MultiChoiceMarket):
                raise NotDependentMarketError(market_id)
            plan = plan_conversion(market, index_set, amount)
            portfolio = engine.portfolio
            for answer_id in plan.burn_no:
                portfolio.check_shares(user_id, market_id, answer_id, Outcome.NO, amount)

            burned_principal = sum(
                portfolio.remove_shares(user_id, market_id, answer_id, Outcome.NO, amount)
                for answer_id in plan.burn_no
            )
            # Principal follows the position: whatever the cash rebate does not cover
            # is spread over the minted YES shares so CANCEL refunds stay whole.
            carried = max(0.0, burned_principal - plan.collateral_out) / len(plan.mint_yes)
            for answer_id in plan.mint_yes:
                portfolio.add_shares(user_id, market_id, answer_id, Outcome.YES, amount, carried)
            if plan.collateral_out > 0:
                portfolio.credit(
                    user_id, plan.collateral_out, LedgerEntryType.NEGRISK_COLLATERAL, market_id
                )
        logger.info(
            "User %s converted %.4f NO on %d answers of %s (collateral %.4f)",
            user_id, amount, len(plan.burn_no), market_id, plan.collateral_out,
        )
        return plan

    async def merge(
        self,
        engine: ExchangeEngine,
        user_id: str,
        market_id: str,
        amount: float,
        answer_id: str | None = None,
    ) -> float:
        """Burn `amount` YES + `amount` NO for `amount` cash."""
        async with engine.lock(market_id):
            market = await engine.load_market(market_id)
            check_not_resolved(market)
            check_positive_amount(amount)
            target = _contract(market, answer_id)
            portfolio = engine.portfolio
            portfolio.check_shares(user_id, market_id, target, Outcome.YES, amount)
            portfolio.check_shares(user_id, market_id, target, Outcome.NO, amount)
            portfolio.remove_shares(user_id, market_id, target, Outcome.YES, amount)
            portfolio.remove_shares(user_id, market_id, target, Outcome.NO, amount)
            portfolio.credit(user_id, amount, LedgerEntryType.MERGE, market_id)
        logger.info("User %s merged %.4f on %s/%s", user_id, amount, market_id, answer_id)
        return amount

    async def split(
        self,
        engine: ExchangeEngine,
        user_id: str,
        market_id: str,
        amount: float,
        answer_id: str | None = None,
    ) -> float:
        """Pay `amount` cash for `amount` YES + `amount` NO."""
        async with engine.lock(market_id):
            market = await engine.load_market(market_id)
            check_not_resolved(market)
            check_positive_amount(amount)
            target = _contract(market, answer_id)
            portfolio = engine.portfolio
            portfolio.debit(user_id, amount, LedgerEntryType.SPLIT, market_id)
            portfolio.add_shares(user_id, market_id, target, Outcome.YES, amount, amount / 2)
            portfolio.add_shares(user_id, market_id, target, Outcome.NO, amount, amount / 2)
        logger.info("User %s split %.4f on %s/%s", user_id, amount, market_id, answer_id)
        return amount
