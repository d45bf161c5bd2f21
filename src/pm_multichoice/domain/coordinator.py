"""Multi-outcome coordinator.

Independent markets trade every answer as an isolated binary pool.
Sum-to-one (dependent) markets execute the trade on the target answer and
then reprice every sibling so that the siblings share 1 - prob(target)
in proportion to their current probabilities. Repricing keeps each
sibling's k, so liquidity is never created or destroyed by a rebalance.

Every function here only *plans* new pools; nothing is mutated until
`apply_pools`, so a rejected plan leaves the market untouched.
"""

from src.pm_common.enums import Outcome
from src.pm_common.errors import AnswerNotFoundError, AnswerResolvedError
from src.pm_market.domain.models import Answer, MultiChoiceMarket
from src.pm_pricing.domain.cpmm import (
    MIN_POOL_QTY,
    calculate_purchase,
    calculate_sale,
    get_probability,
    reprice_pool,
    validate_pool,
)
from src.pm_pricing.domain.models import BuyResult, Pool, SellResult


def get_open_answer(market: MultiChoiceMarket, answer_id: str) -> Answer:
    answer = market.get_answer(answer_id)
    if answer is None:
        raise AnswerNotFoundError(answer_id)
    if answer.resolution is not None:
        raise AnswerResolvedError(answer_id)
    return answer


def answer_probabilities(market: MultiChoiceMarket) -> dict[str, float]:
    return {a.id: get_probability(a.pool, market.p) for a in market.answers}


def probability_sum(market: MultiChoiceMarket) -> float:
    return sum(answer_probabilities(market).values())


def redistribute(
    market: MultiChoiceMarket,
    target_id: str,
    target_pool: Pool,
    floor: float = MIN_POOL_QTY,
) -> dict[str, Pool]:
    """New pools for every answer after the target moved to target_pool."""
    target_prob = get_probability(target_pool, market.p)
    siblings = [a for a in market.answers if a.id != target_id]
    sibling_probs = {a.id: get_probability(a.pool, market.p) for a in siblings}
    sibling_total = sum(sibling_probs.values())
    remaining = 1.0 - target_prob

    pools = {target_id: target_pool}
    for sibling in siblings:
        if sibling_total > 0:
            share = sibling_probs[sibling.id] / sibling_total
        else:
            share = 1.0 / len(siblings)
        pools[sibling.id] = reprice_pool(sibling.pool, remaining * share, market.p)

    for pool in pools.values():
        validate_pool(pool, floor)
    return pools


def plan_buy(
    market: MultiChoiceMarket,
    answer_id: str,
    outcome: Outcome,
    amount: float,
    floor: float = MIN_POOL_QTY,
) -> tuple[BuyResult, dict[str, Pool]]:
    answer = get_open_answer(market, answer_id)
    result = calculate_purchase(answer.pool, outcome, amount, market.p, floor)
    if not market.should_answers_sum_to_one or result.shares == 0:
        return result, {answer.id: result.new_pool}
    return result, redistribute(market, answer.id, result.new_pool, floor)


def plan_sell(
    market: MultiChoiceMarket,
    answer_id: str,
    outcome: Outcome,
    shares: float,
    floor: float = MIN_POOL_QTY,
) -> tuple[SellResult, dict[str, Pool]]:
    answer = get_open_answer(market, answer_id)
    result = calculate_sale(answer.pool, outcome, shares, market.p, floor)
    if not market.should_answers_sum_to_one or shares <= 0:
        return result, {answer.id: result.new_pool}
    return result, redistribute(market, answer.id, result.new_pool, floor)


def plan_rebalance(market: MultiChoiceMarket, floor: float = MIN_POOL_QTY) -> dict[str, Pool]:
    """Normalise every answer to prob_i / sum(prob). User positions are untouched."""
    probs = answer_probabilities(market)
    total = sum(probs.values())
    if total <= 0:
        return {a.id: a.pool for a in market.answers}
    pools = {
        a.id: reprice_pool(a.pool, probs[a.id] / total, market.p) for a in market.answers
    }
    for pool in pools.values():
        validate_pool(pool, floor)
    return pools


def apply_pools(market: MultiChoiceMarket, pools: dict[str, Pool]) -> None:
    for answer in market.answers:
        if answer.id in pools:
            answer.pool = pools[answer.id]
