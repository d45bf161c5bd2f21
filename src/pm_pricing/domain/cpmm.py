"""Constant-product market maker (CPMM) pricing — pure functions, no state.

Implied probability of YES for weight p:

    prob = p * no / ((1 - p) * yes + p * no)

Buying YES adds the stake to the NO reserve and removes YES shares so that
yes * no stays constant; buying NO is symmetric. Selling adds the shares back
to their own side and pays out the reduction of the opposite side.
"""

import math

from src.pm_common.enums import Outcome, Resolution
from src.pm_common.errors import PoolFloorError
from src.pm_pricing.domain.models import BuyResult, Pool, SellResult

LIQUIDITY_MULTIPLIER = 50.0
MIN_POOL_QTY = 0.01


def get_probability(pool: Pool, p: float = 0.5) -> float:
    denominator = (1 - p) * pool.yes + p * pool.no
    if pool.yes + pool.no == 0 or denominator == 0:
        return p
    return p * pool.no / denominator


def create_pool(
    ante: float, initial_prob: float = 0.5, multiplier: float = LIQUIDITY_MULTIPLIER
) -> Pool:
    """Seed a pool whose implied probability (at p=0.5) is initial_prob."""
    base = ante * multiplier
    return Pool(yes=base * (1 - initial_prob), no=base * initial_prob)


def validate_pool(pool: Pool, floor: float = MIN_POOL_QTY) -> None:
    if min(pool.yes, pool.no) < floor:
        raise PoolFloorError(pool.yes, pool.no, floor)


def calculate_purchase(
    pool: Pool,
    outcome: Outcome,
    amount: float,
    p: float = 0.5,
    floor: float = MIN_POOL_QTY,
) -> BuyResult:
    prob_before = get_probability(pool, p)
    if amount <= 0:
        return BuyResult(shares=0.0, new_pool=pool, prob_before=prob_before, prob_after=prob_before)

    k = pool.k
    if outcome == Outcome.YES:
        new_no = pool.no + amount
        new_yes = k / new_no
        shares = pool.yes - new_yes
    else:
        new_yes = pool.yes + amount
        new_no = k / new_yes
        shares = pool.no - new_no

    new_pool = Pool(yes=new_yes, no=new_no)
    validate_pool(new_pool, floor)
    return BuyResult(
        shares=shares,
        new_pool=new_pool,
        prob_before=prob_before,
        prob_after=get_probability(new_pool, p),
    )


def calculate_sale(
    pool: Pool,
    outcome: Outcome,
    shares: float,
    p: float = 0.5,
    floor: float = MIN_POOL_QTY,
) -> SellResult:
    """Sell shares back to the pool. Holdings are the caller's concern."""
    prob_before = get_probability(pool, p)
    if shares <= 0:
        return SellResult(payout=0.0, new_pool=pool, prob_before=prob_before, prob_after=prob_before)

    k = pool.k
    if outcome == Outcome.YES:
        new_yes = pool.yes + shares
        new_no = k / new_yes
        payout = pool.no - new_no
    else:
        new_no = pool.no + shares
        new_yes = k / new_no
        payout = pool.yes - new_yes

    new_pool = Pool(yes=new_yes, no=new_no)
    validate_pool(new_pool, floor)
    return SellResult(
        payout=max(0.0, payout),
        new_pool=new_pool,
        prob_before=prob_before,
        prob_after=get_probability(new_pool, p),
    )


def cost_for_shares(pool: Pool, outcome: Outcome, shares: float) -> float:
    """Stake required to receive exactly `shares`; inf when the pool cannot supply them."""
    if shares <= 0:
        return 0.0
    k = pool.k
    if outcome == Outcome.YES:
        if shares >= pool.yes:
            return math.inf
        return k / (pool.yes - shares) - pool.no
    if shares >= pool.no:
        return math.inf
    return k / (pool.no - shares) - pool.yes


def shares_for_amount(pool: Pool, outcome: Outcome, amount: float) -> float:
    if amount <= 0:
        return 0.0
    k = pool.k
    if outcome == Outcome.YES:
        return pool.yes - k / (pool.no + amount)
    return pool.no - k / (pool.yes + amount)


def add_liquidity(pool: Pool, amount: float) -> Pool:
    """Scale both reserves; the yes/no ratio (and so the probability) is unchanged, k grows."""
    if amount <= 0 or pool.total == 0:
        return pool
    factor = (pool.total + amount) / pool.total
    return Pool(yes=pool.yes * factor, no=pool.no * factor)


def reprice_pool(pool: Pool, target_prob: float, p: float = 0.5) -> Pool:
    """Move a pool to target_prob while keeping k constant.

    Solving prob = p*r / ((1-p) + p*r) for r = no/yes gives
    r = prob*(1-p) / (p*(1-prob)); then yes = sqrt(k/r), no = sqrt(k*r).
    """
    target_prob = min(max(target_prob, 1e-12), 1 - 1e-12)
    ratio = target_prob * (1 - p) / (p * (1 - target_prob))
    k = pool.k
    return Pool(yes=math.sqrt(k / ratio), no=math.sqrt(k * ratio))


def resolution_payout(
    outcome: Outcome, shares: float, resolution: Resolution, probability: float
) -> float:
    """Payout for a position at resolution. CANCEL refunds principal and is handled by the caller."""
    if resolution == Resolution.MKT:
        return shares * probability if outcome == Outcome.YES else shares * (1 - probability)
    if resolution == Resolution.CANCEL:
        return 0.0
    return shares if outcome.value == resolution.value else 0.0


def price_impact(pool: Pool, outcome: Outcome, amount: float, p: float = 0.5) -> float:
    """Absolute probability move a purchase of `amount` would cause."""
    if amount <= 0:
        return 0.0
    prob_before = get_probability(pool, p)
    k = pool.k
    if outcome == Outcome.YES:
        new_pool = Pool(yes=k / (pool.no + amount), no=pool.no + amount)
    else:
        new_pool = Pool(yes=pool.yes + amount, no=k / (pool.yes + amount))
    return abs(get_probability(new_pool, p) - prob_before)


def elasticity(pool: Pool, p: float = 0.5) -> float:
    """Price movement per unit of stake; lower means a more stable market."""
    if pool.total == 0:
        return 0.0
    prob = get_probability(pool, p)
    return prob * (1 - prob) / pool.total
