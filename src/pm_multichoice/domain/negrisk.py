"""NegRisk conversion for sum-to-one markets.

Exactly one answer resolves YES. X NO on each answer in a set S is
exchanged for X YES on each answer outside S plus a cash rebate:

    rebate = X * (n - 1 - |S|)

With |S| = n - 1 the complement is a single answer and no cash is released.
The rebate is not the hold-to-resolution value of the burned NO shares,
which is X * (|S| - 1); for |S| < n / 2 it pays more than that, so a
split followed by a small-set conversion ends up ahead at resolution.
"""

from dataclasses import dataclass

from src.pm_common.enums import MarketPhase
from src.pm_common.errors import (
    InvalidAmountError,
    InvalidIndexSetError,
    MarketResolvedError,
    NotDependentMarketError,
)
from src.pm_market.domain.models import MultiChoiceMarket


@dataclass(frozen=True)
class ConversionPlan:
    burn_no: list[str]  # answer ids giving up X NO each
    mint_yes: list[str]  # answer ids receiving X YES each
    amount: float
    collateral_out: float


def index_set_members(index_set: int, answer_count: int) -> list[int]:
    """Answer indexes selected by a bitmask: 0b101 -> [0, 2]."""
    return [i for i in range(answer_count) if index_set & (1 << i)]


def plan_conversion(market: MultiChoiceMarket, index_set: int, amount: float) -> ConversionPlan:
    if not market.should_answers_sum_to_one:
        raise NotDependentMarketError(market.id)
    if market.phase == MarketPhase.RESOLVED:
        raise MarketResolvedError(market.id)
    if amount <= 0:
        raise InvalidAmountError(amount)

    n = len(market.answers)
    full_mask = (1 << n) - 1
    if index_set <= 0 or index_set >= full_mask:
        # index_set == full_mask would burn NO on every answer, which is a merge, not a conversion
        raise InvalidIndexSetError(index_set, n)

    selected = set(index_set_members(index_set, n))
    burn = [a.id for a in market.answers if a.index in selected]
    mint = [a.id for a in market.answers if a.index not in selected]
    return ConversionPlan(
        burn_no=burn,
        mint_yes=mint,
        amount=amount,
        collateral_out=amount * (n - 1 - len(burn)),
    )
