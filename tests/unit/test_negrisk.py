"""Tests for pm_multichoice.domain.negrisk — NO-set to YES-complement conversion."""

from datetime import UTC, datetime

import pytest

from src.pm_common.enums import MarketPhase
from src.pm_common.errors import (
    InvalidAmountError,
    InvalidIndexSetError,
    MarketResolvedError,
    NotDependentMarketError,
)
from src.pm_market.domain.factory import new_multi_choice_market
from src.pm_market.domain.models import MultiChoiceMarket
from src.pm_multichoice.domain.negrisk import index_set_members, plan_conversion

T0 = datetime(2026, 1, 1, tzinfo=UTC)


def _market(n: int, dependent: bool = True) -> MultiChoiceMarket:
    return new_multi_choice_market(
        question="Who wins?",
        creator_id="alice",
        ante=1000,
        answer_texts=[f"Answer {i}" for i in range(n)],
        now=T0,
        should_answers_sum_to_one=dependent,
    )


class TestIndexSet:
    def test_members(self) -> None:
        assert index_set_members(0b101, 3) == [0, 2]

    def test_bits_beyond_answer_count_ignored(self) -> None:
        assert index_set_members(0b1001, 3) == [0]


class TestPlanConversion:
    def test_all_but_one_gives_yes_on_complement_and_no_cash(self) -> None:
        m = _market(4)
        plan = plan_conversion(m, 0b0111, 10)
        assert plan.burn_no == [a.id for a in m.answers[:3]]
        assert plan.mint_yes == [m.answers[3].id]
        assert plan.collateral_out == 0

    def test_partial_set_yields_positive_rebate(self) -> None:
        m = _market(4)
        plan = plan_conversion(m, 0b0001, 10)
        assert plan.mint_yes == [a.id for a in m.answers[1:]]
        assert plan.collateral_out == pytest.approx(20)

    def test_middle_set(self) -> None:
        plan = plan_conversion(_market(4), 0b0101, 5)
        assert len(plan.burn_no) == 2
        assert plan.collateral_out == pytest.approx(5)

    def test_independent_market_rejected(self) -> None:
        with pytest.raises(NotDependentMarketError):
            plan_conversion(_market(3, dependent=False), 0b001, 10)

    def test_resolved_market_rejected(self) -> None:
        m = _market(3)
        m.phase = MarketPhase.RESOLVED
        with pytest.raises(MarketResolvedError):
            plan_conversion(m, 0b001, 10)

    @pytest.mark.parametrize("index_set", [0, -1, 0b111, 0b1000])
    def test_invalid_index_set(self, index_set: int) -> None:
        with pytest.raises(InvalidIndexSetError) as exc_info:
            plan_conversion(_market(3), index_set, 10)
        assert exc_info.value.code == 1004

    def test_non_positive_amount(self) -> None:
        with pytest.raises(InvalidAmountError):
            plan_conversion(_market(3), 0b001, 0)
