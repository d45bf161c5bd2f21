from datetime import UTC, datetime

import pytest

from src.pm_common.errors import ValidationError
from src.pm_market.domain.factory import new_binary_market, new_multi_choice_market
from src.pm_pricing.domain.cpmm import get_probability

T0 = datetime(2026, 1, 1, tzinfo=UTC)


class TestNewBinaryMarket:
    def test_defaults(self) -> None:
        m = new_binary_market("  Will it rain?  ", "alice", 1000, T0)
        assert m.id.startswith("mkt_")
        assert m.question == "Will it rain?"
        assert m.kind == "binary"
        assert get_probability(m.pool, m.p) == pytest.approx(0.5)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"question": " "},
            {"ante": 99.99},
            {"p": 0},
            {"p": 1},
            {"initial_prob": 0},
            {"initial_prob": 1.2},
        ],
    )
    def test_validation(self, kwargs: dict) -> None:
        args = {"question": "Q?", "creator_id": "alice", "ante": 1000, "now": T0} | kwargs
        with pytest.raises(ValidationError):
            new_binary_market(**args)


class TestNewMultiChoiceMarket:
    def test_answers_seeded_with_split_ante(self) -> None:
        m = new_multi_choice_market("Q?", "alice", 1000, ["A", "B", "C", "D"], T0, multiplier=10)
        assert [a.index for a in m.answers] == [0, 1, 2, 3]
        assert all(a.pool.yes == pytest.approx(1250) for a in m.answers)
        assert len({a.id for a in m.answers}) == 4

    def test_answer_count_bounds(self) -> None:
        with pytest.raises(ValidationError):
            new_multi_choice_market("Q?", "alice", 1000, ["A"], T0)
        with pytest.raises(ValidationError):
            new_multi_choice_market("Q?", "alice", 1000, [str(i) for i in range(4)], T0, max_answers=3)

    def test_duplicate_answers(self) -> None:
        with pytest.raises(ValidationError):
            new_multi_choice_market("Q?", "alice", 1000, ["Yes", " Yes"], T0)
