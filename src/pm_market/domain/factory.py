"""Market construction: validation and initial pool seeding."""

from datetime import datetime

from src.pm_common.errors import ValidationError
from src.pm_common.id_generator import generate_id
from src.pm_market.domain.models import (
    Answer,
    BinaryMarket,
    MultiChoiceMarket,
    ResolutionSource,
)
from src.pm_pricing.domain.cpmm import LIQUIDITY_MULTIPLIER, create_pool

MINIMUM_ANTE = 100.0
MAX_ANSWERS = 20


def _check_common(question: str, ante: float, p: float, minimum_ante: float) -> None:
    if not question.strip():
        raise ValidationError("question must not be empty")
    if ante < minimum_ante:
        raise ValidationError(f"ante must be at least {minimum_ante}, got {ante}")
    if not (0 < p < 1):
        raise ValidationError(f"p must be strictly between 0 and 1, got {p}")


def new_binary_market(
    question: str,
    creator_id: str,
    ante: float,
    now: datetime,
    initial_prob: float = 0.5,
    p: float = 0.5,
    resolution_source: ResolutionSource | None = None,
    multiplier: float = LIQUIDITY_MULTIPLIER,
    minimum_ante: float = MINIMUM_ANTE,
) -> BinaryMarket:
    _check_common(question, ante, p, minimum_ante)
    if not (0 < initial_prob < 1):
        raise ValidationError(f"initial probability must be strictly between 0 and 1, got {initial_prob}")
    return BinaryMarket(
        id=generate_id("mkt"),
        question=question.strip(),
        creator_id=creator_id,
        created_at=now,
        p=p,
        pool=create_pool(ante, initial_prob, multiplier),
        resolution_source=resolution_source,
    )


def new_multi_choice_market(
    question: str,
    creator_id: str,
    ante: float,
    answer_texts: list[str],
    now: datetime,
    should_answers_sum_to_one: bool = True,
    p: float = 0.5,
    multiplier: float = LIQUIDITY_MULTIPLIER,
    minimum_ante: float = MINIMUM_ANTE,
    max_answers: int = MAX_ANSWERS,
) -> MultiChoiceMarket:
    """Each answer is seeded with ante / n at 50/50.

    Dependent markets still need a rebalance afterwards to start at 1/n each.
    """
    _check_common(question, ante, p, minimum_ante)
    texts = [t.strip() for t in answer_texts]
    if not (2 <= len(texts) <= max_answers):
        raise ValidationError(f"multi-choice markets need 2 to {max_answers} answers, got {len(texts)}")
    if any(not t for t in texts):
        raise ValidationError("answer text must not be empty")
    if len(set(texts)) != len(texts):
        raise ValidationError("answer texts must be unique")

    per_answer = ante / len(texts)
    answers = [
        Answer(
            id=generate_id("ans"),
            text=text,
            index=i,
            pool=create_pool(per_answer, 0.5, multiplier),
        )
        for i, text in enumerate(texts)
    ]
    return MultiChoiceMarket(
        id=generate_id("mkt"),
        question=question.strip(),
        creator_id=creator_id,
        created_at=now,
        p=p,
        answers=answers,
        should_answers_sum_to_one=should_answers_sum_to_one,
    )
