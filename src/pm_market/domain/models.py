"""Domain models for pm_market — pure dataclasses, no business logic.

A market is either a BinaryMarket (one pool) or a MultiChoiceMarket (one pool
per answer). The `kind` literal lets the persistence mirror tell them apart.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from src.pm_common.enums import (
    MarketPhase,
    OracleStatus,
    PriceCondition,
    Resolution,
    SourceType,
)
from src.pm_pricing.domain.models import Pool


@dataclass
class PricePoint:
    timestamp: datetime
    probability: float
    answer_id: str | None = None


@dataclass
class ResolutionSource:
    """Oracle configuration for automated resolution."""

    type: SourceType
    deadline: datetime
    asset: str | None = None  # CoinGecko id, e.g. "bitcoin"
    target_price: float | None = None
    condition: PriceCondition | None = None
    description: str | None = None


@dataclass
class OracleProposal:
    resolution: Resolution
    proposed_at: datetime
    proposed_by: str
    challenge_window_end: datetime
    reasoning: str
    observed_value: float | None = None


@dataclass
class OracleChallenge:
    challenger_id: str
    reason: str
    bond_amount: float
    challenged_at: datetime


@dataclass
class Answer:
    id: str
    text: str
    index: int
    pool: Pool
    volume: float = 0.0
    resolution: Resolution | None = None
    resolution_probability: float | None = None


@dataclass(kw_only=True)
class MarketBase:
    id: str
    question: str
    creator_id: str
    created_at: datetime
    p: float = 0.5
    phase: MarketPhase = MarketPhase.SANDBOX
    volume: float = 0.0
    graduation_started_at: datetime | None = None
    resolution_source: ResolutionSource | None = None
    oracle_status: OracleStatus = OracleStatus.UNRESOLVED
    oracle_proposal: OracleProposal | None = None
    oracle_challenge: OracleChallenge | None = None
    resolution: Resolution | None = None
    resolution_probability: float | None = None
    resolved_at: datetime | None = None
    price_history: list[PricePoint] = field(default_factory=list)


@dataclass(kw_only=True)
class BinaryMarket(MarketBase):
    pool: Pool
    kind: Literal["binary"] = "binary"


@dataclass(kw_only=True)
class MultiChoiceMarket(MarketBase):
    answers: list[Answer]
    should_answers_sum_to_one: bool = True
    kind: Literal["multi_choice"] = "multi_choice"

    def get_answer(self, answer_id: str) -> Answer | None:
        for answer in self.answers:
            if answer.id == answer_id:
                return answer
        return None


Market = BinaryMarket | MultiChoiceMarket
