"""Pydantic schemas for pm_market requests and responses.

Cursor format for market listing (ids are not sequential):
  {"ts": "<created_at ISO>", "id": "<market_id>"}
  Encoded as Base64 JSON string.
"""

import base64
import json
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from src.pm_common.amounts import to_display, to_percent
from src.pm_common.enums import PriceCondition, SourceType
from src.pm_market.domain.models import (
    Answer,
    BinaryMarket,
    Market,
    PricePoint,
    ResolutionSource,
)
from src.pm_pricing.domain.cpmm import get_probability

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_market: Market) -> str:
    """Encode composite cursor from last market in page."""
    payload = {
        "ts": last_market.created_at.isoformat(),
        "id": last_market.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode composite cursor -> (ts_iso, market_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        return data["ts"], data["id"]
    except (ValueError, KeyError, TypeError):
        return None, None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ResolutionSourceIn(BaseModel):
    type: SourceType
    deadline: datetime
    asset: str | None = None
    target_price: float | None = Field(None, gt=0)
    condition: PriceCondition | None = None
    description: str | None = None

    @model_validator(mode="after")
    def crypto_fields(self) -> "ResolutionSourceIn":
        if self.type == SourceType.CRYPTO_PRICE and (
            not self.asset or self.target_price is None or self.condition is None
        ):
            raise ValueError("crypto_price sources need asset, target_price and condition")
        return self

    def to_domain(self) -> ResolutionSource:
        return ResolutionSource(
            type=self.type,
            deadline=self.deadline,
            asset=self.asset,
            target_price=self.target_price,
            condition=self.condition,
            description=self.description,
        )


class CreateMarketRequest(BaseModel):
    question: str = Field(min_length=1, max_length=500)
    kind: Literal["binary", "multi_choice"] = "binary"
    ante: float = Field(gt=0)
    initial_prob: float = Field(0.5, gt=0, lt=1)
    p: float = Field(0.5, gt=0, lt=1)
    answers: list[str] | None = None
    should_answers_sum_to_one: bool = True
    resolution_source: ResolutionSourceIn | None = None


class AddLiquidityRequest(BaseModel):
    amount: float = Field(gt=0)


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class PoolOut(BaseModel):
    yes: float
    no: float
    k: float


class AnswerOut(BaseModel):
    id: str
    text: str
    index: int
    probability: float
    probability_display: str
    pool: PoolOut
    volume: float
    resolution: str | None
    resolution_probability: float | None

    @classmethod
    def from_domain(cls, a: Answer, p: float) -> "AnswerOut":
        prob = get_probability(a.pool, p)
        return cls(
            id=a.id,
            text=a.text,
            index=a.index,
            probability=prob,
            probability_display=to_percent(prob),
            pool=PoolOut(yes=a.pool.yes, no=a.pool.no, k=a.pool.k),
            volume=a.volume,
            resolution=a.resolution.value if a.resolution else None,
            resolution_probability=a.resolution_probability,
        )


class ResolutionSourceOut(BaseModel):
    type: str
    deadline: str
    asset: str | None
    target_price: float | None
    condition: str | None
    description: str | None

    @classmethod
    def from_domain(cls, s: ResolutionSource) -> "ResolutionSourceOut":
        return cls(
            type=s.type.value,
            deadline=s.deadline.isoformat(),
            asset=s.asset,
            target_price=s.target_price,
            condition=s.condition.value if s.condition else None,
            description=s.description,
        )


def _iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


class MarketListItem(BaseModel):
    id: str
    kind: str
    question: str
    phase: str
    probability: float | None  # binary only
    volume: float
    volume_display: str
    answer_count: int
    created_at: str

    @classmethod
    def from_domain(cls, m: Market) -> "MarketListItem":
        is_binary = isinstance(m, BinaryMarket)
        return cls(
            id=m.id,
            kind=m.kind,
            question=m.question,
            phase=m.phase.value,
            probability=get_probability(m.pool, m.p) if is_binary else None,
            volume=m.volume,
            volume_display=to_display(m.volume),
            answer_count=0 if is_binary else len(m.answers),
            created_at=m.created_at.isoformat(),
        )


class MarketListResponse(BaseModel):
    items: list[MarketListItem]
    next_cursor: str | None
    has_more: bool


class MarketDetail(BaseModel):
    id: str
    kind: str
    question: str
    creator_id: str
    p: float
    phase: str
    volume: float
    volume_display: str
    probability: float | None
    pool: PoolOut | None
    answers: list[AnswerOut]
    should_answers_sum_to_one: bool | None
    graduation_started_at: str | None
    resolution_source: ResolutionSourceOut | None
    oracle_status: str
    resolution: str | None
    resolution_probability: float | None
    resolved_at: str | None
    created_at: str

    @classmethod
    def from_domain(cls, m: Market) -> "MarketDetail":
        if isinstance(m, BinaryMarket):
            probability: float | None = get_probability(m.pool, m.p)
            pool: PoolOut | None = PoolOut(yes=m.pool.yes, no=m.pool.no, k=m.pool.k)
            answers: list[AnswerOut] = []
            sum_to_one = None
        else:
            probability, pool = None, None
            answers = [AnswerOut.from_domain(a, m.p) for a in m.answers]
            sum_to_one = m.should_answers_sum_to_one
        return cls(
            id=m.id,
            kind=m.kind,
            question=m.question,
            creator_id=m.creator_id,
            p=m.p,
            phase=m.phase.value,
            volume=m.volume,
            volume_display=to_display(m.volume),
            probability=probability,
            pool=pool,
            answers=answers,
            should_answers_sum_to_one=sum_to_one,
            graduation_started_at=_iso(m.graduation_started_at),
            resolution_source=(
                ResolutionSourceOut.from_domain(m.resolution_source) if m.resolution_source else None
            ),
            oracle_status=m.oracle_status.value,
            resolution=m.resolution.value if m.resolution else None,
            resolution_probability=m.resolution_probability,
            resolved_at=_iso(m.resolved_at),
            created_at=m.created_at.isoformat(),
        )


class GraduationStatus(BaseModel):
    market_id: str
    phase: str
    volume: float
    volume_threshold: float
    graduation_started_at: str | None
    time_remaining_seconds: float
    time_remaining_display: str
    progress_percent: float


class PricePointOut(BaseModel):
    timestamp: str
    probability: float

    @classmethod
    def from_domain(cls, pt: PricePoint) -> "PricePointOut":
        return cls(timestamp=pt.timestamp.isoformat(), probability=pt.probability)


class ChartSeries(BaseModel):
    answer_id: str | None
    points: list[PricePointOut]


class ChartResponse(BaseModel):
    market_id: str
    series: list[ChartSeries]
