# src/pm_trade/application/schemas.py
from pydantic import BaseModel, Field

from src.pm_common.enums import Outcome, TradeSide
from src.pm_trade.application.service import TradeResult


class TradeRequest(BaseModel):
    market_id: str
    answer_id: str | None = None
    side: TradeSide
    outcome: Outcome
    amount: float = Field(gt=0, description="Cash for BUY, shares for SELL")


class TradeResponse(BaseModel):
    success: bool = True
    market_id: str
    answer_id: str | None
    side: str
    outcome: str
    shares: float
    payout: float
    prob_before: float
    prob_after: float
    phase: str
    error: str | None = None

    @classmethod
    def from_result(cls, r: TradeResult) -> "TradeResponse":
        return cls(
            market_id=r.market_id,
            answer_id=r.answer_id,
            side=r.side.value,
            outcome=r.outcome.value,
            shares=r.shares,
            payout=r.payout,
            prob_before=r.prob_before,
            prob_after=r.prob_after,
            phase=r.phase,
        )
