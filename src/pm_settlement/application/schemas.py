# src/pm_settlement/application/schemas.py
from pydantic import BaseModel, Field

from src.pm_common.enums import Resolution
from src.pm_settlement.application.service import SettlementResult


class ResolveRequest(BaseModel):
    resolution: Resolution
    probability: float | None = Field(None, ge=0, le=1)
    answer_id: str | None = None


class PayoutResponse(BaseModel):
    user_id: str
    answer_id: str | None
    outcome: str
    shares: float
    amount: float
    refund: bool


class SettlementResponse(BaseModel):
    market_id: str
    resolution: str
    answer_id: str | None
    market_resolved: bool
    total_paid: float
    payouts: list[PayoutResponse]

    @classmethod
    def from_result(cls, r: SettlementResult) -> "SettlementResponse":
        return cls(
            market_id=r.market_id,
            resolution=r.resolution.value,
            answer_id=r.answer_id,
            market_resolved=r.market_resolved,
            total_paid=r.total_paid,
            payouts=[
                PayoutResponse(
                    user_id=p.user_id,
                    answer_id=p.answer_id,
                    outcome=p.outcome.value,
                    shares=p.shares,
                    amount=p.amount,
                    refund=p.refund,
                )
                for p in r.payouts
            ],
        )
