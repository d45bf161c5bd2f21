# src/pm_oracle/application/schemas.py
from typing import Any

from pydantic import BaseModel, Field

from src.pm_common.enums import Resolution
from src.pm_market.application.schemas import ResolutionSourceOut
from src.pm_market.domain.models import BinaryMarket, OracleChallenge, OracleProposal
from src.pm_oracle.application.service import CheckReport, FinalizeResult
from src.pm_settlement.application.schemas import SettlementResponse


class ProposeRequest(BaseModel):
    market_id: str
    resolution: Resolution | None = None
    reasoning: str | None = Field(None, max_length=1000)


class ChallengeRequest(BaseModel):
    market_id: str
    reason: str = Field(min_length=1, max_length=1000)


class FinalizeRequest(BaseModel):
    market_id: str
    resolution: Resolution | None = None


class ProposalOut(BaseModel):
    resolution: str
    proposed_at: str
    proposed_by: str
    challenge_window_end: str
    reasoning: str
    observed_value: float | None

    @classmethod
    def from_domain(cls, p: OracleProposal) -> "ProposalOut":
        return cls(
            resolution=p.resolution.value,
            proposed_at=p.proposed_at.isoformat(),
            proposed_by=p.proposed_by,
            challenge_window_end=p.challenge_window_end.isoformat(),
            reasoning=p.reasoning,
            observed_value=p.observed_value,
        )


class ChallengeOut(BaseModel):
    challenger_id: str
    reason: str
    bond_amount: float
    challenged_at: str

    @classmethod
    def from_domain(cls, c: OracleChallenge) -> "ChallengeOut":
        return cls(
            challenger_id=c.challenger_id,
            reason=c.reason,
            bond_amount=c.bond_amount,
            challenged_at=c.challenged_at.isoformat(),
        )


class FinalizeResponse(BaseModel):
    market_id: str
    resolution: str
    challenger_won: bool | None
    challenger_payout: float
    settlement: SettlementResponse

    @classmethod
    def from_result(cls, market_id: str, r: FinalizeResult) -> "FinalizeResponse":
        return cls(
            market_id=market_id,
            resolution=r.resolution.value,
            challenger_won=r.challenger_won,
            challenger_payout=r.challenger_payout,
            settlement=SettlementResponse.from_result(r.settlement),
        )


class CheckResponse(BaseModel):
    checked: int
    proposed: int
    finalized: int
    errors: int
    details: list[dict[str, Any]]

    @classmethod
    def from_report(cls, r: CheckReport) -> "CheckResponse":
        return cls(
            checked=r.checked,
            proposed=r.proposed,
            finalized=r.finalized,
            errors=r.errors,
            details=r.details,
        )


class OracleStatusResponse(BaseModel):
    market_id: str
    phase: str
    oracle_status: str
    resolution_source: ResolutionSourceOut | None
    proposal: ProposalOut | None
    challenge: ChallengeOut | None
    resolution: str | None

    @classmethod
    def from_domain(cls, m: BinaryMarket) -> "OracleStatusResponse":
        return cls(
            market_id=m.id,
            phase=m.phase.value,
            oracle_status=m.oracle_status.value,
            resolution_source=(
                ResolutionSourceOut.from_domain(m.resolution_source) if m.resolution_source else None
            ),
            proposal=ProposalOut.from_domain(m.oracle_proposal) if m.oracle_proposal else None,
            challenge=ChallengeOut.from_domain(m.oracle_challenge) if m.oracle_challenge else None,
            resolution=m.resolution.value if m.resolution else None,
        )
