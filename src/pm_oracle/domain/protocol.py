"""Oracle dispute protocol — state transitions on a binary market.

    UNRESOLVED --propose--> PROVISIONAL --finalize (window closed)--> FINALIZED
                                 |
                                 +--challenge (window open)--> CHALLENGED --finalize--> FINALIZED

Functions validate first and mutate last; settlement and bond transfers are
the application layer's job.
"""

from datetime import datetime, timedelta

from src.pm_common.datetime_utils import ensure_utc
from src.pm_common.enums import MarketPhase, OracleStatus, Resolution
from src.pm_common.errors import (
    ChallengeWindowError,
    MarketResolvedError,
    OracleNotConfiguredError,
    OracleStateError,
    ValidationError,
)
from src.pm_market.domain.models import BinaryMarket, OracleChallenge, OracleProposal

CHALLENGE_WINDOW_SECONDS = 120


def check_can_propose(market: BinaryMarket, now: datetime) -> None:
    if market.phase == MarketPhase.RESOLVED:
        raise MarketResolvedError(market.id)
    if market.resolution_source is None:
        raise OracleNotConfiguredError(market.id)
    if market.oracle_proposal is not None or market.oracle_status != OracleStatus.UNRESOLVED:
        raise OracleStateError(f"market {market.id} already has a proposal")
    deadline = ensure_utc(market.resolution_source.deadline)
    if ensure_utc(now) < deadline:
        raise OracleStateError(f"resolution deadline {deadline.isoformat()} not reached")


def open_proposal(
    market: BinaryMarket,
    resolution: Resolution,
    proposer_id: str,
    reasoning: str,
    now: datetime,
    window_seconds: int = CHALLENGE_WINDOW_SECONDS,
    observed_value: float | None = None,
) -> OracleProposal:
    check_can_propose(market, now)
    if resolution not in (Resolution.YES, Resolution.NO):
        raise ValidationError("oracle proposals resolve YES or NO")
    proposal = OracleProposal(
        resolution=resolution,
        proposed_at=now,
        proposed_by=proposer_id,
        challenge_window_end=now + timedelta(seconds=window_seconds),
        reasoning=reasoning,
        observed_value=observed_value,
    )
    market.oracle_proposal = proposal
    market.oracle_status = OracleStatus.PROVISIONAL
    return proposal


def window_open(market: BinaryMarket, now: datetime) -> bool:
    proposal = market.oracle_proposal
    return proposal is not None and ensure_utc(now) < ensure_utc(proposal.challenge_window_end)


def check_can_challenge(market: BinaryMarket, now: datetime) -> None:
    if market.phase == MarketPhase.RESOLVED:
        raise MarketResolvedError(market.id)
    if market.oracle_status != OracleStatus.PROVISIONAL:
        raise OracleStateError(
            f"only provisional proposals can be challenged (status {market.oracle_status.value})"
        )
    if not window_open(market, now):
        raise ChallengeWindowError("closed")


def open_challenge(
    market: BinaryMarket, challenger_id: str, reason: str, bond: float, now: datetime
) -> OracleChallenge:
    check_can_challenge(market, now)
    challenge = OracleChallenge(
        challenger_id=challenger_id, reason=reason, bond_amount=bond, challenged_at=now
    )
    market.oracle_challenge = challenge
    market.oracle_status = OracleStatus.CHALLENGED
    return challenge


def final_resolution(
    market: BinaryMarket,
    now: datetime,
    resolution: Resolution | None = None,
    resolver_id: str | None = None,
) -> tuple[Resolution, bool | None]:
    """(resolution to settle with, challenger_won). challenger_won is None when unchallenged."""
    if market.phase == MarketPhase.RESOLVED:
        raise MarketResolvedError(market.id)
    if market.oracle_status == OracleStatus.PROVISIONAL:
        if window_open(market, now):
            raise ChallengeWindowError("still open")
        return market.oracle_proposal.resolution, None  # type: ignore[union-attr]
    if market.oracle_status == OracleStatus.CHALLENGED:
        if resolution is None or not resolver_id:
            raise ValidationError("challenged markets need a final resolution and a resolver id")
        if resolution not in (Resolution.YES, Resolution.NO):
            raise ValidationError("oracle disputes resolve YES or NO")
        return resolution, resolution != market.oracle_proposal.resolution  # type: ignore[union-attr]
    raise OracleStateError(f"nothing to finalize (status {market.oracle_status.value})")
