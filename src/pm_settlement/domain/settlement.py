"""Resolution payouts — pure computation over a list of positions.

YES / NO pay 1 per winning share, MKT pays shares * prob (YES) or
shares * (1 - prob) (NO), CANCEL refunds the principal still invested.
"""

from dataclasses import dataclass

from src.pm_account.domain.models import Position
from src.pm_common.enums import Outcome, Resolution
from src.pm_pricing.domain.cpmm import resolution_payout


@dataclass
class Payout:
    user_id: str
    answer_id: str | None
    outcome: Outcome
    shares: float
    amount: float
    refund: bool = False


def compute_payouts(
    positions: list[Position], resolution: Resolution, probability: float
) -> list[Payout]:
    payouts = []
    for pos in positions:
        if resolution == Resolution.CANCEL:
            amount, refund = pos.invested, True
        else:
            amount, refund = resolution_payout(pos.outcome, pos.shares, resolution, probability), False
        payouts.append(
            Payout(
                user_id=pos.user_id,
                answer_id=pos.answer_id,
                outcome=pos.outcome,
                shares=pos.shares,
                amount=amount,
                refund=refund,
            )
        )
    return payouts


def resolved_probability(resolution: Resolution, probability: float) -> float | None:
    """Probability recorded on the market or answer once resolved."""
    if resolution == Resolution.YES:
        return 1.0
    if resolution == Resolution.NO:
        return 0.0
    if resolution == Resolution.MKT:
        return probability
    return None
