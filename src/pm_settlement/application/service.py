"""SettlementService — the single settlement primitive plus manual resolution.

`settle` is synchronous and must be called with the market lock held; both
manual resolution and the oracle go through it. Order of operations:
  1. Cancel every open order of the affected contracts (refund reservations)
  2. Pay every position and remove it
  3. Record the resolution and move the market to RESOLVED once every
     contract is settled
"""

import logging
from dataclasses import dataclass, field

from src.pm_common.enums import LedgerEntryType, MarketPhase, OracleStatus, Resolution
from src.pm_common.errors import NotMarketCreatorError, ValidationError
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_market.domain.models import BinaryMarket, Market, MultiChoiceMarket
from src.pm_multichoice.domain.coordinator import answer_probabilities, get_open_answer
from src.pm_orderbook.application.service import cancel_open_orders
from src.pm_pricing.domain.cpmm import get_probability
from src.pm_risk.rules.market_status import check_not_resolved
from src.pm_settlement.domain.settlement import Payout, compute_payouts, resolved_probability

logger = logging.getLogger(__name__)


@dataclass
class SettlementResult:
    market_id: str
    resolution: Resolution
    answer_id: str | None
    market_resolved: bool
    payouts: list[Payout] = field(default_factory=list)

    @property
    def total_paid(self) -> float:
        return sum(p.amount for p in self.payouts)


def _check_probability(probability: float | None) -> None:
    if probability is not None and not (0 <= probability <= 1):
        raise ValidationError(f"probability must be within [0, 1], got {probability}")


class SettlementService:
    def settle(
        self,
        engine: ExchangeEngine,
        market: Market,
        resolution: Resolution,
        probability: float | None = None,
        answer_id: str | None = None,
    ) -> SettlementResult:
        check_not_resolved(market)
        _check_probability(probability)
        if isinstance(market, BinaryMarket):
            if answer_id is not None:
                raise ValidationError("answer_id is only valid on multi-choice markets")
            plan = {None: (resolution, self._mkt_prob(resolution, probability, market))}
        else:
            plan = self._plan_multi_choice(market, resolution, probability, answer_id)

        result = SettlementResult(
            market_id=market.id, resolution=resolution, answer_id=answer_id, market_resolved=False
        )
        cancel_open_orders(engine, market.id, set(plan))
        for target, (answer_resolution, prob) in plan.items():
            result.payouts.extend(self._pay(engine, market.id, target, answer_resolution, prob))
            if isinstance(market, MultiChoiceMarket) and target is not None:
                answer = market.get_answer(target)
                answer.resolution = answer_resolution  # type: ignore[union-attr]
                answer.resolution_probability = resolved_probability(answer_resolution, prob)  # type: ignore[union-attr]

        if isinstance(market, BinaryMarket) or all(
            a.resolution is not None for a in market.answers
        ):
            prob = plan[None][1] if isinstance(market, BinaryMarket) else probability
            market.phase = MarketPhase.RESOLVED
            market.resolution = resolution
            market.resolution_probability = (
                resolved_probability(resolution, prob) if prob is not None else None
            )
            market.resolved_at = engine.now()
            result.market_resolved = True

        logger.info(
            "Settled market %s (answer=%s) as %s: %d payouts, %.2f paid, closed=%s",
            market.id, answer_id, resolution.value, len(result.payouts),
            result.total_paid, result.market_resolved,
        )
        return result

    def _mkt_prob(self, resolution: Resolution, probability: float | None, market: BinaryMarket) -> float:
        if resolution == Resolution.MKT and probability is None:
            return get_probability(market.pool, market.p)
        return probability if probability is not None else 0.0

    def _plan_multi_choice(
        self,
        market: MultiChoiceMarket,
        resolution: Resolution,
        probability: float | None,
        answer_id: str | None,
    ) -> dict[str | None, tuple[Resolution, float]]:
        """{answer_id: (resolution, probability)} for every answer settled by this call."""
        open_answers = [a for a in market.answers if a.resolution is None]
        if resolution == Resolution.CANCEL and answer_id is None:
            return {a.id: (Resolution.CANCEL, 0.0) for a in open_answers}

        if market.should_answers_sum_to_one:
            if resolution == Resolution.YES and answer_id is not None:
                winner = get_open_answer(market, answer_id)
                return {
                    a.id: (Resolution.YES if a.id == winner.id else Resolution.NO, 0.0)
                    for a in open_answers
                }
            if resolution == Resolution.MKT and answer_id is None:
                if probability is not None:
                    raise ValidationError("sum-to-one MKT resolution uses each answer's own probability")
                probs = answer_probabilities(market)
                total = sum(probs.values()) or 1.0
                return {a.id: (Resolution.MKT, probs[a.id] / total) for a in open_answers}
            raise ValidationError(
                "sum-to-one markets resolve YES on the winning answer, MKT or CANCEL for the market"
            )

        if answer_id is None:
            raise ValidationError("answer_id is required to resolve an independent answer")
        answer = get_open_answer(market, answer_id)
        prob = probability
        if resolution == Resolution.MKT and prob is None:
            prob = get_probability(answer.pool, market.p)
        return {answer.id: (resolution, prob if prob is not None else 0.0)}

    def _pay(
        self,
        engine: ExchangeEngine,
        market_id: str,
        answer_id: str | None,
        resolution: Resolution,
        probability: float,
    ) -> list[Payout]:
        portfolio = engine.portfolio
        positions = portfolio.positions_for_market(market_id, {answer_id})
        payouts = compute_payouts(positions, resolution, probability)
        for pos, payout in zip(positions, payouts, strict=True):
            if payout.amount > 0:
                entry = (
                    LedgerEntryType.SETTLEMENT_REFUND if payout.refund
                    else LedgerEntryType.SETTLEMENT_PAYOUT
                )
                portfolio.credit(pos.user_id, payout.amount, entry, market_id)
            portfolio.close_position(pos)
        return payouts

    async def resolve_market(
        self,
        engine: ExchangeEngine,
        market_id: str,
        resolver_id: str,
        resolution: Resolution,
        probability: float | None = None,
        answer_id: str | None = None,
    ) -> SettlementResult:
        """Manual resolution: only the market creator may call this."""
        async with engine.lock(market_id):
            market = await engine.load_market(market_id)
            if market.creator_id != resolver_id:
                raise NotMarketCreatorError(market_id)
            result = self.settle(engine, market, resolution, probability, answer_id)
            if isinstance(market, BinaryMarket) and result.market_resolved:
                self._close_oracle(engine, market)
            await engine.save(market)
            return result

    def _close_oracle(self, engine: ExchangeEngine, market: BinaryMarket) -> None:
        """A manual resolution overrides a pending oracle proposal; a challenger gets the bond back."""
        if market.oracle_status not in (OracleStatus.PROVISIONAL, OracleStatus.CHALLENGED):
            return
        challenge = market.oracle_challenge
        if market.oracle_status == OracleStatus.CHALLENGED and challenge is not None:
            engine.portfolio.credit(
                challenge.challenger_id, challenge.bond_amount, LedgerEntryType.CHALLENGE_REFUND, market.id
            )
        market.oracle_status = OracleStatus.FINALIZED
        logger.info("Manual resolution of %s closed its pending oracle proposal", market.id)
