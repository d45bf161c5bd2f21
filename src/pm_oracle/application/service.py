"""OracleService — propose / challenge / finalize / check.

The price feed is queried before the market lock is taken; everything
after that runs under the lock and re-validates the state it relies on.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from src.pm_common.datetime_utils import ensure_utc
from src.pm_common.enums import LedgerEntryType, MarketPhase, OracleStatus, Resolution, SourceType
from src.pm_common.errors import OracleNotConfiguredError, OracleSourceError, ValidationError
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_market.domain.models import BinaryMarket, Market, OracleChallenge, OracleProposal
from src.pm_oracle.domain.conditions import describe, evaluate
from src.pm_oracle.domain.protocol import (
    check_can_challenge,
    check_can_propose,
    final_resolution,
    open_challenge,
    open_proposal,
    window_open,
)
from src.pm_settlement.application.service import SettlementResult, SettlementService

logger = logging.getLogger(__name__)

AUTO_RESOLVER_ID = "oracle-auto"


@dataclass
class FinalizeResult:
    resolution: Resolution
    challenger_won: bool | None
    challenger_payout: float
    settlement: SettlementResult


@dataclass
class CheckReport:
    checked: int = 0
    proposed: int = 0
    finalized: int = 0
    errors: int = 0
    details: list[dict[str, Any]] = field(default_factory=list)


def _require_binary(market: Market) -> BinaryMarket:
    if not isinstance(market, BinaryMarket):
        raise ValidationError("oracle resolution supports binary markets only")
    return market


class OracleService:
    def __init__(self, settlement: SettlementService | None = None) -> None:
        self._settlement = settlement or SettlementService()

    async def propose(
        self,
        engine: ExchangeEngine,
        market_id: str,
        proposer_id: str,
        resolution: Resolution | None = None,
        reasoning: str | None = None,
    ) -> OracleProposal:
        market = _require_binary(await engine.load_market(market_id))
        check_can_propose(market, engine.now())
        source = market.resolution_source
        if source is None:
            raise OracleNotConfiguredError(market_id)
        observed = None
        if source.type == SourceType.CRYPTO_PRICE:
            if not source.asset or source.target_price is None or source.condition is None:
                raise OracleSourceError("crypto_price source is missing asset, target or condition")
            observed = await engine.price_feed.get_price(source.asset)
            resolution = evaluate(observed, source.condition, source.target_price)
            reasoning = reasoning or (
                f"{describe(source.asset, source.condition, source.target_price)}: "
                f"observed ${observed:,.2f}"
            )
        elif resolution is None:
            raise OracleSourceError("manual sources cannot be proposed automatically")

        async with engine.lock(market_id):
            market = _require_binary(await engine.load_market(market_id))
            proposal = open_proposal(
                market,
                resolution,
                proposer_id,
                reasoning or "manual proposal",
                engine.now(),
                engine.config.CHALLENGE_WINDOW_SECONDS,
                observed,
            )
            await engine.save(market)
        logger.info(
            "Oracle proposed %s for market %s (window until %s)",
            resolution.value, market_id, proposal.challenge_window_end.isoformat(),
        )
        return proposal

    async def challenge(
        self, engine: ExchangeEngine, market_id: str, challenger_id: str, reason: str
    ) -> OracleChallenge:
        async with engine.lock(market_id):
            market = _require_binary(await engine.load_market(market_id))
            now = engine.now()
            check_can_challenge(market, now)
            bond = engine.config.CHALLENGE_BOND
            engine.portfolio.debit(challenger_id, bond, LedgerEntryType.CHALLENGE_BOND, market_id)
            challenge = open_challenge(market, challenger_id, reason, bond, now)
            await engine.save(market)
        logger.info("Market %s challenged by %s (bond %.2f)", market_id, challenger_id, bond)
        return challenge

    async def finalize(
        self,
        engine: ExchangeEngine,
        market_id: str,
        resolution: Resolution | None = None,
        resolver_id: str | None = None,
    ) -> FinalizeResult:
        async with engine.lock(market_id):
            market = _require_binary(await engine.load_market(market_id))
            final, challenger_won = final_resolution(market, engine.now(), resolution, resolver_id)
            settlement = self._settlement.settle(engine, market, final)

            challenger_payout = 0.0
            challenge = market.oracle_challenge
            if challenge is not None and challenger_won:
                challenger_payout = challenge.bond_amount * (1 + engine.config.CHALLENGER_REWARD_RATIO)
                engine.portfolio.credit(
                    challenge.challenger_id,
                    challenger_payout,
                    LedgerEntryType.CHALLENGE_REWARD,
                    market_id,
                )
            elif challenge is not None:
                logger.info("Challenger %s forfeits bond on %s", challenge.challenger_id, market_id)

            market.oracle_status = OracleStatus.FINALIZED
            await engine.save(market)
        logger.info(
            "Oracle finalized market %s as %s (challenger_won=%s)",
            market_id, final.value, challenger_won,
        )
        return FinalizeResult(
            resolution=final,
            challenger_won=challenger_won,
            challenger_payout=challenger_payout,
            settlement=settlement,
        )

    async def check(self, engine: ExchangeEngine) -> CheckReport:
        """Sweep every unresolved market with a source; one failure never aborts the sweep."""
        report = CheckReport()
        for market in await engine.all_markets():
            if (
                not isinstance(market, BinaryMarket)
                or market.resolution_source is None
                or market.phase == MarketPhase.RESOLVED
            ):
                continue
            report.checked += 1
            detail: dict[str, Any] = {"market_id": market.id, "status": market.oracle_status.value}
            try:
                now = engine.now()
                if market.oracle_status == OracleStatus.UNRESOLVED:
                    if market.resolution_source.type == SourceType.MANUAL:
                        detail["action"] = "skipped"
                    elif now < ensure_utc(market.resolution_source.deadline):
                        detail["action"] = "waiting"
                    else:
                        proposal = await self.propose(engine, market.id, AUTO_RESOLVER_ID)
                        report.proposed += 1
                        detail["action"] = "proposed"
                        detail["resolution"] = proposal.resolution.value
                elif market.oracle_status == OracleStatus.PROVISIONAL and not window_open(market, now):
                    result = await self.finalize(engine, market.id, resolver_id=AUTO_RESOLVER_ID)
                    report.finalized += 1
                    detail["action"] = "finalized"
                    detail["resolution"] = result.resolution.value
                else:
                    detail["action"] = "waiting"
            except Exception as exc:  # noqa: BLE001
                logger.exception("Oracle check failed for market %s", market.id)
                report.errors += 1
                detail["action"] = "error"
                detail["error"] = str(exc)
            report.details.append(detail)
        logger.info(
            "Oracle check: %d checked, %d proposed, %d finalized, %d errors",
            report.checked, report.proposed, report.finalized, report.errors,
        )
        return report

    async def status(self, engine: ExchangeEngine, market_id: str) -> BinaryMarket:
        return _require_binary(await engine.load_market(market_id))
