"""AccountService — read-only views over the engine portfolio."""

from src.pm_account.application.schemas import (
    AccountResponse,
    LedgerEntryResponse,
    PositionListResponse,
    PositionResponse,
)
from src.pm_common.enums import Outcome
from src.pm_common.errors import MarketNotFoundError
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_market.domain.price_history import current_probabilities


class AccountService:
    async def get_account(self, engine: ExchangeEngine, user_id: str) -> AccountResponse:
        return AccountResponse.from_domain(engine.portfolio.account(user_id))

    async def list_positions(
        self, engine: ExchangeEngine, user_id: str, market_id: str | None = None
    ) -> PositionListResponse:
        probs: dict[str, dict[str | None, float]] = {}
        items = []
        for pos in engine.portfolio.positions_for_user(user_id, market_id):
            if pos.market_id not in probs:
                try:
                    probs[pos.market_id] = current_probabilities(
                        await engine.load_market(pos.market_id)
                    )
                except MarketNotFoundError:
                    probs[pos.market_id] = {}
            prob = probs[pos.market_id].get(pos.answer_id)
            mark = None
            if prob is not None:
                mark = pos.shares * (prob if pos.outcome == Outcome.YES else 1 - prob)
            items.append(
                PositionResponse(
                    market_id=pos.market_id,
                    answer_id=pos.answer_id,
                    outcome=pos.outcome.value,
                    shares=pos.shares,
                    available_shares=pos.available_shares,
                    invested=pos.invested,
                    current_probability=prob,
                    mark_value=mark,
                )
            )
        return PositionListResponse(items=items, total=len(items))

    async def get_ledger(self, engine: ExchangeEngine, user_id: str) -> list[LedgerEntryResponse]:
        return [LedgerEntryResponse.from_domain(e) for e in engine.portfolio.ledger(user_id)]
