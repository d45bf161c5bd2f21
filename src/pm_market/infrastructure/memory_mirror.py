"""In-process mirror used for local runs and tests.

Stores serialised JSON rather than object references so that a rehydrated
market never aliases engine state.
"""

from src.pm_market.domain.models import Market
from src.pm_market.infrastructure.serialization import market_from_json, market_to_json


class InMemoryMarketMirror:
    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def get(self, market_id: str) -> Market | None:
        raw = self._store.get(market_id)
        return market_from_json(raw) if raw is not None else None

    async def put(self, market: Market) -> None:
        self._store[market.id] = market_to_json(market)

    async def list_all(self) -> list[Market]:
        return [market_from_json(raw) for raw in self._store.values()]
