# src/pm_market/domain/repository.py
"""Persistence mirror Protocol — dependency inversion for testability.

The mirror is a write-through copy of engine state. It is read only to
rehydrate a market the engine does not hold in memory.
"""

from typing import Protocol

from src.pm_market.domain.models import Market


class MarketMirrorProtocol(Protocol):
    async def get(self, market_id: str) -> Market | None: ...

    async def put(self, market: Market) -> None: ...

    async def list_all(self) -> list[Market]: ...
