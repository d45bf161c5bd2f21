"""Price feed Protocol — the oracle's only external collaborator."""

from typing import Protocol


class PriceFeedProtocol(Protocol):
    async def get_price(self, asset: str) -> float:
        """Current USD price of `asset`; raises OracleSourceError when unavailable."""
        ...
