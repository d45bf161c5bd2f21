"""CoinGecko price feed (public simple-price endpoint, no API key).

Usage:
    feed = CoinGeckoPriceFeed()
    price = await feed.get_price("bitcoin")
"""

import logging

import httpx

from src.pm_common.errors import OracleSourceError

logger = logging.getLogger(__name__)


class CoinGeckoPriceFeed:
    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get_price(self, asset: str) -> float:
        params = {"ids": asset, "vs_currencies": "usd"}
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.get("/simple/price", params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as exc:
            logger.warning("CoinGecko request failed for %s: %s", asset, exc)
            raise OracleSourceError(f"price request for {asset} failed") from exc

        price = data.get(asset, {}).get("usd")
        if price is None:
            raise OracleSourceError(f"no USD price for {asset}")
        return float(price)
