"""RedisMarketMirror — concrete implementation of MarketMirrorProtocol.

Layout:
  market:{id}  -> JSON document of the market aggregate
  markets      -> SET of every market id
"""

import redis.asyncio as aioredis

from src.pm_market.domain.models import Market
from src.pm_market.infrastructure.serialization import market_from_json, market_to_json

_MARKET_KEY = "market:{market_id}"
_INDEX_KEY = "markets"


class RedisMarketMirror:
    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def get(self, market_id: str) -> Market | None:
        raw = await self._redis.get(_MARKET_KEY.format(market_id=market_id))
        if raw is None:
            return None
        return market_from_json(raw)

    async def put(self, market: Market) -> None:
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.set(_MARKET_KEY.format(market_id=market.id), market_to_json(market))
            pipe.sadd(_INDEX_KEY, market.id)
            await pipe.execute()

    async def list_all(self) -> list[Market]:
        ids = sorted(await self._redis.smembers(_INDEX_KEY))
        if not ids:
            return []
        raws = await self._redis.mget([_MARKET_KEY.format(market_id=i) for i in ids])
        return [market_from_json(raw) for raw in raws if raw is not None]
