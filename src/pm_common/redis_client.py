"""Redis connection for the market mirror, opened only when MIRROR_BACKEND=redis.

The engine's in-process state is authoritative; Redis keeps a copy of every
market so a restarted process can rehydrate on first access.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings

logger = logging.getLogger(__name__)

_client: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _client  # noqa: PLW0603
    if _client is None:
        _client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        logger.info("Redis mirror client created")
    return _client


async def ping_redis() -> bool:
    """False when no client is open or the server does not answer."""
    if _client is None:
        return False
    try:
        return bool(await _client.ping())
    except (RedisError, OSError) as exc:
        logger.warning("Redis ping failed: %s", exc)
        return False


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None
