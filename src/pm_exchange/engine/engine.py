"""ExchangeEngine — the single trusted authority over market state.

Holds every market, the portfolio of every user and every order book in
process memory. Mutating operations are serialised per market with an
asyncio.Lock; the persistence mirror is written after each mutation and a
failed write never fails the operation.
"""
import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime

from config.settings import Settings, settings
from src.pm_account.domain.portfolio import Portfolio
from src.pm_common.datetime_utils import utc_now
from src.pm_common.errors import MarketNotFoundError
from src.pm_market.domain.lifecycle import tick
from src.pm_market.domain.models import Market
from src.pm_market.domain.repository import MarketMirrorProtocol
from src.pm_market.infrastructure.memory_mirror import InMemoryMarketMirror
from src.pm_oracle.domain.repository import PriceFeedProtocol
from src.pm_oracle.infrastructure.price_feed import CoinGeckoPriceFeed
from src.pm_orderbook.engine.order_book import OrderBookRegistry

logger = logging.getLogger(__name__)


class ExchangeEngine:
    def __init__(
        self,
        mirror: MarketMirrorProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
        price_feed: PriceFeedProtocol | None = None,
        config: Settings = settings,
    ) -> None:
        self.config = config
        self.mirror: MarketMirrorProtocol = mirror or InMemoryMarketMirror()
        self.clock = clock
        self.price_feed: PriceFeedProtocol = price_feed or CoinGeckoPriceFeed(
            config.COINGECKO_API_URL, config.PRICE_FEED_TIMEOUT_SECONDS
        )
        self.portfolio = Portfolio(config.STARTING_BALANCE, clock)
        self.order_books = OrderBookRegistry()
        self._markets: dict[str, Market] = {}
        self._market_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def now(self) -> datetime:
        return self.clock()

    def lock(self, market_id: str) -> asyncio.Lock:
        return self._market_locks[market_id]

    def tick(self, market: Market) -> bool:
        return tick(
            market,
            self.now(),
            self.config.GRADUATION_VOLUME_THRESHOLD,
            self.config.GRADUATION_DWELL_SECONDS,
        )

    async def add_market(self, market: Market) -> None:
        self._markets[market.id] = market
        await self.save(market)

    async def load_market(self, market_id: str) -> Market:
        """Fetch from memory (rehydrating from the mirror if needed) and apply due transitions."""
        market = self._markets.get(market_id)
        if market is None:
            market = await self.mirror.get(market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            self._markets[market_id] = market
            logger.info("Rehydrated market %s from mirror", market_id)
        if self.tick(market):
            await self.save(market)
        return market

    async def all_markets(self) -> list[Market]:
        for mirrored in await self.mirror.list_all():
            self._markets.setdefault(mirrored.id, mirrored)
        markets = list(self._markets.values())
        for market in markets:
            if self.tick(market):
                await self.save(market)
        return markets

    async def save(self, market: Market) -> None:
        try:
            await self.mirror.put(market)
        except Exception:
            # In-memory state stays authoritative; the next write retries implicitly.
            logger.warning("Mirror write failed for market %s", market.id, exc_info=True)
