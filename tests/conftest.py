"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.pm_common.errors import OracleSourceError
from src.pm_exchange.application.service import set_exchange
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_market.infrastructure.memory_mirror import InMemoryMarketMirror


class FakeClock:
    """Controllable clock: call it for now(), advance() to move time."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


class FakePriceFeed:
    def __init__(self, prices: dict[str, float] | None = None) -> None:
        self.prices = prices or {}
        self.calls: list[str] = []

    async def get_price(self, asset: str) -> float:
        self.calls.append(asset)
        if asset not in self.prices:
            raise OracleSourceError(f"no USD price for {asset}")
        return self.prices[asset]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def price_feed() -> FakePriceFeed:
    return FakePriceFeed({"bitcoin": 105_000.0})


@pytest.fixture
def engine(clock: FakeClock, price_feed: FakePriceFeed) -> ExchangeEngine:
    return ExchangeEngine(mirror=InMemoryMarketMirror(), clock=clock, price_feed=price_feed)


@pytest.fixture
async def client(engine: ExchangeEngine) -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints against a fresh engine."""
    set_exchange(engine)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    set_exchange(None)
