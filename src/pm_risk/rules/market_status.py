from src.pm_common.enums import MarketPhase
from src.pm_common.errors import (
    LimitOrdersNotAllowedError,
    MarketNotTradableError,
    MarketResolvedError,
)
from src.pm_market.domain.lifecycle import accepts_limit_orders, accepts_trades
from src.pm_market.domain.models import Market


def check_not_resolved(market: Market) -> None:
    if market.phase == MarketPhase.RESOLVED:
        raise MarketResolvedError(market.id)


def check_market_tradable(market: Market) -> None:
    """AMM trades: sandbox or main only."""
    check_not_resolved(market)
    if not accepts_trades(market):
        raise MarketNotTradableError(market.id, market.phase.value)


def check_accepts_limit_orders(market: Market) -> None:
    check_not_resolved(market)
    if not accepts_limit_orders(market):
        raise LimitOrdersNotAllowedError(market.id, market.phase.value)
