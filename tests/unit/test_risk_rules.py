from datetime import UTC, datetime

import pytest

from src.pm_common.enums import MarketPhase
from src.pm_common.errors import (
    InvalidAmountError,
    LimitOrdersNotAllowedError,
    MarketNotTradableError,
    MarketResolvedError,
    OrderLimitExceededError,
    PriceOutOfRangeError,
)
from src.pm_market.domain.models import BinaryMarket
from src.pm_pricing.domain.models import Pool
from src.pm_risk.rules.market_status import (
    check_accepts_limit_orders,
    check_market_tradable,
    check_not_resolved,
)
from src.pm_risk.rules.order_limit import MAX_ORDER_QUANTITY, check_order_limit, check_positive_amount
from src.pm_risk.rules.price_range import check_price_range
from src.pm_risk.rules.self_trade import is_self_trade


def _market(phase: MarketPhase) -> BinaryMarket:
    return BinaryMarket(
        id="mkt_1",
        question="q",
        creator_id="alice",
        created_at=datetime(2026, 1, 1, tzinfo=UTC),
        pool=Pool(yes=100, no=100),
        phase=phase,
    )


class TestPriceRange:
    @pytest.mark.parametrize("prob", [0.01, 0.5, 0.99])
    def test_inside(self, prob: float) -> None:
        check_price_range(prob)

    @pytest.mark.parametrize("prob", [0, 1, -0.1, 1.5])
    def test_outside(self, prob: float) -> None:
        with pytest.raises(PriceOutOfRangeError) as exc_info:
            check_price_range(prob)
        assert exc_info.value.code == 4001


class TestOrderLimit:
    def test_non_positive(self) -> None:
        with pytest.raises(InvalidAmountError):
            check_order_limit(0)

    def test_too_large(self) -> None:
        with pytest.raises(OrderLimitExceededError):
            check_order_limit(MAX_ORDER_QUANTITY + 1)

    def test_nan_amount_rejected(self) -> None:
        with pytest.raises(InvalidAmountError):
            check_positive_amount(float("nan"))


class TestSelfTrade:
    def test_case_insensitive(self) -> None:
        assert is_self_trade("Alice", "alice")
        assert not is_self_trade("alice", "bob")


class TestMarketStatus:
    @pytest.mark.parametrize("phase", [MarketPhase.SANDBOX, MarketPhase.MAIN])
    def test_tradable(self, phase: MarketPhase) -> None:
        check_market_tradable(_market(phase))

    def test_graduating_blocks_trades(self) -> None:
        with pytest.raises(MarketNotTradableError):
            check_market_tradable(_market(MarketPhase.GRADUATING))

    def test_resolved(self) -> None:
        market = _market(MarketPhase.RESOLVED)
        for check in (check_not_resolved, check_market_tradable, check_accepts_limit_orders):
            with pytest.raises(MarketResolvedError):
                check(market)

    def test_limit_orders_main_only(self) -> None:
        check_accepts_limit_orders(_market(MarketPhase.MAIN))
        with pytest.raises(LimitOrdersNotAllowedError) as exc_info:
            check_accepts_limit_orders(_market(MarketPhase.SANDBOX))
        assert exc_info.value.code == 3004
