"""TradeService against a real in-memory engine."""

import pytest

from src.pm_common.enums import MarketPhase, Outcome, TradeSide
from src.pm_common.errors import (
    InsufficientBalanceError,
    InsufficientPositionError,
    MarketNotTradableError,
    ValidationError,
)
from src.pm_market.application.schemas import CreateMarketRequest
from src.pm_market.application.service import MarketApplicationService
from src.pm_multichoice.domain.coordinator import probability_sum
from src.pm_trade.application.service import TradeService

_markets = MarketApplicationService()
_trades = TradeService()


async def _binary(engine, ante: float = 1000.0):
    return await _markets.create_market(
        engine, "alice", CreateMarketRequest(question="Rain tomorrow?", ante=ante)
    )


class TestBuy:
    async def test_buy_yes_updates_pool_cash_and_position(self, engine) -> None:
        market = await _binary(engine)
        result = await _trades.execute_trade(engine, "bob", market.id, TradeSide.BUY, Outcome.YES, 100)

        assert result.prob_before == pytest.approx(0.5)
        assert result.prob_after > 0.5
        assert engine.portfolio.account("bob").available_balance == pytest.approx(9_900)
        pos = engine.portfolio.position("bob", market.id, None, Outcome.YES)
        assert pos is not None
        assert pos.shares == pytest.approx(result.shares)
        assert pos.invested == pytest.approx(100)
        assert market.volume == pytest.approx(100)
        assert len(market.price_history) == 2  # creation + trade

    async def test_insufficient_balance_leaves_state_untouched(self, engine) -> None:
        market = await _binary(engine)
        pool = market.pool
        with pytest.raises(InsufficientBalanceError):
            await _trades.execute_trade(engine, "bob", market.id, TradeSide.BUY, Outcome.YES, 20_000)
        assert market.pool == pool
        assert market.volume == 0

    async def test_answer_id_rejected_on_binary(self, engine) -> None:
        market = await _binary(engine)
        with pytest.raises(ValidationError):
            await _trades.execute_trade(
                engine, "bob", market.id, TradeSide.BUY, Outcome.YES, 10, answer_id="ans_1"
            )


class TestSell:
    async def test_round_trip_returns_at_most_stake(self, engine) -> None:
        market = await _binary(engine)
        buy = await _trades.execute_trade(engine, "bob", market.id, TradeSide.BUY, Outcome.NO, 100)
        sell = await _trades.execute_trade(engine, "bob", market.id, TradeSide.SELL, Outcome.NO, buy.shares)
        assert sell.payout <= 100 + 1e-6
        assert engine.portfolio.position("bob", market.id, None, Outcome.NO) is None
        assert engine.portfolio.account("bob").available_balance == pytest.approx(10_000)

    async def test_cannot_sell_unheld_shares(self, engine) -> None:
        market = await _binary(engine)
        with pytest.raises(InsufficientPositionError):
            await _trades.execute_trade(engine, "bob", market.id, TradeSide.SELL, Outcome.YES, 1)


class TestLifecycleGating:
    async def test_graduation_pauses_then_resumes_trading(self, engine, clock) -> None:
        market = await _binary(engine)
        result = await _trades.execute_trade(engine, "bob", market.id, TradeSide.BUY, Outcome.YES, 1_000)
        assert result.phase == MarketPhase.GRADUATING.value

        with pytest.raises(MarketNotTradableError) as exc_info:
            await _trades.execute_trade(engine, "bob", market.id, TradeSide.BUY, Outcome.YES, 10)
        assert exc_info.value.code == 3002

        clock.advance(engine.config.GRADUATION_DWELL_SECONDS)
        result = await _trades.execute_trade(engine, "bob", market.id, TradeSide.BUY, Outcome.NO, 10)
        assert result.phase == MarketPhase.MAIN.value


class TestMultiChoice:
    async def test_dependent_buy_keeps_sum_near_one(self, engine) -> None:
        market = await _markets.create_market(
            engine,
            "alice",
            CreateMarketRequest(
                question="Who wins?", kind="multi_choice", ante=900, answers=["A", "B", "C"]
            ),
        )
        for answer in market.answers:
            await _trades.execute_trade(
                engine, "bob", market.id, TradeSide.BUY, Outcome.YES, 150, answer_id=answer.id
            )
            assert 0.99 <= probability_sum(market) <= 1.01
        assert market.answers[0].volume == pytest.approx(150)

    async def test_answer_required(self, engine) -> None:
        market = await _markets.create_market(
            engine,
            "alice",
            CreateMarketRequest(question="Who?", kind="multi_choice", ante=900, answers=["A", "B"]),
        )
        with pytest.raises(ValidationError):
            await _trades.execute_trade(engine, "bob", market.id, TradeSide.BUY, Outcome.YES, 10)
