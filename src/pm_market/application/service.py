"""MarketApplicationService — market creation, queries, charts and liquidity.

Every read goes through engine.load_market / engine.all_markets, which apply
due lifecycle transitions before anything is returned.
"""

import logging
from datetime import datetime

from src.pm_common.enums import LedgerEntryType
from src.pm_common.errors import ValidationError
from src.pm_exchange.engine.engine import ExchangeEngine
from src.pm_market.application.schemas import (
    ChartResponse,
    ChartSeries,
    CreateMarketRequest,
    GraduationStatus,
    MarketDetail,
    MarketListItem,
    MarketListResponse,
    PricePointOut,
    cursor_decode,
    cursor_encode,
)
from src.pm_market.domain.factory import new_binary_market, new_multi_choice_market
from src.pm_market.domain.lifecycle import (
    format_time_remaining,
    graduation_progress,
    time_remaining,
)
from src.pm_market.domain.models import BinaryMarket, Market, MultiChoiceMarket
from src.pm_market.domain.price_history import downsample, record_snapshot, select_points
from src.pm_multichoice.domain.coordinator import apply_pools, plan_rebalance
from src.pm_pricing.domain.cpmm import add_liquidity
from src.pm_risk.rules.market_status import check_not_resolved
from src.pm_risk.rules.order_limit import check_positive_amount

logger = logging.getLogger(__name__)


class MarketApplicationService:
    async def create_market(
        self, engine: ExchangeEngine, creator_id: str, req: CreateMarketRequest
    ) -> Market:
        cfg = engine.config
        now = engine.now()
        market: Market
        if req.kind == "binary":
            if req.answers:
                raise ValidationError("binary markets do not take answers")
            market = new_binary_market(
                question=req.question,
                creator_id=creator_id,
                ante=req.ante,
                now=now,
                initial_prob=req.initial_prob,
                p=req.p,
                resolution_source=req.resolution_source.to_domain() if req.resolution_source else None,
                multiplier=cfg.LIQUIDITY_MULTIPLIER,
                minimum_ante=cfg.MINIMUM_ANTE,
            )
        else:
            if req.resolution_source is not None:
                raise ValidationError("oracle resolution sources are supported on binary markets only")
            market = new_multi_choice_market(
                question=req.question,
                creator_id=creator_id,
                ante=req.ante,
                answer_texts=req.answers or [],
                now=now,
                should_answers_sum_to_one=req.should_answers_sum_to_one,
                p=req.p,
                multiplier=cfg.LIQUIDITY_MULTIPLIER,
                minimum_ante=cfg.MINIMUM_ANTE,
                max_answers=cfg.MAX_ANSWERS,
            )
            if market.should_answers_sum_to_one:
                apply_pools(market, plan_rebalance(market, cfg.CPMM_MIN_POOL_QTY))

        engine.portfolio.debit(creator_id, req.ante, LedgerEntryType.MARKET_ANTE, market.id)
        record_snapshot(market, now, cfg.PRICE_HISTORY_LIMIT)
        await engine.add_market(market)
        logger.info("Market %s created by %s (%s, ante %.2f)", market.id, creator_id, market.kind, req.ante)
        return market

    async def list_markets(
        self,
        engine: ExchangeEngine,
        phase: str | None,
        cursor: str | None,
        limit: int,
    ) -> MarketListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        markets = sorted(
            await engine.all_markets(), key=lambda m: (m.created_at.isoformat(), m.id), reverse=True
        )
        if phase is not None:
            markets = [m for m in markets if m.phase.value == phase]
        if cursor_ts is not None and cursor_id is not None:
            markets = [m for m in markets if (m.created_at.isoformat(), m.id) < (cursor_ts, cursor_id)]

        has_more = len(markets) > limit
        page = markets[:limit]
        items = [MarketListItem.from_domain(m) for m in page]
        next_cursor = cursor_encode(page[-1]) if has_more and page else None
        return MarketListResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    async def get_market(self, engine: ExchangeEngine, market_id: str) -> MarketDetail:
        return MarketDetail.from_domain(await engine.load_market(market_id))

    async def graduation_status(self, engine: ExchangeEngine, market_id: str) -> GraduationStatus:
        market = await engine.load_market(market_id)
        cfg = engine.config
        now = engine.now()
        remaining = time_remaining(market, now, cfg.GRADUATION_DWELL_SECONDS)
        return GraduationStatus(
            market_id=market.id,
            phase=market.phase.value,
            volume=market.volume,
            volume_threshold=cfg.GRADUATION_VOLUME_THRESHOLD,
            graduation_started_at=(
                market.graduation_started_at.isoformat() if market.graduation_started_at else None
            ),
            time_remaining_seconds=remaining,
            time_remaining_display=format_time_remaining(remaining),
            progress_percent=graduation_progress(
                market, now, cfg.GRADUATION_VOLUME_THRESHOLD, cfg.GRADUATION_DWELL_SECONDS
            ),
        )

    async def get_chart(
        self,
        engine: ExchangeEngine,
        market_id: str,
        answer_id: str | None = None,
        after: datetime | None = None,
        before: datetime | None = None,
        max_points: int | None = None,
    ) -> ChartResponse:
        market = await engine.load_market(market_id)
        if isinstance(market, BinaryMarket):
            if answer_id is not None:
                raise ValidationError("answer_id is only valid on multi-choice markets")
            series_ids: list[str | None] = [None]
        elif answer_id is not None:
            if market.get_answer(answer_id) is None:
                raise ValidationError(f"unknown answer {answer_id}")
            series_ids = [answer_id]
        else:
            series_ids = [a.id for a in market.answers]

        series = []
        for sid in series_ids:
            points = select_points(market.price_history, sid, after, before)
            if max_points is not None:
                points = downsample(points, max_points)
            series.append(
                ChartSeries(answer_id=sid, points=[PricePointOut.from_domain(pt) for pt in points])
            )
        return ChartResponse(market_id=market.id, series=series)

    async def add_liquidity(
        self, engine: ExchangeEngine, user_id: str, market_id: str, amount: float
    ) -> Market:
        async with engine.lock(market_id):
            market = await engine.load_market(market_id)
            check_not_resolved(market)
            check_positive_amount(amount)
            if isinstance(market, MultiChoiceMarket):
                raise ValidationError("liquidity can only be added to binary markets")
            engine.portfolio.debit(user_id, amount, LedgerEntryType.LIQUIDITY_ADD, market_id)
            market.pool = add_liquidity(market.pool, amount)
            record_snapshot(market, engine.now(), engine.config.PRICE_HISTORY_LIMIT)
            await engine.save(market)
        logger.info("Liquidity %.2f added to market %s by %s", amount, market_id, user_id)
        return market
