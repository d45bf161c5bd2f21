"""Market lifecycle state machine.

    sandbox --(volume >= threshold)--> graduating --(dwell elapsed)--> main
    any non-resolved phase --(oracle / manual resolution)--> resolved

Transitions are evaluated lazily by `tick`, which every engine operation
calls before doing anything else. There are no timers.
"""

import logging
from datetime import datetime

from src.pm_common.datetime_utils import seconds_between
from src.pm_common.enums import MarketPhase
from src.pm_market.domain.models import Market

logger = logging.getLogger(__name__)

GRADUATION_VOLUME_THRESHOLD = 1_000.0
GRADUATION_DWELL_SECONDS = 300


def tick(
    market: Market,
    now: datetime,
    volume_threshold: float = GRADUATION_VOLUME_THRESHOLD,
    dwell_seconds: int = GRADUATION_DWELL_SECONDS,
) -> bool:
    """Apply every due transition. Returns True when the phase changed.

    Graduation completes at the instant the dwell has fully elapsed, the same
    instant `time_remaining` reaches 0.
    """
    changed = False
    if market.phase == MarketPhase.SANDBOX and market.volume >= volume_threshold:
        market.phase = MarketPhase.GRADUATING
        market.graduation_started_at = now
        changed = True
        logger.info("Market %s graduating (volume=%.2f)", market.id, market.volume)

    if (
        market.phase == MarketPhase.GRADUATING
        and market.graduation_started_at is not None
        and seconds_between(market.graduation_started_at, now) >= dwell_seconds
    ):
        market.phase = MarketPhase.MAIN
        changed = True
        logger.info("Market %s promoted to main", market.id)
    return changed


def accepts_trades(market: Market) -> bool:
    """AMM trades run in sandbox and main; graduating is a freeze."""
    return market.phase in (MarketPhase.SANDBOX, MarketPhase.MAIN)


def accepts_limit_orders(market: Market) -> bool:
    return market.phase == MarketPhase.MAIN


def time_remaining(
    market: Market, now: datetime, dwell_seconds: int = GRADUATION_DWELL_SECONDS
) -> float:
    """Seconds until promotion to main; 0 outside the graduating phase."""
    if market.phase != MarketPhase.GRADUATING or market.graduation_started_at is None:
        return 0.0
    return max(0.0, dwell_seconds - seconds_between(market.graduation_started_at, now))


def graduation_progress(
    market: Market,
    now: datetime,
    volume_threshold: float = GRADUATION_VOLUME_THRESHOLD,
    dwell_seconds: int = GRADUATION_DWELL_SECONDS,
) -> float:
    """Percentage 0-100.

    In sandbox this tracks volume towards the threshold; while graduating it
    tracks elapsed dwell time; main and resolved report 100.
    """
    if market.phase == MarketPhase.SANDBOX:
        if volume_threshold <= 0:
            return 100.0
        return min(100.0, market.volume / volume_threshold * 100)
    if market.phase == MarketPhase.GRADUATING:
        if dwell_seconds <= 0:
            return 100.0
        elapsed = dwell_seconds - time_remaining(market, now, dwell_seconds)
        return min(100.0, elapsed / dwell_seconds * 100)
    return 100.0


def format_time_remaining(seconds: float) -> str:
    """125.4 -> '2m 5s'; anything <= 0 -> '0s'."""
    total = int(seconds)
    if total <= 0:
        return "0s"
    minutes, secs = divmod(total, 60)
    if minutes == 0:
        return f"{secs}s"
    return f"{minutes}m {secs}s"
