"""Probability history per market (one series per answer for multi-choice).

Points are appended after every state change that moves a price and the
list is capped, oldest points dropped first. Charts downsample with
largest-triangle-three-buckets, which always keeps the first and last point.
"""

from datetime import datetime

from src.pm_market.domain.models import (
    BinaryMarket,
    Market,
    MultiChoiceMarket,
    PricePoint,
)
from src.pm_pricing.domain.cpmm import get_probability

PRICE_HISTORY_LIMIT = 500


def current_probabilities(market: Market) -> dict[str | None, float]:
    """{None: prob} for binary markets, {answer_id: prob} for multi-choice."""
    if isinstance(market, BinaryMarket):
        return {None: get_probability(market.pool, market.p)}
    return {a.id: get_probability(a.pool, market.p) for a in market.answers}


def record_snapshot(market: Market, now: datetime, limit: int = PRICE_HISTORY_LIMIT) -> None:
    """Append the current probability of the market (every answer for multi-choice)."""
    for answer_id, prob in current_probabilities(market).items():
        if isinstance(market, MultiChoiceMarket):
            answer = market.get_answer(answer_id)  # type: ignore[arg-type]
            if answer is not None and answer.resolution is not None:
                continue
        market.price_history.append(
            PricePoint(timestamp=now, probability=prob, answer_id=answer_id)
        )
    overflow = len(market.price_history) - limit
    if overflow > 0:
        del market.price_history[:overflow]


def select_points(
    points: list[PricePoint],
    answer_id: str | None = None,
    after: datetime | None = None,
    before: datetime | None = None,
) -> list[PricePoint]:
    return [
        pt
        for pt in points
        if pt.answer_id == answer_id
        and (after is None or pt.timestamp >= after)
        and (before is None or pt.timestamp <= before)
    ]


def downsample(points: list[PricePoint], max_points: int) -> list[PricePoint]:
    """Largest-triangle-three-buckets downsampling."""
    n = len(points)
    if max_points >= n or n <= 2:
        return list(points)
    if max_points <= 2:
        return [points[0], points[-1]] if max_points == 2 else [points[0]]

    xs = [pt.timestamp.timestamp() for pt in points]
    sampled = [points[0]]
    bucket_size = (n - 2) / (max_points - 2)
    prev = 0

    for i in range(max_points - 2):
        start = int(i * bucket_size) + 1
        end = int((i + 1) * bucket_size) + 1

        # Average of the next bucket (or the last point for the final bucket)
        next_start = end
        next_end = min(int((i + 2) * bucket_size) + 1, n)
        if next_start >= next_end:
            avg_x, avg_y = xs[-1], points[-1].probability
        else:
            span = next_end - next_start
            avg_x = sum(xs[next_start:next_end]) / span
            avg_y = sum(pt.probability for pt in points[next_start:next_end]) / span

        ax, ay = xs[prev], points[prev].probability
        best_idx, best_area = start, -1.0
        for j in range(start, min(end, n - 1)):
            area = abs(
                (ax - avg_x) * (points[j].probability - ay)
                - (ax - xs[j]) * (avg_y - ay)
            )
            if area > best_area:
                best_idx, best_area = j, area
        sampled.append(points[best_idx])
        prev = best_idx

    sampled.append(points[-1])
    return sampled
