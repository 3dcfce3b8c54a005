"""
Multi-touch attribution engine.

Pure functions over an ordered sequence of TouchPoints plus the run's total
revenue and conversions. Every model returns one AttributionResult per
platform that appears in the journey.

Models:
1. LAST CLICK / FIRST CLICK - 100% to the platform of one endpoint touch
2. LINEAR - proportional to each platform's share of touches
3. TIME DECAY - exp(-days_before_last_touch * ln 2 / 7), summed per platform
4. POSITION BASED (U-shaped) - 40% first, 40% last, 20% split over the middle
   touches; with exactly two touches the middle share is split between them
5. DATA DRIVEN - heuristic score per touch (touch-type weight x (1 + value/100),
   floored at 0).
   This is a scoring heuristic, not a learned model.

Invariants:
- Touch points are stably sorted by timestamp before any model runs.
- An empty journey yields an empty result; a single-touch journey gives that
  platform 100% under every model.
- Contributions sum to 100 (within floating-point tolerance) and revenue and
  conversions are split in the same proportions.
- Unknown model ids fall back to LINEAR.

Usage:
    from platform_metrics.services.attribution import calculate_attribution

    results = calculate_attribution(touch_points, 'position_based', 300.0, 3)
"""

import logging
import math
import random
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Sequence, Union

from platform_metrics.models import (
    AttributionModel,
    AttributionModelId,
    AttributionResult,
    TouchPoint,
    TouchType,
)
from platform_metrics.services.mock_data import RandomSource

logger = logging.getLogger(__name__)


# =============================================================================
# Model Parameters
# =============================================================================

TIME_DECAY_HALF_LIFE_DAYS = 7.0

POSITION_ENDPOINT_SHARE = 0.4
POSITION_MIDDLE_SHARE = 0.2

TOUCH_TYPE_WEIGHTS: Dict[TouchType, float] = {
    TouchType.CONVERSION: 3.0,
    TouchType.ENGAGEMENT: 2.0,
    TouchType.CLICK: 1.5,
    TouchType.IMPRESSION: 1.0,
}

SECONDS_PER_DAY = 60 * 60 * 24


ATTRIBUTION_MODELS: List[AttributionModel] = [
    AttributionModel(
        id=AttributionModelId.LAST_CLICK,
        name='Last Click',
        description='Gives 100% credit to the last touchpoint before conversion',
    ),
    AttributionModel(
        id=AttributionModelId.FIRST_CLICK,
        name='First Click',
        description='Gives 100% credit to the first touchpoint in the customer journey',
    ),
    AttributionModel(
        id=AttributionModelId.LINEAR,
        name='Linear',
        description='Distributes credit equally across all touchpoints',
    ),
    AttributionModel(
        id=AttributionModelId.TIME_DECAY,
        name='Time Decay',
        description='Gives more credit to touchpoints closer to conversion',
    ),
    AttributionModel(
        id=AttributionModelId.POSITION_BASED,
        name='Position-Based (U-Shaped)',
        description='Gives 40% each to first and last touch, 20% to middle touches',
    ),
    AttributionModel(
        id=AttributionModelId.DATA_DRIVEN,
        name='Data-Driven (Heuristic)',
        description='Scores touchpoints by interaction type and value',
    ),
]


# =============================================================================
# Helpers
# =============================================================================


def group_by_platform(touch_points: Sequence[TouchPoint]) -> Dict[str, int]:
    """Touch count per platform, in order of first appearance."""
    return dict(Counter(tp.platform for tp in touch_points))


def _results_from_weights(
    weights: Dict[str, float],
    revenue: float,
    conversions: float,
) -> List[AttributionResult]:
    """Normalize per-platform weights to percentages and split the totals."""
    total = sum(weights.values())
    results = []
    for platform, weight in weights.items():
        share = weight / total
        results.append(AttributionResult(
            platform=platform,
            contribution=share * 100,
            revenue=revenue * share,
            conversions=conversions * share,
        ))
    return results


def _single_platform_credit(
    touch_points: Sequence[TouchPoint],
    winner: str,
    revenue: float,
    conversions: float,
) -> List[AttributionResult]:
    return [
        AttributionResult(
            platform=platform,
            contribution=100.0 if platform == winner else 0.0,
            revenue=revenue if platform == winner else 0.0,
            conversions=conversions if platform == winner else 0.0,
        )
        for platform in group_by_platform(touch_points)
    ]


# =============================================================================
# Models
# =============================================================================


def last_click_attribution(
    touch_points: Sequence[TouchPoint],
    revenue: float,
    conversions: float,
) -> List[AttributionResult]:
    return _single_platform_credit(touch_points, touch_points[-1].platform, revenue, conversions)


def first_click_attribution(
    touch_points: Sequence[TouchPoint],
    revenue: float,
    conversions: float,
) -> List[AttributionResult]:
    return _single_platform_credit(touch_points, touch_points[0].platform, revenue, conversions)


def linear_attribution(
    touch_points: Sequence[TouchPoint],
    revenue: float,
    conversions: float,
) -> List[AttributionResult]:
    counts = group_by_platform(touch_points)
    return _results_from_weights({p: float(c) for p, c in counts.items()}, revenue, conversions)


def time_decay_attribution(
    touch_points: Sequence[TouchPoint],
    revenue: float,
    conversions: float,
    half_life_days: float = TIME_DECAY_HALF_LIFE_DAYS,
) -> List[AttributionResult]:
    """
    Exponential decay measured back from the last touch.

    A touch ``half_life_days`` before the last one carries half its weight.
    """
    last_seen = touch_points[-1].timestamp
    weights: Dict[str, float] = {}
    for tp in touch_points:
        days_before = (last_seen - tp.timestamp).total_seconds() / SECONDS_PER_DAY
        weight = math.exp(-days_before * math.log(2) / half_life_days)
        weights[tp.platform] = weights.get(tp.platform, 0.0) + weight
    return _results_from_weights(weights, revenue, conversions)


def position_based_attribution(
    touch_points: Sequence[TouchPoint],
    revenue: float,
    conversions: float,
) -> List[AttributionResult]:
    if len(touch_points) == 1:
        return [AttributionResult(
            platform=touch_points[0].platform,
            contribution=100.0,
            revenue=revenue,
            conversions=conversions,
        )]

    first, last = touch_points[0], touch_points[-1]
    middle = touch_points[1:-1]

    weights: Dict[str, float] = {}
    weights[first.platform] = weights.get(first.platform, 0.0) + POSITION_ENDPOINT_SHARE
    weights[last.platform] = weights.get(last.platform, 0.0) + POSITION_ENDPOINT_SHARE

    if middle:
        middle_weight = POSITION_MIDDLE_SHARE / len(middle)
        for tp in middle:
            weights[tp.platform] = weights.get(tp.platform, 0.0) + middle_weight
    else:
        # No middle touches: first and last split the middle share
        weights[first.platform] += POSITION_MIDDLE_SHARE / 2
        weights[last.platform] += POSITION_MIDDLE_SHARE / 2

    return _results_from_weights(weights, revenue, conversions)


def touch_score(tp: TouchPoint) -> float:
    """Heuristic score: touch-type weight scaled by (1 + value / 100), floored at 0."""
    return max(0.0, TOUCH_TYPE_WEIGHTS.get(tp.touchType, 1.0) * (1 + tp.value / 100))


def data_driven_attribution(
    touch_points: Sequence[TouchPoint],
    revenue: float,
    conversions: float,
) -> List[AttributionResult]:
    scores: Dict[str, float] = {}
    for tp in touch_points:
        scores[tp.platform] = scores.get(tp.platform, 0.0) + touch_score(tp)

    if sum(scores.values()) <= 0:
        logger.warning("Data-driven attribution scores are not positive, using linear model")
        return linear_attribution(touch_points, revenue, conversions)

    return _results_from_weights(scores, revenue, conversions)


AttributionFn = Callable[[Sequence[TouchPoint], float, float], List[AttributionResult]]

MODEL_FUNCTIONS: Dict[AttributionModelId, AttributionFn] = {
    AttributionModelId.LAST_CLICK: last_click_attribution,
    AttributionModelId.FIRST_CLICK: first_click_attribution,
    AttributionModelId.LINEAR: linear_attribution,
    AttributionModelId.TIME_DECAY: time_decay_attribution,
    AttributionModelId.POSITION_BASED: position_based_attribution,
    AttributionModelId.DATA_DRIVEN: data_driven_attribution,
}


def calculate_attribution(
    touch_points: Sequence[TouchPoint],
    model_id: Union[AttributionModelId, str],
    total_revenue: float,
    total_conversions: float,
) -> List[AttributionResult]:
    """
    Run one attribution model over a customer journey.

    Args:
        touch_points: Journey touches, in any order.
        model_id: Model identifier; unknown ids use the linear model.
        total_revenue: Revenue to split across platforms.
        total_conversions: Conversions to split across platforms.

    Returns:
        One result per platform in the journey (empty for an empty journey).
    """
    if not touch_points:
        return []

    ordered = sorted(touch_points, key=lambda tp: tp.timestamp)

    if len(ordered) == 1:
        return [AttributionResult(
            platform=ordered[0].platform,
            contribution=100.0,
            revenue=total_revenue,
            conversions=total_conversions,
        )]

    try:
        model = AttributionModelId(model_id)
    except ValueError:
        logger.info(f"Unknown attribution model '{model_id}', using linear")
        model = AttributionModelId.LINEAR

    return MODEL_FUNCTIONS[model](ordered, total_revenue, total_conversions)


# =============================================================================
# Mock Journey
# =============================================================================


def generate_mock_journey(
    platforms: Sequence[str],
    rng: Optional[RandomSource] = None,
    now: Optional[datetime] = None,
) -> List[TouchPoint]:
    """
    Build a five-touch demo journey spanning the last 14 days.

    An impression on the first platform opens the journey, three click or
    engagement touches on randomly chosen platforms follow every 3 days, and a
    conversion on the last platform closes it at ``now``.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    start = now - timedelta(days=14)

    first_platform = platforms[0] if platforms else 'google_ads'
    last_platform = platforms[-1] if platforms else 'meta_ads'
    middle_pool = list(platforms) or [first_platform, last_platform]

    journey = [TouchPoint(
        id='tp_1',
        platform=first_platform,
        touchType=TouchType.IMPRESSION,
        timestamp=start,
        value=10,
    )]

    for i in range(3):
        journey.append(TouchPoint(
            id=f'tp_{i + 2}',
            platform=middle_pool[math.floor(rng.random() * len(middle_pool))],
            touchType=TouchType.CLICK if i % 2 == 0 else TouchType.ENGAGEMENT,
            timestamp=start + timedelta(days=(i + 1) * 3),
            value=20 + rng.random() * 30,
        ))

    journey.append(TouchPoint(
        id=f'tp_{len(journey) + 1}',
        platform=last_platform,
        touchType=TouchType.CONVERSION,
        timestamp=now,
        value=100,
    ))

    return journey
