"""
Building blocks for the mock query generator and chart bucketing.

Synthetic data is randomized but bounded. All randomness flows through a
``RandomSource`` (anything with a ``random()`` method returning a float in
[0, 1)), so tests and demos can inject a seeded ``random.Random`` and get
reproducible output.

Chart bucket conventions:
- daily: 8 three-hour buckets (00:00 ... 21:00)
- weekly: 7 weekday buckets (Mon ... Sun)
- monthly: 15 day buckets by default; Search Console labels them 1, 3, ..., 29
  and Google Business Profile uses 12 buckets (Day 1, Day 3, ..., Day 23)
"""

import math
import random
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

from platform_metrics.models import ChartPoint, DateRange


class RandomSource(Protocol):
    def random(self) -> float: ...


def make_random_source(seed: Optional[int] = None) -> random.Random:
    """Seeded (or, with ``None``, OS-seeded) pseudo-random source."""
    return random.Random(seed)


def variance(rng: RandomSource, spread: float) -> float:
    """Multiplier centred on 1: ``1 + (random() * spread - spread / 2)``."""
    return 1 + (rng.random() * spread - spread / 2)


def uniform(rng: RandomSource, low: float, high: float) -> float:
    return low + rng.random() * (high - low)


# =============================================================================
# Chart Bucketing
# =============================================================================

HOURLY_LABELS: Tuple[str, ...] = (
    '00:00', '03:00', '06:00', '09:00', '12:00', '15:00', '18:00', '21:00',
)
WEEKDAY_LABELS: Tuple[str, ...] = ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')


def day_labels(count: int, step: int = 1, prefix: str = 'Day ') -> Tuple[str, ...]:
    return tuple(f'{prefix}{i * step + 1}' for i in range(count))


@dataclass(frozen=True)
class ChartConvention:
    """Bucket labels per date range for one provider."""
    daily: Tuple[str, ...] = HOURLY_LABELS
    weekly: Tuple[str, ...] = WEEKDAY_LABELS
    monthly: Tuple[str, ...] = day_labels(15)

    def labels(self, date_range: DateRange) -> List[str]:
        return list({
            DateRange.DAILY: self.daily,
            DateRange.WEEKLY: self.weekly,
            DateRange.MONTHLY: self.monthly,
        }[DateRange(date_range)])


DEFAULT_CHART = ChartConvention()
SEARCH_CONSOLE_CHART = ChartConvention(monthly=day_labels(15, step=2, prefix=''))
GMB_CHART = ChartConvention(monthly=day_labels(12, step=2))


def synthesize_series(
    labels: Sequence[str],
    total: float,
    rng: RandomSource,
    low: float = 0.8,
    high: float = 1.2,
) -> List[ChartPoint]:
    """
    Spread ``total`` over the buckets with a per-bucket jitter in [low, high).

    Values are floored and never negative.
    """
    if not labels:
        return []
    per_bucket = total / len(labels)
    return [
        ChartPoint(name=label, value=max(0, math.floor(per_bucket * uniform(rng, low, high))))
        for label in labels
    ]
