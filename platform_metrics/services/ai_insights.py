"""
Insight generation over normalized platform data.

Rule-based analytics on the metrics every adapter returns:
1. PER-METRIC CLASSIFICATION - the integer part of each metric's change string
   is classified with fixed thresholds:
   - change > 20         -> success (strong growth), impact high
   - change < -10        -> alert (decline), impact high
   - 5 < change <= 20    -> opportunity, impact medium
   - |change| < 2        -> warning (stagnation), impact medium
2. CROSS-PLATFORM - multi-platform coverage (3+ connected platforms) and a
   search-without-social channel mix recommendation
3. RANKING - stable sort by impact (high > medium > low), top 12 kept

Also provides two numeric helpers used by the dashboard:
- forecast_metric: mean + linear trend extrapolation with +/-5% noise
- detect_anomalies: indices more than ``threshold`` population standard
  deviations away from the mean

Usage:
    from platform_metrics.services.ai_insights import generate_insights

    insights = generate_insights({'shopify': shopify_data, 'linkedin': None})
"""

import re
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from platform_metrics.models import Impact, Insight, InsightType, PlatformData
from platform_metrics.services.mock_data import RandomSource, make_random_source


MAX_INSIGHTS = 12

STRONG_GROWTH_THRESHOLD = 20
DECLINE_THRESHOLD = -10
OPPORTUNITY_THRESHOLD = 5
STAGNATION_THRESHOLD = 2

MULTI_PLATFORM_MIN = 3

SEARCH_PLATFORMS = ('search_console', 'google_ads')
SOCIAL_PLATFORMS = ('meta_ads', 'linkedin', 'x_ads')

PLATFORM_NAMES: Dict[str, str] = {
    'google_ads': 'Google Ads',
    'ga4': 'Google Analytics',
    'meta_ads': 'Meta Ads',
    'search_console': 'Search Console',
    'linkedin': 'LinkedIn',
    'x_ads': 'X (Twitter)',
    'tiktok_ads': 'TikTok',
    'shopify': 'Shopify',
    'hubspot': 'HubSpot CRM',
    'hubspot_crm': 'HubSpot CRM',
    'gmb': 'Google Business',
}

_INTEGER = re.compile(r'-?\d+')


# =============================================================================
# Parsing Helpers
# =============================================================================


def parse_change(change: str) -> int:
    """First (optionally negative) integer in a change string; 0 if none."""
    match = _INTEGER.search(change or '')
    return int(match.group(0)) if match else 0


def get_platform_name(key: str) -> str:
    """Display name for a platform key; unknown keys are returned unchanged."""
    return PLATFORM_NAMES.get(key, key)


# =============================================================================
# Insight Generation
# =============================================================================


class _IdCounter:
    """Sequential ``insight_N`` ids shared by every stage of one run."""

    def __init__(self, start: int = 1):
        self._next = start

    def next(self) -> str:
        value = f'insight_{self._next}'
        self._next += 1
        return value


def _metric_insights(
    platform: str,
    data: PlatformData,
    ids: _IdCounter,
    now: datetime,
) -> List[Insight]:
    insights = []
    name = get_platform_name(platform)

    for metric in data.metrics:
        change = parse_change(metric.change)

        if change > STRONG_GROWTH_THRESHOLD:
            insights.append(Insight(
                id=ids.next(),
                type=InsightType.SUCCESS,
                title=f'Strong {metric.label} Growth',
                description=(
                    f'Your {metric.label} increased by {metric.change} on {name}. '
                    f'This indicates effective campaign performance.'
                ),
                impact=Impact.HIGH,
                platform=platform,
                metric=metric.label,
                recommendation=(
                    'Continue current strategy and consider scaling budget by 15-20% '
                    'to capitalize on momentum.'
                ),
                createdAt=now,
            ))

        if change < DECLINE_THRESHOLD:
            insights.append(Insight(
                id=ids.next(),
                type=InsightType.ALERT,
                title=f'{metric.label} Decline Detected',
                description=(
                    f'{metric.label} dropped by {abs(change)}% on {name}. '
                    f'Immediate attention recommended.'
                ),
                impact=Impact.HIGH,
                platform=platform,
                metric=metric.label,
                recommendation=(
                    'Review recent changes in targeting, ad creative, or bidding strategy. '
                    'Consider A/B testing new approaches.'
                ),
                createdAt=now,
            ))

        if OPPORTUNITY_THRESHOLD < change <= STRONG_GROWTH_THRESHOLD:
            insights.append(Insight(
                id=ids.next(),
                type=InsightType.OPPORTUNITY,
                title=f'Growth Opportunity in {metric.label}',
                description=(
                    f'{metric.label} is up {metric.change} on {name}. '
                    f'Room for optimization exists.'
                ),
                impact=Impact.MEDIUM,
                platform=platform,
                metric=metric.label,
                recommendation=(
                    'Test new ad variations or expand to similar audiences to accelerate growth.'
                ),
                createdAt=now,
            ))

        if abs(change) < STAGNATION_THRESHOLD:
            insights.append(Insight(
                id=ids.next(),
                type=InsightType.WARNING,
                title=f'{metric.label} Stagnating',
                description=(
                    f'{metric.label} on {name} has remained flat ({metric.change}). '
                    f'Consider refreshing strategy.'
                ),
                impact=Impact.MEDIUM,
                platform=platform,
                metric=metric.label,
                recommendation=(
                    'Experiment with new channels, creative formats, or audience segments '
                    'to reignite growth.'
                ),
                createdAt=now,
            ))

    return insights


def _cross_platform_insights(
    platform_data: Mapping[str, Optional[PlatformData]],
    ids: _IdCounter,
    now: datetime,
) -> List[Insight]:
    insights = []
    active = [platform for platform, data in platform_data.items() if data is not None]

    if len(active) >= MULTI_PLATFORM_MIN:
        insights.append(Insight(
            id=ids.next(),
            type=InsightType.SUCCESS,
            title='Multi-Platform Coverage Active',
            description=(
                f"You're leveraging {len(active)} platforms for comprehensive reach. "
                f"Cross-platform synergy is boosting overall performance."
            ),
            impact=Impact.HIGH,
            platform='cross-platform',
            recommendation=(
                'Maintain consistent messaging across all channels and track customer '
                'journey touchpoints for better attribution.'
            ),
            createdAt=now,
        ))

    has_search = any(platform_data.get(p) is not None for p in SEARCH_PLATFORMS)
    has_social = any(platform_data.get(p) is not None for p in SOCIAL_PLATFORMS)

    if has_search and not has_social:
        insights.append(Insight(
            id=ids.next(),
            type=InsightType.OPPORTUNITY,
            title='Expand to Social Channels',
            description=(
                'Your strategy is search-heavy. Adding social platforms could unlock '
                'new audience segments.'
            ),
            impact=Impact.HIGH,
            platform='strategy',
            recommendation=(
                'Consider adding Meta Ads or LinkedIn to reach audiences earlier in the funnel.'
            ),
            createdAt=now,
        ))

    return insights


def generate_insights(
    platform_data: Mapping[str, Optional[PlatformData]],
    now: Optional[datetime] = None,
) -> List[Insight]:
    """
    Generate ranked insights for a set of platforms.

    Args:
        platform_data: Platform key -> PlatformData, or None when the platform
            is not connected (skipped).
        now: Timestamp stamped on every insight (defaults to current UTC time).

    Returns:
        At most 12 insights, high impact first; ties keep generation order.
    """
    now = now or datetime.now(timezone.utc)
    ids = _IdCounter()

    insights: List[Insight] = []
    for platform, data in platform_data.items():
        if data is None:
            continue
        insights.extend(_metric_insights(platform, data, ids, now))

    insights.extend(_cross_platform_insights(platform_data, ids, now))

    insights.sort(key=lambda insight: insight.impact.rank, reverse=True)
    return insights[:MAX_INSIGHTS]


# =============================================================================
# Forecasting & Anomaly Detection
# =============================================================================


def forecast_metric(
    historical_data: Sequence[float],
    horizon: int = 7,
    rng: Optional[RandomSource] = None,
) -> List[int]:
    """
    Extrapolate a series ``horizon`` steps ahead.

    Each step is ``mean + trend * (n + i)`` plus uniform noise of +/-5% of the
    mean, where ``trend = (last - first) / n``. Values are rounded and never
    negative.

    Raises:
        ValueError: If ``historical_data`` is empty.
    """
    if len(historical_data) == 0:
        raise ValueError("historical_data must contain at least one value")

    rng = rng or make_random_source()
    values = np.asarray(historical_data, dtype=np.float64)
    n = len(values)
    avg = float(np.mean(values))
    trend = float(values[-1] - values[0]) / n

    forecast = []
    for i in range(horizon):
        noise = (rng.random() - 0.5) * avg * 0.1
        forecast.append(max(0, int(round(avg + trend * (n + i) + noise))))
    return forecast


def detect_anomalies(values: Sequence[float], threshold: float = 2.0) -> List[int]:
    """Indices whose distance from the mean exceeds ``threshold`` population std devs."""
    if len(values) == 0:
        return []
    data = np.asarray(values, dtype=np.float64)
    mean = np.mean(data)
    std = np.std(data)  # Population std (ddof=0)
    return [int(i) for i in np.flatnonzero(np.abs(data - mean) > threshold * std)]
