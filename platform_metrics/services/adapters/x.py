"""
X (Twitter) account adapter.

The proxy scopes X calls to the linked user, so the resource id is not sent;
live payloads carry the user's public metrics::

    {"user": {"data": {"public_metrics": {"followers_count": 10500,
        "following_count": 480, "tweet_count": 3400, "listed_count": 85}}}}
"""

import math
from typing import Any, Dict

from platform_metrics.models import DataSource, DateRange, PlatformData, PlatformId
from platform_metrics.services.adapters.base import PlatformAdapter
from platform_metrics.services.mock_data import variance
from platform_metrics.services.normalization import format_change, format_number, to_number


LIVE_CHANGE = '+—'

# (key, label, public_metrics field)
X_METRICS = [
    ('followers', 'Followers', 'followers_count'),
    ('following', 'Following', 'following_count'),
    ('tweets', 'Tweets', 'tweet_count'),
    ('listed', 'Listed', 'listed_count'),
]


def _public_metrics(payload: Dict[str, Any]) -> Dict[str, Any]:
    user = (payload.get('user') or {}).get('data') or {}
    return user.get('public_metrics') or {}


class XAdapter(PlatformAdapter):
    """Audience and publishing totals for the linked X account."""

    platform_id = PlatformId.X_ADS
    display_name = 'X'

    metrics_path = '/x/metrics'
    link_probe_path = '/x/user'
    oauth_path = '/oauth/x/start'

    rate_limit_capacity = 10
    rate_limit_refill_per_second = 2.0
    mock_latency_seconds = 0.35

    mock_variance_spread = 0.2

    async def get_user(self) -> Dict[str, Any]:
        """Raw profile of the linked user; {} in mock mode or on failure."""
        return await self._get_optional('/x/user') or {}

    def live_params(self, resource_id: str, date_range: DateRange) -> Dict[str, str]:
        return {'dateRange': date_range.value}

    def is_empty(self, payload: Dict[str, Any]) -> bool:
        return not _public_metrics(payload)

    def generate_mock_payload(self, resource_id: str, date_range: DateRange) -> Dict[str, Any]:
        m = date_range.multiplier
        v = variance(self.rng, self.mock_variance_spread)

        return {
            'user': {'data': {'public_metrics': {
                'followers_count': math.floor(10500 + 15 * m),
                'following_count': 480,
                'tweet_count': math.floor(3400 + 12 * m * v),
                'listed_count': 85,
            }}},
            'changes': {
                'followers': format_change(math.floor(15 * m), suffix=''),
                'following': '+0%',
                'tweets': '+12%',
                'listed': '-2%',
            },
        }

    def transform(
        self,
        payload: Dict[str, Any],
        date_range: DateRange,
        source: DataSource,
    ) -> PlatformData:
        public_metrics = _public_metrics(payload)

        metrics = [
            self.metric(
                key,
                label,
                format_number(to_number(public_metrics.get(field))),
                self.change_for(payload, key, LIVE_CHANGE),
            )
            for key, label, field in X_METRICS
        ]

        tweet_count = to_number(public_metrics.get('tweet_count')) or 100

        return PlatformData(
            id=self.platform_id.value,
            metrics=metrics,
            chartData=self.chart(date_range, tweet_count, low=0.5, high=1.5),
            source=source,
        )
