"""
LinkedIn company page adapter.

Live payloads wrap follower and engagement statistics for an organization::

    {"metrics": {"followers": {"total": 5230},
                 "engagement": {"impressions": 1200, "clicks": 85, "likes": 40,
                                "comments": 8, "shares": 5, "engagement_rate": 2.3}}}
"""

import math
from typing import Any, Dict, List

from platform_metrics.models import (
    DataSource,
    DateRange,
    LinkedInOrganization,
    PlatformData,
    PlatformId,
    Trend,
)
from platform_metrics.services.adapters.base import PlatformAdapter
from platform_metrics.services.mock_data import variance
from platform_metrics.services.normalization import format_change, format_number, to_number


def engagement_trend(rate: float) -> Trend:
    if rate > 2:
        return Trend.UP
    if rate > 1:
        return Trend.NEUTRAL
    return Trend.DOWN


class LinkedInAdapter(PlatformAdapter):
    """Followers, impressions, engagement and clicks for an organization page."""

    platform_id = PlatformId.LINKEDIN
    display_name = 'LinkedIn'

    metrics_path = '/linkedin/metrics'
    link_probe_path = '/linkedin/organizations'
    oauth_path = '/oauth/linkedin/start'
    has_accounts = True

    rate_limit_capacity = 10
    rate_limit_refill_per_second = 2.0
    mock_latency_seconds = 0.4

    mock_variance_spread = 0.2

    async def list_organizations(self) -> List[LinkedInOrganization]:
        payload = await self._get_optional('/linkedin/organizations')
        if not payload:
            return []
        elements = payload.get('elements')
        if not isinstance(elements, list):
            return []
        return [
            LinkedInOrganization(
                id=el.get('organization', ''),
                name=(el.get('organization~') or {}).get('localizedName') or el.get('organization', ''),
            )
            for el in elements
        ]

    list_accounts = list_organizations

    def live_params(self, resource_id: str, date_range: DateRange) -> Dict[str, str]:
        return {'organizationId': resource_id, 'dateRange': date_range.value}

    def is_empty(self, payload: Dict[str, Any]) -> bool:
        metrics = payload.get('metrics')
        if not isinstance(metrics, dict):
            return True
        return not metrics.get('followers') and not metrics.get('engagement')

    def generate_mock_payload(self, resource_id: str, date_range: DateRange) -> Dict[str, Any]:
        m = date_range.multiplier
        v = variance(self.rng, self.mock_variance_spread)

        impressions = math.floor(1200 * m * v)
        clicks = math.floor(85 * m * v)
        likes = math.floor(40 * m * v)
        comments = math.floor(8 * m * v)
        shares = math.floor(5 * m * v)
        engagement_rate = round((likes + comments + shares + clicks) / max(impressions, 1) * 100, 1)

        return {
            'metrics': {
                'followers': {'total': math.floor(5230 + 50 * m)},
                'engagement': {
                    'impressions': impressions,
                    'clicks': clicks,
                    'likes': likes,
                    'comments': comments,
                    'shares': shares,
                    'engagement_rate': engagement_rate,
                },
            },
            'changes': {
                'followers': format_change(math.floor(15 * m), suffix=''),
                'impressions': '+8%',
                'clicks': '+5%',
            },
        }

    def transform(
        self,
        payload: Dict[str, Any],
        date_range: DateRange,
        source: DataSource,
    ) -> PlatformData:
        metrics = payload.get('metrics') or {}
        engagement = metrics.get('engagement') or {}

        followers = to_number((metrics.get('followers') or {}).get('total'))
        impressions = to_number(engagement.get('impressions'))
        clicks = to_number(engagement.get('clicks'))
        interactions = (
            to_number(engagement.get('likes'))
            + to_number(engagement.get('comments'))
            + to_number(engagement.get('shares'))
        )
        engagement_rate = to_number(engagement.get('engagement_rate'))

        total_engagement = impressions + clicks + to_number(engagement.get('likes'))

        followers_change = (
            format_change(math.floor(followers * 0.02), suffix='') if followers > 0 else '+0'
        )

        return PlatformData(
            id=self.platform_id.value,
            metrics=[
                self.metric('followers', 'Followers', format_number(followers),
                            self.change_for(payload, 'followers', followers_change)),
                self.metric('impressions', 'Impressions', format_number(impressions),
                            self.change_for(payload, 'impressions', '+12%' if impressions > 0 else '+0%')),
                self.metric('engagement', 'Engagement', format_number(interactions),
                            f'{format_number(engagement_rate, max_fraction_digits=2)}%',
                            trend=engagement_trend(engagement_rate)),
                self.metric('clicks', 'Clicks', format_number(clicks),
                            self.change_for(payload, 'clicks', '+8%' if clicks > 0 else '+0%')),
            ],
            chartData=self.chart(date_range, total_engagement, low=0.7, high=1.3),
            source=source,
        )
