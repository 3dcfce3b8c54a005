"""
Google Search Console adapter.

Search Console enforces strict per-site and per-project QPS limits, so this
adapter gets the largest burst (20 tokens) with a steady 5 tokens/second refill.

Live payloads are Search Analytics rows::

    {"rows": [{"keys": ["2026-01-01"], "clicks": 12, "impressions": 400,
               "ctr": 0.03, "position": 11.2}]}

When rows carry date keys the chart follows them; otherwise a series is
synthesized from total clicks.
"""

import math
from typing import Any, Dict, List

from platform_metrics.models import (
    ChartPoint,
    DataSource,
    DateRange,
    PlatformData,
    PlatformId,
    SearchConsoleSite,
)
from platform_metrics.services.adapters.base import PlatformAdapter
from platform_metrics.services.mock_data import SEARCH_CONSOLE_CHART, uniform
from platform_metrics.services.normalization import format_number, format_percent, to_number


LIVE_CHANGE = '+—'


class SearchConsoleAdapter(PlatformAdapter):
    """Clicks, impressions, CTR and average position for a verified site."""

    platform_id = PlatformId.SEARCH_CONSOLE
    display_name = 'Search Console'

    metrics_path = '/google/search-console/metrics'
    link_probe_path = '/google/search-console/sites'
    oauth_path = '/oauth/google/start'
    oauth_params = {'scope': 'searchconsole'}
    has_accounts = True

    rate_limit_capacity = 20
    rate_limit_refill_per_second = 5.0
    mock_latency_seconds = 0.2
    chart_convention = SEARCH_CONSOLE_CHART

    async def list_sites(self) -> List[SearchConsoleSite]:
        payload = await self._get_optional('/google/search-console/sites')
        if not payload:
            return []
        sites = payload.get('siteEntry')
        if not isinstance(sites, list):
            return []
        return [
            SearchConsoleSite(siteUrl=s.get('siteUrl', ''), permissionLevel=s.get('permissionLevel'))
            for s in sites
        ]

    list_accounts = list_sites

    def live_params(self, resource_id: str, date_range: DateRange) -> Dict[str, str]:
        return {'siteUrl': resource_id, 'dateRange': date_range.value}

    def is_empty(self, payload: Dict[str, Any]) -> bool:
        rows = payload.get('rows')
        return not isinstance(rows, list) or len(rows) == 0

    def generate_mock_payload(self, resource_id: str, date_range: DateRange) -> Dict[str, Any]:
        m = date_range.multiplier

        def rand(base: float) -> int:
            return math.floor(base * m * uniform(self.rng, 0.8, 1.2))

        return {
            'rows': [{
                'clicks': rand(120),
                'impressions': rand(4500),
                'ctr': 0.025 + self.rng.random() * 0.01,
                'position': 12 + self.rng.random() * 4,
            }],
            'changes': {
                'clicks': '+15%',
                'impressions': '+8%',
                'ctr': '+0.2%',
                'position': '+1.2',
            },
        }

    def _row_chart(self, rows: List[Dict[str, Any]]) -> List[ChartPoint]:
        if not rows or not isinstance(rows[0].get('keys'), list):
            return []
        return [
            ChartPoint(
                name=(row.get('keys') or [''])[0],
                value=max(0, math.floor(to_number(row.get('clicks')))),
            )
            for row in rows
        ]

    def transform(
        self,
        payload: Dict[str, Any],
        date_range: DateRange,
        source: DataSource,
    ) -> PlatformData:
        rows = payload.get('rows') or []

        total_clicks = sum(to_number(r.get('clicks')) for r in rows)
        total_impressions = sum(to_number(r.get('impressions')) for r in rows)
        avg_ctr = sum(to_number(r.get('ctr')) for r in rows) / len(rows) if rows else 0.0
        avg_position = sum(to_number(r.get('position')) for r in rows) / len(rows) if rows else 0.0

        chart_data = self._row_chart(rows) or self.chart(date_range, total_clicks, low=0.5, high=1.5)

        return PlatformData(
            id=self.platform_id.value,
            metrics=[
                self.metric('clicks', 'Total Clicks', format_number(total_clicks),
                            self.change_for(payload, 'clicks', LIVE_CHANGE)),
                self.metric('impressions', 'Total Impressions', format_number(total_impressions),
                            self.change_for(payload, 'impressions', LIVE_CHANGE)),
                self.metric('ctr', 'Avg. CTR', format_percent(avg_ctr * 100),
                            self.change_for(payload, 'ctr', LIVE_CHANGE)),
                self.metric('position', 'Avg. Position', f'{avg_position:.1f}',
                            self.change_for(payload, 'position', LIVE_CHANGE)),
            ],
            chartData=chart_data,
            source=source,
        )
