"""
Google Business Profile (formerly Google My Business) adapter.

Live payloads come from ``GET /google/gmb/insights`` and carry the
locations report format::

    {"metrics": {"reports": [{"metricValues": [{"metric": "VIEWS_MAPS", "value": "2400"}]}]}}

Profile metrics are reported per location; the proxy expects a Google
reporting window (LAST_7_DAYS / LAST_30_DAYS / LAST_90_DAYS) rather than the
dashboard's daily / weekly / monthly names.
"""

import math
from typing import Any, Dict, List, Optional, Tuple

from platform_metrics.models import (
    DataSource,
    DateRange,
    GMBAccount,
    GMBLocation,
    PlatformData,
    PlatformId,
)
from platform_metrics.services.adapters.base import PlatformAdapter
from platform_metrics.services.mock_data import GMB_CHART, variance
from platform_metrics.services.normalization import format_change, format_number, to_number


GMB_DATE_RANGES: Dict[DateRange, str] = {
    DateRange.DAILY: 'LAST_7_DAYS',
    DateRange.WEEKLY: 'LAST_30_DAYS',
    DateRange.MONTHLY: 'LAST_90_DAYS',
}

# (key, label, report metric, base per day, change per day-equivalent, live change)
GMB_METRICS: List[Tuple[str, str, str, int, Optional[int], str]] = [
    ('profile_views', 'Profile Views', 'VIEWS_MAPS', 2400, 8, '+8%'),
    ('search_queries', 'Search Queries', 'QUERIES_INDIRECT', 1200, 5, '+5%'),
    ('direction_requests', 'Direction Requests', 'ACTIONS_DIRECTIONS', 450, 3, '+3%'),
    ('website_clicks', 'Website Clicks', 'ACTIONS_WEBSITE', 180, 2, '+2%'),
    ('phone_calls', 'Phone Calls', 'ACTIONS_PHONE', 90, None, '+1%'),
]

MOCK_LOCATIONS: List[GMBLocation] = [
    GMBLocation(name='Main Office', id='loc_1', address='123 Business St, City, State'),
    GMBLocation(name='Downtown Branch', id='loc_2', address='456 Main Ave, City, State'),
]


def _report_value(reports: List[Dict[str, Any]], metric_name: str) -> float:
    for report in reports:
        for metric_value in report.get('metricValues') or []:
            if metric_value.get('metric') == metric_name:
                return to_number(metric_value.get('value'))
    return 0.0


class GMBAdapter(PlatformAdapter):
    """Profile views, searches and customer actions for a business location."""

    platform_id = PlatformId.GMB
    display_name = 'Google Business Profile'

    metrics_path = '/google/gmb/insights'
    link_probe_path = '/google/gmb/accounts'
    oauth_path = '/oauth/google/start'
    oauth_params = {'scope': 'gmb'}
    has_accounts = True

    rate_limit_capacity = 10
    rate_limit_refill_per_second = 2.0
    mock_latency_seconds = 0.3
    chart_convention = GMB_CHART

    mock_variance_spread = 0.15

    async def list_accounts(self) -> List[GMBAccount]:
        payload = await self._get_optional('/google/gmb/accounts')
        if not payload:
            return []
        accounts = payload.get('accounts')
        if not isinstance(accounts, list):
            return []
        return [
            GMBAccount(name=a.get('name', ''), accountNumber=a.get('accountNumber'))
            for a in accounts
        ]

    async def list_locations(self, account_id: str) -> List[GMBLocation]:
        """Locations under an account; demo locations in mock mode or on failure."""
        payload = await self._get_optional('/google/gmb/locations', params={'accountId': account_id})
        if payload is None:
            return list(MOCK_LOCATIONS)
        locations = payload.get('locations')
        if not isinstance(locations, list):
            return []
        return [
            GMBLocation(
                name=loc.get('displayName') or loc.get('name', ''),
                id=loc.get('name', ''),
                address=(loc.get('address') or {}).get('formattedAddress'),
            )
            for loc in locations
        ]

    def live_params(self, resource_id: str, date_range: DateRange) -> Dict[str, str]:
        return {'locationId': resource_id, 'dateRange': GMB_DATE_RANGES[date_range]}

    def is_empty(self, payload: Dict[str, Any]) -> bool:
        reports = (payload.get('metrics') or {}).get('reports') or []
        return not any(_report_value(reports, metric[2]) for metric in GMB_METRICS)

    def generate_mock_payload(self, resource_id: str, date_range: DateRange) -> Dict[str, Any]:
        m = date_range.multiplier
        v = variance(self.rng, self.mock_variance_spread)

        metric_values = []
        changes = {}
        for key, _label, report_metric, base, change_per_day, _live_change in GMB_METRICS:
            metric_values.append({'metric': report_metric, 'value': math.floor(base * m * v)})
            changes[key] = format_change(math.floor(change_per_day * m)) if change_per_day else '+2%'

        return {
            'metrics': {'reports': [{'metricValues': metric_values}]},
            'changes': changes,
        }

    def transform(
        self,
        payload: Dict[str, Any],
        date_range: DateRange,
        source: DataSource,
    ) -> PlatformData:
        reports = (payload.get('metrics') or {}).get('reports') or []

        metrics = []
        values = {}
        for key, label, report_metric, _base, _change, live_change in GMB_METRICS:
            values[key] = _report_value(reports, report_metric)
            metrics.append(self.metric(
                key,
                label,
                format_number(values[key]),
                self.change_for(payload, key, live_change),
            ))

        return PlatformData(
            id=self.platform_id.value,
            metrics=metrics,
            chartData=self.chart(date_range, values['profile_views']),
            source=source,
        )
