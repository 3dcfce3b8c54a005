"""
HubSpot CRM adapter.

HubSpot allows 100 requests per 10 seconds for private apps; the limiter holds
100 tokens refilled at 10 per second. Live payloads are deal pipeline totals::

    {"deals_created": 84, "deals_won": 30, "pipeline_value": 1260000,
     "avg_cycle_days": 17}
"""

import math
from typing import Any, Dict

from platform_metrics.models import DataSource, DateRange, PlatformData, PlatformId
from platform_metrics.services.adapters.base import PlatformAdapter
from platform_metrics.services.mock_data import uniform
from platform_metrics.services.normalization import (
    format_currency,
    format_number,
    format_percent,
    to_number,
)


AVG_CYCLE_DAYS: Dict[DateRange, int] = {
    DateRange.DAILY: 14,
    DateRange.WEEKLY: 17,
    DateRange.MONTHLY: 21,
}


class HubSpotAdapter(PlatformAdapter):
    """Deals created and won, pipeline value, win rate and sales cycle length."""

    platform_id = PlatformId.HUBSPOT
    display_name = 'HubSpot CRM'

    metrics_path = '/hubspot/metrics'
    link_probe_path = '/hubspot/account'
    oauth_path = '/oauth/hubspot/start'

    rate_limit_capacity = 100
    rate_limit_refill_per_second = 10.0
    mock_latency_seconds = 0.25

    def live_params(self, resource_id: str, date_range: DateRange) -> Dict[str, str]:
        return {'portalId': resource_id, 'dateRange': date_range.value}

    def is_empty(self, payload: Dict[str, Any]) -> bool:
        return not to_number(payload.get('deals_created')) and not to_number(payload.get('pipeline_value'))

    def generate_mock_payload(self, resource_id: str, date_range: DateRange) -> Dict[str, Any]:
        deals_created = math.floor(12 * date_range.multiplier * uniform(self.rng, 0.9, 1.1))
        return {
            'deals_created': deals_created,
            'deals_won': math.floor(deals_created * uniform(self.rng, 0.32, 0.40)),
            'pipeline_value': math.floor(deals_created * 15000 * uniform(self.rng, 0.9, 1.1)),
            'avg_cycle_days': AVG_CYCLE_DAYS[date_range],
        }

    def transform(
        self,
        payload: Dict[str, Any],
        date_range: DateRange,
        source: DataSource,
    ) -> PlatformData:
        deals_created = to_number(payload.get('deals_created'))
        deals_won = to_number(payload.get('deals_won'))
        pipeline_value = to_number(payload.get('pipeline_value'))
        win_rate = (deals_won / deals_created) * 100 if deals_created else 0.0
        avg_cycle = to_number(payload.get('avg_cycle_days'))

        return PlatformData(
            id=self.platform_id.value,
            metrics=[
                self.metric('deals_created', 'Deals Created', format_number(deals_created),
                            self.change_for(payload, 'deals_created', '+6%')),
                self.metric('deals_won', 'Deals Won', format_number(deals_won),
                            self.change_for(payload, 'deals_won', '+4%')),
                self.metric('pipeline_value', 'Pipeline Value', format_currency(pipeline_value),
                            self.change_for(payload, 'pipeline_value', '+7%')),
                self.metric('win_rate', 'Win Rate', format_percent(win_rate),
                            self.change_for(payload, 'win_rate', '+1%')),
                self.metric('avg_cycle', 'Avg Cycle (days)', format_number(avg_cycle),
                            self.change_for(payload, 'avg_cycle', '-1')),
            ],
            chartData=self.chart(date_range, deals_created),
            source=source,
        )
