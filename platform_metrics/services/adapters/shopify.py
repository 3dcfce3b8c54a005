"""
Shopify store adapter.

Shopify's REST quota is a leaky bucket of 40 requests draining at 2 per
second; the adapter's limiter mirrors it. Live payloads are store totals for
the window::

    {"revenue": 250000, "orders": 520, "repeat_rate": 21.4}

Currency amounts are displayed in KES.
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


class ShopifyAdapter(PlatformAdapter):
    """Revenue, orders, average order value and repeat purchase rate."""

    platform_id = PlatformId.SHOPIFY
    display_name = 'Shopify'

    metrics_path = '/shopify/metrics'
    link_probe_path = '/shopify/shop'
    oauth_path = '/oauth/shopify/start'

    rate_limit_capacity = 40
    rate_limit_refill_per_second = 2.0
    mock_latency_seconds = 0.25

    def live_params(self, resource_id: str, date_range: DateRange) -> Dict[str, str]:
        return {'storeId': resource_id, 'dateRange': date_range.value}

    def is_empty(self, payload: Dict[str, Any]) -> bool:
        return not to_number(payload.get('revenue')) and not to_number(payload.get('orders'))

    def generate_mock_payload(self, resource_id: str, date_range: DateRange) -> Dict[str, Any]:
        m = date_range.multiplier
        return {
            'revenue': math.floor(250000 * m * uniform(self.rng, 0.9, 1.1)),
            'orders': math.floor(520 * m * uniform(self.rng, 0.9, 1.1)),
            'repeat_rate': 18 + self.rng.random() * 6,
        }

    def transform(
        self,
        payload: Dict[str, Any],
        date_range: DateRange,
        source: DataSource,
    ) -> PlatformData:
        revenue = to_number(payload.get('revenue'))
        orders = to_number(payload.get('orders'))
        aov = revenue / max(orders, 1)
        repeat_rate = to_number(payload.get('repeat_rate'))

        return PlatformData(
            id=self.platform_id.value,
            metrics=[
                self.metric('revenue', 'Revenue', format_currency(revenue),
                            self.change_for(payload, 'revenue', '+8%')),
                self.metric('orders', 'Orders', format_number(orders),
                            self.change_for(payload, 'orders', '+5%')),
                self.metric('aov', 'AOV', format_currency(aov),
                            self.change_for(payload, 'aov', '+2%')),
                self.metric('repeat_rate', 'Repeat Rate', format_percent(repeat_rate),
                            self.change_for(payload, 'repeat_rate', '+1%')),
            ],
            chartData=self.chart(date_range, revenue),
            source=source,
        )
