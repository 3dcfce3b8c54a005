"""
Pytest test module for the six provider adapters.

Covers:
- Mock mode: no proxy calls, no rate-limiter tokens, simulated latency
- Chart bucket conventions per date range and provider
- Date-range scaling of mock magnitudes and seeded determinism
- Live payload transforms for every provider
- Mock fallback on non-2xx, malformed, empty, transport failure and timeout
- Per-adapter rate-limiter policy and token consumption on live calls
- OAuth URLs, link probes, account / location / user enumeration
- Adapter registry lifecycle
"""

import asyncio
import logging
import random
from typing import Any, Dict, Type

import httpx
import pytest

from platform_metrics.core.http import MalformedPayloadError, ProxyError
from platform_metrics.models import (
    DataSource,
    DateRange,
    GMBAccount,
    GMBLocation,
    LinkedInOrganization,
    PlatformId,
    SearchConsoleSite,
    Trend,
)
from platform_metrics.services.adapters import (
    ADAPTER_CLASSES,
    GMBAdapter,
    HubSpotAdapter,
    LinkedInAdapter,
    PlatformAdapter,
    SearchConsoleAdapter,
    ShopifyAdapter,
    XAdapter,
    build_adapters,
    get_adapter_registry,
    init_adapters,
    reset_adapters,
)
from platform_metrics.services.adapters.gmb import MOCK_LOCATIONS
from platform_metrics.services.adapters.linkedin import engagement_trend
from platform_metrics.services.mock_data import HOURLY_LABELS, WEEKDAY_LABELS
from platform_metrics.services.normalization import extract_number
from platform_metrics.services.rate_limiter import TokenBucketRateLimiter
from platform_metrics.tests.conftest import json_handler

pytestmark = pytest.mark.asyncio


ALL_ADAPTERS = list(ADAPTER_CLASSES.values())

METRIC_COUNTS: Dict[Type[PlatformAdapter], int] = {
    GMBAdapter: 5,
    SearchConsoleAdapter: 4,
    LinkedInAdapter: 4,
    XAdapter: 4,
    ShopifyAdapter: 4,
    HubSpotAdapter: 5,
}

LIVE_PAYLOADS: Dict[Type[PlatformAdapter], Dict[str, Any]] = {
    GMBAdapter: {
        'metrics': {'reports': [{'metricValues': [
            {'metric': 'VIEWS_MAPS', 'value': '2400'},
            {'metric': 'QUERIES_INDIRECT', 'value': '1200'},
            {'metric': 'ACTIONS_DIRECTIONS', 'value': 450},
            {'metric': 'ACTIONS_WEBSITE', 'value': 180},
            {'metric': 'ACTIONS_PHONE', 'value': 90},
        ]}]},
    },
    SearchConsoleAdapter: {
        'rows': [
            {'keys': ['2026-01-01'], 'clicks': 10, 'impressions': 100, 'ctr': 0.1, 'position': 3},
            {'keys': ['2026-01-02'], 'clicks': 20, 'impressions': 300, 'ctr': 0.05, 'position': 5},
        ],
    },
    LinkedInAdapter: {
        'metrics': {
            'followers': {'total': 5000},
            'engagement': {
                'impressions': 1000, 'clicks': 80, 'likes': 40,
                'comments': 8, 'shares': 2, 'engagement_rate': 2.5,
            },
        },
    },
    XAdapter: {
        'user': {'data': {'public_metrics': {
            'followers_count': 10500,
            'following_count': 480,
            'tweet_count': 3400,
            'listed_count': 85,
        }}},
    },
    ShopifyAdapter: {'revenue': 250000, 'orders': 500, 'repeat_rate': 21.44},
    HubSpotAdapter: {
        'deals_created': 80,
        'deals_won': 20,
        'pipeline_value': 1200000,
        'avg_cycle_days': 17,
    },
}

EMPTY_PAYLOADS: Dict[Type[PlatformAdapter], Dict[str, Any]] = {
    GMBAdapter: {'metrics': {'reports': []}},
    SearchConsoleAdapter: {'rows': []},
    LinkedInAdapter: {'metrics': {}},
    XAdapter: {'user': {}},
    ShopifyAdapter: {'revenue': 0, 'orders': 0},
    HubSpotAdapter: {'deals_created': 0, 'pipeline_value': 0},
}


def _metrics_route(adapter_cls: Type[PlatformAdapter], payload: Dict[str, Any]):
    return json_handler({adapter_cls.metrics_path: payload})


def _build(adapter_cls, proxy, settings, fake_sleep, rng=None, **kwargs) -> PlatformAdapter:
    return adapter_cls(
        proxy,
        settings,
        rng=rng if rng is not None else random.Random(7),
        sleep=fake_sleep,
        **kwargs,
    )


def _values(data) -> Dict[str, str]:
    return {m.key: m.value for m in data.metrics}


def _changes(data) -> Dict[str, str]:
    return {m.key: m.change for m in data.metrics}


# =============================================================================
# Mock Mode
# =============================================================================


class TestMockMode:
    """The global mock flag short-circuits every adapter."""

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_mock_mode_makes_no_network_call(
        self, adapter_cls, make_proxy, mock_settings, fake_sleep
    ) -> None:
        """fetch_data in mock mode never touches the proxy transport."""
        proxy, transport = make_proxy()
        adapter = _build(adapter_cls, proxy, mock_settings, fake_sleep)

        data = await adapter.fetch_data('resource-1', DateRange.WEEKLY)

        assert len(transport.requests) == 0
        assert data.source == DataSource.MOCK
        assert data.id == adapter_cls.platform_id.value
        assert len(data.metrics) == METRIC_COUNTS[adapter_cls]

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_mock_mode_takes_no_rate_limit_token(
        self, adapter_cls, make_proxy, mock_settings, fake_sleep
    ) -> None:
        """The limiter is only used in front of live calls."""
        proxy, _ = make_proxy()
        adapter = _build(adapter_cls, proxy, mock_settings, fake_sleep)

        await adapter.fetch_data('resource-1', DateRange.DAILY)

        assert adapter.rate_limiter.tokens == adapter_cls.rate_limit_capacity

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_mock_metrics_are_renderable_strings(
        self, adapter_cls, make_proxy, mock_settings, fake_sleep
    ) -> None:
        """Every metric carries a key, a non-empty value and a change string."""
        proxy, _ = make_proxy()
        adapter = _build(adapter_cls, proxy, mock_settings, fake_sleep)

        data = await adapter.fetch_data('resource-1', DateRange.MONTHLY)

        for metric in data.metrics:
            assert metric.key
            assert isinstance(metric.value, str) and metric.value
            assert isinstance(metric.change, str) and metric.change

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_simulated_latency(
        self, adapter_cls, make_proxy, make_settings, fake_sleep
    ) -> None:
        """With latency enabled the mock path sleeps the adapter's latency once."""
        settings = make_settings(use_mock_data=True, mock_latency_enabled=True)
        proxy, _ = make_proxy()
        adapter = _build(adapter_cls, proxy, settings, fake_sleep)

        await adapter.fetch_data('resource-1', DateRange.DAILY)

        assert fake_sleep.calls == [adapter_cls.mock_latency_seconds]
        assert 0.2 <= adapter_cls.mock_latency_seconds <= 0.4

    async def test_latency_disabled_does_not_sleep(
        self, make_proxy, mock_settings, fake_sleep
    ) -> None:
        """Tests run with mock_latency_enabled=False and never sleep."""
        proxy, _ = make_proxy()
        adapter = _build(ShopifyAdapter, proxy, mock_settings, fake_sleep)

        await adapter.fetch_data('store-1', DateRange.DAILY)

        assert fake_sleep.calls == []


# =============================================================================
# Chart Buckets
# =============================================================================

DEFAULT_MONTHLY = [f'Day {i}' for i in range(1, 16)]
SEARCH_CONSOLE_MONTHLY = [str(i) for i in range(1, 30, 2)]
GMB_MONTHLY = [f'Day {i}' for i in range(1, 24, 2)]


class TestChartBuckets:
    """Bucket counts and labels per date range."""

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_daily_has_eight_three_hour_buckets(
        self, adapter_cls, make_proxy, mock_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy()
        data = await _build(adapter_cls, proxy, mock_settings, fake_sleep).fetch_data('r', DateRange.DAILY)

        assert [p.name for p in data.chartData] == list(HOURLY_LABELS)
        assert len(data.chartData) == 8

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_weekly_has_seven_weekday_buckets(
        self, adapter_cls, make_proxy, mock_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy()
        data = await _build(adapter_cls, proxy, mock_settings, fake_sleep).fetch_data('r', DateRange.WEEKLY)

        assert [p.name for p in data.chartData] == list(WEEKDAY_LABELS)
        assert [p.name for p in data.chartData] == ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']

    @pytest.mark.parametrize('adapter_cls, expected', [
        (GMBAdapter, GMB_MONTHLY),
        (SearchConsoleAdapter, SEARCH_CONSOLE_MONTHLY),
        (LinkedInAdapter, DEFAULT_MONTHLY),
        (XAdapter, DEFAULT_MONTHLY),
        (ShopifyAdapter, DEFAULT_MONTHLY),
        (HubSpotAdapter, DEFAULT_MONTHLY),
    ])
    async def test_monthly_buckets_follow_provider_convention(
        self, adapter_cls, expected, make_proxy, mock_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy()
        data = await _build(adapter_cls, proxy, mock_settings, fake_sleep).fetch_data('r', DateRange.MONTHLY)

        assert [p.name for p in data.chartData] == expected

    async def test_gmb_monthly_has_twelve_buckets(self, make_proxy, mock_settings, fake_sleep) -> None:
        proxy, _ = make_proxy()
        data = await _build(GMBAdapter, proxy, mock_settings, fake_sleep).fetch_data('loc', DateRange.MONTHLY)

        assert len(data.chartData) == 12
        assert data.chartData[-1].name == 'Day 23'

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_chart_values_are_non_negative(
        self, adapter_cls, make_proxy, mock_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy()
        data = await _build(adapter_cls, proxy, mock_settings, fake_sleep).fetch_data('r', DateRange.MONTHLY)

        assert all(point.value >= 0 for point in data.chartData)


# =============================================================================
# Mock Magnitudes & Determinism
# =============================================================================


class TestMockGenerator:
    """Date-range scaling and reproducibility of synthetic payloads."""

    @pytest.mark.parametrize('date_range, low, high', [
        (DateRange.DAILY, 225000, 275000),
        (DateRange.WEEKLY, 225000 * 7, 275000 * 7),
        (DateRange.MONTHLY, 225000 * 30, 275000 * 30),
    ])
    async def test_shopify_revenue_scales_with_date_range(
        self, date_range, low, high, make_proxy, mock_settings, fake_sleep
    ) -> None:
        """Revenue is 250,000/day x multiplier x [0.9, 1.1)."""
        proxy, _ = make_proxy()
        data = await _build(ShopifyAdapter, proxy, mock_settings, fake_sleep).fetch_data('s', date_range)

        revenue = extract_number(data.get_metric('revenue').value)

        assert low <= revenue <= high
        assert data.get_metric('revenue').value.startswith('KES ')

    @pytest.mark.parametrize('date_range, expected', [
        (DateRange.DAILY, '5,280'),
        (DateRange.WEEKLY, '5,580'),
        (DateRange.MONTHLY, '6,730'),
    ])
    async def test_linkedin_followers_grow_50_per_day(
        self, date_range, expected, make_proxy, mock_settings, fake_sleep
    ) -> None:
        """Followers are 5230 + 50 x multiplier."""
        proxy, _ = make_proxy()
        data = await _build(LinkedInAdapter, proxy, mock_settings, fake_sleep).fetch_data('org', date_range)

        assert data.get_metric('followers').value == expected

    async def test_linkedin_mock_follower_change_has_no_percent(
        self, make_proxy, mock_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy()
        data = await _build(LinkedInAdapter, proxy, mock_settings, fake_sleep).fetch_data('org', DateRange.WEEKLY)

        assert data.get_metric('followers').change == '+105'
        assert data.get_metric('followers').trend == Trend.UP

    @pytest.mark.parametrize('date_range, expected', [
        (DateRange.DAILY, '14'),
        (DateRange.WEEKLY, '17'),
        (DateRange.MONTHLY, '21'),
    ])
    async def test_hubspot_avg_cycle_days(
        self, date_range, expected, make_proxy, mock_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy()
        data = await _build(HubSpotAdapter, proxy, mock_settings, fake_sleep).fetch_data('portal', date_range)

        assert data.get_metric('avg_cycle').value == expected
        assert data.get_metric('avg_cycle').label == 'Avg Cycle (days)'
        assert data.get_metric('avg_cycle').trend == Trend.DOWN

    async def test_gmb_mock_changes_scale_with_range(self, make_proxy, mock_settings, fake_sleep) -> None:
        """Profile views change is 8 per day-equivalent; phone calls stay at +2%."""
        proxy, _ = make_proxy()
        data = await _build(GMBAdapter, proxy, mock_settings, fake_sleep).fetch_data('loc', DateRange.WEEKLY)

        assert data.get_metric('profile_views').change == '+56%'
        assert data.get_metric('phone_calls').change == '+2%'

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_same_seed_same_output(
        self, adapter_cls, make_proxy, mock_settings, fake_sleep
    ) -> None:
        """Injecting equally seeded random sources reproduces the payload exactly."""
        proxy, _ = make_proxy()
        first = _build(adapter_cls, proxy, mock_settings, fake_sleep, rng=random.Random(42))
        second = _build(adapter_cls, proxy, mock_settings, fake_sleep, rng=random.Random(42))

        assert await first.fetch_data('r', DateRange.WEEKLY) == await second.fetch_data('r', DateRange.WEEKLY)

    async def test_settings_seed_is_used_by_default(self, make_proxy, make_settings, fake_sleep) -> None:
        """Without an injected rng, adapters seed from Settings.mock_seed."""
        settings = make_settings(use_mock_data=True, mock_seed=99)
        proxy, _ = make_proxy()

        first = ShopifyAdapter(proxy, settings, sleep=fake_sleep)
        second = ShopifyAdapter(proxy, settings, sleep=fake_sleep)

        assert await first.fetch_data('s', DateRange.DAILY) == await second.fetch_data('s', DateRange.DAILY)


# =============================================================================
# Live Transforms
# =============================================================================


class TestLiveTransforms:
    """Successful proxy payloads are transformed at the adapter boundary."""

    async def test_gmb_live(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, transport = make_proxy(_metrics_route(GMBAdapter, LIVE_PAYLOADS[GMBAdapter]))
        data = await _build(GMBAdapter, proxy, live_settings, fake_sleep).fetch_data('loc_1', DateRange.WEEKLY)

        assert data.source == DataSource.LIVE
        assert _values(data) == {
            'profile_views': '2,400',
            'search_queries': '1,200',
            'direction_requests': '450',
            'website_clicks': '180',
            'phone_calls': '90',
        }
        assert _changes(data)['profile_views'] == '+8%'
        assert transport.paths == ['/api/google/gmb/insights']
        params = transport.requests[0].url.params
        assert params['locationId'] == 'loc_1'
        assert params['dateRange'] == 'LAST_30_DAYS'

    @pytest.mark.parametrize('date_range, google_range', [
        (DateRange.DAILY, 'LAST_7_DAYS'),
        (DateRange.MONTHLY, 'LAST_90_DAYS'),
    ])
    async def test_gmb_date_range_mapping(
        self, date_range, google_range, make_proxy, live_settings, fake_sleep
    ) -> None:
        proxy, transport = make_proxy(_metrics_route(GMBAdapter, LIVE_PAYLOADS[GMBAdapter]))
        await _build(GMBAdapter, proxy, live_settings, fake_sleep).fetch_data('loc_1', date_range)

        assert transport.requests[0].url.params['dateRange'] == google_range

    async def test_search_console_live(self, make_proxy, live_settings, fake_sleep) -> None:
        """Rows are summed (clicks, impressions) and averaged (ctr, position)."""
        proxy, transport = make_proxy(
            _metrics_route(SearchConsoleAdapter, LIVE_PAYLOADS[SearchConsoleAdapter])
        )
        data = await _build(SearchConsoleAdapter, proxy, live_settings, fake_sleep).fetch_data(
            'https://example.com/', DateRange.WEEKLY
        )

        assert data.source == DataSource.LIVE
        assert _values(data) == {
            'clicks': '30',
            'impressions': '400',
            'ctr': '7.5%',
            'position': '4.0',
        }
        assert data.get_metric('ctr').trend == Trend.NEUTRAL
        assert [(p.name, p.value) for p in data.chartData] == [('2026-01-01', 10), ('2026-01-02', 20)]
        params = transport.requests[0].url.params
        assert params['siteUrl'] == 'https://example.com/'
        assert params['dateRange'] == 'weekly'

    async def test_linkedin_live(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, transport = make_proxy(_metrics_route(LinkedInAdapter, LIVE_PAYLOADS[LinkedInAdapter]))
        data = await _build(LinkedInAdapter, proxy, live_settings, fake_sleep).fetch_data(
            'urn:li:organization:1', DateRange.DAILY
        )

        assert _values(data) == {
            'followers': '5,000',
            'impressions': '1,000',
            'engagement': '50',
            'clicks': '80',
        }
        assert _changes(data) == {
            'followers': '+100',
            'impressions': '+12%',
            'engagement': '2.5%',
            'clicks': '+8%',
        }
        assert data.get_metric('engagement').trend == Trend.UP
        assert transport.requests[0].url.params['organizationId'] == 'urn:li:organization:1'

    @pytest.mark.parametrize('rate, trend', [
        (2.5, Trend.UP),
        (1.5, Trend.NEUTRAL),
        (1.0, Trend.DOWN),
        (0.0, Trend.DOWN),
    ])
    async def test_engagement_trend_rule(self, rate, trend) -> None:
        """Above 2% is up, above 1% neutral, otherwise down."""
        assert engagement_trend(rate) == trend

    async def test_x_live(self, make_proxy, live_settings, fake_sleep) -> None:
        """X is scoped to the linked user: only the date range is sent."""
        proxy, transport = make_proxy(_metrics_route(XAdapter, LIVE_PAYLOADS[XAdapter]))
        data = await _build(XAdapter, proxy, live_settings, fake_sleep).fetch_data('ignored', DateRange.WEEKLY)

        assert _values(data) == {
            'followers': '10,500',
            'following': '480',
            'tweets': '3,400',
            'listed': '85',
        }
        assert all(m.trend == Trend.NEUTRAL for m in data.metrics)
        assert dict(transport.requests[0].url.params) == {'dateRange': 'weekly'}

    async def test_shopify_live(self, make_proxy, live_settings, fake_sleep) -> None:
        """Currency values carry the KES code; repeat rate has one decimal."""
        proxy, transport = make_proxy(_metrics_route(ShopifyAdapter, LIVE_PAYLOADS[ShopifyAdapter]))
        data = await _build(ShopifyAdapter, proxy, live_settings, fake_sleep).fetch_data('store-1', DateRange.WEEKLY)

        assert data.source == DataSource.LIVE
        assert [m.label for m in data.metrics] == ['Revenue', 'Orders', 'AOV', 'Repeat Rate']
        assert _values(data) == {
            'revenue': 'KES 250,000',
            'orders': '500',
            'aov': 'KES 500',
            'repeat_rate': '21.4%',
        }
        assert _changes(data) == {
            'revenue': '+8%',
            'orders': '+5%',
            'aov': '+2%',
            'repeat_rate': '+1%',
        }
        assert transport.requests[0].url.params['storeId'] == 'store-1'

    async def test_hubspot_live(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, transport = make_proxy(_metrics_route(HubSpotAdapter, LIVE_PAYLOADS[HubSpotAdapter]))
        data = await _build(HubSpotAdapter, proxy, live_settings, fake_sleep).fetch_data('portal-9', DateRange.WEEKLY)

        assert _values(data) == {
            'deals_created': '80',
            'deals_won': '20',
            'pipeline_value': 'KES 1,200,000',
            'win_rate': '25.0%',
            'avg_cycle': '17',
        }
        assert data.get_metric('avg_cycle').change == '-1'
        assert transport.requests[0].url.params['portalId'] == 'portal-9'

    async def test_missing_fields_default_to_zero(self, make_proxy, live_settings, fake_sleep) -> None:
        """Absent upstream fields render as '0', never None."""
        proxy, _ = make_proxy(_metrics_route(ShopifyAdapter, {'revenue': 1000}))
        data = await _build(ShopifyAdapter, proxy, live_settings, fake_sleep).fetch_data('s', DateRange.DAILY)

        assert data.source == DataSource.LIVE
        assert data.get_metric('orders').value == '0'
        assert data.get_metric('repeat_rate').value == '0.0%'
        assert data.get_metric('aov').value == 'KES 1,000'


# =============================================================================
# Fallback
# =============================================================================


class TestFallback:
    """Any live-path failure is answered with mock data."""

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_server_error_falls_back_to_mock(
        self, adapter_cls, make_proxy, live_settings, fake_sleep
    ) -> None:
        proxy, transport = make_proxy(lambda request: httpx.Response(500, json={'error': 'boom'}))
        data = await _build(adapter_cls, proxy, live_settings, fake_sleep).fetch_data('r', DateRange.WEEKLY)

        assert data.source == DataSource.MOCK
        assert len(transport.requests) == 1
        assert len(data.metrics) == METRIC_COUNTS[adapter_cls]

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_empty_payload_falls_back_to_mock(
        self, adapter_cls, make_proxy, live_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy(_metrics_route(adapter_cls, EMPTY_PAYLOADS[adapter_cls]))
        data = await _build(adapter_cls, proxy, live_settings, fake_sleep).fetch_data('r', DateRange.WEEKLY)

        assert data.source == DataSource.MOCK

    async def test_malformed_body_falls_back_to_mock(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, _ = make_proxy(lambda request: httpx.Response(200, content=b'not json'))
        data = await _build(ShopifyAdapter, proxy, live_settings, fake_sleep).fetch_data('s', DateRange.DAILY)

        assert data.source == DataSource.MOCK

    async def test_transport_failure_falls_back_to_mock(self, make_proxy, live_settings, fake_sleep) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError('connection refused', request=request)

        proxy, _ = make_proxy(refuse)
        data = await _build(LinkedInAdapter, proxy, live_settings, fake_sleep).fetch_data('org', DateRange.DAILY)

        assert data.source == DataSource.MOCK

    async def test_hung_proxy_times_out_to_mock(self, make_proxy, make_settings, fake_sleep) -> None:
        """A proxy call exceeding api_timeout is abandoned for mock data."""
        async def hang(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(5)
            return httpx.Response(200, json=LIVE_PAYLOADS[HubSpotAdapter])

        settings = make_settings(api_timeout=0.05)
        proxy, _ = make_proxy(hang)

        data = await asyncio.wait_for(
            _build(HubSpotAdapter, proxy, settings, fake_sleep).fetch_data('p', DateRange.DAILY),
            timeout=2,
        )

        assert data.source == DataSource.MOCK

    async def test_fallback_is_logged_as_warning(self, make_proxy, live_settings, fake_sleep, caplog) -> None:
        proxy, _ = make_proxy(lambda request: httpx.Response(503))

        with caplog.at_level(logging.WARNING, logger='platform_metrics.services.adapters.base'):
            await _build(XAdapter, proxy, live_settings, fake_sleep).fetch_data('u', DateRange.DAILY)

        assert any('Falling back to mock data' in record.getMessage() for record in caplog.records)


# =============================================================================
# Rate Limiting
# =============================================================================


class TestRateLimiting:
    """Per-adapter limiter policy and token use."""

    @pytest.mark.parametrize('adapter_cls, capacity, refill', [
        (GMBAdapter, 10, 2.0),
        (SearchConsoleAdapter, 20, 5.0),
        (LinkedInAdapter, 10, 2.0),
        (XAdapter, 10, 2.0),
        (ShopifyAdapter, 40, 2.0),
        (HubSpotAdapter, 100, 10.0),
    ])
    async def test_policy_constants(
        self, adapter_cls, capacity, refill, make_proxy, live_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy()
        adapter = _build(adapter_cls, proxy, live_settings, fake_sleep)

        assert adapter.rate_limiter.max_tokens == capacity
        assert adapter.rate_limiter.refill_rate_per_second == refill

    async def test_each_adapter_owns_its_limiter(self, make_proxy, live_settings) -> None:
        proxy, _ = make_proxy()
        registry = build_adapters(live_settings, proxy)

        limiters = [adapter.rate_limiter for adapter in registry]

        assert len({id(limiter) for limiter in limiters}) == len(limiters) == 6

    async def test_live_fetch_consumes_one_token(
        self, make_proxy, live_settings, fake_clock, fake_sleep
    ) -> None:
        limiter = TokenBucketRateLimiter(40, 2.0, clock=fake_clock, sleep=fake_sleep)
        proxy, _ = make_proxy(_metrics_route(ShopifyAdapter, LIVE_PAYLOADS[ShopifyAdapter]))
        adapter = _build(ShopifyAdapter, proxy, live_settings, fake_sleep, rate_limiter=limiter)

        await adapter.fetch_data('store-1', DateRange.DAILY)

        assert limiter.tokens == pytest.approx(39)

    async def test_failed_live_fetch_still_consumes_token(
        self, make_proxy, live_settings, fake_clock, fake_sleep
    ) -> None:
        limiter = TokenBucketRateLimiter(10, 2.0, clock=fake_clock, sleep=fake_sleep)
        proxy, _ = make_proxy(lambda request: httpx.Response(502))
        adapter = _build(GMBAdapter, proxy, live_settings, fake_sleep, rate_limiter=limiter)

        await adapter.fetch_data('loc', DateRange.DAILY)

        assert limiter.tokens == pytest.approx(9)

    async def test_drained_limiter_delays_live_call(
        self, make_proxy, live_settings, fake_clock, fake_sleep
    ) -> None:
        limiter = TokenBucketRateLimiter(1, 2.0, clock=fake_clock, sleep=fake_sleep)
        proxy, transport = make_proxy(_metrics_route(XAdapter, LIVE_PAYLOADS[XAdapter]))
        adapter = _build(XAdapter, proxy, live_settings, fake_sleep, rate_limiter=limiter)

        await adapter.fetch_data('u', DateRange.DAILY)
        await adapter.fetch_data('u', DateRange.DAILY)

        assert fake_sleep.calls == [pytest.approx(0.5)]
        assert len(transport.requests) == 2


# =============================================================================
# Connectivity Helpers
# =============================================================================

OAUTH_URL = 'https://auth.example.com/authorize?state=abc'


class TestOAuthAndLinking:
    """get_oauth_url and is_linked."""

    @pytest.mark.parametrize('adapter_cls, path, scope', [
        (GMBAdapter, '/oauth/google/start', 'gmb'),
        (SearchConsoleAdapter, '/oauth/google/start', 'searchconsole'),
        (LinkedInAdapter, '/oauth/linkedin/start', None),
        (XAdapter, '/oauth/x/start', None),
        (ShopifyAdapter, '/oauth/shopify/start', None),
        (HubSpotAdapter, '/oauth/hubspot/start', None),
    ])
    async def test_oauth_url(
        self, adapter_cls, path, scope, make_proxy, live_settings, fake_sleep
    ) -> None:
        proxy, transport = make_proxy(json_handler({path: {'url': OAUTH_URL}}))

        url = await _build(adapter_cls, proxy, live_settings, fake_sleep).get_oauth_url()

        assert url == OAUTH_URL
        assert transport.requests[0].url.params.get('scope') == scope

    async def test_oauth_without_url_is_malformed(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, _ = make_proxy(json_handler({'/oauth/x/start': {'status': 'ok'}}))

        with pytest.raises(MalformedPayloadError):
            await _build(XAdapter, proxy, live_settings, fake_sleep).get_oauth_url()

    async def test_oauth_proxy_failure_propagates(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, _ = make_proxy(lambda request: httpx.Response(500))

        with pytest.raises(ProxyError):
            await _build(ShopifyAdapter, proxy, live_settings, fake_sleep).get_oauth_url()

    @pytest.mark.parametrize('adapter_cls, probe', [
        (GMBAdapter, '/google/gmb/accounts'),
        (SearchConsoleAdapter, '/google/search-console/sites'),
        (LinkedInAdapter, '/linkedin/organizations'),
        (XAdapter, '/x/user'),
        (ShopifyAdapter, '/shopify/shop'),
        (HubSpotAdapter, '/hubspot/account'),
    ])
    async def test_is_linked_true_when_probe_succeeds(
        self, adapter_cls, probe, make_proxy, live_settings, fake_sleep
    ) -> None:
        proxy, transport = make_proxy(json_handler({probe: {'ok': True}}))

        assert await _build(adapter_cls, proxy, live_settings, fake_sleep).is_linked() is True
        assert transport.paths == [f'/api{probe}']

    @pytest.mark.parametrize('adapter_cls', ALL_ADAPTERS)
    async def test_is_linked_false_on_failure(
        self, adapter_cls, make_proxy, live_settings, fake_sleep
    ) -> None:
        """A failing probe reports False instead of raising."""
        proxy, _ = make_proxy(lambda request: httpx.Response(401))

        assert await _build(adapter_cls, proxy, live_settings, fake_sleep).is_linked() is False

    async def test_is_linked_false_on_empty_body(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, _ = make_proxy(json_handler({'/x/user': {}}))

        assert await _build(XAdapter, proxy, live_settings, fake_sleep).is_linked() is False

    async def test_is_linked_false_in_mock_mode(self, make_proxy, mock_settings, fake_sleep) -> None:
        proxy, transport = make_proxy()

        assert await _build(LinkedInAdapter, proxy, mock_settings, fake_sleep).is_linked() is False
        assert transport.requests == []


class TestEnumeration:
    """Account, site, organization, location and user listings."""

    async def test_gmb_accounts(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, _ = make_proxy(json_handler({
            '/google/gmb/accounts': {'accounts': [{'name': 'accounts/1', 'accountNumber': '123'}]},
        }))

        accounts = await _build(GMBAdapter, proxy, live_settings, fake_sleep).list_accounts()

        assert accounts == [GMBAccount(name='accounts/1', accountNumber='123')]

    async def test_gmb_locations(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, transport = make_proxy(json_handler({
            '/google/gmb/locations': {'locations': [{
                'name': 'locations/9',
                'displayName': 'HQ',
                'address': {'formattedAddress': '1 Road, Nairobi'},
            }]},
        }))

        locations = await _build(GMBAdapter, proxy, live_settings, fake_sleep).list_locations('accounts/1')

        assert locations == [GMBLocation(name='HQ', id='locations/9', address='1 Road, Nairobi')]
        assert transport.requests[0].url.params['accountId'] == 'accounts/1'

    async def test_gmb_locations_fall_back_to_demo_locations(
        self, make_proxy, live_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy(lambda request: httpx.Response(500))

        locations = await _build(GMBAdapter, proxy, live_settings, fake_sleep).list_locations('accounts/1')

        assert locations == MOCK_LOCATIONS
        assert [loc.id for loc in locations] == ['loc_1', 'loc_2']

    async def test_gmb_locations_in_mock_mode(self, make_proxy, mock_settings, fake_sleep) -> None:
        proxy, transport = make_proxy()

        locations = await _build(GMBAdapter, proxy, mock_settings, fake_sleep).list_locations('accounts/1')

        assert len(locations) == 2
        assert transport.requests == []

    async def test_search_console_sites(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, _ = make_proxy(json_handler({
            '/google/search-console/sites': {'siteEntry': [
                {'siteUrl': 'https://example.com/', 'permissionLevel': 'siteOwner'},
            ]},
        }))

        sites = await _build(SearchConsoleAdapter, proxy, live_settings, fake_sleep).list_sites()

        assert sites == [SearchConsoleSite(siteUrl='https://example.com/', permissionLevel='siteOwner')]

    async def test_linkedin_organizations(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, _ = make_proxy(json_handler({
            '/linkedin/organizations': {'elements': [
                {'organization': 'urn:li:organization:1', 'organization~': {'localizedName': 'Acme'}},
                {'organization': 'urn:li:organization:2'},
            ]},
        }))

        orgs = await _build(LinkedInAdapter, proxy, live_settings, fake_sleep).list_organizations()

        assert orgs == [
            LinkedInOrganization(id='urn:li:organization:1', name='Acme'),
            LinkedInOrganization(id='urn:li:organization:2', name='urn:li:organization:2'),
        ]

    @pytest.mark.parametrize('adapter_cls', [GMBAdapter, SearchConsoleAdapter, LinkedInAdapter])
    async def test_listing_failure_returns_empty(
        self, adapter_cls, make_proxy, live_settings, fake_sleep
    ) -> None:
        proxy, _ = make_proxy(lambda request: httpx.Response(500))

        assert await _build(adapter_cls, proxy, live_settings, fake_sleep).list_accounts() == []

    async def test_platform_without_hierarchy_lists_nothing(
        self, make_proxy, live_settings, fake_sleep
    ) -> None:
        proxy, transport = make_proxy()
        adapter = _build(ShopifyAdapter, proxy, live_settings, fake_sleep)

        assert adapter.has_accounts is False
        assert await adapter.list_accounts() == []
        assert transport.requests == []

    async def test_x_user(self, make_proxy, live_settings, fake_sleep) -> None:
        proxy, _ = make_proxy(json_handler({'/x/user': {'data': {'id': '42', 'username': 'acme'}}}))

        user = await _build(XAdapter, proxy, live_settings, fake_sleep).get_user()

        assert user == {'data': {'id': '42', 'username': 'acme'}}

    async def test_x_user_mock_mode_is_empty(self, make_proxy, mock_settings, fake_sleep) -> None:
        proxy, transport = make_proxy()

        assert await _build(XAdapter, proxy, mock_settings, fake_sleep).get_user() == {}
        assert transport.requests == []


# =============================================================================
# Registry
# =============================================================================


class TestRegistry:
    """Explicit adapter registry lifecycle."""

    async def test_registry_requires_initialization(self) -> None:
        with pytest.raises(RuntimeError):
            get_adapter_registry()

    async def test_init_adapters_builds_every_platform(self, make_proxy, mock_settings) -> None:
        proxy, _ = make_proxy()

        registry = init_adapters(mock_settings, proxy)

        assert get_adapter_registry() is registry
        assert len(registry) == 6
        assert {adapter.platform_id for adapter in registry} == set(PlatformId)
        assert isinstance(registry.get('shopify'), ShopifyAdapter)
        assert isinstance(registry.get(PlatformId.GMB), GMBAdapter)

    async def test_unknown_platform_raises_key_error(self, make_proxy, mock_settings) -> None:
        proxy, _ = make_proxy()
        registry = build_adapters(mock_settings, proxy)

        with pytest.raises(KeyError):
            registry.get('tiktok_ads')
        assert 'tiktok_ads' not in registry
        assert 'linkedin' in registry

    async def test_reset_drops_registry(self, make_proxy, mock_settings) -> None:
        proxy, _ = make_proxy()
        init_adapters(mock_settings, proxy)

        reset_adapters()

        with pytest.raises(RuntimeError):
            get_adapter_registry()
