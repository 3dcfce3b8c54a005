"""
Pytest Configuration and Shared Fixtures for Platform Metrics Backend Tests.

This module provides fixtures for all backend tests, supporting:
- Async test execution with pytest-asyncio
- Settings factories that never read the developer's .env file
- A recording httpx.MockTransport standing in for the backend proxy, so tests
  can assert exactly which proxy calls an adapter made (or that it made none)
- A fake clock and sleep for deterministic rate-limiter timing
- Seeded random sources for reproducible mock data
- Sample PlatformData payloads for insights, normalization and export tests
"""

import random
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from platform_metrics.core.config import Settings
from platform_metrics.core.http import ProxyClient
from platform_metrics.models import ChartPoint, DataSource, Metric, PlatformData
from platform_metrics.services.adapters import reset_adapters
from platform_metrics.services.normalization import trend_for_change


PROXY_BASE_URL = 'http://proxy.test/api'


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom markers.

    - slow: tests that wait on the real clock (deselect with -m "not slow")
    """
    config.addinivalue_line("markers", "slow: marks tests that wait on wall-clock time")


# ============================================================
# SETTINGS FIXTURES
# ============================================================

@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """
    Factory for Settings isolated from the environment's .env file.

    Defaults: live mode, no simulated latency, proxy at PROXY_BASE_URL.
    """
    def _make(**overrides: Any) -> Settings:
        values: Dict[str, Any] = {
            'use_mock_data': False,
            'mock_latency_enabled': False,
            'api_base_url': PROXY_BASE_URL,
            'api_timeout': 2.0,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def live_settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def mock_settings(make_settings) -> Settings:
    return make_settings(use_mock_data=True)


# ============================================================
# RANDOMNESS
# ============================================================

@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(1234)


# ============================================================
# PROXY TRANSPORT FIXTURES
# ============================================================

class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it was asked to handle."""

    def __init__(self, handler: Callable[[httpx.Request], Any]):
        self.requests: List[httpx.Request] = []

        def _record(request: httpx.Request):
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)

    @property
    def paths(self) -> List[str]:
        return [request.url.path for request in self.requests]


def json_handler(routes: Dict[str, Any], default_status: int = 404) -> Callable[[httpx.Request], httpx.Response]:
    """
    Build a handler answering ``routes`` (proxy path -> JSON body).

    Paths are relative to the proxy base, e.g. ``/shopify/metrics``.
    """
    prefix = httpx.URL(PROXY_BASE_URL).path

    def _handle(request: httpx.Request) -> httpx.Response:
        path = request.url.path[len(prefix):]
        if path in routes:
            return httpx.Response(200, json=routes[path])
        return httpx.Response(default_status, json={'error': 'not found'})

    return _handle


def failing_handler(request: httpx.Request) -> httpx.Response:
    raise AssertionError(f"Unexpected proxy call: {request.method} {request.url}")


@pytest.fixture
def make_proxy() -> Callable[..., tuple]:
    """
    Factory returning ``(ProxyClient, RecordingTransport)`` for a handler.

    Usage:
        proxy, transport = make_proxy(json_handler({'/x/user': {...}}))
    """
    def _make(
        handler: Callable[[httpx.Request], Any] = failing_handler,
        fallback_url: Optional[str] = None,
        bearer_token: Optional[str] = None,
    ) -> tuple:
        transport = RecordingTransport(handler)
        client = ProxyClient(
            base_url=PROXY_BASE_URL,
            fallback_url=fallback_url,
            bearer_token=bearer_token,
            timeout=2.0,
            transport=transport,
        )
        return client, transport

    return _make


# ============================================================
# CLOCK FIXTURES
# ============================================================

class FakeClock:
    """Monotonic clock advanced only by FakeSleep (or explicitly)."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeSleep:
    """Async sleep that records durations and advances a FakeClock."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_sleep(fake_clock) -> FakeSleep:
    return FakeSleep(fake_clock)


# ============================================================
# REGISTRY CLEANUP
# ============================================================

@pytest.fixture(autouse=True)
def _reset_adapter_registry():
    """Every test starts and ends without a process-wide adapter registry."""
    reset_adapters()
    yield
    reset_adapters()


# ============================================================
# SAMPLE PLATFORM DATA
# ============================================================

def make_metric(label: str, value: str, change: str, key: Optional[str] = None) -> Metric:
    return Metric(key=key, label=label, value=value, change=change, trend=trend_for_change(change))


@pytest.fixture
def shopify_data() -> PlatformData:
    return PlatformData(
        id='shopify',
        metrics=[
            make_metric('Revenue', 'KES 250,000', '+8%', key='revenue'),
            make_metric('Orders', '520', '+5%', key='orders'),
            make_metric('AOV', 'KES 481', '+2%', key='aov'),
            make_metric('Repeat Rate', '21.4%', '+1%', key='repeat_rate'),
        ],
        chartData=[ChartPoint(name='Mon', value=35000), ChartPoint(name='Tue', value=36000)],
        source=DataSource.MOCK,
    )


@pytest.fixture
def hubspot_data() -> PlatformData:
    return PlatformData(
        id='hubspot',
        metrics=[
            make_metric('Deals Created', '84', '+6%', key='deals_created'),
            make_metric('Deals Won', '30', '+4%', key='deals_won'),
            make_metric('Pipeline Value', 'KES 1,260,000', '+7%', key='pipeline_value'),
            make_metric('Win Rate', '35.7%', '+1%', key='win_rate'),
            make_metric('Avg Cycle (days)', '17', '-1', key='avg_cycle'),
        ],
        source=DataSource.MOCK,
    )
