"""
Shared skeleton for provider adapters.

Every adapter answers ``fetch_data(resource_id, date_range)`` with a
structurally valid PlatformData, whatever the state of the provider:

1. Mock mode (``Settings.use_mock_data``): go straight to the mock generator.
   No rate-limiter token is taken and no network call is made.
2. Otherwise take a rate-limiter token and call the backend proxy endpoint
   scoped to the provider and resource, bounded by ``Settings.api_timeout``.
3. Any failure (transport error, non-2xx, malformed body, timeout) or an empty
   result is logged as a warning and answered by the mock generator.
4. Whichever payload was obtained goes through the provider's ``transform``.

The mock generator emits payloads in the same shape the live proxy returns,
plus an optional ``changes`` map, so one transform serves both paths and the
resulting ``source`` field tells callers which path produced the data.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, ClassVar, Dict, List, Mapping, Optional

from platform_metrics.core.config import Settings
from platform_metrics.core.http import EmptyPayloadError, MalformedPayloadError, ProxyClient
from platform_metrics.models import (
    ChartPoint,
    DataSource,
    DateRange,
    Metric,
    PlatformData,
    PlatformId,
    Trend,
)
from platform_metrics.services.mock_data import (
    DEFAULT_CHART,
    ChartConvention,
    RandomSource,
    make_random_source,
    synthesize_series,
)
from platform_metrics.services.normalization import trend_for_change
from platform_metrics.services.rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)


class PlatformAdapter:
    """
    Base class for the per-provider adapters.

    Subclasses set the class-level policy constants and implement
    ``live_params``, ``is_empty``, ``generate_mock_payload`` and ``transform``.

    Args:
        client: Proxy client used for live calls.
        settings: Application settings (mock mode, timeout, latency switch).
        rng: Random source for mock data and chart jitter. Defaults to a
            ``random.Random`` seeded with ``settings.mock_seed``.
        sleep: Coroutine used for simulated latency and limiter waits.
        rate_limiter: Overrides the adapter's own limiter (tests only).
    """

    platform_id: ClassVar[PlatformId]
    display_name: ClassVar[str]

    # Backend proxy routes
    metrics_path: ClassVar[str]
    link_probe_path: ClassVar[str]
    oauth_path: ClassVar[str]
    oauth_params: ClassVar[Optional[Dict[str, str]]] = None

    # Whether list_accounts() enumerates an account hierarchy
    has_accounts: ClassVar[bool] = False

    # Policy constants
    rate_limit_capacity: ClassVar[int] = 10
    rate_limit_refill_per_second: ClassVar[float] = 2.0
    mock_latency_seconds: ClassVar[float] = 0.3
    chart_convention: ClassVar[ChartConvention] = DEFAULT_CHART

    def __init__(
        self,
        client: ProxyClient,
        settings: Settings,
        rng: Optional[RandomSource] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rate_limiter: Optional[TokenBucketRateLimiter] = None,
    ):
        self.client = client
        self.settings = settings
        self.rng = rng if rng is not None else make_random_source(settings.mock_seed)
        self._sleep = sleep
        self.rate_limiter = rate_limiter or TokenBucketRateLimiter(
            self.rate_limit_capacity,
            self.rate_limit_refill_per_second,
            sleep=sleep,
        )

    # =========================================================================
    # Connectivity
    # =========================================================================

    async def get_oauth_url(self) -> str:
        """
        Ask the proxy for an authorization URL to start linking the provider.

        Raises:
            ProxyError: If the proxy call fails or returns no URL.
        """
        payload = await self.client.get(self.oauth_path, params=self.oauth_params)
        url = payload.get('url')
        if not isinstance(url, str) or not url:
            raise MalformedPayloadError(f"OAuth start for {self.platform_id.value} returned no url")
        return url

    async def is_linked(self) -> bool:
        """Probe the provider through the proxy. Never raises."""
        if self.settings.use_mock_data:
            return False
        try:
            payload = await self.client.get(self.link_probe_path)
        except Exception as exc:
            logger.info(f"{self.display_name} link probe failed: {exc}")
            return False
        return bool(payload)

    async def list_accounts(self) -> list:
        """Enumerate linked accounts; providers without a hierarchy return []."""
        return []

    async def _get_optional(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """GET for enumeration calls: None in mock mode or on any failure."""
        if self.settings.use_mock_data:
            return None
        try:
            return await self.client.get(path, params=params)
        except Exception as exc:
            logger.warning(f"{self.display_name} request to {path} failed: {exc}")
            return None

    # =========================================================================
    # Fetch
    # =========================================================================

    async def fetch_data(self, resource_id: str, date_range: DateRange) -> PlatformData:
        """
        Fetch metrics for one resource and reporting window.

        Never raises for provider unavailability: the mock generator answers
        whenever the live path fails or comes back empty.
        """
        date_range = DateRange(date_range)

        if self.settings.use_mock_data:
            return await self.execute_mock_query(resource_id, date_range)

        try:
            await self.rate_limiter.consume()
            payload = await asyncio.wait_for(
                self.client.get(self.metrics_path, params=self.live_params(resource_id, date_range)),
                timeout=self.settings.api_timeout,
            )
            if self.is_empty(payload):
                raise EmptyPayloadError(f"no rows for resource '{resource_id}'")
            return self.transform(payload, date_range, DataSource.LIVE)
        except Exception as exc:
            logger.warning(
                f"[{self.display_name}] Falling back to mock data for '{resource_id}' "
                f"({date_range.value}): {exc!r}"
            )

        return await self.execute_mock_query(resource_id, date_range)

    async def execute_mock_query(self, resource_id: str, date_range: DateRange) -> PlatformData:
        """Simulate provider latency, generate a synthetic payload, transform it."""
        date_range = DateRange(date_range)
        if self.settings.mock_latency_enabled:
            await self._sleep(self.mock_latency_seconds)
        payload = self.generate_mock_payload(resource_id, date_range)
        return self.transform(payload, date_range, DataSource.MOCK)

    # =========================================================================
    # Provider Hooks
    # =========================================================================

    def live_params(self, resource_id: str, date_range: DateRange) -> Dict[str, str]:
        raise NotImplementedError

    def is_empty(self, payload: Dict[str, Any]) -> bool:
        raise NotImplementedError

    def generate_mock_payload(self, resource_id: str, date_range: DateRange) -> Dict[str, Any]:
        raise NotImplementedError

    def transform(
        self,
        payload: Dict[str, Any],
        date_range: DateRange,
        source: DataSource,
    ) -> PlatformData:
        raise NotImplementedError

    # =========================================================================
    # Transform Helpers
    # =========================================================================

    @staticmethod
    def metric(
        key: str,
        label: str,
        value: str,
        change: str,
        trend: Optional[Trend] = None,
    ) -> Metric:
        return Metric(
            key=key,
            label=label,
            value=value,
            change=change,
            trend=trend or trend_for_change(change),
        )

    @staticmethod
    def change_for(payload: Mapping[str, Any], key: str, default: str) -> str:
        changes = payload.get('changes') or {}
        change = changes.get(key)
        return change if isinstance(change, str) and change else default

    def chart(
        self,
        date_range: DateRange,
        total: float,
        low: float = 0.8,
        high: float = 1.2,
    ) -> List[ChartPoint]:
        return synthesize_series(
            self.chart_convention.labels(date_range),
            total,
            self.rng,
            low=low,
            high=high,
        )
