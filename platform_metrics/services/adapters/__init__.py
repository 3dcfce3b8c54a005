"""
Provider adapters and the adapter registry.

Adapters are not created at import time. The application lifespan builds one
instance per provider with ``init_adapters(settings, client)``; request
handlers then reach them through ``get_adapter_registry()``.

Each adapter owns its own token-bucket rate limiter, so the registry's
lifetime is the limiters' lifetime.

Usage:
    # At application startup (in FastAPI lifespan)
    client = await init_client(settings)
    init_adapters(settings, client)

    # In request handlers
    adapter = get_adapter_registry().get('linkedin')
    data = await adapter.fetch_data('urn:li:organization:1', DateRange.WEEKLY)
"""

import logging
from typing import Dict, Iterator, Optional, Type, Union

from platform_metrics.core.config import Settings
from platform_metrics.core.http import ProxyClient
from platform_metrics.models import PlatformId
from platform_metrics.services.adapters.base import PlatformAdapter
from platform_metrics.services.adapters.gmb import GMBAdapter
from platform_metrics.services.adapters.hubspot import HubSpotAdapter
from platform_metrics.services.adapters.linkedin import LinkedInAdapter
from platform_metrics.services.adapters.search_console import SearchConsoleAdapter
from platform_metrics.services.adapters.shopify import ShopifyAdapter
from platform_metrics.services.adapters.x import XAdapter
from platform_metrics.services.mock_data import RandomSource

logger = logging.getLogger(__name__)


ADAPTER_CLASSES: Dict[PlatformId, Type[PlatformAdapter]] = {
    PlatformId.GMB: GMBAdapter,
    PlatformId.SEARCH_CONSOLE: SearchConsoleAdapter,
    PlatformId.LINKEDIN: LinkedInAdapter,
    PlatformId.X_ADS: XAdapter,
    PlatformId.SHOPIFY: ShopifyAdapter,
    PlatformId.HUBSPOT: HubSpotAdapter,
}


class AdapterRegistry:
    """One adapter instance per platform id."""

    def __init__(self, adapters: Dict[PlatformId, PlatformAdapter]):
        self._adapters = dict(adapters)

    def get(self, platform: Union[PlatformId, str]) -> PlatformAdapter:
        """
        Look up the adapter for a platform.

        Raises:
            KeyError: If the platform id is unknown.
        """
        try:
            return self._adapters[PlatformId(platform)]
        except ValueError:
            raise KeyError(platform) from None

    def __contains__(self, platform: object) -> bool:
        try:
            return PlatformId(platform) in self._adapters
        except ValueError:
            return False

    def __iter__(self) -> Iterator[PlatformAdapter]:
        return iter(self._adapters.values())

    def __len__(self) -> int:
        return len(self._adapters)


def build_adapters(
    settings: Settings,
    client: ProxyClient,
    rng: Optional[RandomSource] = None,
) -> AdapterRegistry:
    """Instantiate every adapter against one client and settings object."""
    return AdapterRegistry({
        platform_id: adapter_cls(client, settings, rng=rng)
        for platform_id, adapter_cls in ADAPTER_CLASSES.items()
    })


# =============================================================================
# Registry Lifecycle
# =============================================================================

# Registry instance - None until init_adapters() is called
_registry: Optional[AdapterRegistry] = None


def init_adapters(settings: Settings, client: ProxyClient) -> AdapterRegistry:
    """Build the process-wide adapter registry, replacing any previous one."""
    global _registry

    _registry = build_adapters(settings, client)
    mode = 'mock' if settings.use_mock_data else 'live'
    logger.info(f"Initialized {len(_registry)} provider adapters ({mode} mode)")
    return _registry


def get_adapter_registry() -> AdapterRegistry:
    """
    Get the process-wide adapter registry.

    Raises:
        RuntimeError: If init_adapters() has not been called.
    """
    if _registry is None:
        raise RuntimeError("Adapter registry not initialized. Call init_adapters() first.")
    return _registry


def reset_adapters() -> None:
    """Drop the registry (shutdown and tests)."""
    global _registry
    _registry = None


__all__ = [
    'ADAPTER_CLASSES',
    'AdapterRegistry',
    'PlatformAdapter',
    'GMBAdapter',
    'SearchConsoleAdapter',
    'LinkedInAdapter',
    'XAdapter',
    'ShopifyAdapter',
    'HubSpotAdapter',
    'build_adapters',
    'init_adapters',
    'get_adapter_registry',
    'reset_adapters',
]
