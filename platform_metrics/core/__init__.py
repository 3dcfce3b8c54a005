"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- The shared httpx client for the authenticated backend proxy
- FastAPI dependency injection utilities (core.dependencies)

Re-exports the configuration and proxy client so other modules can write:

    from platform_metrics.core import get_settings, init_client

Dependencies are imported from ``platform_metrics.core.dependencies``
directly: they depend on the adapter registry, which itself depends on this
package.

Components Re-exported:
    Settings: Pydantic settings class with all configuration parameters
    get_settings: Function returning the cached Settings singleton
    ProxyClient: JSON client for the backend proxy
    ProxyError / MalformedPayloadError / EmptyPayloadError: live-fetch failures
    init_client / get_proxy_client / close_client: proxy client lifecycle
"""

# =============================================================================
# Re-exports from platform_metrics.core.config
# =============================================================================
from platform_metrics.core.config import Settings, get_settings

# =============================================================================
# Re-exports from platform_metrics.core.http
# =============================================================================
from platform_metrics.core.http import (
    ProxyClient,
    ProxyError,
    MalformedPayloadError,
    EmptyPayloadError,
    init_client,
    get_proxy_client,
    close_client,
)


__all__ = [
    # Configuration management (from config.py)
    'Settings',
    'get_settings',
    # Proxy client (from http.py)
    'ProxyClient',
    'ProxyError',
    'MalformedPayloadError',
    'EmptyPayloadError',
    'init_client',
    'get_proxy_client',
    'close_client',
]
