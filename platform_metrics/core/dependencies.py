"""
FastAPI dependency injection module for the Platform Metrics backend.

Provides reusable dependencies so endpoint handlers never reach for module
globals directly, and tests can swap any of them through
``app.dependency_overrides``.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_adapter_registry_dependency: Returns the provider adapter registry
- SettingsDep / AdapterRegistryDep: Annotated type aliases

Usage Examples:
    @router.get("/platforms/{platform_id}/metrics")
    async def get_metrics(
        platform_id: PlatformId,
        registry: AdapterRegistryDep,
    ) -> PlatformData:
        return await registry.get(platform_id).fetch_data(...)
"""

from typing import Annotated

from fastapi import Depends

from platform_metrics.core.config import Settings, get_settings
from platform_metrics.services.adapters import AdapterRegistry, get_adapter_registry


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so tests can override it:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings
    """
    return get_settings()


# =============================================================================
# Adapter Registry Dependency
# =============================================================================

def get_adapter_registry_dependency() -> AdapterRegistry:
    """
    Return the adapter registry built by the application lifespan.

    Raises:
        RuntimeError: If the lifespan has not initialized the registry.
    """
    return get_adapter_registry()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: async def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: async def endpoint(registry: AdapterRegistryDep)
AdapterRegistryDep = Annotated[AdapterRegistry, Depends(get_adapter_registry_dependency)]
