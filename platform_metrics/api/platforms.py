"""
FastAPI router module for per-platform data and connectivity endpoints.

This module implements endpoints for:
- Platform catalogue (ids, display names, rate-limit policy)
- Metric fetches through the provider adapters (live with mock fallback)
- OAuth link start URLs and link status probes
- Account enumeration for platforms with an account hierarchy
- Google Business Profile location listing

Metric fetches never fail because a provider is unavailable: the adapter
answers with mock data and ``PlatformData.source`` says so.
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException, Query

from platform_metrics.core.dependencies import AdapterRegistryDep
from platform_metrics.core.http import ProxyError
from platform_metrics.models import (
    DateRange,
    GMBLocation,
    LinkStatusResponse,
    OAuthUrlResponse,
    PlatformData,
    PlatformId,
    PlatformInfo,
)
from platform_metrics.services.adapters import AdapterRegistry, PlatformAdapter

# Configure logging
logger = logging.getLogger(__name__)

# Create router with prefix and tags for OpenAPI documentation
router = APIRouter(prefix="/platforms", tags=["platforms"])


# =============================================================================
# Helper Functions
# =============================================================================


def _resolve_adapter(registry: AdapterRegistry, platform_id: str) -> PlatformAdapter:
    """
    Look up the adapter for a path parameter.

    Raises:
        HTTPException 404: If the platform id is unknown
    """
    try:
        return registry.get(platform_id)
    except KeyError:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown platform '{platform_id}'",
        )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=List[PlatformInfo])
async def list_platforms(registry: AdapterRegistryDep) -> List[PlatformInfo]:
    """List every supported platform with its rate-limit policy."""
    return [
        PlatformInfo(
            id=adapter.platform_id.value,
            name=adapter.display_name,
            hasAccounts=adapter.has_accounts,
            rateLimitCapacity=adapter.rate_limit_capacity,
            rateLimitRefillPerSecond=adapter.rate_limit_refill_per_second,
        )
        for adapter in registry
    ]


@router.get("/gmb/locations", response_model=List[GMBLocation])
async def list_gmb_locations(
    registry: AdapterRegistryDep,
    account_id: str = Query(..., min_length=1, description="Google Business Profile account id"),
) -> List[GMBLocation]:
    """
    List the locations of a Google Business Profile account.

    Returns the demo locations in mock mode or when the proxy call fails.
    """
    return await registry.get(PlatformId.GMB).list_locations(account_id)


@router.get("/{platform_id}/metrics", response_model=PlatformData)
async def get_platform_metrics(
    platform_id: str,
    registry: AdapterRegistryDep,
    resource_id: str = Query(
        default="",
        description="Location id, site URL, organization id, store id or portal id",
    ),
    date_range: DateRange = Query(default=DateRange.WEEKLY, description="Reporting window"),
) -> PlatformData:
    """
    Fetch metrics for one platform resource and reporting window.

    Args:
        platform_id: Platform identifier (gmb, search_console, linkedin, x_ads,
            shopify, hubspot)
        resource_id: Provider resource the metrics are scoped to
        date_range: daily, weekly or monthly

    Returns:
        PlatformData with ``source`` set to ``live`` or ``mock``

    Raises:
        HTTPException 404: If the platform id is unknown
    """
    adapter = _resolve_adapter(registry, platform_id)
    return await adapter.fetch_data(resource_id, date_range)


@router.get("/{platform_id}/oauth-url", response_model=OAuthUrlResponse)
async def get_oauth_url(platform_id: str, registry: AdapterRegistryDep) -> OAuthUrlResponse:
    """
    Get the authorization URL that starts linking a platform.

    Raises:
        HTTPException 404: If the platform id is unknown
        HTTPException 502: If the backend proxy cannot issue a URL
    """
    adapter = _resolve_adapter(registry, platform_id)
    try:
        url = await adapter.get_oauth_url()
    except ProxyError as e:
        logger.error(f"OAuth start failed for {platform_id}: {e}")
        raise HTTPException(
            status_code=502,
            detail=f"Could not start OAuth flow for {platform_id}: {str(e)}",
        )
    return OAuthUrlResponse(url=url)


@router.get("/{platform_id}/linked", response_model=LinkStatusResponse)
async def get_link_status(
    platform_id: str,
    registry: AdapterRegistryDep,
) -> LinkStatusResponse:
    """Report whether the platform answers an authenticated probe."""
    adapter = _resolve_adapter(registry, platform_id)
    return LinkStatusResponse(platform=adapter.platform_id.value, linked=await adapter.is_linked())


@router.get("/{platform_id}/accounts", response_model=List[Dict[str, Any]])
async def list_platform_accounts(
    platform_id: str,
    registry: AdapterRegistryDep,
) -> List[Dict[str, Any]]:
    """
    Enumerate the accounts, sites or organizations of a linked platform.

    Raises:
        HTTPException 404: If the platform is unknown or has no account hierarchy
    """
    adapter = _resolve_adapter(registry, platform_id)
    if not adapter.has_accounts:
        raise HTTPException(
            status_code=404,
            detail=f"Platform '{platform_id}' has no account listing",
        )
    accounts = await adapter.list_accounts()
    return [account.model_dump() for account in accounts]
