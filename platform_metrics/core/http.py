"""
Async HTTP client module for the authenticated backend proxy.

Every provider adapter reaches its third-party API through a backend proxy that
already holds the OAuth tokens. This module owns the single shared
httpx.AsyncClient used for those calls and implements the same singleton
lifecycle the rest of the service relies on.

Key Components:
- ProxyClient: Thin wrapper around httpx.AsyncClient returning decoded JSON
- ProxyError / MalformedPayloadError / EmptyPayloadError: failure taxonomy for
  live fetches (all of them trigger the adapters' mock fallback)
- init_client(): Create the shared client at application startup
- get_proxy_client(): Get the client instance (initializes if needed)
- close_client(): Close the client at application shutdown

Usage:
    # At application startup (in FastAPI lifespan)
    client = await init_client(settings)

    # In services
    payload = await client.get('/linkedin/metrics', params={'dateRange': 'weekly'})

    # At application shutdown
    await close_client()
"""

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from platform_metrics.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================


class ProxyError(Exception):
    """A live call to the backend proxy failed (transport error or non-2xx)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedPayloadError(ProxyError):
    """The proxy answered 2xx but the body is not a JSON object."""


class EmptyPayloadError(ProxyError):
    """The proxy answered with a structurally valid but empty result."""


# =============================================================================
# Client
# =============================================================================


class ProxyClient:
    """
    JSON client for the backend proxy.

    Requests go to ``base_url`` first. When the primary host cannot be reached
    at the transport level and a ``fallback_url`` is configured, the request is
    retried once against the fallback host.

    Args:
        base_url: Primary proxy base URL.
        fallback_url: Optional secondary base URL.
        bearer_token: Optional token sent as ``Authorization: Bearer ...``.
        timeout: Per-request httpx timeout in seconds.
        transport: Optional httpx transport (tests pass an httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        fallback_url: Optional[str] = None,
        bearer_token: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {'Accept': 'application/json'}
        if bearer_token:
            headers['Authorization'] = f'Bearer {bearer_token}'

        self.base_url = base_url.rstrip('/')
        self.fallback_url = fallback_url.rstrip('/') if fallback_url else None
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> 'ProxyClient':
        return cls(
            base_url=settings.api_base_url,
            fallback_url=settings.api_fallback_url,
            bearer_token=settings.api_bearer_token,
            timeout=settings.api_timeout,
            transport=transport,
        )

    async def get(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        GET ``path`` from the proxy and return the decoded JSON object.

        Raises:
            ProxyError: On transport failure or a non-2xx status.
            MalformedPayloadError: If the body is not a JSON object.
        """
        try:
            response = await self._client.get(f'{self.base_url}{path}', params=params)
        except httpx.TransportError as exc:
            if not self.fallback_url:
                raise ProxyError(f'GET {path} failed: {exc!r}') from exc
            logger.warning(f"Primary proxy unreachable for {path}, retrying on fallback: {exc!r}")
            try:
                response = await self._client.get(f'{self.fallback_url}{path}', params=params)
            except httpx.TransportError as fallback_exc:
                raise ProxyError(f'GET {path} failed on fallback: {fallback_exc!r}') from fallback_exc

        if not response.is_success:
            raise ProxyError(
                f'GET {path} returned status {response.status_code}',
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedPayloadError(f'GET {path} returned a non-JSON body') from exc

        if not isinstance(payload, dict):
            raise MalformedPayloadError(
                f'GET {path} returned {type(payload).__name__}, expected an object'
            )
        return payload

    async def aclose(self) -> None:
        await self._client.aclose()


# =============================================================================
# Client Lifecycle
# =============================================================================

# Shared client instance - None until init_client() is called
_client: Optional[ProxyClient] = None


async def init_client(settings: Optional[Settings] = None) -> ProxyClient:
    """
    Initialize the shared proxy client.

    Idempotent: returns the existing client if one was already created.

    Args:
        settings: Settings to build the client from (defaults to get_settings()).

    Returns:
        ProxyClient: The shared client instance.
    """
    global _client

    if _client is None:
        settings = settings or get_settings()
        _client = ProxyClient.from_settings(settings)
        logger.info(f"Proxy client initialized for {settings.api_base_url}")

    return _client


async def get_proxy_client() -> ProxyClient:
    """Get the shared proxy client, initializing it on first use."""
    if _client is None:
        return await init_client()
    return _client


async def close_client() -> None:
    """Close the shared proxy client. Safe to call when it was never created."""
    global _client

    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("Proxy client closed")
