"""
Settings and environment management module for the Platform Metrics backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for local development against the backend proxy
- Singleton pattern via @lru_cache for efficient access
- Global mock-data switch for demo and test runs without network access

Environment Variables:
- USE_MOCK_DATA: Skip live provider calls and serve synthetic data (default: false)
- API_BASE_URL: Backend proxy base URL (default: http://localhost:3000/api)
- API_FALLBACK_URL: Secondary proxy base used when the primary is unreachable
- API_BEARER_TOKEN: Bearer token forwarded to the backend proxy
- API_TIMEOUT: Upper bound in seconds for a single live fetch (default: 15)
- MOCK_LATENCY_ENABLED: Simulate provider latency in mock responses (default: true)
- MOCK_SEED: Seed for the mock data random source (default: unseeded)
- LOG_LEVEL: Root logging level (default: INFO)

Usage:
    from platform_metrics.core.config import get_settings

    settings = get_settings()
    if settings.use_mock_data:
        ...
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        use_mock_data: Global switch; when set, adapters never touch the network.
        api_base_url: Base URL of the authenticated backend proxy.
        api_fallback_url: Optional secondary proxy base URL.
        api_bearer_token: Optional bearer token sent with every proxy request.
        api_timeout: Seconds before a live fetch is abandoned for mock data.
        mock_latency_enabled: Whether mock responses sleep their simulated latency.
        mock_seed: Seed for the adapters' random source; None means unseeded.
        log_level: Root logging level name.
        cors_origins: Origins allowed by the CORS middleware.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Data Source Mode
    # =========================================================================

    # Demo / test mode: every fetch is served by the mock generator
    use_mock_data: bool = False

    # =========================================================================
    # Backend Proxy
    # =========================================================================

    # The proxy owns OAuth tokens; adapters only ever talk to it
    api_base_url: str = 'http://localhost:3000/api'
    api_fallback_url: Optional[str] = None
    api_bearer_token: Optional[str] = None

    # A hung proxy call is abandoned after this many seconds and the caller
    # receives mock data instead
    api_timeout: float = 15.0

    # =========================================================================
    # Mock Generator
    # =========================================================================

    mock_latency_enabled: bool = True
    mock_seed: Optional[int] = None

    # =========================================================================
    # Service
    # =========================================================================

    log_level: str = 'INFO'
    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
        'http://localhost:5173',
    ]


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns a cached Settings instance so environment variables are only
    read once per process.

    Returns:
        Settings: The application settings instance.

    Note:
        To refresh settings in tests, clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
