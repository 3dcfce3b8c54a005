"""
Backend Services Module

Business logic for the Platform Metrics backend. Everything except the
adapters is a pure function over pydantic models and can be tested without
network access.

Services:
- rate_limiter: Per-provider token-bucket throttle for outbound calls
- adapters: One adapter per data source (fetch, live/mock fallback, transform)
- mock_data: Seedable random source and chart bucket conventions
- normalization: Display formatting and keyed numeric normalization
- attribution: Multi-touch attribution models
- ai_insights: Rule-based insights, forecasting, anomaly detection
- export: CSV / Excel / branded HTML report export

All services are consumed by the API layer (platform_metrics/api/).
"""

# =============================================================================
# Rate Limiter Exports
# =============================================================================

from platform_metrics.services.rate_limiter import TokenBucketRateLimiter

# =============================================================================
# Adapter Exports
# Registry lifecycle plus the six provider adapters
# =============================================================================

from platform_metrics.services.adapters import (
    ADAPTER_CLASSES,
    AdapterRegistry,
    PlatformAdapter,
    build_adapters,
    init_adapters,
    get_adapter_registry,
    reset_adapters,
)

# =============================================================================
# Normalization Exports
# =============================================================================

from platform_metrics.services.normalization import (
    extract_number,
    extract_percent,
    format_number,
    format_currency,
    format_percent,
    normalize_shopify,
    normalize_hubspot,
    normalize_platform,
)

# =============================================================================
# Attribution Exports
# =============================================================================

from platform_metrics.services.attribution import (
    ATTRIBUTION_MODELS,
    calculate_attribution,
    generate_mock_journey,
)

# =============================================================================
# Insight Exports
# =============================================================================

from platform_metrics.services.ai_insights import (
    generate_insights,
    get_platform_name,
    forecast_metric,
    detect_anomalies,
)

# =============================================================================
# Export Exports
# =============================================================================

from platform_metrics.services.export import export_report


__all__ = [
    # ----- Rate Limiter -----
    'TokenBucketRateLimiter',
    # ----- Adapters -----
    'ADAPTER_CLASSES',
    'AdapterRegistry',
    'PlatformAdapter',
    'build_adapters',
    'init_adapters',
    'get_adapter_registry',
    'reset_adapters',
    # ----- Normalization -----
    'extract_number',
    'extract_percent',
    'format_number',
    'format_currency',
    'format_percent',
    'normalize_shopify',
    'normalize_hubspot',
    'normalize_platform',
    # ----- Attribution -----
    'ATTRIBUTION_MODELS',
    'calculate_attribution',
    'generate_mock_journey',
    # ----- Insights -----
    'generate_insights',
    'get_platform_name',
    'forecast_metric',
    'detect_anomalies',
    # ----- Export -----
    'export_report',
]
