"""
Package initialization file for backend models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import data models from platform_metrics.models directly.

Usage:
    from platform_metrics.models import (
        DateRange,
        Metric,
        PlatformData,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from platform_metrics.models.enums import (
    PlatformId,
    DateRange,
    Trend,
    DataSource,
    InsightType,
    Impact,
    TouchType,
    AttributionModelId,
    ExportFormat,
)


# =============================================================================
# Schemas
# =============================================================================

from platform_metrics.models.schemas import (
    # Common metrics contract
    Metric,
    ChartPoint,
    PlatformData,
    NormalizedMetric,
    NormalizedPlatform,
    # Provider account listings
    GMBAccount,
    GMBLocation,
    SearchConsoleSite,
    LinkedInOrganization,
    OAuthUrlResponse,
    LinkStatusResponse,
    PlatformInfo,
    # Insights
    Insight,
    InsightsRequest,
    ForecastRequest,
    ForecastResponse,
    AnomalyRequest,
    AnomalyResponse,
    # Attribution
    TouchPoint,
    AttributionModel,
    AttributionResult,
    AttributionRequest,
    MockJourneyRequest,
    # Report export
    BrandingOptions,
    ExportOptions,
    ReportExportRequest,
    ExportedReport,
)


__all__ = [
    # Enums
    'PlatformId',
    'DateRange',
    'Trend',
    'DataSource',
    'InsightType',
    'Impact',
    'TouchType',
    'AttributionModelId',
    'ExportFormat',
    # Common metrics contract
    'Metric',
    'ChartPoint',
    'PlatformData',
    'NormalizedMetric',
    'NormalizedPlatform',
    # Provider account listings
    'GMBAccount',
    'GMBLocation',
    'SearchConsoleSite',
    'LinkedInOrganization',
    'OAuthUrlResponse',
    'LinkStatusResponse',
    'PlatformInfo',
    # Insights
    'Insight',
    'InsightsRequest',
    'ForecastRequest',
    'ForecastResponse',
    'AnomalyRequest',
    'AnomalyResponse',
    # Attribution
    'TouchPoint',
    'AttributionModel',
    'AttributionResult',
    'AttributionRequest',
    'MockJourneyRequest',
    # Report export
    'BrandingOptions',
    'ExportOptions',
    'ReportExportRequest',
    'ExportedReport',
]
