"""
Pydantic request/response models for the Platform Metrics backend.

This module provides type-safe data validation and serialization for the
common metrics contract (PlatformData), the analytics engines (insights and
attribution), provider account listings, and report export.

Field names follow the camelCase wire format consumed by the dashboard so the
models serialize without aliases.

All models use Pydantic v2 syntax.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from platform_metrics.models.enums import (
    AttributionModelId,
    DataSource,
    ExportFormat,
    Impact,
    InsightType,
    TouchType,
    Trend,
)


# =============================================================================
# Common Metrics Contract
# =============================================================================


class Metric(BaseModel):
    """
    A single display-ready KPI.

    ``value`` and ``change`` are pre-formatted strings: formatting happens at
    the adapter boundary, never in the UI. ``key`` is a stable semantic name
    set by the adapter and used for keyed lookups during normalization.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "key": "revenue",
                "label": "Revenue",
                "value": "KES 250,000",
                "change": "+8%",
                "trend": "up",
            }
        },
    )

    label: str = Field(..., description="Human readable metric name")
    value: str = Field(..., description="Formatted metric value")
    change: str = Field(..., description="Formatted period-over-period change")
    trend: Trend = Field(..., description="Direction of the change")
    key: Optional[str] = Field(
        default=None,
        description="Stable semantic key (e.g. 'revenue', 'win_rate')",
    )


class ChartPoint(BaseModel):
    """One bucket of a chronological chart series."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Bucket label (hour, weekday, or day)")
    value: float = Field(..., description="Bucket value")


class PlatformData(BaseModel):
    """
    Common output of every adapter fetch.

    Created fresh per (platform, date range) query and never mutated after
    construction. ``source`` tells callers whether the numbers are real or
    synthetic fallback data.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "shopify",
                "metrics": [
                    {"key": "revenue", "label": "Revenue", "value": "KES 250,000",
                     "change": "+8%", "trend": "up"}
                ],
                "chartData": [{"name": "Mon", "value": 35000}],
                "source": "mock",
            }
        },
    )

    id: str = Field(..., description="Platform identifier")
    metrics: List[Metric] = Field(default_factory=list)
    chartData: Optional[List[ChartPoint]] = Field(
        default=None,
        description="Chronologically ordered chart series",
    )
    source: DataSource = Field(
        default=DataSource.LIVE,
        description="Whether the data came from the live proxy or the mock generator",
    )

    def get_metric(self, key: str) -> Optional[Metric]:
        """Look up a metric by semantic key, falling back to its label."""
        for metric in self.metrics:
            if metric.key == key:
                return metric
        for metric in self.metrics:
            if metric.label == key:
                return metric
        return None


# =============================================================================
# Normalized (numeric) Metrics
# =============================================================================


class NormalizedMetric(BaseModel):
    """Numeric, semantically keyed metric used for cross-platform aggregation."""
    key: str
    label: str
    unit: str = Field(default="", description="'KES', '%', 'days' or empty")
    value: float = 0.0


class NormalizedPlatform(BaseModel):
    """Numeric view of a PlatformData payload."""
    platform: str
    metrics: List[NormalizedMetric] = Field(default_factory=list)
    chart: Optional[List[ChartPoint]] = None

    def value_of(self, key: str) -> float:
        for metric in self.metrics:
            if metric.key == key:
                return metric.value
        return 0.0


# =============================================================================
# Provider Account Listings
# =============================================================================


class GMBAccount(BaseModel):
    """Google Business Profile account."""
    name: str
    accountNumber: Optional[str] = None


class GMBLocation(BaseModel):
    """Google Business Profile location."""
    name: str
    id: str
    address: Optional[str] = None


class SearchConsoleSite(BaseModel):
    """Verified Search Console property."""
    siteUrl: str
    permissionLevel: Optional[str] = None


class LinkedInOrganization(BaseModel):
    """LinkedIn organization administered by the linked member."""
    id: str
    name: str


class OAuthUrlResponse(BaseModel):
    """Authorization URL issued by the backend proxy."""
    url: str


class LinkStatusResponse(BaseModel):
    """Connectivity probe result for a platform."""
    platform: str
    linked: bool


class PlatformInfo(BaseModel):
    """Catalogue entry for one supported platform."""
    id: str
    name: str
    hasAccounts: bool = False
    rateLimitCapacity: int
    rateLimitRefillPerSecond: float


# =============================================================================
# Insights
# =============================================================================


class Insight(BaseModel):
    """
    Derived, read-only observation about a platform metric.

    Regenerated on every analysis call; never persisted as a source of truth.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "insight_1",
                "type": "success",
                "title": "Strong Revenue Growth",
                "description": "Your Revenue increased by +25% on Shopify.",
                "impact": "high",
                "platform": "shopify",
                "metric": "Revenue",
                "recommendation": "Continue current strategy.",
                "createdAt": "2026-01-01T00:00:00Z",
            }
        }
    )

    id: str
    type: InsightType
    title: str
    description: str
    impact: Impact
    platform: str
    metric: Optional[str] = None
    recommendation: Optional[str] = None
    createdAt: datetime


class InsightsRequest(BaseModel):
    """Map of platform key to its PlatformData (or null when not connected)."""
    platformData: Dict[str, Optional[PlatformData]] = Field(default_factory=dict)


class ForecastRequest(BaseModel):
    """Historical series to extrapolate."""
    historicalData: List[float] = Field(..., min_length=1)
    horizon: int = Field(default=7, ge=1, le=90)


class ForecastResponse(BaseModel):
    forecast: List[int]


class AnomalyRequest(BaseModel):
    values: List[float] = Field(..., min_length=1)
    threshold: float = Field(default=2.0, gt=0)


class AnomalyResponse(BaseModel):
    indices: List[int]


# =============================================================================
# Attribution
# =============================================================================


class TouchPoint(BaseModel):
    """One interaction in a customer journey. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    id: str
    platform: str
    touchType: TouchType
    timestamp: datetime
    value: float = 0.0

    @field_validator("timestamp")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Naive timestamps are read as UTC so journeys always sort."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class AttributionModel(BaseModel):
    """Catalogue entry describing an attribution model."""
    id: AttributionModelId
    name: str
    description: str


class AttributionResult(BaseModel):
    """Credit assigned to one platform in one attribution run."""
    platform: str
    contribution: float = Field(..., description="Percentage of total credit (0-100)")
    revenue: float
    conversions: float


class AttributionRequest(BaseModel):
    touchPoints: List[TouchPoint] = Field(default_factory=list)
    model: AttributionModelId = AttributionModelId.LINEAR
    totalRevenue: float = Field(default=0.0, ge=0)
    totalConversions: float = Field(default=0.0, ge=0)


class MockJourneyRequest(BaseModel):
    platforms: List[str] = Field(default_factory=list)


# =============================================================================
# Report Export
# =============================================================================


class BrandingOptions(BaseModel):
    """White-label branding applied to exported reports."""
    logoUrl: Optional[str] = None
    brandColor: Optional[str] = None
    companyName: Optional[str] = None


class ExportOptions(BaseModel):
    format: ExportFormat = ExportFormat.CSV
    includeLogo: bool = False
    includeCharts: bool = False
    dateRange: Optional[str] = None
    customBranding: Optional[BrandingOptions] = None


class ReportExportRequest(BaseModel):
    """A report to render: header fields plus per-platform data."""
    reportName: str = Field(..., min_length=1)
    clientName: str = Field(..., min_length=1)
    reportDate: str
    platformData: Dict[str, Optional[PlatformData]] = Field(default_factory=dict)
    options: ExportOptions = Field(default_factory=ExportOptions)


class ExportedReport(BaseModel):
    """Rendered report document."""
    content: bytes
    mediaType: str
    filename: str
