"""
Enumeration definitions for the Platform Metrics backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, enabling automatic serialization and
deserialization in API responses.
"""

from enum import Enum


class PlatformId(str, Enum):
    """
    Identifiers of the data sources served by a provider adapter.

    The value doubles as ``PlatformData.id`` and as the key used by the
    insight generator and report export.
    """
    GMB = "gmb"
    SEARCH_CONSOLE = "search_console"
    LINKEDIN = "linkedin"
    X_ADS = "x_ads"
    SHOPIFY = "shopify"
    HUBSPOT = "hubspot"


class DateRange(str, Enum):
    """
    Reporting window requested from an adapter.

    Each window scales per-day base magnitudes by a fixed multiplier:
    - daily: 1
    - weekly: 7
    - monthly: 30
    """
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def multiplier(self) -> int:
        return {"daily": 1, "weekly": 7, "monthly": 30}[self.value]


class Trend(str, Enum):
    """Display direction of a metric change."""
    UP = "up"
    DOWN = "down"
    NEUTRAL = "neutral"


class DataSource(str, Enum):
    """
    Where a PlatformData payload came from.

    - live: Transformed from a successful backend proxy response
    - mock: Produced by the mock generator (mock mode or live-fetch fallback)
    """
    LIVE = "live"
    MOCK = "mock"


class InsightType(str, Enum):
    """
    Classification of a generated insight.

    - success: Strong growth (change > 20%)
    - alert: Decline (change < -10%)
    - opportunity: Moderate growth (5% < change <= 20%)
    - warning: Stagnation (|change| < 2%)
    """
    SUCCESS = "success"
    WARNING = "warning"
    OPPORTUNITY = "opportunity"
    ALERT = "alert"


class Impact(str, Enum):
    """Impact level of an insight. Insights are ordered high > medium > low."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class TouchType(str, Enum):
    """Kind of interaction recorded for a customer-journey touch point."""
    IMPRESSION = "impression"
    CLICK = "click"
    ENGAGEMENT = "engagement"
    CONVERSION = "conversion"


class AttributionModelId(str, Enum):
    """
    Multi-touch attribution models.

    - last_click: 100% to the last touch
    - first_click: 100% to the first touch
    - linear: Proportional to touch count per platform
    - time_decay: Exponential decay with a 7-day half-life
    - position_based: 40% first, 40% last, 20% across middle touches
    - data_driven: Heuristic score by touch type and value
    """
    LAST_CLICK = "last_click"
    FIRST_CLICK = "first_click"
    LINEAR = "linear"
    TIME_DECAY = "time_decay"
    POSITION_BASED = "position_based"
    DATA_DRIVEN = "data_driven"


class ExportFormat(str, Enum):
    """
    Report export formats.

    - pdf: Branded, print-ready HTML document
    - excel: Tab-separated sheet
    - csv: Comma-separated sheet
    """
    PDF = "pdf"
    EXCEL = "excel"
    CSV = "csv"
