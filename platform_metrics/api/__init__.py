"""
Backend API package initialization.

This package contains FastAPI router modules for the Platform Metrics service:
- platforms: Metric fetches, OAuth link URLs, link status, account listings
- insights: Rule-based insights, forecasting, anomaly detection
- attribution: Multi-touch attribution models and demo journeys
- reports: CSV / Excel / branded HTML report export
"""

from fastapi import APIRouter

# Import router modules
from platform_metrics.api.platforms import router as platforms_router
from platform_metrics.api.insights import router as insights_router
from platform_metrics.api.attribution import router as attribution_router
from platform_metrics.api.reports import router as reports_router

# Create main API router; every sub-router carries its own prefix
api_router = APIRouter()

api_router.include_router(platforms_router)
api_router.include_router(insights_router)
api_router.include_router(attribution_router)
api_router.include_router(reports_router)

# Export all routers for selective imports
__all__ = [
    "api_router",
    "platforms_router",
    "insights_router",
    "attribution_router",
    "reports_router",
]
