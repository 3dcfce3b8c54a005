"""
FastAPI router module for insight, forecast and anomaly endpoints.

This module implements endpoints for:
- Rule-based insights over a map of platform -> PlatformData
- Metric forecasting (mean + linear trend extrapolation)
- Anomaly detection (population z-score threshold)

Thresholds used by the insight generator:
- change > 20%: success, high impact
- change < -10%: alert, high impact
- 5% < change <= 20%: opportunity, medium impact
- |change| < 2%: warning, medium impact
"""

import logging
from typing import List

from fastapi import APIRouter, HTTPException

from platform_metrics.core.dependencies import SettingsDep
from platform_metrics.models import (
    AnomalyRequest,
    AnomalyResponse,
    ForecastRequest,
    ForecastResponse,
    Insight,
    InsightsRequest,
)
from platform_metrics.services.ai_insights import (
    detect_anomalies,
    forecast_metric,
    generate_insights,
)
from platform_metrics.services.mock_data import make_random_source

# Configure logging
logger = logging.getLogger(__name__)

# Create router with prefix and tags for OpenAPI documentation
router = APIRouter(prefix="/insights", tags=["insights"])


@router.post("", response_model=List[Insight])
async def compute_insights(request: InsightsRequest) -> List[Insight]:
    """
    Generate ranked insights for the supplied platforms.

    Platforms mapped to null are treated as not connected. At most 12
    insights are returned, high impact first.
    """
    insights = generate_insights(request.platformData)
    logger.info(
        f"Generated {len(insights)} insights for {len(request.platformData)} platforms"
    )
    return insights


@router.post("/forecast", response_model=ForecastResponse)
async def forecast_endpoint(request: ForecastRequest, settings: SettingsDep) -> ForecastResponse:
    """
    Extrapolate a historical series.

    Raises:
        HTTPException 400: If the series cannot be forecast
    """
    try:
        forecast = forecast_metric(
            request.historicalData,
            horizon=request.horizon,
            rng=make_random_source(settings.mock_seed),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ForecastResponse(forecast=forecast)


@router.post("/anomalies", response_model=AnomalyResponse)
async def detect_anomalies_endpoint(request: AnomalyRequest) -> AnomalyResponse:
    """Indices of values more than ``threshold`` standard deviations from the mean."""
    return AnomalyResponse(indices=detect_anomalies(request.values, request.threshold))
