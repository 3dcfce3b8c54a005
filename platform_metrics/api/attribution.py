"""
FastAPI router module for multi-touch attribution.

This module implements endpoints for:
- The attribution model catalogue
- Running one model over a customer journey
- Generating a demo journey for the dashboard
"""

import logging
from typing import List

from fastapi import APIRouter

from platform_metrics.core.dependencies import SettingsDep
from platform_metrics.models import (
    AttributionModel,
    AttributionRequest,
    AttributionResult,
    MockJourneyRequest,
    TouchPoint,
)
from platform_metrics.services.attribution import (
    ATTRIBUTION_MODELS,
    calculate_attribution,
    generate_mock_journey,
)
from platform_metrics.services.mock_data import make_random_source

# Configure logging
logger = logging.getLogger(__name__)

# Create router with prefix and tags for OpenAPI documentation
router = APIRouter(prefix="/attribution", tags=["attribution"])


@router.get("/models", response_model=List[AttributionModel])
async def list_attribution_models() -> List[AttributionModel]:
    return ATTRIBUTION_MODELS


@router.post("", response_model=List[AttributionResult])
async def run_attribution(request: AttributionRequest) -> List[AttributionResult]:
    """
    Split revenue and conversions across the platforms of a journey.

    Returns an empty list for an empty journey. Contributions are percentages
    that sum to 100.
    """
    results = calculate_attribution(
        request.touchPoints,
        request.model,
        request.totalRevenue,
        request.totalConversions,
    )
    logger.info(
        f"Attribution ({request.model.value}) over {len(request.touchPoints)} touch points "
        f"-> {len(results)} platforms"
    )
    return results


@router.post("/mock-journey", response_model=List[TouchPoint])
async def mock_journey(request: MockJourneyRequest, settings: SettingsDep) -> List[TouchPoint]:
    """Five-touch demo journey over the requested platforms."""
    return generate_mock_journey(request.platforms, rng=make_random_source(settings.mock_seed))
