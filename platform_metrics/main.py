"""
FastAPI application entry point for the Platform Metrics API.

This module wires the service together: it configures logging and CORS,
creates the shared proxy client and the provider adapter registry at startup,
registers the API routers, and closes the client at shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from platform_metrics import __version__
from platform_metrics.api import api_router
from platform_metrics.core.config import get_settings
from platform_metrics.core.http import close_client, init_client
from platform_metrics.services.adapters import init_adapters, reset_adapters

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Create the shared backend proxy client
        - Build the provider adapter registry (one rate limiter per adapter)

    On shutdown:
        - Drop the adapter registry
        - Close the proxy client
    """
    # Startup
    logger.info("Platform Metrics API starting")
    client = await init_client(settings)
    init_adapters(settings, client)
    if settings.use_mock_data:
        logger.info("Mock data mode enabled: no provider calls will be made")

    yield

    # Shutdown
    logger.info("Platform Metrics API shutting down")
    reset_adapters()
    await close_client()


# Create FastAPI application
app = FastAPI(
    title="Platform Metrics API",
    version=__version__,
    description=(
        "Aggregates marketing and analytics metrics from Google Business Profile, "
        "Search Console, LinkedIn, X, Shopify and HubSpot into a uniform shape, "
        "with cross-platform insights, attribution and report export."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers (each carries its own prefix)
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy' and the data mode
    """
    return {"status": "healthy", "mockData": settings.use_mock_data}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": "Platform Metrics API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "platform_metrics.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
