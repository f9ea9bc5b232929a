"""
FastAPI application entry point for the Behavioral Drivers API.

Configures logging and CORS, registers the analysis router, and starts the
ASGI server when run directly.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from behavioral_drivers import __version__
from behavioral_drivers.api import api_router
from behavioral_drivers.core.config import get_settings

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    The service holds no connections or pools; startup only logs the analysis
    thresholds in effect so runs can be traced back to their configuration.
    """
    logger.info("Behavioral Drivers API starting")
    logger.info(
        f"Tipping point thresholds: min_bucket_size={settings.tipping_min_bucket_size}, "
        f"min_conversion_rate={settings.tipping_min_conversion_rate}"
    )

    yield

    logger.info("Behavioral Drivers API shutting down")


# Create FastAPI application
app = FastAPI(
    title=settings.api_title,
    version=__version__,
    description=(
        "Behavioral driver analysis for the marketing dashboard. "
        "Provides correlation/regression tables, tipping points, "
        "persona classification and summary statistics."
    ),
    lifespan=lifespan,
)

# Configure CORS middleware for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register API routers
app.include_router(api_router)


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status 'healthy'
    """
    return {"status": "healthy"}


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name and version
    """
    return {
        "name": settings.api_title,
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "behavioral_drivers.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
