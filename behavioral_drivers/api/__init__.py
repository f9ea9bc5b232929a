"""
Backend API package initialization.

This package contains FastAPI router modules:
- analysis: Behavioral driver analysis (full bundle, correlations, tipping
  points, personas, summary)
"""

from fastapi import APIRouter

from behavioral_drivers.api.analysis import router as analysis_router

# Create main API router
api_router = APIRouter()
api_router.include_router(analysis_router)  # analysis router has its own prefix

__all__ = [
    "api_router",
    "analysis_router",
]
