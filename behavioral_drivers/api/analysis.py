"""
FastAPI router module for behavioral driver analysis endpoints.

The rendering layer POSTs per-user rows it has already fetched; these endpoints
clean them and return JSON structures ready for tables and metric cards:
- Full analysis bundle (summary, correlations, regression, tipping points)
- Correlation/regression map only
- Tipping points only
- Persona assignment per user
- Summary statistics only

Statistics never fail on degenerate data (zero variance, tiny samples, blank
surveys); they resolve to 0, "N/A" or 'unclassified'. Errors here are limited
to malformed requests (400) and unexpected failures (500).
"""

from __future__ import annotations

import logging
from typing import Dict, List

from fastapi import APIRouter, HTTPException

from behavioral_drivers.core.dependencies import AnalyzerDep
from behavioral_drivers.models import (
    AnalysisRequest,
    AnalysisResult,
    Outcome,
    PersonaAssignment,
    RegressionRow,
    SummaryStats,
    TippingPointValue,
)
from behavioral_drivers.services.analyzer import BehavioralDriverAnalyzer

# Configure logging
logger = logging.getLogger(__name__)

router = APIRouter(prefix="/analysis", tags=["analysis"])


# =============================================================================
# Helper Functions
# =============================================================================


def _prepare(request: AnalysisRequest, analyzer: BehavioralDriverAnalyzer):
    """
    Validate the request and return (analyzer, records).

    Raises:
        HTTPException 400: If no rows were supplied
    """
    if not request.rows:
        raise HTTPException(
            status_code=400,
            detail="At least one user row is required",
        )
    analyzer = analyzer.with_extra_fields(request.extraFields)
    return analyzer, analyzer.build_records(request.rows)


def _server_error(action: str, exc: Exception) -> HTTPException:
    logger.error(f"Error {action}: {exc}", exc_info=True)
    return HTTPException(
        status_code=500,
        detail=f"Error {action}: {str(exc)}",
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("", response_model=AnalysisResult)
async def run_analysis(
    request: AnalysisRequest,
    analyzer: AnalyzerDep,
) -> AnalysisResult:
    """
    Run the full behavioral driver analysis.

    Args:
        request: Raw user rows plus optional extra predictor columns

    Returns:
        AnalysisResult containing:
        - summary: totals, conversion rates, persona counts, demographic breakdowns
        - correlations: {outcome -> {predictor -> RegressionRow}}
        - regression: {outcome -> [RegressionRow]} strongest first
        - tippingPoints: {outcome -> {predictor -> int | "N/A"}}
        - predictors: analyzed predictor names

    Raises:
        HTTPException 400: If rows is empty
        HTTPException 500: If analysis fails unexpectedly
    """
    try:
        analyzer, records = _prepare(request, analyzer)
        return analyzer.analyze(records)
    except HTTPException:
        raise
    except Exception as e:
        raise _server_error("running analysis", e)


@router.post("/correlations", response_model=Dict[Outcome, List[RegressionRow]])
async def compute_correlations(
    request: AnalysisRequest,
    analyzer: AnalyzerDep,
) -> Dict[Outcome, List[RegressionRow]]:
    """
    Correlation and t-statistic per predictor for each outcome.

    Returns:
        {outcome -> [RegressionRow]} sorted by absolute correlation, strongest first
    """
    try:
        analyzer, records = _prepare(request, analyzer)
        return analyzer.regress(records)
    except HTTPException:
        raise
    except Exception as e:
        raise _server_error("computing correlations", e)


@router.post("/tipping-points", response_model=Dict[Outcome, Dict[str, TippingPointValue]])
async def compute_tipping_points(
    request: AnalysisRequest,
    analyzer: AnalyzerDep,
) -> Dict[Outcome, Dict[str, TippingPointValue]]:
    """
    Predictor value with the sharpest conversion-rate jump per outcome.

    Thresholds come from settings (tipping_min_bucket_size,
    tipping_min_conversion_rate).

    Returns:
        {outcome -> {predictor -> int | "N/A"}}
    """
    try:
        analyzer, records = _prepare(request, analyzer)
        return analyzer.tipping_points(records)
    except HTTPException:
        raise
    except Exception as e:
        raise _server_error("computing tipping points", e)


@router.post("/personas", response_model=List[PersonaAssignment])
async def assign_personas(
    request: AnalysisRequest,
    analyzer: AnalyzerDep,
) -> List[PersonaAssignment]:
    """
    Persona label for every user, in request order.

    Returns:
        List of PersonaAssignment (userId may be null when rows carry no id)
    """
    try:
        analyzer, records = _prepare(request, analyzer)
        return analyzer.classify(records)
    except HTTPException:
        raise
    except Exception as e:
        raise _server_error("assigning personas", e)


@router.post("/summary", response_model=SummaryStats)
async def compute_summary(
    request: AnalysisRequest,
    analyzer: AnalyzerDep,
) -> SummaryStats:
    """
    Summary statistics for the headline cards.

    Demographic percentages use per-question denominators (users who answered
    that field).
    """
    try:
        analyzer, records = _prepare(request, analyzer)
        return analyzer.summarize(records)
    except HTTPException:
        raise
    except Exception as e:
        raise _server_error("computing summary", e)
