"""
API Endpoint Test Module

Tests for behavioral_drivers/api/analysis.py and behavioral_drivers/main.py.

Handlers are awaited directly with an explicit analyzer, the same objects
FastAPI would inject, so no HTTP client is involved:
- Empty requests map to HTTP 400
- Unexpected failures map to HTTP 500 with the action in the detail
- Extra fields opt in per request
- Routes are registered on the application
"""

from typing import Any, Dict, List

import pytest
from fastapi import HTTPException

from behavioral_drivers.api.analysis import (
    assign_personas,
    compute_correlations,
    compute_summary,
    compute_tipping_points,
    run_analysis,
)
from behavioral_drivers.core.dependencies import get_analyzer, get_settings_dependency
from behavioral_drivers.models import (
    NOT_APPLICABLE,
    AnalysisRequest,
    Outcome,
    Persona,
)
from behavioral_drivers.services.analyzer import BehavioralDriverAnalyzer


@pytest.fixture
def request_rows() -> List[Dict[str, Any]]:
    """Display-label rows for the four worked-example users."""
    return [
        {"Distinct ID": "u1", "Total Subscriptions": 1},
        {"Distinct ID": "u2", "Total Deposits": 500},
        {"Distinct ID": "u3", "Regular PDP Views": 2},
        {"Distinct ID": "u4"},
    ]


class _FailingAnalyzer(BehavioralDriverAnalyzer):
    def analyze(self, records):
        raise RuntimeError("boom")


class TestAnalysisEndpoints:

    @pytest.mark.asyncio
    async def test_run_analysis(self, analyzer, request_rows):
        result = await run_analysis(AnalysisRequest(rows=request_rows), analyzer)
        assert result.summary.totalUsers == 4
        assert result.summary.personaCounts[Persona.PREMIUM].count == 1
        assert set(result.regression) == set(Outcome)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("handler", [
        run_analysis,
        compute_correlations,
        compute_tipping_points,
        assign_personas,
        compute_summary,
    ])
    async def test_empty_rows_rejected(self, analyzer, handler):
        with pytest.raises(HTTPException) as exc_info:
            await handler(AnalysisRequest(rows=[]), analyzer)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_unexpected_error_is_500(self, settings, request_rows):
        analyzer = _FailingAnalyzer(settings=settings)
        with pytest.raises(HTTPException) as exc_info:
            await run_analysis(AnalysisRequest(rows=request_rows), analyzer)
        assert exc_info.value.status_code == 500
        assert "running analysis" in exc_info.value.detail
        assert "boom" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_assign_personas(self, analyzer, request_rows):
        assignments = await assign_personas(AnalysisRequest(rows=request_rows), analyzer)
        assert [(a.userId, a.persona) for a in assignments] == [
            ("u1", Persona.PREMIUM),
            ("u2", Persona.CORE),
            ("u3", Persona.ACTIVATION_TARGETS),
            ("u4", Persona.NON_ACTIVATED),
        ]

    @pytest.mark.asyncio
    async def test_compute_correlations_with_extra_field(self, analyzer):
        rows = [
            {"Total Deposits": i * 10, "Push Opens": i}
            for i in range(5)
        ]
        request = AnalysisRequest(rows=rows, extraFields=["Push Opens"])
        regression = await compute_correlations(request, analyzer)
        top = regression[Outcome.TOTAL_DEPOSITS][0]
        assert top.variable == "pushOpens"
        assert top.correlation == pytest.approx(1.0)
        # The injected analyzer is left untouched
        assert "pushOpens" not in analyzer.predictors

    @pytest.mark.asyncio
    async def test_compute_tipping_points_small_sample(self, analyzer, request_rows):
        tipping_points = await compute_tipping_points(AnalysisRequest(rows=request_rows), analyzer)
        assert tipping_points[Outcome.TOTAL_DEPOSITS]["regularPDPViews"] == NOT_APPLICABLE

    @pytest.mark.asyncio
    async def test_compute_summary(self, analyzer, request_rows):
        summary = await compute_summary(AnalysisRequest(rows=request_rows), analyzer)
        assert summary.totalUsers == 4
        assert summary.perOutcomeConversionRate[Outcome.TOTAL_DEPOSITS] == 0.25


class TestDependencies:

    def test_get_analyzer_uses_settings(self, settings):
        analyzer = get_analyzer(settings)
        assert isinstance(analyzer, BehavioralDriverAnalyzer)
        assert analyzer.settings is settings

    def test_settings_dependency_is_cached(self):
        assert get_settings_dependency() is get_settings_dependency()


class TestApplication:

    def test_routes_registered(self):
        from behavioral_drivers.main import app

        paths = {route.path for route in app.routes}
        for path in (
            "/analysis",
            "/analysis/correlations",
            "/analysis/tipping-points",
            "/analysis/personas",
            "/analysis/summary",
            "/health",
            "/",
        ):
            assert path in paths

    @pytest.mark.asyncio
    async def test_health_check(self):
        from behavioral_drivers.main import health_check

        assert await health_check() == {"status": "healthy"}


class TestRowShapes:
    """Requests whose rows carry partial or no fields."""

    @pytest.mark.asyncio
    async def test_rows_with_and_without_user_ids(self, analyzer):
        rows = [
            {"Distinct ID": "a", "Total Deposits": 5},
            {"Total Copies": 1},
        ]
        result = await run_analysis(AnalysisRequest(rows=rows), analyzer)
        assert result.summary.totalUsers == 2

        assignments = await assign_personas(AnalysisRequest(rows=rows), analyzer)
        assert [a.userId for a in assignments] == ["a", None]

    @pytest.mark.asyncio
    async def test_rows_without_fields_are_counted(self, analyzer):
        result = await run_analysis(AnalysisRequest(rows=[{}, {}, {}]), analyzer)
        assert result.summary.totalUsers == 3
        assert result.summary.personaCounts[Persona.NON_ACTIVATED].count == 3
