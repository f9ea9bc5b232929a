"""
FastAPI dependency injection module for the Behavioral Drivers backend.

This module provides reusable FastAPI dependencies for configuration access
and analyzer construction, so endpoint handlers never build settings or
analyzers themselves and tests can swap either through
``app.dependency_overrides``.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_analyzer: Builds a BehavioralDriverAnalyzer for one request
- SettingsDep: Type alias for injecting Settings into endpoints
- AnalyzerDep: Type alias for injecting an analyzer into endpoints

Usage Examples:
    @router.post("/analysis")
    async def run_analysis(
        request: AnalysisRequest,
        analyzer: AnalyzerDep,
    ) -> AnalysisResult:
        return analyzer.analyze_rows(request.rows)
"""

from typing import Annotated

from fastapi import Depends

from behavioral_drivers.core.config import Settings, get_settings
from behavioral_drivers.services.analyzer import BehavioralDriverAnalyzer


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    This is a thin wrapper around get_settings() to enable FastAPI's
    dependency override mechanism for testing:

        app.dependency_overrides[get_settings_dependency] = lambda: test_settings

    Returns:
        Settings: The cached Settings instance.
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


# =============================================================================
# Analyzer Dependency
# =============================================================================

def get_analyzer(settings: SettingsDep) -> BehavioralDriverAnalyzer:
    """
    Build an analyzer bound to the current settings.

    A new analyzer is created per request. The analyzer caches its resolved
    predictor list on the instance, so sharing one across requests with
    different extra fields would leak state between them.

    Args:
        settings: Injected application settings.

    Returns:
        BehavioralDriverAnalyzer using the default field schema and persona rules.
    """
    return BehavioralDriverAnalyzer(settings=settings)


AnalyzerDep = Annotated[BehavioralDriverAnalyzer, Depends(get_analyzer)]
