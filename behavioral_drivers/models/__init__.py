"""
Package initialization file for backend models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from behavioral_drivers.models directly.

Usage:
    from behavioral_drivers.models import Outcome, Persona, UserRecord
"""

from behavioral_drivers.models.enums import (
    Outcome,
    Persona,
    PredictiveStrength,
)

from behavioral_drivers.models.schemas import (
    NOT_APPLICABLE,
    TippingPointValue,
    UserRecord,
    RegressionRow,
    BucketStats,
    CategoryShare,
    DemographicBreakdown,
    SummaryStats,
    PersonaAssignment,
    AnalysisResult,
    AnalysisRequest,
)

__all__ = [
    # Enums
    "Outcome",
    "Persona",
    "PredictiveStrength",
    # Schemas
    "NOT_APPLICABLE",
    "TippingPointValue",
    "UserRecord",
    "RegressionRow",
    "BucketStats",
    "CategoryShare",
    "DemographicBreakdown",
    "SummaryStats",
    "PersonaAssignment",
    "AnalysisResult",
    "AnalysisRequest",
]
