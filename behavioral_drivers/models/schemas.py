"""
Pydantic request/response models for the Behavioral Drivers backend.

This module provides type-safe data validation and serialization for the
analysis contracts: the cleaned per-user record consumed by every service, the
regression/tipping-point/summary structures handed to the rendering layer, and
the request and response bodies of the analysis endpoints.

Field names are camelCase to match the keys the dashboard reads.

All models use Pydantic v2 syntax.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from behavioral_drivers.models.enums import Outcome, Persona, PredictiveStrength


# Sentinel returned when no qualifying tipping point exists
NOT_APPLICABLE = "N/A"

TippingPointValue = Union[int, Literal["N/A"]]


# =============================================================================
# Core Domain Models
# =============================================================================


class UserRecord(BaseModel):
    """
    One cleaned row per end-user.

    Numeric attributes (engagement counts, financial totals, 0/1 flags) live in
    ``numeric``; survey answers and brackets live in ``categorical``. Records
    are built once per analysis run and never mutated.

    Invariant: numeric values are always finite floats. Missing numeric fields
    read as 0.0 and missing categorical fields read as "".
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "userId": "u_123",
                "numeric": {"totalDeposits": 500.0, "totalCopies": 2.0, "regularPDPViews": 4.0},
                "categorical": {"income": "100k–150k"},
            }
        },
    )

    userId: Optional[str] = Field(
        default=None,
        description="Opaque user identifier; carried through, never analyzed"
    )
    numeric: Dict[str, float] = Field(
        default_factory=dict,
        description="Cleaned numeric attributes keyed by camelCase field name"
    )
    categorical: Dict[str, str] = Field(
        default_factory=dict,
        description="Categorical attributes keyed by camelCase field name"
    )

    def number(self, field: str) -> float:
        """Numeric value of ``field``, 0.0 when absent."""
        return self.numeric.get(field, 0.0)

    def text(self, field: str) -> str:
        """Categorical value of ``field``, empty string when absent."""
        return self.categorical.get(field, "")

    def converted(self, outcome: Outcome) -> bool:
        """Whether the user converted on ``outcome`` (value > 0)."""
        return self.number(outcome.value) > 0


class RegressionRow(BaseModel):
    """
    Association between one predictor and one outcome.

    The t-statistic is derived from the correlation and sample size; it is an
    advisory significance signal, not a full regression fit.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "variable": "regularPDPViews",
                "correlation": 0.31,
                "tStat": 12.4,
                "significant": True,
                "strength": "Strong",
            }
        }
    )

    variable: str = Field(..., description="Predictor field name")
    correlation: float = Field(
        ...,
        ge=-1.0,
        le=1.0,
        description="Pearson correlation with the outcome; 0 when undefined"
    )
    tStat: float = Field(..., description="t-statistic derived from the correlation")
    significant: bool = Field(..., description="Whether |tStat| exceeds the significance threshold")
    strength: PredictiveStrength = Field(
        default=PredictiveStrength.VERY_WEAK,
        description="Display category combining correlation and t-statistic"
    )


class BucketStats(BaseModel):
    """Users and conversions observed for one floored predictor value."""
    total: int = Field(default=0, ge=0)
    converted: int = Field(default=0, ge=0)

    @property
    def rate(self) -> float:
        return self.converted / self.total if self.total else 0.0


class CategoryShare(BaseModel):
    """Count and percentage for one category (persona or survey answer)."""
    count: int = Field(..., ge=0)
    percentage: float = Field(..., ge=0.0, le=100.0)


class DemographicBreakdown(BaseModel):
    """
    Distribution of answers for one survey field.

    Percentages use ``totalResponses`` (users who answered this field) as the
    denominator, so blank answers never dilute the distribution.
    """
    field: str = Field(..., description="Categorical field name")
    totalResponses: int = Field(..., ge=0, description="Users with a non-blank answer")
    values: Dict[str, CategoryShare] = Field(default_factory=dict)


class SummaryStats(BaseModel):
    """Headline numbers for the summary cards and persona/demographic tables."""
    totalUsers: int = Field(..., ge=0)
    perOutcomeConversionRate: Dict[Outcome, float] = Field(
        default_factory=dict,
        description="Fraction of users with outcome > 0"
    )
    linkedBankRate: float = Field(
        default=0.0,
        description="Fraction of users with a linked bank account"
    )
    usersWithLowDeposits: int = Field(
        default=0,
        ge=0,
        description="Users whose deposit total is below the low-deposit threshold"
    )
    personaCounts: Dict[Persona, CategoryShare] = Field(default_factory=dict)
    demographicBreakdowns: Dict[str, DemographicBreakdown] = Field(default_factory=dict)


class PersonaAssignment(BaseModel):
    """Persona label for one user."""
    userId: Optional[str] = None
    persona: Persona


class AnalysisResult(BaseModel):
    """
    Everything the rendering layer needs for one analysis run.

    - correlations: {outcome -> {predictor -> RegressionRow}}
    - regression: {outcome -> [RegressionRow]} sorted by |correlation| descending
    - tippingPoints: {outcome -> {predictor -> int | "N/A"}}
    """
    summary: SummaryStats
    correlations: Dict[Outcome, Dict[str, RegressionRow]] = Field(default_factory=dict)
    regression: Dict[Outcome, List[RegressionRow]] = Field(default_factory=dict)
    tippingPoints: Dict[Outcome, Dict[str, TippingPointValue]] = Field(default_factory=dict)
    predictors: List[str] = Field(
        default_factory=list,
        description="Predictors analyzed, known fields first then opted-in extras"
    )


# =============================================================================
# API Request Models
# =============================================================================


class AnalysisRequest(BaseModel):
    """
    Raw per-user rows as fetched by the ingestion layer.

    Rows may use camelCase keys (``totalDeposits``), display labels
    (``Total Deposits``) or lettered export labels (``B. Total Deposits ($)``).
    Columns outside the known field manifest are ignored unless listed in
    ``extraFields``.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "rows": [
                    {"Distinct ID": "u_1", "Total Deposits": 500, "Total Copies": 1, "Income": "100k–150k"},
                    {"Distinct ID": "u_2", "totalSubscriptions": 1},
                ],
                "extraFields": ["Total Watchlist Adds"],
            }
        }
    )

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    extraFields: List[str] = Field(
        default_factory=list,
        description="Additional numeric columns to analyze as predictors"
    )
