"""
Behavioral Driver Analyzer

Orchestrates one analysis run over a single dataset snapshot:

    raw rows -> cleaned UserRecords -> summary stats
                                    -> correlation matrix -> regression per outcome
                                    -> tipping points

Each run is a pure function of its inputs. The only state on an analyzer is
its resolved predictor list, computed lazily from the field schema the first
time it is needed and reused for the rest of that analyzer's life.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from behavioral_drivers.core.config import Settings, get_settings
from behavioral_drivers.models.enums import Outcome
from behavioral_drivers.models.schemas import (
    AnalysisResult,
    PersonaAssignment,
    RegressionRow,
    SummaryStats,
    TippingPointValue,
    UserRecord,
)
from behavioral_drivers.services.correlation import calculate_correlations, perform_regression
from behavioral_drivers.services.persona import DEFAULT_PERSONA_RULES, PersonaRule, classify_persona
from behavioral_drivers.services.records import FieldSchema, build_user_records
from behavioral_drivers.services.summary import calculate_summary_stats, unclassified_share
from behavioral_drivers.services.tipping_point import calculate_tipping_points

logger = logging.getLogger(__name__)

# Above this share of unclassified users the persona rules likely miss a segment
UNCLASSIFIED_WARNING_PERCENT: float = 5.0


class BehavioralDriverAnalyzer:
    """
    Runs correlation, regression, tipping-point, persona and summary analysis.

    Args:
        schema: Field manifest; defaults to the known fields with no extras.
        settings: Thresholds; defaults to get_settings().
        rules: Persona cascade; defaults to DEFAULT_PERSONA_RULES.
        outcomes: Outcomes to analyze; defaults to all three.

    Example:
        >>> analyzer = BehavioralDriverAnalyzer()
        >>> result = analyzer.analyze_rows([{"Total Deposits": 500, "Regular PDP Views": 3}])
        >>> result.summary.totalUsers
        1
    """

    def __init__(
        self,
        schema: Optional[FieldSchema] = None,
        settings: Optional[Settings] = None,
        rules: Optional[Sequence[PersonaRule]] = None,
        outcomes: Iterable[Outcome] = tuple(Outcome),
    ) -> None:
        self.schema = schema or FieldSchema()
        self.settings = settings or get_settings()
        self.rules = list(rules) if rules is not None else list(DEFAULT_PERSONA_RULES)
        self.outcomes = list(outcomes)
        self._predictors: Optional[List[str]] = None

    def with_extra_fields(self, extra_fields: Iterable[str]) -> "BehavioralDriverAnalyzer":
        """New analyzer sharing settings and rules, also analyzing ``extra_fields``."""
        extra_fields = list(extra_fields)
        if not extra_fields:
            return self
        return BehavioralDriverAnalyzer(
            schema=self.schema.with_extra_fields(extra_fields),
            settings=self.settings,
            rules=self.rules,
            outcomes=self.outcomes,
        )

    @property
    def predictors(self) -> List[str]:
        """Predictor list resolved from the schema once per analyzer."""
        if self._predictors is None:
            self._predictors = self.schema.predictors()
            extras = len(self._predictors) - len(self.schema.known_predictors)
            if extras > 0:
                logger.info(f"Analyzing {extras} extra predictors: {self._predictors[-extras:]}")
        return list(self._predictors)

    # =========================================================================
    # Input
    # =========================================================================

    def build_records(self, rows: Sequence[Mapping[str, Any]]) -> List[UserRecord]:
        """Clean raw rows with this analyzer's schema."""
        return build_user_records(rows, self.schema)

    # =========================================================================
    # Individual Analyses
    # =========================================================================

    def summarize(self, records: Sequence[UserRecord]) -> SummaryStats:
        summary = calculate_summary_stats(
            records,
            rules=self.rules,
            demographic_fields=self.schema.demographic_fields,
            low_deposit_threshold=self.settings.low_deposit_threshold,
        )
        share = unclassified_share(summary)
        if share is not None and share > UNCLASSIFIED_WARNING_PERCENT:
            logger.warning(f"{share:.1f}% of users matched no persona rule")
        return summary

    def classify(self, records: Sequence[UserRecord]) -> List[PersonaAssignment]:
        return [
            PersonaAssignment(userId=record.userId, persona=classify_persona(record, self.rules))
            for record in records
        ]

    def correlate(self, records: Sequence[UserRecord]) -> Dict[Outcome, Dict[str, float]]:
        return calculate_correlations(records, self.predictors, self.outcomes)

    def regress(
        self,
        records: Sequence[UserRecord],
        correlations: Optional[Dict[Outcome, Dict[str, float]]] = None,
    ) -> Dict[Outcome, List[RegressionRow]]:
        """Regression rows per outcome, sorted by |correlation| descending."""
        if correlations is None:
            correlations = self.correlate(records)
        return {
            outcome: perform_regression(
                records,
                outcome,
                self.predictors,
                correlations=correlations,
                significance_threshold=self.settings.significance_t_threshold,
            )
            for outcome in self.outcomes
        }

    def tipping_points(self, records: Sequence[UserRecord]) -> Dict[Outcome, Dict[str, TippingPointValue]]:
        return calculate_tipping_points(
            records,
            self.predictors,
            self.outcomes,
            min_bucket_size=self.settings.tipping_min_bucket_size,
            min_conversion_rate=self.settings.tipping_min_conversion_rate,
        )

    # =========================================================================
    # Full Run
    # =========================================================================

    def analyze(self, records: Sequence[UserRecord]) -> AnalysisResult:
        """
        Run every analysis over already-cleaned records.

        Returns:
            AnalysisResult with summary, correlation map, sorted regression
            rows and tipping points.
        """
        logger.info(f"Starting behavioral driver analysis for {len(records)} users")

        summary = self.summarize(records)
        correlations = self.correlate(records)
        regression = self.regress(records, correlations)
        tipping_points = self.tipping_points(records)

        correlation_map = {
            outcome: {row.variable: row for row in rows}
            for outcome, rows in regression.items()
        }

        significant = sum(row.significant for rows in regression.values() for row in rows)
        logger.info(
            f"Analysis complete: {len(self.predictors)} predictors, "
            f"{significant} significant predictor/outcome pairs"
        )

        return AnalysisResult(
            summary=summary,
            correlations=correlation_map,
            regression=regression,
            tippingPoints=tipping_points,
            predictors=self.predictors,
        )

    def analyze_rows(self, rows: Sequence[Mapping[str, Any]]) -> AnalysisResult:
        """Clean raw rows, then run analyze()."""
        return self.analyze(self.build_records(rows))
