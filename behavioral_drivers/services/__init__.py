"""
Backend Services Module

This module contains the business logic for behavioral driver analysis. Each
service is stateless and testable; the analyzer composes them for one run.

Services:
- records: Raw row cleaning and the explicit field manifest
- correlation: Pearson correlation, t-statistics, predictive strength
- tipping_point: Conversion-rate jump detection per predictor/outcome pair
- persona: Ordered persona rule cascade
- summary: Conversion rates, persona counts, demographic breakdowns
- analyzer: Orchestration of a full analysis run

All services are consumed by the API layer (behavioral_drivers/api/).
"""

# =============================================================================
# Record Cleaning Exports
# =============================================================================

from behavioral_drivers.services.records import (
    FieldSchema,
    build_user_frame,
    build_user_records,
    clean_count_flag,
    clean_flag,
    clean_numeric,
    convert_income_to_enum,
    convert_net_worth_to_enum,
    to_camel_case,
    DEMOGRAPHIC_FIELDS,
    KNOWN_PREDICTORS,
    OUTCOME_FIELDS,
)

# =============================================================================
# Correlation & Regression Exports
# =============================================================================

from behavioral_drivers.services.correlation import (
    calculate_correlation,
    calculate_correlations,
    calculate_predictive_strength,
    calculate_t_statistic,
    perform_regression,
    SIGNIFICANCE_T_THRESHOLD,
)

# =============================================================================
# Tipping Point Exports
# =============================================================================

from behavioral_drivers.services.tipping_point import (
    calculate_tipping_points,
    find_tipping_point,
    find_tipping_point_from_groups,
    group_conversions,
    pre_group_conversions,
    MIN_BUCKET_SIZE,
    MIN_CONVERSION_RATE,
)

# =============================================================================
# Persona Exports
# =============================================================================

from behavioral_drivers.services.persona import (
    PersonaRule,
    DEFAULT_PERSONA_RULES,
    classify_batch,
    classify_persona,
    count_personas,
    total_creator_profile_views,
    total_pdp_views,
)

# =============================================================================
# Summary Exports
# =============================================================================

from behavioral_drivers.services.summary import (
    calculate_conversion_rate,
    calculate_demographic_breakdown,
    calculate_summary_stats,
)

# =============================================================================
# Analyzer Exports
# =============================================================================

from behavioral_drivers.services.analyzer import BehavioralDriverAnalyzer

__all__ = [
    # Records
    "FieldSchema",
    "build_user_frame",
    "build_user_records",
    "clean_count_flag",
    "clean_flag",
    "clean_numeric",
    "convert_income_to_enum",
    "convert_net_worth_to_enum",
    "to_camel_case",
    "DEMOGRAPHIC_FIELDS",
    "KNOWN_PREDICTORS",
    "OUTCOME_FIELDS",
    # Correlation
    "calculate_correlation",
    "calculate_correlations",
    "calculate_predictive_strength",
    "calculate_t_statistic",
    "perform_regression",
    "SIGNIFICANCE_T_THRESHOLD",
    # Tipping points
    "calculate_tipping_points",
    "find_tipping_point",
    "find_tipping_point_from_groups",
    "group_conversions",
    "pre_group_conversions",
    "MIN_BUCKET_SIZE",
    "MIN_CONVERSION_RATE",
    # Personas
    "PersonaRule",
    "DEFAULT_PERSONA_RULES",
    "classify_batch",
    "classify_persona",
    "count_personas",
    "total_creator_profile_views",
    "total_pdp_views",
    # Summary
    "calculate_conversion_rate",
    "calculate_demographic_breakdown",
    "calculate_summary_stats",
    # Analyzer
    "BehavioralDriverAnalyzer",
]
