"""
Correlation & Regression Engine

This module measures the linear association between every predictor and each
conversion outcome, and derives an advisory t-statistic from it.

Algorithm Overview:
- Pearson product-moment correlation over raw values (no outlier removal):
      r = (nΣxy − ΣxΣy) / sqrt((nΣx² − (Σx)²)(nΣy² − (Σy)²))
- t-statistic from r and sample size:
      t = r · sqrt((n − 2) / (1 − r²))
- A predictor is significant when |t| > 1.96

Degenerate input never raises:
- Zero variance in either sequence (denominator <= 0) gives r = 0
- |r| < 0.001, n <= 2 or (1 − r²) < 0.001 gives t = 0

The statistics are advisory. No confidence intervals or multiple-comparison
correction are applied.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from behavioral_drivers.models.enums import Outcome, PredictiveStrength
from behavioral_drivers.models.schemas import RegressionRow, UserRecord

# =============================================================================
# CONSTANTS
# =============================================================================

# Two-sided 95% confidence for large samples
SIGNIFICANCE_T_THRESHOLD: float = 1.96

# Guards for the t-statistic; below these the statistic is reported as 0
MIN_ABS_CORRELATION: float = 0.001
MIN_RESIDUAL_VARIANCE: float = 0.001

# Correlation score bands (|r| lower bound -> score), strongest first
CORRELATION_SCORE_BANDS = (
    (0.50, 6),
    (0.30, 5),
    (0.20, 4),
    (0.10, 3),
    (0.05, 2),
    (0.02, 1),
)

# t-statistic score bands (|t| lower bound -> score): p < 0.001, 0.01, 0.05
T_SCORE_BANDS = (
    (3.29, 6),
    (2.58, 5),
    (1.96, 4),
)

# Combined score lower bound -> strength, strongest first
STRENGTH_BANDS = (
    (5.5, PredictiveStrength.VERY_STRONG),
    (4.5, PredictiveStrength.STRONG),
    (3.5, PredictiveStrength.MODERATE_STRONG),
    (2.5, PredictiveStrength.MODERATE),
    (1.5, PredictiveStrength.WEAK_MODERATE),
    (0.5, PredictiveStrength.WEAK),
)


# =============================================================================
# Core Statistics
# =============================================================================


def calculate_correlation(
    outcome_values: Sequence[float],
    predictor_values: Sequence[float],
) -> float:
    """
    Pearson correlation between two equal-length sequences.

    Args:
        outcome_values: Outcome value per user.
        predictor_values: Predictor value per user, same user ordering.

    Returns:
        Correlation in [-1, 1]. Returns 0.0 when either sequence has zero
        variance, when the sequences are empty, or when the sums overflow.

    Example:
        >>> calculate_correlation([1, 2, 3], [2, 4, 6])
        1.0
        >>> calculate_correlation([1, 2, 3], [5, 5, 5])
        0.0
    """
    y = np.asarray(outcome_values, dtype=np.float64)
    x = np.asarray(predictor_values, dtype=np.float64)
    n = min(len(x), len(y))
    if n == 0:
        return 0.0
    x = x[:n]
    y = y[:n]

    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = np.dot(x, y)
    sum_x2 = np.dot(x, x)
    sum_y2 = np.dot(y, y)

    numerator = n * sum_xy - sum_x * sum_y
    variance_product = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)

    if not np.isfinite(variance_product) or variance_product <= 0:
        return 0.0

    correlation = numerator / np.sqrt(variance_product)
    if not np.isfinite(correlation):
        return 0.0

    # Rounding can push |r| a hair past 1 for perfectly collinear inputs
    return float(np.clip(correlation, -1.0, 1.0))


def calculate_t_statistic(correlation: float, n: int) -> float:
    """
    t-statistic for a correlation over ``n`` observations.

    Args:
        correlation: Pearson correlation.
        n: Sample size.

    Returns:
        r * sqrt((n - 2) / (1 - r^2)), or 0.0 when |r| < 0.001, n <= 2, or
        1 - r^2 < 0.001.
    """
    if abs(correlation) < MIN_ABS_CORRELATION or n <= 2:
        return 0.0
    residual = 1.0 - correlation * correlation
    if residual < MIN_RESIDUAL_VARIANCE:
        return 0.0
    return correlation * math.sqrt((n - 2) / residual)


def calculate_predictive_strength(correlation: float, t_stat: float) -> PredictiveStrength:
    """
    Classify a predictor for display by combining effect size and significance.

    Two gates:
    1. Not significant (|t| < 1.96) is always VERY_WEAK.
    2. Otherwise combine a correlation score (90%) with a t-statistic score
       (10%). Correlation dominates because large samples make most t-stats
       significant.

    Args:
        correlation: Pearson correlation.
        t_stat: t-statistic for that correlation.

    Returns:
        PredictiveStrength category.
    """
    abs_corr = abs(correlation)
    abs_t = abs(t_stat)

    if abs_t < SIGNIFICANCE_T_THRESHOLD:
        return PredictiveStrength.VERY_WEAK

    corr_score = next((score for bound, score in CORRELATION_SCORE_BANDS if abs_corr >= bound), 0)
    t_score = next((score for bound, score in T_SCORE_BANDS if abs_t >= bound), 0)
    combined = corr_score * 0.9 + t_score * 0.1

    for bound, strength in STRENGTH_BANDS:
        if combined >= bound:
            return strength
    return PredictiveStrength.VERY_WEAK


# =============================================================================
# Batch Helpers over User Records
# =============================================================================


def extract_column(records: Sequence[UserRecord], field: str) -> np.ndarray:
    """Values of ``field`` across ``records`` as a float64 array."""
    return np.fromiter((record.number(field) for record in records), dtype=np.float64, count=len(records))


def calculate_correlations(
    records: Sequence[UserRecord],
    predictors: Iterable[str],
    outcomes: Iterable[Outcome] = tuple(Outcome),
) -> Dict[Outcome, Dict[str, float]]:
    """
    Correlation matrix between every outcome and every predictor.

    A predictor that is itself the outcome is skipped.

    Args:
        records: Cleaned user records.
        predictors: Predictor field names.
        outcomes: Outcomes to correlate against (default: all three).

    Returns:
        {outcome -> {predictor -> correlation}}
    """
    predictors = list(predictors)
    columns = {name: extract_column(records, name) for name in predictors}

    correlations: Dict[Outcome, Dict[str, float]] = {}
    for outcome in outcomes:
        outcome_values = extract_column(records, outcome.value)
        correlations[outcome] = {
            predictor: calculate_correlation(outcome_values, columns[predictor])
            for predictor in predictors
            if predictor != outcome.value
        }
    return correlations


def perform_regression(
    records: Sequence[UserRecord],
    outcome: Outcome,
    predictors: Iterable[str],
    correlations: Optional[Dict[Outcome, Dict[str, float]]] = None,
    significance_threshold: float = SIGNIFICANCE_T_THRESHOLD,
) -> List[RegressionRow]:
    """
    Per-predictor correlation and significance for one outcome.

    Correlations are taken from ``correlations`` when it already holds the
    (outcome, predictor) pair and recomputed otherwise.

    Args:
        records: Cleaned user records.
        outcome: Dependent variable.
        predictors: Predictor field names.
        correlations: Optional precomputed matrix from calculate_correlations.
        significance_threshold: |t| above which a row is significant.

    Returns:
        RegressionRow per predictor (outcome itself excluded), sorted by
        absolute correlation, strongest first.
    """
    n = len(records)
    precomputed = (correlations or {}).get(outcome, {})
    outcome_values: Optional[np.ndarray] = None

    rows: List[RegressionRow] = []
    for predictor in predictors:
        if predictor == outcome.value:
            continue

        correlation = precomputed.get(predictor)
        if correlation is None:
            if outcome_values is None:
                outcome_values = extract_column(records, outcome.value)
            correlation = calculate_correlation(outcome_values, extract_column(records, predictor))

        t_stat = calculate_t_statistic(correlation, n)
        rows.append(
            RegressionRow(
                variable=predictor,
                correlation=correlation,
                tStat=t_stat,
                significant=abs(t_stat) > significance_threshold,
                strength=calculate_predictive_strength(correlation, t_stat),
            )
        )

    rows.sort(key=lambda row: abs(row.correlation), reverse=True)
    return rows
