"""
Tipping-Point Detection Service

Finds the predictor value at which the conversion rate jumps most sharply. It
approximates a one-dimensional change-point detector without fitting a model.

Algorithm Overview:
    1. Bucket users by floor(predictor value); non-finite values land in bucket 0
    2. Per bucket: conversion rate = converted / total, converted = outcome > 0
    3. Drop buckets with fewer than MIN_BUCKET_SIZE users (noise floor)
    4. Sort surviving buckets by predictor value ascending
    5. Fewer than 2 buckets -> "N/A"
    6. Over consecutive pairs, keep the largest positive rate increase where the
       later bucket converts above MIN_CONVERSION_RATE
    7. Return that later bucket's predictor value, or "N/A" if no jump qualifies

Sparse predictors are sensitive to bucket-count noise, so both thresholds are
parameters (see Settings.tipping_min_bucket_size / tipping_min_conversion_rate).

Usage:
    from behavioral_drivers.services.tipping_point import calculate_tipping_points

    tipping_points = calculate_tipping_points(records, predictors)
    tipping_points[Outcome.TOTAL_DEPOSITS]["regularPDPViews"]  # e.g. 3 or "N/A"
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from behavioral_drivers.models.enums import Outcome
from behavioral_drivers.models.schemas import (
    NOT_APPLICABLE,
    BucketStats,
    TippingPointValue,
    UserRecord,
)

# =============================================================================
# Constants
# =============================================================================

# Buckets with fewer users are treated as noise
MIN_BUCKET_SIZE: int = 10

# The bucket after the jump must convert above this rate
MIN_CONVERSION_RATE: float = 0.10

BucketGroups = Dict[int, BucketStats]


# =============================================================================
# Grouping
# =============================================================================


def bucket_value(value: float) -> int:
    """Floor a predictor value into its bucket; NaN and infinities go to 0."""
    if value is None or not math.isfinite(value):
        return 0
    return math.floor(value)


def _add_to_groups(groups: BucketGroups, bucket: int, converted: bool) -> None:
    stats = groups.get(bucket)
    if stats is None:
        stats = groups[bucket] = BucketStats()
    stats.total += 1
    if converted:
        stats.converted += 1


def group_conversions(
    records: Sequence[UserRecord],
    predictor: str,
    outcome: Outcome,
) -> BucketGroups:
    """
    Build the predictor-value -> (total, converted) histogram for one pair.

    Args:
        records: Cleaned user records.
        predictor: Predictor field name.
        outcome: Outcome whose conversion (value > 0) is counted.

    Returns:
        Dict of bucket value -> BucketStats.
    """
    groups: BucketGroups = {}
    for record in records:
        _add_to_groups(groups, bucket_value(record.number(predictor)), record.converted(outcome))
    return groups


def pre_group_conversions(
    records: Sequence[UserRecord],
    predictors: Iterable[str],
    outcomes: Iterable[Outcome] = tuple(Outcome),
) -> Dict[Tuple[str, Outcome], BucketGroups]:
    """
    Build histograms for every (predictor, outcome) pair in a single pass.

    Each user is visited once instead of once per pair; the per-pair result is
    identical to group_conversions.

    Returns:
        {(predictor, outcome) -> bucket groups}
    """
    predictors = list(predictors)
    outcomes = list(outcomes)
    all_groups: Dict[Tuple[str, Outcome], BucketGroups] = {
        (predictor, outcome): {} for predictor in predictors for outcome in outcomes
    }

    for record in records:
        conversions = {outcome: record.converted(outcome) for outcome in outcomes}
        for predictor in predictors:
            bucket = bucket_value(record.number(predictor))
            for outcome in outcomes:
                _add_to_groups(all_groups[(predictor, outcome)], bucket, conversions[outcome])

    return all_groups


# =============================================================================
# Detection
# =============================================================================


def find_tipping_point_from_groups(
    groups: Optional[Mapping[int, BucketStats]],
    min_bucket_size: int = MIN_BUCKET_SIZE,
    min_conversion_rate: float = MIN_CONVERSION_RATE,
) -> TippingPointValue:
    """
    Pick the bucket with the sharpest conversion-rate increase.

    Args:
        groups: Bucket value -> BucketStats histogram.
        min_bucket_size: Buckets with fewer users are discarded.
        min_conversion_rate: The bucket after a jump must convert above this.

    Returns:
        Predictor value of the winning bucket, or "N/A" when fewer than two
        buckets survive the size filter or no increase qualifies.

    Example:
        >>> groups = {0: BucketStats(total=20, converted=1), 1: BucketStats(total=15, converted=9)}
        >>> find_tipping_point_from_groups(groups)
        1
    """
    if not groups:
        return NOT_APPLICABLE

    buckets = sorted(
        (value, stats.rate)
        for value, stats in groups.items()
        if stats.total >= min_bucket_size
    )
    if len(buckets) < 2:
        return NOT_APPLICABLE

    max_increase = 0.0
    tipping_point: TippingPointValue = NOT_APPLICABLE
    for (_, previous_rate), (value, rate) in zip(buckets, buckets[1:]):
        increase = rate - previous_rate
        if increase > max_increase and rate > min_conversion_rate:
            max_increase = increase
            tipping_point = value

    return tipping_point


def find_tipping_point(
    records: Sequence[UserRecord],
    predictor: str,
    outcome: Outcome,
    min_bucket_size: int = MIN_BUCKET_SIZE,
    min_conversion_rate: float = MIN_CONVERSION_RATE,
) -> TippingPointValue:
    """Tipping point for one (predictor, outcome) pair; see module docstring."""
    return find_tipping_point_from_groups(
        group_conversions(records, predictor, outcome),
        min_bucket_size=min_bucket_size,
        min_conversion_rate=min_conversion_rate,
    )


def calculate_tipping_points(
    records: Sequence[UserRecord],
    predictors: Iterable[str],
    outcomes: Iterable[Outcome] = tuple(Outcome),
    min_bucket_size: int = MIN_BUCKET_SIZE,
    min_conversion_rate: float = MIN_CONVERSION_RATE,
) -> Dict[Outcome, Dict[str, TippingPointValue]]:
    """
    Tipping points for every (predictor, outcome) pair.

    A predictor that is itself the outcome is skipped.

    Returns:
        {outcome -> {predictor -> int | "N/A"}}
    """
    predictors = list(predictors)
    outcomes = list(outcomes)
    all_groups = pre_group_conversions(records, predictors, outcomes)

    return {
        outcome: {
            predictor: find_tipping_point_from_groups(
                all_groups[(predictor, outcome)],
                min_bucket_size=min_bucket_size,
                min_conversion_rate=min_conversion_rate,
            )
            for predictor in predictors
            if predictor != outcome.value
        }
        for outcome in outcomes
    }
