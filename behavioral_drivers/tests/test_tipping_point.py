"""
Tipping-Point Detection Test Module

Tests for behavioral_drivers/services/tipping_point.py:
- Bucketing of predictor values (floor, non-finite -> 0)
- Noise floor on bucket size and minimum post-jump conversion rate
- Largest positive jump wins; "N/A" when nothing qualifies
- Single-pass pre-grouping matches per-pair grouping
"""

import math

import pytest

from behavioral_drivers.models import NOT_APPLICABLE, BucketStats, Outcome
from behavioral_drivers.services.tipping_point import (
    bucket_value,
    calculate_tipping_points,
    find_tipping_point,
    find_tipping_point_from_groups,
    group_conversions,
    pre_group_conversions,
)


def groups_of(**buckets):
    """Build groups from keyword pairs like b0=(20, 1)."""
    return {
        int(key[1:]): BucketStats(total=total, converted=converted)
        for key, (total, converted) in buckets.items()
    }


class TestBucketValue:

    @pytest.mark.parametrize("value,expected", [
        (0.0, 0),
        (2.9, 2),
        (3.0, 3),
        (-0.5, -1),
        (float("nan"), 0),
        (float("inf"), 0),
        (float("-inf"), 0),
    ])
    def test_bucketing(self, value, expected):
        assert bucket_value(value) == expected


class TestFindTippingPointFromGroups:

    @pytest.mark.scenario
    def test_documented_jump(self):
        groups = groups_of(b0=(20, 1), b1=(15, 9))
        assert find_tipping_point_from_groups(groups) == 1

    @pytest.mark.scenario
    def test_single_bucket_is_not_applicable(self):
        assert find_tipping_point_from_groups(groups_of(b3=(5, 5))) == NOT_APPLICABLE

    def test_empty_groups(self):
        assert find_tipping_point_from_groups({}) == NOT_APPLICABLE
        assert find_tipping_point_from_groups(None) == NOT_APPLICABLE

    def test_small_buckets_filtered(self):
        # Bucket 2 has a huge rate but only 9 users
        groups = groups_of(b0=(50, 2), b1=(40, 8), b2=(9, 9))
        assert find_tipping_point_from_groups(groups) == 1

    def test_only_one_bucket_survives_filter(self):
        groups = groups_of(b0=(50, 2), b1=(3, 3))
        assert find_tipping_point_from_groups(groups) == NOT_APPLICABLE

    def test_rate_must_exceed_minimum(self):
        # 0% -> 8% is a jump but 8% is below the 10% floor
        groups = groups_of(b0=(50, 0), b1=(50, 4))
        assert find_tipping_point_from_groups(groups) == NOT_APPLICABLE

    def test_rate_exactly_at_minimum_does_not_qualify(self):
        groups = groups_of(b0=(50, 0), b1=(50, 5))
        assert find_tipping_point_from_groups(groups) == NOT_APPLICABLE

    def test_decreasing_rates(self):
        groups = groups_of(b0=(20, 10), b1=(20, 5), b2=(20, 2))
        assert find_tipping_point_from_groups(groups) == NOT_APPLICABLE

    def test_largest_jump_wins(self):
        groups = groups_of(b0=(20, 0), b1=(20, 4), b2=(20, 6), b5=(20, 18))
        # 0 -> 0.2 (+0.2), 0.2 -> 0.3 (+0.1), 0.3 -> 0.9 (+0.6)
        assert find_tipping_point_from_groups(groups) == 5

    def test_first_of_equal_jumps_wins(self):
        groups = groups_of(b0=(20, 0), b1=(20, 10), b2=(20, 10), b3=(20, 20))
        assert find_tipping_point_from_groups(groups) == 1

    def test_gaps_between_values_use_sorted_order(self):
        groups = {
            10: BucketStats(total=20, converted=16),
            0: BucketStats(total=20, converted=2),
        }
        assert find_tipping_point_from_groups(groups) == 10

    def test_negative_buckets_kept(self):
        groups = groups_of(b1=(20, 12))
        groups[-1] = BucketStats(total=20, converted=0)
        assert find_tipping_point_from_groups(groups) == 1

    def test_result_is_a_bucket_value(self):
        groups = groups_of(b0=(20, 1), b4=(30, 12), b7=(12, 10))
        result = find_tipping_point_from_groups(groups)
        assert result in groups

    def test_custom_thresholds(self):
        groups = groups_of(b0=(5, 0), b1=(5, 1))
        assert find_tipping_point_from_groups(groups) == NOT_APPLICABLE
        assert find_tipping_point_from_groups(groups, min_bucket_size=5) == 1
        assert find_tipping_point_from_groups(
            groups, min_bucket_size=5, min_conversion_rate=0.5
        ) == NOT_APPLICABLE


class TestGrouping:

    def test_group_conversions(self, make_user):
        records = [
            make_user(regularPDPViews=0, totalDeposits=0),
            make_user(regularPDPViews=0.7, totalDeposits=10),
            make_user(regularPDPViews=2, totalDeposits=0),
            make_user(totalDeposits=5),
        ]
        groups = group_conversions(records, "regularPDPViews", Outcome.TOTAL_DEPOSITS)
        assert groups[0].total == 3
        assert groups[0].converted == 2
        assert groups[2].total == 1
        assert groups[2].converted == 0

    def test_pre_grouping_matches_per_pair(self, synthetic_population):
        predictors = ["regularPDPViews", "appSessions"]
        all_groups = pre_group_conversions(synthetic_population, predictors)
        for predictor in predictors:
            for outcome in Outcome:
                expected = group_conversions(synthetic_population, predictor, outcome)
                assert all_groups[(predictor, outcome)] == expected

    def test_pre_grouping_empty_records(self):
        all_groups = pre_group_conversions([], ["appSessions"])
        assert all_groups == {("appSessions", outcome): {} for outcome in Outcome}


class TestSyntheticPopulation:

    @pytest.mark.scenario
    def test_jump_at_three_pdp_views(self, synthetic_population):
        result = find_tipping_point(synthetic_population, "regularPDPViews", Outcome.TOTAL_DEPOSITS)
        assert result == 3

    def test_outcome_without_conversions(self, synthetic_population):
        result = find_tipping_point(synthetic_population, "regularPDPViews", Outcome.TOTAL_COPIES)
        assert result == NOT_APPLICABLE

    def test_calculate_tipping_points_shape(self, synthetic_population):
        predictors = ["regularPDPViews", "appSessions", "totalCopies"]
        result = calculate_tipping_points(synthetic_population, predictors)
        assert set(result) == set(Outcome)
        assert result[Outcome.TOTAL_DEPOSITS]["regularPDPViews"] == 3
        assert "totalCopies" not in result[Outcome.TOTAL_COPIES]
        for per_outcome in result.values():
            for value in per_outcome.values():
                assert value == NOT_APPLICABLE or isinstance(value, int)

    def test_empty_records(self):
        result = calculate_tipping_points([], ["appSessions"])
        assert result[Outcome.TOTAL_DEPOSITS]["appSessions"] == NOT_APPLICABLE

    def test_non_finite_values_do_not_raise(self, make_user):
        records = [make_user(appSessions=math.nan, totalDeposits=1) for _ in range(12)]
        records += [make_user(appSessions=5, totalDeposits=0) for _ in range(12)]
        result = find_tipping_point(records, "appSessions", Outcome.TOTAL_DEPOSITS)
        # Bucket 0 converts 100%, bucket 5 converts 0%: no increase
        assert result == NOT_APPLICABLE
