"""
Summary & Demographic Aggregation Service

Computes the headline numbers for the summary cards and the persona and
demographic tables:
- Total users
- Conversion rate per outcome (users with outcome > 0 / total users)
- Linked-bank rate and low-depositor count
- Persona counts and percentages (denominator: total users)
- Per-field demographic breakdowns

Per-question denominators:
    Demographic percentages are computed over users who answered that field
    (non-blank), not over the whole population. Using the population would
    silently underweight every answer by the nonresponse rate.

Empty input yields zero counts and zero rates; nothing here raises on
degenerate data.
"""

from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, Optional, Sequence

from behavioral_drivers.models.enums import Outcome, Persona
from behavioral_drivers.models.schemas import (
    CategoryShare,
    DemographicBreakdown,
    SummaryStats,
    UserRecord,
)
from behavioral_drivers.services.persona import DEFAULT_PERSONA_RULES, PersonaRule, count_personas
from behavioral_drivers.services.records import DEMOGRAPHIC_FIELDS

# Users with deposits strictly below this are low depositors
LOW_DEPOSIT_THRESHOLD: float = 1000.0


def _percentage(count: int, denominator: int) -> float:
    return (count / denominator) * 100 if denominator > 0 else 0.0


def calculate_conversion_rate(records: Sequence[UserRecord], outcome: Outcome) -> float:
    """Fraction of users with ``outcome`` > 0; 0.0 for no users."""
    if not records:
        return 0.0
    converted = sum(1 for record in records if record.converted(outcome))
    return converted / len(records)


def calculate_demographic_breakdown(
    records: Iterable[UserRecord],
    field: str,
) -> DemographicBreakdown:
    """
    Count and percentage per distinct answer to one categorical field.

    Args:
        records: Cleaned user records.
        field: Categorical field name (e.g. 'income').

    Returns:
        DemographicBreakdown whose percentages sum to 100 over respondents.
        Blank answers are excluded from both counts and denominator.
    """
    counts: Counter = Counter()
    for record in records:
        value = record.text(field).strip()
        if value:
            counts[value] += 1

    total_responses = sum(counts.values())
    return DemographicBreakdown(
        field=field,
        totalResponses=total_responses,
        values={
            value: CategoryShare(count=count, percentage=_percentage(count, total_responses))
            for value, count in counts.most_common()
        },
    )


def calculate_summary_stats(
    records: Sequence[UserRecord],
    rules: Sequence[PersonaRule] = DEFAULT_PERSONA_RULES,
    demographic_fields: Iterable[str] = DEMOGRAPHIC_FIELDS,
    low_deposit_threshold: float = LOW_DEPOSIT_THRESHOLD,
) -> SummaryStats:
    """
    Aggregate summary statistics for one dataset snapshot.

    Args:
        records: Cleaned user records.
        rules: Persona cascade used for persona counts.
        demographic_fields: Categorical fields to break down.
        low_deposit_threshold: Deposit total below which a user is a low depositor.

    Returns:
        SummaryStats for the rendering layer.
    """
    total_users = len(records)

    persona_counts: Dict[Persona, int] = count_personas(records, rules)
    linked_bank_users = sum(1 for record in records if record.number('hasLinkedBank') == 1)
    low_depositors = sum(
        1 for record in records
        if record.number(Outcome.TOTAL_DEPOSITS.value) < low_deposit_threshold
    )

    return SummaryStats(
        totalUsers=total_users,
        perOutcomeConversionRate={
            outcome: calculate_conversion_rate(records, outcome) for outcome in Outcome
        },
        linkedBankRate=linked_bank_users / total_users if total_users else 0.0,
        usersWithLowDeposits=low_depositors,
        personaCounts={
            persona: CategoryShare(count=count, percentage=_percentage(count, total_users))
            for persona, count in persona_counts.items()
        },
        demographicBreakdowns={
            field: calculate_demographic_breakdown(records, field)
            for field in demographic_fields
        },
    )


def unclassified_share(summary: SummaryStats) -> Optional[float]:
    """Percentage of users no persona rule matched, None when not computed."""
    share = summary.personaCounts.get(Persona.UNCLASSIFIED)
    return share.percentage if share is not None else None
