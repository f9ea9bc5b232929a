"""
Persona Classification Service

Assigns every user exactly one behavioral persona through an ordered rule
cascade: rules are evaluated in priority order and the first match wins. Users
matching no rule are 'unclassified', which keeps the labels a partition of the
user set.

The cascade is data (an ordered list of PersonaRule), so an alternative rule set
can be passed in without touching the classifier.

Canonical Rule Set (four tiers plus residual):
    1. premium            totalSubscriptions >= 1 OR subscribedWithin7Days
    2. core               totalDeposits > 0
    3. activationTargets  no deposits, no copies, and at least one PDP view
                          or creator profile view
    4. nonActivated       no deposits, no copies, no PDP views, no creator
                          profile views
    5. unclassified       anything else

PDP views and creator profile views are the sums of their regular and premium
variants. Because rules are evaluated in order, each later rule implicitly
means "and none of the above".
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Sequence

from behavioral_drivers.models.enums import Outcome, Persona
from behavioral_drivers.models.schemas import UserRecord


PersonaPredicate = Callable[[UserRecord], bool]


@dataclass(frozen=True)
class PersonaRule:
    """One step of the cascade: users matching ``predicate`` get ``persona``."""
    persona: Persona
    predicate: PersonaPredicate
    description: str = ""


# =============================================================================
# Derived Engagement Totals
# =============================================================================


def total_pdp_views(user: UserRecord) -> float:
    """Regular + premium portfolio detail page views."""
    return user.number('regularPDPViews') + user.number('premiumPDPViews')


def total_creator_profile_views(user: UserRecord) -> float:
    """Regular + premium creator profile views."""
    return user.number('regularCreatorProfileViews') + user.number('premiumCreatorProfileViews')


# =============================================================================
# Rule Predicates
# =============================================================================


def is_premium(user: UserRecord) -> bool:
    return (
        user.number(Outcome.TOTAL_SUBSCRIPTIONS.value) >= 1
        or user.number('subscribedWithin7Days') >= 1
    )


def is_core(user: UserRecord) -> bool:
    return user.number(Outcome.TOTAL_DEPOSITS.value) > 0


def is_activation_target(user: UserRecord) -> bool:
    return (
        user.number(Outcome.TOTAL_DEPOSITS.value) == 0
        and user.number(Outcome.TOTAL_COPIES.value) == 0
        and (total_pdp_views(user) >= 1 or total_creator_profile_views(user) >= 1)
    )


def is_non_activated(user: UserRecord) -> bool:
    return (
        user.number(Outcome.TOTAL_DEPOSITS.value) == 0
        and total_pdp_views(user) == 0
        and total_creator_profile_views(user) == 0
        and user.number(Outcome.TOTAL_COPIES.value) == 0
    )


DEFAULT_PERSONA_RULES: List[PersonaRule] = [
    PersonaRule(Persona.PREMIUM, is_premium, "Subscribed, or subscribed within 7 days"),
    PersonaRule(Persona.CORE, is_core, "Not premium, has deposited"),
    PersonaRule(
        Persona.ACTIVATION_TARGETS,
        is_activation_target,
        "No deposits or copies, but viewed a portfolio or creator",
    ),
    PersonaRule(
        Persona.NON_ACTIVATED,
        is_non_activated,
        "No deposits, copies, portfolio views or creator views",
    ),
]


# =============================================================================
# Classification
# =============================================================================


def classify_persona(
    user: UserRecord,
    rules: Sequence[PersonaRule] = DEFAULT_PERSONA_RULES,
) -> Persona:
    """
    Assign one persona to a user.

    Args:
        user: Cleaned user record; not modified.
        rules: Ordered cascade; first matching rule wins.

    Returns:
        The persona of the first matching rule, or Persona.UNCLASSIFIED.

    Example:
        >>> classify_persona(UserRecord(numeric={"totalSubscriptions": 1, "totalDeposits": 500}))
        <Persona.PREMIUM: 'premium'>
    """
    for rule in rules:
        if rule.predicate(user):
            return rule.persona
    return Persona.UNCLASSIFIED


def classify_batch(
    records: Iterable[UserRecord],
    rules: Sequence[PersonaRule] = DEFAULT_PERSONA_RULES,
) -> List[Persona]:
    """Personas for ``records``, in input order."""
    return [classify_persona(record, rules) for record in records]


def count_personas(
    records: Iterable[UserRecord],
    rules: Sequence[PersonaRule] = DEFAULT_PERSONA_RULES,
) -> Dict[Persona, int]:
    """
    Users per persona.

    Every Persona appears in the result, including those with zero users, so
    the unclassified count is always reported.
    """
    counts = Counter(classify_batch(records, rules))
    return {persona: counts.get(persona, 0) for persona in Persona}
