"""
Enumeration definitions for the Behavioral Drivers backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models. Values match the field names and labels the
dashboard already renders, so responses can be dropped into existing tables.
"""

from enum import Enum


class Outcome(str, Enum):
    """
    Conversion outcomes used as dependent variables.

    Each outcome is simultaneously a numeric field on a user record (its
    magnitude) and a converted/non-converted flag (magnitude > 0).

    - totalDeposits: Lifetime deposit amount in dollars
    - totalCopies: Number of portfolio copies
    - totalSubscriptions: Number of creator subscriptions
    """
    TOTAL_DEPOSITS = "totalDeposits"
    TOTAL_COPIES = "totalCopies"
    TOTAL_SUBSCRIPTIONS = "totalSubscriptions"


class Persona(str, Enum):
    """
    Mutually exclusive behavioral segment assigned by the persona rule cascade.

    - premium: Subscribed at least once (or within 7 days of signup)
    - core: Not premium, has deposited
    - activationTargets: No deposits or copies yet, but browsed portfolios or creators
    - nonActivated: No deposits, copies, or portfolio/creator views
    - unclassified: Residual bucket; its size is a data-quality signal
    """
    PREMIUM = "premium"
    CORE = "core"
    ACTIVATION_TARGETS = "activationTargets"
    NON_ACTIVATED = "nonActivated"
    UNCLASSIFIED = "unclassified"


class PredictiveStrength(str, Enum):
    """
    Display category combining correlation size and t-statistic significance.

    Ordered from strongest to weakest. Anything not significant at |t| >= 1.96
    is VERY_WEAK regardless of correlation.
    """
    VERY_STRONG = "Very Strong"
    STRONG = "Strong"
    MODERATE_STRONG = "Moderate - Strong"
    MODERATE = "Moderate"
    WEAK_MODERATE = "Weak - Moderate"
    WEAK = "Weak"
    VERY_WEAK = "Very Weak"
