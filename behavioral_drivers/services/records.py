"""
User Record Cleaning Service

This module turns raw per-user rows (as exported by the analytics platform or
read back from the warehouse) into cleaned, immutable UserRecord objects.

The set of analyzed fields is an explicit manifest rather than whatever keys
happen to appear on the first row:
- OUTCOME_FIELDS: the three conversion outcomes
- KNOWN_PREDICTORS: canonical predictor list, in display order
- DEMOGRAPHIC_FIELDS: survey answers and brackets kept as strings
- FIELD_ALIASES: every spelling a source column is known to use

Additional numeric columns are analyzed only when named in
FieldSchema.extra_fields.

Cleaning Rules:
- Numeric fields: None, blank, NaN, inf and non-numeric text become 0.0
- Flag fields: true/"true"/1/"1" become 1.0, everything else 0.0
- Count-flag fields (subscribedWithin7Days): "true" spellings or any value >= 1 become 1.0
- Categorical fields: missing becomes ""
- incomeEnum / netWorthEnum: ordinal 1-7 derived from the bracket label, 0 if unknown
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from behavioral_drivers.models.enums import Outcome
from behavioral_drivers.models.schemas import UserRecord

logger = logging.getLogger(__name__)


# =============================================================================
# FIELD MANIFEST
# =============================================================================

OUTCOME_FIELDS: Tuple[str, ...] = tuple(outcome.value for outcome in Outcome)

KNOWN_PREDICTORS: Tuple[str, ...] = (
    'hasLinkedBank', 'totalCopyStarts', 'totalStripeViews', 'paywallViews',
    'regularPDPViews', 'premiumPDPViews', 'uniqueCreatorsInteracted',
    'uniquePortfoliosInteracted', 'timeToFirstCopy', 'timeToDeposit', 'timeToLinkedBank',
    'incomeEnum', 'netWorthEnum', 'availableCopyCredits', 'buyingPower',
    'activeCreatedPortfolios', 'lifetimeCreatedPortfolios', 'totalBuys', 'totalSells',
    'totalTrades', 'totalWithdrawalCount', 'totalWithdrawals', 'totalOfUserProfiles',
    'totalDepositCount', 'subscribedWithin7Days', 'totalRegularCopies',
    'regularCreatorProfileViews', 'premiumCreatorProfileViews', 'appSessions',
    'discoverTabViews', 'leaderboardViews', 'premiumTabViews', 'creatorCardTaps',
    'portfolioCardTaps',
)

DEMOGRAPHIC_FIELDS: Tuple[str, ...] = (
    'income', 'netWorth', 'investingExperienceYears',
    'investingActivity', 'investmentType', 'investingObjective',
    'acquisitionSurvey',
)

# Parsed as 0/1 rather than as general numbers
FLAG_FIELDS: Tuple[str, ...] = ('hasLinkedBank',)

# Booleans that some exports write as counts; any value >= 1 is true
COUNT_FLAG_FIELDS: Tuple[str, ...] = ('subscribedWithin7Days',)

# Computed from categorical brackets, never read from a column
DERIVED_FIELDS: Tuple[str, ...] = ('incomeEnum', 'netWorthEnum')

USER_ID_ALIASES: Tuple[str, ...] = ('userId', 'distinctId', 'Distinct ID', '$distinct_id', 'distinct_id')

# First alias with a non-blank value wins
FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    # Outcomes
    'totalCopies': ('totalCopies', 'Total Copies', 'E. Total Copies'),
    'totalDeposits': ('totalDeposits', 'Total Deposits', 'B. Total Deposits ($)'),
    'totalSubscriptions': ('totalSubscriptions', 'Total Subscriptions', 'M. Total Subscriptions'),

    # Account & financial
    'hasLinkedBank': ('hasLinkedBank', 'Linked Bank Account', 'A. Linked Bank Account'),
    'availableCopyCredits': ('availableCopyCredits', 'Available Copy Credits'),
    'buyingPower': ('buyingPower', 'Buying Power'),
    'totalDepositCount': ('totalDepositCount', 'Total Deposit Count', 'C. Total Deposit Count'),
    'totalWithdrawals': ('totalWithdrawals', 'Total Withdrawals'),
    'totalWithdrawalCount': ('totalWithdrawalCount', 'Total Withdrawal Count'),

    # Portfolio trading
    'activeCreatedPortfolios': ('activeCreatedPortfolios', 'Active Created Portfolios'),
    'lifetimeCreatedPortfolios': ('lifetimeCreatedPortfolios', 'Lifetime Created Portfolios'),
    'totalBuys': ('totalBuys', 'Total Buys'),
    'totalSells': ('totalSells', 'Total Sells'),
    'totalTrades': ('totalTrades', 'Total Trades'),

    # Behavioral / engagement
    'totalCopyStarts': ('totalCopyStarts', 'Total Copy Starts'),
    'totalRegularCopies': ('totalRegularCopies', 'Total Regular Copies', 'F. Total Regular Copies'),
    'totalPremiumCopies': ('totalPremiumCopies', 'Total Premium Copies', 'G. Total Premium Copies'),
    'uniqueCreatorsInteracted': ('uniqueCreatorsInteracted', 'Unique Creators Interacted'),
    'uniquePortfoliosInteracted': ('uniquePortfoliosInteracted', 'Unique Portfolios Interacted'),
    'regularPDPViews': ('regularPDPViews', 'Regular PDP Views', 'H. Regular PDP Views'),
    'premiumPDPViews': ('premiumPDPViews', 'Premium PDP Views', 'I. Premium PDP Views'),
    'paywallViews': ('paywallViews', 'Paywall Views', 'J. Paywall Views'),
    'totalStripeViews': ('totalStripeViews', 'Total Stripe Views', 'R. Stripe Modal Views'),
    'regularCreatorProfileViews': (
        'regularCreatorProfileViews', 'Regular Creator Profile Views', 'K. Regular Creator Profile Views',
    ),
    'premiumCreatorProfileViews': (
        'premiumCreatorProfileViews', 'Premium Creator Profile Views', 'L. Premium Creator Profile Views',
    ),
    'appSessions': ('appSessions', 'App Sessions', 'N. App Sessions'),
    'discoverTabViews': ('discoverTabViews', 'Discover Tab Views', 'O. Discover Tab Views'),
    'leaderboardViews': ('leaderboardViews', 'Leaderboard Views', 'P. Leaderboard Tab Views'),
    'premiumTabViews': ('premiumTabViews', 'Premium Tab Views', 'Q. Premium Tab Views'),
    'totalOfUserProfiles': ('totalOfUserProfiles', 'Total Of User Profiles'),
    'subscribedWithin7Days': ('subscribedWithin7Days', 'Subscribed Within 7 Days', 'D. Subscribed within 7 days'),

    # Time to conversion (days)
    'timeToFirstCopy': ('timeToFirstCopy', 'Time To First Copy'),
    'timeToDeposit': ('timeToDeposit', 'Time To Deposit'),
    'timeToLinkedBank': ('timeToLinkedBank', 'Time To Linked Bank'),

    'creatorCardTaps': ('creatorCardTaps', 'Creator Card Taps', 'S. Creator Card Taps'),
    'portfolioCardTaps': ('portfolioCardTaps', 'Portfolio Card Taps', 'T. Portfolio Card Taps'),
}

CATEGORICAL_ALIASES: Dict[str, Tuple[str, ...]] = {
    'income': ('income', 'Income'),
    'netWorth': ('netWorth', 'Net Worth'),
    'investingExperienceYears': ('investingExperienceYears', 'Investing Experience Years'),
    'investingActivity': ('investingActivity', 'Investing Activity'),
    'investingObjective': ('investingObjective', 'Investing Objective'),
    'investmentType': ('investmentType', 'Investment Type'),
    'acquisitionSurvey': ('acquisitionSurvey', 'Acquisition Survey'),
}

# Long and short bracket labels map to the same ordinal
INCOME_ENUM: Dict[str, int] = {
    'Less than $25,000': 1, '<25k': 1,
    '$25,000-$49,999': 2, '25k–50k': 2,
    '$50,000-$74,999': 3, '50k–100k': 3,
    '$75,000-$99,999': 4, '75k–100k': 4,
    '$100,000-$149,999': 5, '100k–150k': 5,
    '$150,000-$199,999': 6, '150k–200k': 6,
    '$200,000+': 7, '200k+': 7,
}

NET_WORTH_ENUM: Dict[str, int] = {
    'Less than $10,000': 1, '<10k': 1,
    '$10,000-$49,999': 2, '10k–50k': 2,
    '$50,000-$99,999': 3, '50k–100k': 3,
    '$100,000-$249,999': 4, '100k–250k': 4,
    '$250,000-$499,999': 5, '250k–500k': 5,
    '$500,000-$999,999': 6, '500k–1m': 6,
    '$1,000,000+': 7, '1m+': 7,
}

_TRUE_FLAG_VALUES = frozenset({'true', '1', '1.0', 'yes'})


# =============================================================================
# SCALAR CLEANERS
# =============================================================================


def clean_numeric(value: Any) -> float:
    """
    Coerce a raw cell to a finite float, defaulting to 0.0.

    Args:
        value: Raw cell value (number, numeric string, bool, None, NaN, ...)

    Returns:
        The numeric value, or 0.0 when the cell is missing, blank, non-numeric,
        NaN or infinite.

    Example:
        >>> clean_numeric("12.5")
        12.5
        >>> clean_numeric("n/a")
        0.0
    """
    if value is None:
        return 0.0
    if isinstance(value, (bool, np.bool_)):
        return 1.0 if value else 0.0
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def clean_flag(value: Any) -> float:
    """Coerce a boolean-ish cell (True, "true", 1, "1") to 1.0, else 0.0."""
    if isinstance(value, (bool, np.bool_)):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float, np.integer, np.floating)):
        return 1.0 if value == 1 else 0.0
    if isinstance(value, str):
        return 1.0 if value.strip().lower() in _TRUE_FLAG_VALUES else 0.0
    return 0.0


def clean_count_flag(value: Any) -> float:
    """
    Coerce a boolean-or-count cell to 1.0 / 0.0.

    "true"/"yes" spellings and True give 1.0; numbers (and numeric strings)
    give 1.0 when >= 1. Everything else is 0.0.

    Example:
        >>> clean_count_flag("TRUE")
        1.0
        >>> clean_count_flag(2)
        1.0
    """
    if isinstance(value, str) and value.strip().lower() in _TRUE_FLAG_VALUES:
        return 1.0
    return 1.0 if clean_numeric(value) >= 1 else 0.0


def _cleaner_for(name: str):
    if name in FLAG_FIELDS:
        return clean_flag
    if name in COUNT_FLAG_FIELDS:
        return clean_count_flag
    return clean_numeric


def clean_text(value: Any) -> str:
    """Coerce a categorical cell to a stripped string; missing becomes ""."""
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def convert_income_to_enum(income: str) -> int:
    """Ordinal income bracket (1 = lowest, 7 = highest), 0 when unknown."""
    return INCOME_ENUM.get(income, 0)


def convert_net_worth_to_enum(net_worth: str) -> int:
    """Ordinal net worth bracket (1 = lowest, 7 = highest), 0 when unknown."""
    return NET_WORTH_ENUM.get(net_worth, 0)


def to_camel_case(column: str) -> str:
    """
    Convert a source column label to a camelCase field name.

    Strips the lettered export prefix ("A. ") and a trailing "($)" unit marker.

    Example:
        >>> to_camel_case("A. Linked Bank Account")
        'linkedBankAccount'
        >>> to_camel_case("B. Total Deposits ($)")
        'totalDeposits'
    """
    name = re.sub(r'^[A-Z]\.\s*', '', column.strip())
    name = re.sub(r'\s*\(\$?\)\s*', '', name)
    name = re.sub(r'[^a-zA-Z0-9]+$', '', name)
    name = re.sub(r'[^a-zA-Z0-9]+(.)', lambda m: m.group(1).upper(), name)
    return name[:1].lower() + name[1:]


# =============================================================================
# FIELD SCHEMA
# =============================================================================


@dataclass(frozen=True)
class FieldSchema:
    """
    Explicit manifest of the fields an analysis run reads.

    Attributes:
        known_predictors: Predictors always analyzed, in display order.
        demographic_fields: Categorical fields broken down in the summary.
        extra_fields: Opt-in source columns analyzed as additional numeric
            predictors. Stored under their camelCase name.
    """
    known_predictors: Tuple[str, ...] = KNOWN_PREDICTORS
    demographic_fields: Tuple[str, ...] = DEMOGRAPHIC_FIELDS
    extra_fields: Tuple[str, ...] = field(default_factory=tuple)

    def with_extra_fields(self, extra_fields: Iterable[str]) -> "FieldSchema":
        """Return a copy that also analyzes ``extra_fields``."""
        merged = list(self.extra_fields)
        for column in extra_fields:
            if column and column not in merged:
                merged.append(column)
        return replace(self, extra_fields=tuple(merged))

    def extra_field_names(self) -> Dict[str, str]:
        """Map each opted-in source column to the field name it is stored under."""
        reserved = set(FIELD_ALIASES) | set(CATEGORICAL_ALIASES) | set(DERIVED_FIELDS)
        names: Dict[str, str] = {}
        for column in self.extra_fields:
            name = to_camel_case(column)
            if not name or name in reserved:
                logger.warning(f"Ignoring extra field {column!r}: maps to reserved field {name!r}")
                continue
            names[column] = name
        return names

    def predictors(self) -> List[str]:
        """Known predictors followed by extra fields, outcomes excluded, no duplicates."""
        result: List[str] = []
        for name in list(self.known_predictors) + list(self.extra_field_names().values()):
            if name in OUTCOME_FIELDS or name in result:
                continue
            result.append(name)
        return result


# =============================================================================
# RECORD BUILDING
# =============================================================================


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float):
        return math.isnan(value)
    return False


def _coalesce_columns(df: pd.DataFrame, aliases: Sequence[str]) -> Optional[pd.Series]:
    """
    Combine alias columns left to right, taking the first non-blank value per row.

    Returns None when none of the aliases is present in the frame.
    """
    combined: Optional[pd.Series] = None
    for alias in aliases:
        if alias not in df.columns:
            continue
        column = df[alias].astype(object)
        column = column.mask(column.map(_is_blank))
        combined = column if combined is None else combined.combine_first(column)
    return combined


def build_user_frame(
    rows: Sequence[Mapping[str, Any]],
    schema: Optional[FieldSchema] = None,
) -> pd.DataFrame:
    """
    Clean raw rows into a DataFrame with one column per manifest field.

    Numeric and flag columns are float64 with no NaN; categorical columns are
    strings; ``userId`` is a string or None.

    Args:
        rows: Raw per-user rows keyed by any known alias.
        schema: Field manifest; defaults to FieldSchema().

    Returns:
        Cleaned DataFrame with the same row order as ``rows``.
    """
    schema = schema or FieldSchema()
    rows = list(rows)
    n_rows = len(rows)
    # Rows without any keys produce no frame rows on their own
    raw = pd.DataFrame.from_records(rows) if rows else pd.DataFrame()
    raw = raw.reindex(pd.RangeIndex(n_rows))
    clean = pd.DataFrame(index=raw.index)

    user_ids = _coalesce_columns(raw, USER_ID_ALIASES)
    if user_ids is None:
        user_id_values = [None] * n_rows
    else:
        user_id_values = [None if _is_blank(v) else str(v) for v in user_ids]
    clean['userId'] = pd.Series(user_id_values, index=raw.index, dtype=object)

    for name, aliases in FIELD_ALIASES.items():
        column = _coalesce_columns(raw, aliases)
        cleaner = _cleaner_for(name)
        if column is None:
            clean[name] = np.zeros(n_rows, dtype=np.float64)
        else:
            clean[name] = column.map(cleaner).astype(np.float64)

    for name, aliases in CATEGORICAL_ALIASES.items():
        column = _coalesce_columns(raw, aliases)
        if column is None:
            clean[name] = pd.Series([""] * n_rows, index=raw.index, dtype=object)
        else:
            clean[name] = column.map(clean_text)

    clean['incomeEnum'] = clean['income'].map(convert_income_to_enum).astype(np.float64)
    clean['netWorthEnum'] = clean['netWorth'].map(convert_net_worth_to_enum).astype(np.float64)

    extra_names = schema.extra_field_names()
    for column_name, name in extra_names.items():
        if column_name in raw.columns:
            clean[name] = raw[column_name].map(clean_numeric).astype(np.float64)
        elif name in raw.columns:
            clean[name] = raw[name].map(clean_numeric).astype(np.float64)
        else:
            logger.warning(f"Extra field {column_name!r} not present in input rows; defaulting to 0")
            clean[name] = np.zeros(n_rows, dtype=np.float64)

    return clean


def build_user_records(
    rows: Sequence[Mapping[str, Any]],
    schema: Optional[FieldSchema] = None,
) -> List[UserRecord]:
    """
    Clean raw rows into immutable UserRecord objects.

    Args:
        rows: Raw per-user rows keyed by any known alias.
        schema: Field manifest; defaults to FieldSchema().

    Returns:
        One UserRecord per input row, in input order.
    """
    schema = schema or FieldSchema()
    if not rows:
        return []
    frame = build_user_frame(rows, schema)

    numeric_columns = (
        list(FIELD_ALIASES)
        + list(DERIVED_FIELDS)
        + list(schema.extra_field_names().values())
    )
    categorical_columns = list(CATEGORICAL_ALIASES)

    numeric_rows = frame[numeric_columns].to_dict(orient='records')
    categorical_rows = frame[categorical_columns].to_dict(orient='records')

    records = [
        UserRecord(
            userId=None if _is_blank(user_id) else user_id,
            numeric={key: float(value) for key, value in numeric.items()},
            categorical=categorical,
        )
        for user_id, numeric, categorical in zip(frame['userId'], numeric_rows, categorical_rows)
    ]
    logger.info(f"Cleaned {len(records)} user records with {len(numeric_columns)} numeric fields")
    return records
