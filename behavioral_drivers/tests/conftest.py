"""
Pytest Configuration and Shared Fixtures for Behavioral Drivers Tests.

This module provides fixtures and configuration for all backend tests:
- A user record factory for concise per-test records
- The four-user persona scenario (premium, core, activation target, non-activated)
- Raw rows using the display and lettered-export column spellings
- A seeded synthetic population with a known tipping point
- Settings and analyzer fixtures independent of the process environment
"""

from typing import Any, Callable, Dict, List

import numpy as np
import pytest

from behavioral_drivers.core.config import Settings
from behavioral_drivers.models import UserRecord
from behavioral_drivers.services.analyzer import BehavioralDriverAnalyzer


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - slow: Marks tests as slow (deselect with -m "not slow")
    - scenario: Marks tests pinned to documented worked examples
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )
    config.addinivalue_line(
        'markers',
        'scenario: marks tests pinned to documented worked examples'
    )


# ============================================================
# RECORD FIXTURES
# ============================================================

@pytest.fixture
def make_user() -> Callable[..., UserRecord]:
    """
    Factory building a UserRecord from keyword arguments.

    String values go to ``categorical``, everything else to ``numeric``;
    ``userId`` is passed through.

    Usage:
        def test_premium(make_user):
            user = make_user(totalSubscriptions=1, income="200k+")
    """
    def _make(userId: str = None, **fields: Any) -> UserRecord:
        numeric = {k: float(v) for k, v in fields.items() if not isinstance(v, str)}
        categorical = {k: v for k, v in fields.items() if isinstance(v, str)}
        return UserRecord(userId=userId, numeric=numeric, categorical=categorical)

    return _make


@pytest.fixture
def scenario_users(make_user) -> List[UserRecord]:
    """Worked example: expected personas premium, core, activationTargets, nonActivated."""
    return [
        make_user(userId="u1", totalSubscriptions=1),
        make_user(userId="u2", totalSubscriptions=0, totalDeposits=500),
        make_user(userId="u3", totalSubscriptions=0, totalDeposits=0, totalCopies=0, regularPDPViews=2),
        make_user(userId="u4", totalSubscriptions=0, totalDeposits=0, totalCopies=0, regularPDPViews=0),
    ]


@pytest.fixture
def raw_rows() -> List[Dict[str, Any]]:
    """Raw rows as exported, mixing display labels and lettered labels."""
    return [
        {
            "Distinct ID": "abc",
            "B. Total Deposits ($)": "1,000",
            "Total Deposits": "250.5",
            "E. Total Copies": 3,
            "M. Total Subscriptions": None,
            "A. Linked Bank Account": "true",
            "H. Regular PDP Views": "7",
            "Income": "100k–150k",
            "Net Worth": "$1,000,000+",
            "Investing Activity": "  ",
        },
        {
            "Distinct ID": "def",
            "Total Deposits": "",
            "B. Total Deposits ($)": "n/a",
            "Total Copies": 0,
            "Linked Bank Account": 0,
            "Regular PDP Views": float("nan"),
            "Subscribed Within 7 Days": True,
            "Income": "",
        },
    ]


@pytest.fixture
def synthetic_population() -> List[UserRecord]:
    """
    Seeded population where deposit conversion jumps at 3 regular PDP views.

    Users with 0-2 PDP views convert at ~5%, users with 3+ at ~60%; every
    bucket holds 40 users so none fall below the noise floor.
    """
    rng = np.random.default_rng(42)
    users: List[UserRecord] = []
    for views in range(6):
        rate = 0.05 if views < 3 else 0.60
        for i in range(40):
            converted = rng.random() < rate
            users.append(
                UserRecord(
                    userId=f"pdp{views}-{i}",
                    numeric={
                        "regularPDPViews": float(views),
                        "totalDeposits": 250.0 if converted else 0.0,
                        "appSessions": float(rng.integers(0, 20)),
                    },
                    categorical={"income": "100k–150k" if i % 2 else ""},
                )
            )
    return users


# ============================================================
# SETTINGS / ANALYZER FIXTURES
# ============================================================

@pytest.fixture
def settings() -> Settings:
    """Settings with explicit defaults, unaffected by environment variables."""
    return Settings(
        _env_file=None,
        tipping_min_bucket_size=10,
        tipping_min_conversion_rate=0.10,
        significance_t_threshold=1.96,
        low_deposit_threshold=1000.0,
    )


@pytest.fixture
def analyzer(settings: Settings) -> BehavioralDriverAnalyzer:
    """Analyzer with the default schema and persona rules."""
    return BehavioralDriverAnalyzer(settings=settings)
