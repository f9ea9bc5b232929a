'''
Behavioral Drivers Backend Test Suite

Test Modules:
-------------
- test_records.py: Raw row cleaning, alias resolution, extra field opt-in
- test_correlation.py: Pearson correlation, t-statistic guards, regression ordering
- test_tipping_point.py: Bucketing, noise floor, jump detection
- test_persona.py: Rule cascade priority, totality and exclusivity
- test_summary.py: Conversion rates, persona shares, per-question denominators
- test_analyzer.py: Full analysis run and lazy predictor resolution
- test_api.py: Endpoint handlers and error mapping

Running Tests:
--------------
    pip install -e ".[test]"
    pytest -v

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

__all__ = []
