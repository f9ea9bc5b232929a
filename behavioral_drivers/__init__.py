"""
Behavioral Drivers Backend Package.

FastAPI service layer for the behavioral driver analysis dashboard. Takes a
flat per-user table of engagement, financial and survey attributes and returns
correlation/regression tables, tipping points, persona counts and summary
statistics for the rendering layer.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration and dependencies
    - models: Pydantic schemas and enums
    - services: Analysis services (records, correlation, tipping points,
      personas, summary, analyzer orchestration)
"""

__version__ = "1.0.0"
