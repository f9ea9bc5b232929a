"""
Core infrastructure package for the FastAPI backend.

Provides:
- Configuration management via pydantic-settings
- FastAPI dependency injection utilities (behavioral_drivers.core.dependencies)

The dependencies module is imported directly by the API layer rather than
re-exported here, since it builds analyzers from the services package:

    from behavioral_drivers.core import get_settings
    from behavioral_drivers.core.dependencies import AnalyzerDep, SettingsDep
"""

from behavioral_drivers.core.config import Settings, get_settings

__all__ = [
    'Settings',
    'get_settings',
]
