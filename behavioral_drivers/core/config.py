"""
Settings and environment management module for the Behavioral Drivers backend.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults for development
- Singleton pattern via @lru_cache for efficient access
- Analysis thresholds exposed as tunable parameters rather than constants

Analysis Defaults:
- tipping_min_bucket_size: 10 (Buckets with fewer users are treated as noise)
- tipping_min_conversion_rate: 0.10 (A tipping bucket must convert above 10%)
- significance_t_threshold: 1.96 (|t| above this is flagged significant, ~95%)
- low_deposit_threshold: 1000.0 (Users strictly below this count as low depositors)

Usage:
    from behavioral_drivers.core.config import get_settings

    settings = get_settings()
    min_bucket = settings.tipping_min_bucket_size
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    No setting is required; every field has a development default so the
    service can start with an empty environment.

    Attributes:
        api_title: Title shown in the OpenAPI docs.
        cors_origins: Origins allowed to call the API from a browser.
        log_level: Root logging level name.
        tipping_min_bucket_size: Minimum users per predictor bucket.
        tipping_min_conversion_rate: Conversion rate a bucket must exceed to be a tipping point.
        significance_t_threshold: Absolute t-statistic above which a predictor is significant.
        low_deposit_threshold: Deposit total below which a user is a low depositor.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Service
    # =========================================================================

    api_title: str = 'Behavioral Drivers API'

    # Dashboard dev servers
    cors_origins: List[str] = [
        'http://localhost:3000',
        'http://127.0.0.1:3000',
    ]

    log_level: str = 'INFO'

    # =========================================================================
    # Tipping Point Detection
    # These were tuned against a single production dataset; override per
    # environment rather than treating them as fixed rules.
    # =========================================================================

    # Buckets with fewer users than this are discarded before scanning
    tipping_min_bucket_size: int = 10

    # Only jumps into a bucket converting above this rate qualify
    tipping_min_conversion_rate: float = 0.10

    # =========================================================================
    # Regression
    # =========================================================================

    # |t| > 1.96 corresponds to p < 0.05 (two-sided) for large samples
    significance_t_threshold: float = 1.96

    # =========================================================================
    # Summary
    # =========================================================================

    low_deposit_threshold: float = 1000.0


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The application settings instance with all configuration values.

    Raises:
        pydantic.ValidationError: If an environment variable has an invalid value
            (e.g., TIPPING_MIN_BUCKET_SIZE=abc).

    Note:
        To refresh settings in tests, you can clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
