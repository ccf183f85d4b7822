"""
Package: config
Description: Configuration loading for sqscli.

Settings are read from environment variables (and an optional .env
file) with pydantic-settings.
"""

from .settings import Settings, load_settings, SQS_MAX_BATCH_SIZE, SQS_MAX_VISIBILITY_TIMEOUT

__all__ = [
    "Settings",
    "load_settings",
    "SQS_MAX_BATCH_SIZE",
    "SQS_MAX_VISIBILITY_TIMEOUT",
]
