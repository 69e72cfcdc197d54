"""
Config module exports - Centralized imports for configuration functionality.
"""

from .config import Settings, get_settings, reset_settings
from .logging_config import LoggingSettings
from .s3_config import S3Settings
from .cache_config import CacheSettings
from .timeout_config import TimeoutSettings
from .retry_config import RetrySettings

__all__ = [
    'Settings',
    'get_settings',
    'reset_settings',
    'LoggingSettings',
    'S3Settings',
    'CacheSettings',
    'TimeoutSettings',
    'RetrySettings',
]
