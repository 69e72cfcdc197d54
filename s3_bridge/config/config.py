"""
Configuration module using Pydantic Settings.

Reads from .env file and environment variables.
All fields are optional with sensible defaults.

Structure is flat; per-concern settings objects are exposed as properties.
"""

from typing import Any, Dict, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr

from s3_bridge.config.cache_config import CacheSettings
from s3_bridge.config.logging_config import LoggingSettings
from s3_bridge.config.retry_config import RetrySettings
from s3_bridge.config.s3_config import S3Settings
from s3_bridge.config.timeout_config import TimeoutSettings


class Settings(BaseSettings):
    """Main application settings - flat structure"""
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"  # Ignore extra fields
    )

    # ========================================================================
    # S3
    # ========================================================================
    s3_provider: str = Field(default="aws_s3", description="Provider id (aws_s3, cloudflare_r2, generic_s3, ...)")
    s3_region: str = Field(default="", description="Region code, empty for the provider default")
    s3_access_key: str = Field(default="", description="Access key id")
    s3_secret_key: SecretStr = Field(default=SecretStr(""), description="Secret access key")
    s3_account_id: Optional[str] = Field(default=None, description="Account id (R2, Backblaze, Mega S4)")
    s3_endpoint: Optional[str] = Field(default=None, description="Endpoint for generic S3 services")
    s3_path_style: Optional[bool] = Field(default=None, description="Force path-style (True) or virtual-hosted (False)")
    s3_use_https: bool = Field(default=True, description="Use https for generic endpoints")

    # ========================================================================
    # LOGGING
    # ========================================================================
    log_name: str = Field(default="s3_bridge", description="Logger name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_enable_debug: bool = Field(default=False, description="Enable debug logging")
    log_file: Optional[str] = Field(default=None, description="Log file path")

    # ========================================================================
    # CACHE
    # ========================================================================
    cache_enabled: bool = Field(default=True, description="Cache list responses")
    cache_ttl_seconds: int = Field(default=300, description="Time to live of cached responses")
    cache_key_prefix: str = Field(default="s3_bridge:", description="Prefix of every cache key")

    # ========================================================================
    # TIMEOUTS (seconds)
    # ========================================================================
    timeout_head: float = Field(default=15.0, description="HEAD requests")
    timeout_delete: float = Field(default=15.0, description="DELETE requests")
    timeout_get: float = Field(default=30.0, description="GET object")
    timeout_list: float = Field(default=30.0, description="Bucket/object listings")
    timeout_copy: float = Field(default=30.0, description="Server-side copy")
    timeout_put: float = Field(default=60.0, description="Signed PUT")
    timeout_batch_delete: float = Field(default=60.0, description="Multi-object delete")
    timeout_upload: float = Field(default=120.0, description="Upload to presigned URL")
    timeout_default: float = Field(default=30.0, description="Anything else")

    # ========================================================================
    # RETRY (idempotent requests only)
    # ========================================================================
    retry_max_retries: int = Field(default=2, description="Retries after the first attempt")
    retry_initial_delay: float = Field(default=0.5, description="Initial delay")
    retry_max_delay: float = Field(default=5.0, description="Max delay")

    # ========================================================================
    # CORS VERIFICATION
    # ========================================================================
    cors_verify_timeout: float = Field(default=10.0, description="Max seconds to wait for CORS propagation")
    cors_verify_initial_delay: float = Field(default=0.5, description="First poll delay")

    # ========================================================================
    # PRESIGNED URLS
    # ========================================================================
    presigned_default_minutes: int = Field(default=60, description="Default download URL lifetime")
    presigned_upload_minutes: int = Field(default=15, description="Upload URL lifetime")

    # ========================================================================
    # HTTP
    # ========================================================================
    http_max_connections: int = Field(default=100, description="Max connections")
    http_max_keepalive_connections: int = Field(default=20, description="Max keep-alive connections")
    http_verify_ssl: bool = Field(default=True, description="Verify SSL certificates")

    # ========================================================================
    # HELPER PROPERTIES
    # ========================================================================

    @property
    def s3(self) -> S3Settings:
        return S3Settings(
            provider=self.s3_provider,
            region=self.s3_region,
            access_key=self.s3_access_key,
            secret_key=self.s3_secret_key,
            account_id=self.s3_account_id,
            endpoint=self.s3_endpoint,
            path_style=self.s3_path_style,
            use_https=self.s3_use_https,
        )

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings(
            name=self.log_name,
            level=self.log_level,
            enable_debug=self.log_enable_debug,
            file=self.log_file,
        )

    @property
    def cache(self) -> CacheSettings:
        return CacheSettings(
            enabled=self.cache_enabled,
            ttl_seconds=self.cache_ttl_seconds,
            key_prefix=self.cache_key_prefix,
        )

    @property
    def timeouts(self) -> TimeoutSettings:
        return TimeoutSettings(
            head=self.timeout_head,
            delete=self.timeout_delete,
            get=self.timeout_get,
            listing=self.timeout_list,
            copy_object=self.timeout_copy,
            put=self.timeout_put,
            batch_delete=self.timeout_batch_delete,
            upload=self.timeout_upload,
            default=self.timeout_default,
        )

    @property
    def retry(self) -> RetrySettings:
        return RetrySettings(
            max_retries=self.retry_max_retries,
            initial_delay=self.retry_initial_delay,
            max_delay=self.retry_max_delay,
        )

    def provider_params(self) -> Dict[str, Any]:
        """Keyword arguments for create_provider() derived from the S3 section"""
        return self.s3.provider_params()


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance (singleton)"""
    global _settings_instance

    if _settings_instance is None:
        _settings_instance = Settings()

    return _settings_instance


def reset_settings() -> None:
    """Reset settings instance (for testing)"""
    global _settings_instance
    _settings_instance = None
