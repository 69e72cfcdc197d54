from typing import Any, Callable, Dict, Optional

from s3_bridge.config.config import Settings, get_settings
from s3_bridge.connectors.s3_connector import S3Connector
from s3_bridge.connectors.sigv4 import DebugCallback
from s3_bridge.core.errors import InvalidArgumentError
from s3_bridge.core.registry import create_provider
from s3_bridge.interface.s3_client import S3Client
from s3_bridge.providers.base import Provider
from s3_bridge.utils.cache import CacheBackend, ResponseCache
from s3_bridge.utils.logging import get_logger_from_config


class ConnectorFactory:
    """
    Factory for creating the provider and the signed connector from configuration.
    """

    def __init__(self, config: Settings):
        """
        Initialize the connector factory with configuration.

        Args:
            config: Application settings/configuration object
        """
        self.config: Settings = config

    def get_logger(self):
        return get_logger_from_config(self.config.logging)

    def _validate_s3_config(self) -> None:
        s3_cfg = self.config.s3
        if not s3_cfg.access_key or not s3_cfg.secret_key.get_secret_value():
            raise InvalidArgumentError("S3 access key and secret key must be configured")

    def create_provider(self, **overrides: Any) -> Provider:
        """Provider named by ``s3_provider``; keyword overrides win over configured parameters"""
        s3_cfg = self.config.s3
        params: Dict[str, Any] = {**self.config.provider_params(), **overrides}
        return create_provider(s3_cfg.provider, s3_cfg.region, **params)

    def create_connector(
        self,
        provider: Optional[Provider] = None,
        debug_callback: Optional[DebugCallback] = None,
        **kwargs: Any,
    ) -> S3Connector:
        """Create S3 connector; extra keyword arguments go to S3Connector"""
        self._validate_s3_config()
        s3_cfg = self.config.s3
        return S3Connector(
            get_logger=self.get_logger,
            provider=provider or self.create_provider(),
            access_key=s3_cfg.access_key,
            secret_key=s3_cfg.secret_key.get_secret_value(),
            timeouts=self.config.timeouts,
            retry=self.config.retry,
            debug_callback=debug_callback,
            verify_ssl=self.config.http_verify_ssl,
            max_connections=self.config.http_max_connections,
            max_keepalive_connections=self.config.http_max_keepalive_connections,
            **kwargs,
        )


class InterfaceFactory:
    """
    Factory for creating the high-level client on top of a connector.
    """

    def __init__(self, config: Settings, connector_factory: Optional[ConnectorFactory] = None):
        self.config: Settings = config
        self.connector_factory = connector_factory or ConnectorFactory(config)

    def create_cache(self, backend: Optional[CacheBackend] = None) -> ResponseCache:
        cache_cfg = self.config.cache
        return ResponseCache(
            backend,
            ttl=cache_cfg.ttl_seconds,
            key_prefix=cache_cfg.key_prefix,
            enabled=cache_cfg.enabled,
            get_logger=self.connector_factory.get_logger,
        )

    def create_client(
        self,
        connector: Optional[S3Connector] = None,
        cache_backend: Optional[CacheBackend] = None,
        **kwargs: Any,
    ) -> S3Client:
        """Create S3Client; extra keyword arguments go to S3Client"""
        return S3Client(
            connector or self.connector_factory.create_connector(),
            self.create_cache(cache_backend),
            get_logger=self.connector_factory.get_logger,
            presigned_default_minutes=self.config.presigned_default_minutes,
            presigned_upload_minutes=self.config.presigned_upload_minutes,
            cors_verify_timeout=self.config.cors_verify_timeout,
            cors_verify_initial_delay=self.config.cors_verify_initial_delay,
            **kwargs,
        )


def create_client(
    config: Optional[Settings] = None,
    debug_callback: Optional[Callable[[str, Dict[str, Any]], None]] = None,
    cache_backend: Optional[CacheBackend] = None,
) -> S3Client:
    """
    Build a ready-to-initialize S3Client from settings.

    Args:
        config: settings, the process-wide instance when omitted
        debug_callback: optional request debug hook
        cache_backend: cache store, in-memory when omitted
    """
    config = config or get_settings()
    connector_factory = ConnectorFactory(config)
    connector = connector_factory.create_connector(debug_callback=debug_callback)
    return InterfaceFactory(config, connector_factory).create_client(connector, cache_backend)
