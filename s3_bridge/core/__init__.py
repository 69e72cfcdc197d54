"""
Core module exports - Centralized imports for core functionality.

Factories are imported from s3_bridge.core.factories directly, since they
depend on the connector and interface packages.
"""

# Export errors
from .errors import (
    ErrorCode,
    S3BridgeError,
    InvalidArgumentError,
    XmlParseError,
    EmptyResponseError,
)

# Export registry
from .registry import (
    register_provider,
    get_provider_class,
    get_all_providers,
    create_provider,
    PROVIDER_REGISTRY,
)

# Export base classes
from .base_class import BaseConnector, ObjectStorageConnector

__all__ = [
    # Errors
    'ErrorCode',
    'S3BridgeError',
    'InvalidArgumentError',
    'XmlParseError',
    'EmptyResponseError',

    # Registry
    'register_provider',
    'get_provider_class',
    'get_all_providers',
    'create_provider',
    'PROVIDER_REGISTRY',

    # Base classes
    'BaseConnector',
    'ObjectStorageConnector',
]
