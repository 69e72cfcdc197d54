"""
Module for managing the registry of storage providers.
Provides a decorator for easy registration of new provider implementations.
"""

from typing import Any, Dict, Type

from s3_bridge.core.errors import InvalidArgumentError

# Global registry
PROVIDER_REGISTRY: Dict[str, Type[Any]] = {}


def register_provider(provider_id: str):
    """
    Decorator to register a provider class in the global registry.

    Args:
        provider_id: The identifier to register the provider class under
    """
    def decorator(cls):
        PROVIDER_REGISTRY[provider_id] = cls
        return cls
    return decorator


def get_provider_class(provider_id: str) -> Type[Any]:
    """
    Retrieve a provider class by identifier from the registry.

    Args:
        provider_id: The identifier of the provider class to retrieve

    Returns:
        The provider class associated with the identifier

    Raises:
        KeyError: If no provider class is registered under the identifier
    """
    if provider_id not in PROVIDER_REGISTRY:
        raise KeyError(f"No provider class registered under name '{provider_id}'")
    return PROVIDER_REGISTRY[provider_id]


def get_all_providers() -> Dict[str, Type[Any]]:
    """
    Get all registered provider classes.

    Returns:
        A dictionary mapping identifiers to provider classes
    """
    return PROVIDER_REGISTRY.copy()


def create_provider(provider_id: str, region: str = "", **params: Any) -> Any:
    """
    Instantiate a registered provider.

    Raises:
        InvalidArgumentError: If the identifier is unknown or the provider rejects its configuration
    """
    try:
        provider_cls = get_provider_class(provider_id)
    except KeyError as e:
        raise InvalidArgumentError(
            f"Unknown provider '{provider_id}'. Available providers: {', '.join(sorted(PROVIDER_REGISTRY))}"
        ) from e
    return provider_cls(region, **params)
