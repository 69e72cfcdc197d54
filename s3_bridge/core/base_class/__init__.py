"""
Core base classes for connectors.
"""
from __future__ import annotations

from .base_connectors import BaseConnector, ObjectStorageConnector

__all__ = [
    "BaseConnector",
    "ObjectStorageConnector",
]
