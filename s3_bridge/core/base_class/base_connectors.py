"""
Base connector abstractions.

- BaseConnector: lifecycle and health-check API shared by every connector
- ObjectStorageConnector: the object operations an S3-compatible backend serves

Concrete implementations live in `connectors/`. Object operations return the
Response envelope rather than raising.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from s3_bridge.models.response_model import Response


class BaseConnector(abc.ABC):
    """Common lifecycle and health-check contract for all connectors."""

    def __init__(self, name: str):
        self._name = name
        self._healthy: bool = False

    @property
    def name(self) -> str:
        return self._name

    @abc.abstractmethod
    async def initialize(self) -> None:
        """Open the pooled HTTP client."""

    @abc.abstractmethod
    async def shutdown(self) -> None:
        """Close the HTTP client."""

    @abc.abstractmethod
    async def health_check(self) -> bool:
        """Probe the remote service with a cheap authenticated request."""

    def is_healthy(self) -> bool:
        """Result of the last health check or lifecycle transition."""
        return self._healthy

    def _set_health(self, value: bool) -> None:
        self._healthy = value


class ObjectStorageConnector(BaseConnector, abc.ABC):
    """Bucket and object operations of an S3-compatible service."""

    @abc.abstractmethod
    async def list_buckets(self, max_keys: int = 1000, prefix: str = "", marker: str = "") -> Response:
        """One page of buckets."""

    @abc.abstractmethod
    async def list_objects(
        self,
        bucket: str,
        max_keys: int = 1000,
        prefix: str = "",
        delimiter: str = "/",
        continuation_token: str = "",
    ) -> Response:
        """One page of objects and common prefixes."""

    @abc.abstractmethod
    async def get_object(self, bucket: str, object_key: str) -> Response:
        """Object body and metadata."""

    @abc.abstractmethod
    async def head_object(self, bucket: str, object_key: str) -> Response:
        """Object metadata only."""

    @abc.abstractmethod
    async def put_object(
        self,
        bucket: str,
        object_key: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> Response:
        """Store an object from memory."""

    @abc.abstractmethod
    async def delete_object(self, bucket: str, object_key: str) -> Response:
        """Delete one object."""

    @abc.abstractmethod
    async def copy_object(self, source_bucket: str, source_key: str, target_bucket: str, target_key: str) -> Response:
        """Server-side copy."""
