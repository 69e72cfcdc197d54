"""
Response cache for list operations.

``CacheBackend`` is the pluggable key/value store (get, set, delete,
flush-by-prefix, with TTL). ``ResponseCache`` sits on top of it and enforces
the envelope rules: only successful responses are stored, hits are returned
as deep copies, and mutations invalidate the bucket/prefix listings they can
affect.

Concurrent listings and invalidations on the same bucket are ordered through a
per-bucket lock and generation counter: a listing that started before an
invalidation never writes its (possibly stale) result back.
"""
from __future__ import annotations

import abc
import asyncio
import hashlib
import json
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Set, Tuple

from s3_bridge.models.response_model import Response
from s3_bridge.utils.files import directory_prefix
from s3_bridge.utils.logging import get_logger as default_get_logger


class CacheBackend(abc.ABC):
    """Key/value store with TTL and prefix flush."""

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Stored value, or None when absent or expired."""

    @abc.abstractmethod
    async def set(self, key: str, value: Any, ttl: int) -> None:
        """Store ``value`` for ``ttl`` seconds."""

    @abc.abstractmethod
    async def delete(self, key: str) -> bool:
        """Remove one key; True when something was removed."""

    @abc.abstractmethod
    async def flush(self, prefix: str = "") -> int:
        """Remove every key starting with ``prefix``; returns how many were removed."""


class MemoryCache(CacheBackend):
    """In-process backend. Safe to share between threads and event loops."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._data: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def __len__(self) -> int:
        with self._lock:
            now = self._clock()
            return sum(1 for expires_at, _ in self._data.values() if expires_at > now)

    async def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._data[key]
                return None
            return value

    async def set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        with self._lock:
            self._data[key] = (self._clock() + ttl, value)

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    async def flush(self, prefix: str = "") -> int:
        with self._lock:
            doomed = [key for key in self._data if key.startswith(prefix)]
            for key in doomed:
                del self._data[key]
            return len(doomed)


def params_digest(params: Dict[str, Any]) -> str:
    """Stable md5 of normalized operation parameters"""
    normalized = json.dumps(params, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.md5(normalized.encode("utf-8")).hexdigest()


def key_ancestors(object_key: str) -> Iterable[str]:
    """Directory prefixes containing ``object_key``: '', 'a/', 'a/b/', ..."""
    yield ""
    parent = directory_prefix(object_key)
    parts = [part for part in parent.split("/") if part]
    for depth in range(1, len(parts) + 1):
        yield "/".join(parts[:depth]) + "/"


class ResponseCache:
    """
    Envelope-aware cache keyed by operation and parameters.

    Key layout (after ``key_prefix``):
        buckets|<md5>
        objects:<bucket>:<list prefix>|<md5>
        cors:<bucket>
        permissions:<provider>:<region>:<bucket>
    """

    def __init__(
        self,
        backend: Optional[CacheBackend] = None,
        *,
        ttl: int = 300,
        key_prefix: str = "s3_bridge:",
        enabled: bool = True,
        get_logger: Optional[Callable[[], logging.Logger]] = None,
    ):
        self.backend = backend or MemoryCache()
        self.ttl = ttl
        self.key_prefix = key_prefix
        self.enabled = enabled
        self.logger = (get_logger or default_get_logger)()

        self._generations: Dict[str, int] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._listing_prefixes: Dict[str, Set[str]] = {}

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def buckets_key(self, params: Dict[str, Any]) -> str:
        return f"{self.key_prefix}buckets|{params_digest(params)}"

    def objects_namespace(self, bucket: str, list_prefix: str = "") -> str:
        return f"{self.key_prefix}objects:{bucket}:{list_prefix}|"

    def objects_key(self, bucket: str, list_prefix: str, params: Dict[str, Any]) -> str:
        return f"{self.objects_namespace(bucket, list_prefix)}{params_digest(params)}"

    def cors_key(self, bucket: str) -> str:
        return f"{self.key_prefix}cors:{bucket}"

    def permissions_key(self, provider_id: str, region: str, bucket: str) -> str:
        return f"{self.key_prefix}permissions:{provider_id}:{region}:{bucket}"

    # ------------------------------------------------------------------
    # Read-through
    # ------------------------------------------------------------------

    def _lock_for(self, scope: str) -> asyncio.Lock:
        lock = self._locks.get(scope)
        if lock is None:
            lock = self._locks[scope] = asyncio.Lock()
        return lock

    async def get(self, key: str) -> Optional[Response]:
        if not self.enabled:
            return None
        hit = await self.backend.get(key)
        if hit is None:
            return None
        return hit.model_copy(deep=True)

    async def cached(
        self,
        key: str,
        fetch: Callable[[], Awaitable[Response]],
        *,
        scope: str = "",
        list_prefix: Optional[str] = None,
        use_cache: bool = True,
    ) -> Response:
        """
        Return the cached envelope for ``key`` or fetch, store and return it.

        Args:
            key: cache key
            fetch: coroutine factory performing the real request
            scope: bucket the entry belongs to ('' for service-level entries)
            list_prefix: listing prefix, tracked for prefix-scoped invalidation
            use_cache: False bypasses the lookup; a successful result is still stored
        """
        if not self.enabled:
            return await fetch()

        if use_cache:
            hit = await self.get(key)
            if hit is not None:
                self.logger.debug(f"Cache hit: {key}")
                return hit

        generation = self._generations.get(scope, 0)
        response = await fetch()
        if not response.is_successful():
            return response

        async with self._lock_for(scope):
            if self._generations.get(scope, 0) != generation:
                self.logger.debug(f"Cache store skipped, {scope or 'service'} invalidated meanwhile: {key}")
                return response
            await self.backend.set(key, response.model_copy(deep=True), self.ttl)
            if list_prefix is not None:
                self._listing_prefixes.setdefault(scope, set()).add(list_prefix)
        return response

    async def store(self, key: str, response: Response, scope: str = "") -> None:
        if not self.enabled or not response.is_successful():
            return
        async with self._lock_for(scope):
            await self.backend.set(key, response.model_copy(deep=True), self.ttl)

    async def delete(self, key: str) -> bool:
        return await self.backend.delete(key)

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    async def invalidate_objects(self, bucket: str, object_key: str = "") -> int:
        """
        Drop every listing of ``bucket`` that could contain ``object_key``.

        That is each listing whose prefix is an ancestor of the key, or which
        lies under the key when it names a folder.
        """
        async with self._lock_for(bucket):
            self._generations[bucket] = self._generations.get(bucket, 0) + 1

            tracked = self._listing_prefixes.get(bucket, set())
            doomed = {p for p in tracked if object_key.startswith(p) or p.startswith(object_key)}
            doomed.update(key_ancestors(object_key))
            if object_key.endswith("/"):
                doomed.add(object_key)

            removed = 0
            for list_prefix in doomed:
                removed += await self.backend.flush(self.objects_namespace(bucket, list_prefix))
                tracked.discard(list_prefix)

        self.logger.debug(f"Invalidated {removed} cache entries for {bucket}/{object_key}")
        return removed

    async def invalidate_bucket(self, bucket: str) -> int:
        async with self._lock_for(bucket):
            self._generations[bucket] = self._generations.get(bucket, 0) + 1
            self._listing_prefixes.pop(bucket, None)
            removed = await self.backend.flush(f"{self.key_prefix}objects:{bucket}:")
            removed += await self.backend.delete(self.cors_key(bucket))
        self.logger.debug(f"Invalidated {removed} cache entries for bucket {bucket}")
        return removed

    async def invalidate_cors(self, bucket: str) -> bool:
        async with self._lock_for(bucket):
            self._generations[bucket] = self._generations.get(bucket, 0) + 1
            return await self.backend.delete(self.cors_key(bucket))

    async def flush_permissions(self) -> int:
        return await self.backend.flush(f"{self.key_prefix}permissions:")

    async def clear(self) -> int:
        """Remove everything under ``key_prefix``"""
        for scope in list(self._generations):
            self._generations[scope] += 1
        self._generations[""] = self._generations.get("", 0) + 1
        self._listing_prefixes.clear()
        removed = await self.backend.flush(self.key_prefix)
        self.logger.info(f"Cache cleared ({removed} entries)")
        return removed
