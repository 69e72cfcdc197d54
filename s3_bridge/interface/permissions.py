"""
Access-key capability probe: read, write and delete on one bucket.
"""
from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from s3_bridge.models.response_model import Response, SuccessResponse

if TYPE_CHECKING:
    from s3_bridge.interface.s3_client import S3Client

TEST_KEY_PREFIX = "permissions-test-"


class PermissionProbe:
    """
    Permissions delegate of S3Client.

    Read is probed with a one-key listing; write with a presigned upload of a
    random test object; delete by removing that object again. A later probe is
    only attempted when the earlier one passed. If the test object cannot be
    removed, a ``.note`` file is left next to it asking for manual cleanup.
    """

    def __init__(self, client: "S3Client"):
        self.client = client
        self.cache = client.cache
        self.logger = client.logger

    def _cache_key(self, bucket: str) -> str:
        provider = self.client.connector.provider
        return self.cache.permissions_key(provider.id, provider.region, bucket)

    @staticmethod
    def _error_of(response: Response) -> Dict[str, Any]:
        return {"code": response.error_code, "message": response.error_message, "status": response.status_code}

    async def check_key_permissions(
        self, bucket: str, use_cache: bool = True, force_test: bool = False
    ) -> Dict[str, Any]:
        """
        Never raises; every failed probe becomes a False flag and an ``errors`` entry.
        """
        cache_key = self._cache_key(bucket)
        if use_cache and not force_test:
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return dict(cached.data)

        permissions: Dict[str, Any] = {
            "read": False,
            "write": False,
            "delete": False,
            "errors": {},
            "bucket": bucket,
            "tested_at": datetime.now(timezone.utc).isoformat(),
        }

        read = await self.client.get_objects(bucket, max_keys=1, use_cache=False)
        permissions["read"] = read.is_successful()
        if not permissions["read"]:
            permissions["errors"]["read"] = self._error_of(read)

        if permissions["read"]:
            test_key = f"{TEST_KEY_PREFIX}{secrets.token_hex(8)}.txt"
            content = f"S3 permissions test file. Safe to delete. Created: {permissions['tested_at']}"
            write = await self.client.put_object(bucket, test_key, content.encode("utf-8"), content_type="text/plain")
            permissions["write"] = write.is_successful()
            if not permissions["write"]:
                permissions["errors"]["write"] = self._error_of(write)
            else:
                delete = await self.client.delete_object(bucket, test_key)
                permissions["delete"] = delete.is_successful()
                if not permissions["delete"]:
                    permissions["errors"]["delete"] = self._error_of(delete)
                    await self._leave_cleanup_note(bucket, test_key)

        self.logger.info(
            f"Permissions for {bucket}: read={permissions['read']} "
            f"write={permissions['write']} delete={permissions['delete']}"
        )
        if use_cache:
            await self.cache.store(cache_key, SuccessResponse(data=permissions), scope="")
        return permissions

    async def _leave_cleanup_note(self, bucket: str, test_key: str) -> None:
        note = (
            f"Failed to delete test file. Please manually delete '{test_key}' and this note file. "
            f"Created: {datetime.now(timezone.utc).isoformat()}"
        )
        result = await self.client.put_object(bucket, f"{test_key}.note", note.encode("utf-8"), content_type="text/plain")
        if not result.is_successful():
            self.logger.warning(f"Could not leave cleanup note for {bucket}/{test_key}: {result.error_code}")

    async def can_read(self, bucket: str, use_cache: bool = True) -> bool:
        return (await self.check_key_permissions(bucket, use_cache))["read"]

    async def can_write(self, bucket: str, use_cache: bool = True) -> bool:
        return (await self.check_key_permissions(bucket, use_cache))["write"]

    async def can_delete(self, bucket: str, use_cache: bool = True) -> bool:
        return (await self.check_key_permissions(bucket, use_cache))["delete"]

    async def has_full_access(self, bucket: str, use_cache: bool = True) -> bool:
        permissions = await self.check_key_permissions(bucket, use_cache)
        return permissions["read"] and permissions["write"] and permissions["delete"]

    async def clear_permissions_cache(self, bucket: Optional[str] = None) -> int:
        if bucket is None:
            return await self.cache.flush_permissions()
        return int(await self.cache.delete(self._cache_key(bucket)))
