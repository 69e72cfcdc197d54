"""
S3 Interface - high-level client over the signed connector.

Adds caching of listings, cache invalidation on mutation, composite
operations (rename, folders, batch delete), CORS management and the
permission probe. Every operation returns a Response envelope.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Union

from s3_bridge.connectors.s3_connector import S3Connector
from s3_bridge.core.errors import ErrorCode, S3BridgeError
from s3_bridge.interface.base import BaseInterface
from s3_bridge.interface.bulk import BulkOperations
from s3_bridge.interface.cors import CorsOperations
from s3_bridge.interface.permissions import PermissionProbe
from s3_bridge.models.response_model import ErrorResponse, Response, SuccessResponse
from s3_bridge.models.result_model import ObjectListingItem
from s3_bridge.models.s3_model import CorsRule
from s3_bridge.utils.cache import ResponseCache
from s3_bridge.utils.encoding import normalize_object_key
from s3_bridge.utils.files import mime_type


class S3Client(BaseInterface):
    """
    High-level interface for S3-compatible storage.

    Usage:
        async with S3Client(connector) as client:
            response = await client.get_objects("media", prefix="photos/")

    Args:
        connector: signed HTTP layer
        cache: response cache (in-memory by default)
        presigned_default_minutes: lifetime of download URLs
        presigned_upload_minutes: lifetime of upload URLs
        cors_verify_timeout: upper bound for CORS propagation polling, seconds
        cors_verify_initial_delay: first CORS poll delay, seconds
        sleep: coroutine used while polling
    """

    def __init__(
        self,
        connector: S3Connector,
        cache: Optional[ResponseCache] = None,
        *,
        name: Optional[str] = None,
        get_logger: Optional[Callable[[], logging.Logger]] = None,
        presigned_default_minutes: int = 60,
        presigned_upload_minutes: int = 15,
        cors_verify_timeout: float = 10.0,
        cors_verify_initial_delay: float = 0.5,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        super().__init__(connector, name, get_logger)
        self.cache = cache or ResponseCache(get_logger=get_logger)
        self.presigned_default_minutes = presigned_default_minutes
        self.presigned_upload_minutes = presigned_upload_minutes
        self.cors_verify_timeout = cors_verify_timeout
        self.cors_verify_initial_delay = cors_verify_initial_delay
        self.sleep = sleep

        self.cors = CorsOperations(self)
        self.bulk = BulkOperations(self)
        self.permissions = PermissionProbe(self)

    @property
    def connector(self) -> S3Connector:
        return self._connector

    @property
    def provider(self):
        return self._connector.provider

    async def __aenter__(self) -> "S3Client":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------

    async def get_buckets(
        self, max_keys: int = 1000, prefix: str = "", marker: str = "", use_cache: bool = True
    ) -> Response:
        params = {"max_keys": max_keys, "prefix": prefix, "marker": marker}
        return await self._execute_with_tracking(
            "get_buckets",
            self.cache.cached,
            self.cache.buckets_key(params),
            lambda: self.connector.list_buckets(max_keys, prefix, marker),
            use_cache=use_cache,
        )

    async def get_objects(
        self,
        bucket: str,
        max_keys: int = 1000,
        prefix: str = "",
        delimiter: str = "/",
        continuation_token: str = "",
        use_cache: bool = True,
    ) -> Response:
        if not bucket:
            return ErrorResponse.invalid_parameters("Bucket is required")
        params = {
            "max_keys": max_keys,
            "prefix": prefix,
            "delimiter": delimiter,
            "continuation_token": continuation_token,
        }
        return await self._execute_with_tracking(
            "get_objects",
            self.cache.cached,
            self.cache.objects_key(bucket, prefix, params),
            lambda: self.connector.list_objects(bucket, max_keys, prefix, delimiter, continuation_token),
            scope=bucket,
            list_prefix=prefix,
            use_cache=use_cache,
        )

    async def get_objects_iterator(
        self,
        bucket: str,
        prefix: str = "",
        delimiter: str = "/",
        max_keys: int = 1000,
        use_cache: bool = True,
    ) -> AsyncIterator[ObjectListingItem]:
        """
        Every object and common prefix under ``prefix``, following continuation tokens.

        Each call starts a new pagination walk.

        Raises:
            S3BridgeError: a page could not be fetched; code and detail of the
                failed response are preserved
        """
        token = ""
        while True:
            page = await self.get_objects(bucket, max_keys, prefix, delimiter, token, use_cache)
            if not page.is_successful():
                raise S3BridgeError(
                    page.error_message,
                    code=page.error_code,
                    data={"status": page.status_code, **page.error_data},
                )
            listing = page.data
            for obj in listing.objects:
                yield ObjectListingItem(kind="object", value=obj)
            for folder in listing.prefixes:
                yield ObjectListingItem(kind="prefix", value=folder)
            if not listing.truncated or not listing.continuation_token:
                return
            token = listing.continuation_token

    # ------------------------------------------------------------------
    # Single objects
    # ------------------------------------------------------------------

    async def _delete_object(self, bucket: str, object_key: str) -> Response:
        response = await self.connector.delete_object(bucket, object_key)
        if response.is_successful():
            await self.cache.invalidate_objects(bucket, normalize_object_key(object_key))
        return response

    async def delete_object(self, bucket: str, object_key: str) -> Response:
        if not bucket or not object_key:
            return ErrorResponse.invalid_parameters("Bucket and object key are required")
        return await self._execute_with_tracking("delete_object", self._delete_object, bucket, object_key)

    async def _copy_object(self, source_bucket: str, source_key: str, target_bucket: str, target_key: str) -> Response:
        response = await self.connector.copy_object(source_bucket, source_key, target_bucket, target_key)
        if response.is_successful():
            await self.cache.invalidate_objects(target_bucket, normalize_object_key(target_key))
        return response

    async def copy_object(self, source_bucket: str, source_key: str, target_bucket: str, target_key: str) -> Response:
        if not all((source_bucket, source_key, target_bucket, target_key)):
            return ErrorResponse.invalid_parameters("Source and target bucket and key are required")
        return await self._execute_with_tracking(
            "copy_object", self._copy_object, source_bucket, source_key, target_bucket, target_key
        )

    async def _rename_object(self, bucket: str, source_key: str, target_key: str) -> Response:
        copy_result = await self._copy_object(bucket, source_key, bucket, target_key)
        if not copy_result.is_successful():
            return ErrorResponse(
                status_code=copy_result.status_code,
                error_code=ErrorCode.RENAME_ERROR.value,
                error_message=f"Failed to copy object: {copy_result.error_message}",
                error_data={
                    "bucket": bucket,
                    "source_key": source_key,
                    "target_key": target_key,
                    "stage": "copy",
                    "cause": {"code": copy_result.error_code, "message": copy_result.error_message,
                              "data": copy_result.error_data},
                },
            )

        delete_result = await self._delete_object(bucket, source_key)
        data = {"bucket": bucket, "source_key": source_key, "target_key": target_key}
        if not delete_result.is_successful():
            self.logger.warning(f"Rename {bucket}/{source_key}: copied but original remains ({delete_result.error_code})")
            return SuccessResponse(
                status_code=207,
                message="Object copied but original could not be deleted",
                data={
                    **data,
                    "stage": "delete",
                    "warning": {"code": delete_result.error_code, "message": delete_result.error_message},
                },
            )
        return SuccessResponse(message=f"Renamed {source_key} to {target_key}", data=data)

    async def rename_object(self, bucket: str, source_key: str, target_key: str) -> Response:
        """Copy to ``target_key``, then delete ``source_key``; the delete is never attempted after a failed copy"""
        if not bucket or not source_key or not target_key:
            return ErrorResponse.invalid_parameters("Bucket, source and target key are required")
        if normalize_object_key(source_key) == normalize_object_key(target_key):
            return ErrorResponse.invalid_parameters("Source and target key are the same", key=source_key)
        return await self._execute_with_tracking("rename_object", self._rename_object, bucket, source_key, target_key)

    async def _object_exists(self, bucket: str, object_key: str) -> Response:
        response = await self.connector.head_object(bucket, object_key)
        if response.is_successful():
            return SuccessResponse(
                message=f"Object {object_key} exists",
                data={"bucket": bucket, "key": response.data.key, "exists": True, "metadata": response.data},
            )
        if response.status_code == 404:
            return SuccessResponse(
                message=f"Object {object_key} does not exist",
                data={"bucket": bucket, "key": normalize_object_key(object_key), "exists": False},
            )
        return response

    async def object_exists(self, bucket: str, object_key: str) -> Response:
        if not bucket or not object_key:
            return ErrorResponse.invalid_parameters("Bucket and object key are required")
        return await self._execute_with_tracking("object_exists", self._object_exists, bucket, object_key)

    async def get_object_info(self, bucket: str, object_key: str) -> Response:
        if not bucket or not object_key:
            return ErrorResponse.invalid_parameters("Bucket and object key are required")
        return await self._execute_with_tracking("get_object_info", self.connector.head_object, bucket, object_key)

    async def get_object(self, bucket: str, object_key: str) -> Response:
        if not bucket or not object_key:
            return ErrorResponse.invalid_parameters("Bucket and object key are required")
        return await self._execute_with_tracking("get_object", self.connector.get_object, bucket, object_key)

    async def _put_object(self, bucket: str, object_key: str, content: bytes, content_type: str) -> Response:
        presigned = self.connector.get_presigned_upload_url(bucket, object_key, self.presigned_upload_minutes)
        if not presigned.is_successful():
            return presigned

        upload = await self.connector.upload_to_presigned_url(presigned.data.url, content, content_type)
        if not upload.is_successful():
            return ErrorResponse(
                status_code=upload.status_code,
                error_code=ErrorCode.UPLOAD_ERROR.value,
                error_message=f"Upload failed: {upload.error_message}",
                error_data={
                    "bucket": bucket,
                    "key": object_key,
                    "cause": {"code": upload.error_code, "message": upload.error_message, "data": upload.error_data},
                },
            )

        key = normalize_object_key(object_key)
        await self.cache.invalidate_objects(bucket, key)
        return SuccessResponse(
            status_code=upload.status_code,
            message="File uploaded successfully",
            data={
                "bucket": bucket,
                "key": key,
                "size": len(content),
                "content_type": content_type,
                "etag": upload.data.get("etag", ""),
            },
        )

    async def put_object(
        self, bucket: str, object_key: str, content: Union[bytes, str], content_type: str = ""
    ) -> Response:
        """Upload through a presigned PUT URL; the MIME type defaults to one guessed from the key"""
        if not bucket or not object_key:
            return ErrorResponse.invalid_parameters("Bucket and object key are required")
        if isinstance(content, str):
            content = content.encode("utf-8")
        content_type = content_type or mime_type(object_key)
        return await self._execute_with_tracking(
            "put_object", self._put_object, bucket, object_key, content, content_type
        )

    # ------------------------------------------------------------------
    # Presigned URLs
    # ------------------------------------------------------------------

    def get_presigned_url(self, bucket: str, object_key: str, expires_minutes: Optional[int] = None) -> Response:
        if not bucket or not object_key:
            return ErrorResponse.invalid_parameters("Bucket and object key are required")
        minutes = self.presigned_default_minutes if expires_minutes is None else expires_minutes
        return self.connector.get_presigned_url(bucket, object_key, minutes)

    def get_presigned_upload_url(
        self, bucket: str, object_key: str, expires_minutes: Optional[int] = None
    ) -> Response:
        if not bucket or not object_key:
            return ErrorResponse.invalid_parameters("Bucket and object key are required")
        minutes = self.presigned_upload_minutes if expires_minutes is None else expires_minutes
        return self.connector.get_presigned_upload_url(bucket, object_key, minutes)

    # ------------------------------------------------------------------
    # Folders and batches
    # ------------------------------------------------------------------

    async def rename_prefix(
        self, bucket: str, source_prefix: str, target_prefix: str, recursive: bool = True
    ) -> Response:
        return await self._execute_with_tracking(
            "rename_prefix", self.bulk.rename_prefix, bucket, source_prefix, target_prefix, recursive
        )

    async def folder_exists(self, bucket: str, folder_path: str) -> Response:
        return await self._execute_with_tracking("folder_exists", self.bulk.folder_exists, bucket, folder_path)

    async def create_folder(self, bucket: str, folder_path: str) -> Response:
        return await self._execute_with_tracking("create_folder", self.bulk.create_folder, bucket, folder_path)

    async def delete_folder(self, bucket: str, folder_path: str, recursive: bool = True) -> Response:
        return await self._execute_with_tracking(
            "delete_folder", self.bulk.delete_folder, bucket, folder_path, recursive
        )

    async def batch_delete_objects(self, bucket: str, object_keys: List[str], batch_size: int = 50) -> Response:
        return await self._execute_with_tracking(
            "batch_delete_objects", self.bulk.batch_delete_objects, bucket, object_keys, batch_size
        )

    # ------------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------------

    async def get_cors_configuration(self, bucket: str, use_cache: bool = True) -> Response:
        return await self._execute_with_tracking(
            "get_cors_configuration", self.cors.get_cors_configuration, bucket, use_cache
        )

    async def set_cors_configuration(self, bucket: str, rules: List[CorsRule]) -> Response:
        return await self._execute_with_tracking("set_cors_configuration", self.cors.set_cors_configuration, bucket, rules)

    async def delete_cors_configuration(self, bucket: str) -> Response:
        return await self._execute_with_tracking("delete_cors_configuration", self.cors.delete_cors_configuration, bucket)

    async def has_cors_configuration(self, bucket: str, use_cache: bool = True) -> Response:
        return await self._execute_with_tracking(
            "has_cors_configuration", self.cors.has_cors_configuration, bucket, use_cache
        )

    async def cors_allows_upload(self, bucket: str, origin: str = "*", use_cache: bool = True) -> Response:
        return await self._execute_with_tracking(
            "cors_allows_upload", self.cors.cors_allows_upload, bucket, origin, use_cache
        )

    def generate_cors_rules(
        self,
        scenario: str = "public_read",
        origins: Optional[List[str]] = None,
        extra_config: Optional[Dict[str, Any]] = None,
    ) -> List[CorsRule]:
        return self.cors.generate_cors_rules(scenario, origins, extra_config)

    async def set_cors_scenario(
        self,
        bucket: str,
        scenario: str,
        origins: Optional[List[str]] = None,
        extra_config: Optional[Dict[str, Any]] = None,
    ) -> Response:
        return await self._execute_with_tracking(
            "set_cors_scenario", self.cors.set_cors_scenario, bucket, scenario, origins, extra_config
        )

    async def analyze_cors_configuration(self, bucket: str, use_cache: bool = True) -> Response:
        return await self._execute_with_tracking(
            "analyze_cors_configuration", self.cors.analyze_cors_configuration, bucket, use_cache
        )

    async def setup_cors_for_uploads(self, bucket: str, origin: str) -> Response:
        return await self._execute_with_tracking(
            "setup_cors_for_uploads", self.cors.setup_cors_for_uploads, bucket, origin
        )

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    async def check_key_permissions(
        self, bucket: str, use_cache: bool = True, force_test: bool = False
    ) -> Dict[str, Any]:
        return await self.permissions.check_key_permissions(bucket, use_cache, force_test)

    async def can_read(self, bucket: str, use_cache: bool = True) -> bool:
        return await self.permissions.can_read(bucket, use_cache)

    async def can_write(self, bucket: str, use_cache: bool = True) -> bool:
        return await self.permissions.can_write(bucket, use_cache)

    async def can_delete(self, bucket: str, use_cache: bool = True) -> bool:
        return await self.permissions.can_delete(bucket, use_cache)

    async def has_full_access(self, bucket: str, use_cache: bool = True) -> bool:
        return await self.permissions.has_full_access(bucket, use_cache)

    async def clear_permissions_cache(self, bucket: Optional[str] = None) -> int:
        return await self.permissions.clear_permissions_cache(bucket)

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    async def clear_cache(self) -> int:
        """Drop every cached response"""
        return await self.cache.clear()

    async def clear_bucket_cache(self, bucket: str) -> int:
        return await self.cache.invalidate_bucket(bucket)
