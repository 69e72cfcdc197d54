"""
Folder and multi-object operations.

All of them are composed from single-object operations of the client and
report per-key outcomes; a partial failure is a 207 SuccessResponse or an
ErrorResponse that still lists which keys failed.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

from s3_bridge.core.errors import ErrorCode, S3BridgeError
from s3_bridge.models.response_model import ErrorResponse, Response, SuccessResponse
from s3_bridge.models.result_model import BatchDeleteResult, DeletedObject, DeleteError
from s3_bridge.utils.files import normalize_folder

if TYPE_CHECKING:
    from s3_bridge.interface.s3_client import S3Client

MAX_BATCH_SIZE = 100
DEFAULT_BATCH_SIZE = 50
INDIVIDUAL_DELETE_THRESHOLD = 3
FOLDER_INDIVIDUAL_DELETE_THRESHOLD = 5
FOLDER_BATCH_SIZE = 20


class BulkOperations:
    """Folder and batch delegate of S3Client"""

    def __init__(self, client: "S3Client"):
        self.client = client
        self.connector = client.connector
        self.cache = client.cache
        self.logger = client.logger

    async def _list_keys(self, bucket: str, prefix: str, recursive: bool = True) -> List[str]:
        keys = []
        async for item in self.client.get_objects_iterator(
            bucket, prefix=prefix, delimiter="" if recursive else "/", use_cache=False
        ):
            if item.kind == "object":
                keys.append(item.value.key)
        return keys

    # ------------------------------------------------------------------
    # Prefix rename
    # ------------------------------------------------------------------

    async def rename_prefix(
        self, bucket: str, source_prefix: str, target_prefix: str, recursive: bool = True
    ) -> Response:
        """
        Move every object under ``source_prefix`` to ``target_prefix``.

        Each object is copied before its original is deleted. An object whose
        copy failed counts as a failure; one whose original could not be deleted
        counts as moved and is listed under ``warnings``, not ``failures``.
        """
        if not bucket or not source_prefix or not target_prefix:
            return ErrorResponse.invalid_parameters("Bucket, source and target prefix are required")

        source_prefix = normalize_folder(source_prefix)
        target_prefix = normalize_folder(target_prefix)
        if source_prefix == target_prefix:
            return ErrorResponse.invalid_parameters(
                "Source and target prefix are the same", source_prefix=source_prefix
            )

        try:
            keys = await self._list_keys(bucket, source_prefix, recursive)
        except S3BridgeError as e:
            self.logger.error(f"Listing {bucket}/{source_prefix} for rename failed: {e}")
            return ErrorResponse(
                status_code=400,
                error_code=ErrorCode.RENAME_PREFIX_ERROR.value,
                error_message="Failed to list objects in source prefix",
                error_data={"source_prefix": source_prefix, "cause": e.data, "code": e.code, "error": e.message},
            )

        if not keys:
            return SuccessResponse(
                message="No objects found to rename",
                data={"source_prefix": source_prefix, "target_prefix": target_prefix, "objects_processed": 0},
            )

        moved = 0
        failures: List[Dict[str, Any]] = []
        warnings: List[Dict[str, Any]] = []

        for source_key in keys:
            target_key = target_prefix + source_key[len(source_prefix):]
            copy_result = await self.client.copy_object(bucket, source_key, bucket, target_key)
            if not copy_result.is_successful():
                failures.append({
                    "source_key": source_key,
                    "target_key": target_key,
                    "code": copy_result.error_code,
                    "error": copy_result.error_message,
                })
                continue

            moved += 1
            delete_result = await self.client.delete_object(bucket, source_key)
            if not delete_result.is_successful():
                warnings.append({
                    "source_key": source_key,
                    "target_key": target_key,
                    "warning": "Object copied but original not deleted",
                    "code": delete_result.error_code,
                })

        summary = {
            "source_prefix": source_prefix,
            "target_prefix": target_prefix,
            "objects_processed": len(keys),
            "success_count": moved,
            "failure_count": len(failures),
            "failures": failures,
            "warning_count": len(warnings),
            "warnings": warnings,
        }
        if not failures and not warnings:
            self.logger.info(f"Renamed {moved} objects from {source_prefix} to {target_prefix} in {bucket}")
            return SuccessResponse(message="Prefix renamed successfully", data=summary)
        if moved:
            self.logger.warning(
                f"Prefix rename {source_prefix} -> {target_prefix}: {len(failures)} failed, {len(warnings)} left behind"
            )
            return SuccessResponse(
                status_code=207, message="Prefix partially renamed with some failures", data=summary
            )
        return ErrorResponse(
            status_code=400,
            error_code=ErrorCode.RENAME_PREFIX_ERROR.value,
            error_message="Failed to rename prefix",
            error_data=summary,
        )

    # ------------------------------------------------------------------
    # Folders
    # ------------------------------------------------------------------

    async def folder_exists(self, bucket: str, folder_path: str) -> Response:
        if not bucket or not folder_path:
            return ErrorResponse.invalid_parameters("Bucket and folder path are required")

        folder = normalize_folder(folder_path)
        listing = await self.client.get_objects(bucket, max_keys=1, prefix=folder, delimiter="/", use_cache=False)
        if not listing.is_successful():
            return ErrorResponse(
                status_code=listing.status_code,
                error_code=ErrorCode.FOLDER_CHECK_ERROR.value,
                error_message="Failed to check folder existence",
                error_data={"folder_path": folder, "code": listing.error_code, "error": listing.error_message},
            )

        objects = listing.data.objects
        prefixes = listing.data.prefixes
        exists = bool(objects or prefixes)
        return SuccessResponse(
            message=f'Folder "{folder}" {"exists" if exists else "does not exist"}',
            data={
                "bucket": bucket,
                "folder_path": folder,
                "exists": exists,
                "has_placeholder": any(obj.key == folder for obj in objects),
                "has_objects": bool(objects),
                "has_subfolders": bool(prefixes),
            },
        )

    async def create_folder(self, bucket: str, folder_path: str) -> Response:
        """Zero-byte ``application/x-directory`` placeholder, skipped when the folder already exists"""
        exists = await self.folder_exists(bucket, folder_path)
        if not exists.is_successful():
            return exists

        folder = exists.data["folder_path"]
        if exists.data["exists"]:
            return SuccessResponse(
                message=f'Folder "{folder}" already exists',
                data={"bucket": bucket, "folder_path": folder, "existed": True},
            )

        upload = await self.client.put_object(bucket, folder, b"", content_type="application/x-directory")
        if not upload.is_successful():
            return ErrorResponse(
                status_code=upload.status_code,
                error_code=ErrorCode.FOLDER_CREATION_ERROR.value,
                error_message=f'Failed to create folder "{folder}"',
                error_data={"folder_path": folder, "code": upload.error_code, "error": upload.error_message},
            )

        return SuccessResponse(
            status_code=201,
            message=f'Folder "{folder}" created successfully',
            data={"bucket": bucket, "folder_path": folder, "created": True},
        )

    async def delete_folder(self, bucket: str, folder_path: str, recursive: bool = True) -> Response:
        """Delete everything under a folder, placeholder included"""
        if not bucket or not folder_path:
            return ErrorResponse.invalid_parameters("Bucket and folder path are required")

        folder = normalize_folder(folder_path)
        try:
            keys = await self._list_keys(bucket, folder, recursive)
        except S3BridgeError as e:
            self.logger.error(f"Listing {bucket}/{folder} for delete failed: {e}")
            return ErrorResponse(
                status_code=400,
                error_code=ErrorCode.FOLDER_CHECK_ERROR.value,
                error_message="Failed to list folder contents",
                error_data={"folder_path": folder, "cause": e.data, "code": e.code, "error": e.message},
            )

        if folder not in keys:
            placeholder = await self.client.object_exists(bucket, folder)
            if placeholder.is_successful() and placeholder.data["exists"]:
                keys.append(folder)

        if not keys:
            return SuccessResponse(
                message=f'Folder "{folder}" is already empty or does not exist',
                data={"folder_path": folder, "success_count": 0, "error_count": 0},
            )

        if len(keys) <= FOLDER_INDIVIDUAL_DELETE_THRESHOLD:
            result = await self._individual_delete(bucket, keys)
            response = self._summarize(bucket, keys, result, batches=0)
        else:
            response = await self.batch_delete_objects(bucket, keys, batch_size=FOLDER_BATCH_SIZE)

        await self.cache.invalidate_objects(bucket, folder)
        if response.is_successful():
            response.message = f'Folder "{folder}" deleted: {response.data["success_count"]} objects removed'
            response.data["folder_path"] = folder
        else:
            response.error_data["folder_path"] = folder
        return response

    # ------------------------------------------------------------------
    # Batch delete
    # ------------------------------------------------------------------

    async def _individual_delete(self, bucket: str, keys: List[str]) -> BatchDeleteResult:
        result = BatchDeleteResult()
        for key in keys:
            response = await self.connector.delete_object(bucket, key)
            if response.is_successful():
                result.deleted.append(DeletedObject(key=key))
            else:
                result.errors.append(DeleteError(key=key, code=response.error_code, message=response.error_message))
        return result

    def _summarize(self, bucket: str, keys: List[str], result: BatchDeleteResult, batches: int) -> Response:
        data = {
            "bucket": bucket,
            "total_requested": len(keys),
            "total_batches": batches,
            "success_count": result.success_count,
            "error_count": result.error_count,
            "deleted_objects": [item.model_dump() for item in result.deleted],
            "failed_objects": [item.model_dump() for item in result.errors],
        }
        message = f"Batch delete completed: {result.success_count} objects deleted, {result.error_count} failed"
        if not result.errors:
            return SuccessResponse(message=message, data=data)
        if result.deleted:
            return SuccessResponse(status_code=207, message=message, data=data)
        return ErrorResponse(
            status_code=400,
            error_code=ErrorCode.PARTIAL_BATCH_DELETE_FAILURE.value,
            error_message=message,
            error_data=data,
        )

    async def batch_delete_objects(
        self, bucket: str, object_keys: List[str], batch_size: int = DEFAULT_BATCH_SIZE
    ) -> Response:
        """
        Delete many keys in chunks of ``batch_size`` (at most 100).

        Three keys or fewer are deleted one by one. A chunk whose multi-delete
        request fails falls back to individual deletes.
        """
        if not bucket or not object_keys:
            return ErrorResponse.invalid_parameters("No objects specified for deletion", bucket=bucket)

        keys = list(object_keys)
        batch_size = max(1, min(batch_size, MAX_BATCH_SIZE))
        self.logger.debug(f"Batch delete of {len(keys)} keys from {bucket}, batch size {batch_size}")

        batches = 0
        if len(keys) <= INDIVIDUAL_DELETE_THRESHOLD:
            result = await self._individual_delete(bucket, keys)
        else:
            result = BatchDeleteResult()
            for start in range(0, len(keys), batch_size):
                chunk = keys[start:start + batch_size]
                batches += 1
                response = await self.connector.batch_delete(bucket, chunk)
                if response.is_successful():
                    chunk_result = response.data
                else:
                    self.logger.warning(
                        f"Multi-object delete failed ({response.error_code}), "
                        f"falling back to individual deletes for {len(chunk)} keys"
                    )
                    chunk_result = await self._individual_delete(bucket, chunk)
                result.deleted.extend(chunk_result.deleted)
                result.errors.extend(chunk_result.errors)

        for deleted in result.deleted:
            await self.cache.invalidate_objects(bucket, deleted.key)
        return self._summarize(bucket, keys, result, batches)
