"""
Signed HTTP layer for S3-compatible services.

Uses httpx for async HTTP and SigV4Signer for authentication. Every public
operation returns a SuccessResponse or ErrorResponse envelope; transport
failures, remote S3 errors and malformed bodies never escape as exceptions.
"""
import asyncio
import base64
import hashlib
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Union

import httpx

from s3_bridge.config.retry_config import RetrySettings
from s3_bridge.config.timeout_config import TimeoutSettings
from s3_bridge.connectors.sigv4 import DebugCallback, SigV4Signer
from s3_bridge.core.base_class.base_connectors import ObjectStorageConnector
from s3_bridge.core.errors import ErrorCode, S3BridgeError, XmlParseError
from s3_bridge.models.response_model import ErrorResponse, Response, SuccessResponse
from s3_bridge.models.result_model import (
    CopyResult,
    CorsConfiguration,
    ObjectContent,
    ObjectMetadata,
    PresignedUrl,
)
from s3_bridge.models.s3_model import CorsRule
from s3_bridge.providers.base import Provider
from s3_bridge.utils import xml_codec
from s3_bridge.utils.cors_rules import validate_cors_rules
from s3_bridge.utils.encoding import encode_object_key, normalize_object_key

RETRYABLE_STATUS = {429, 500, 502, 503, 504}
MAX_BATCH_DELETE_KEYS = 100
DEBUG_BODY_LIMIT = 1000


def _content_md5(payload: bytes) -> str:
    return base64.b64encode(hashlib.md5(payload).digest()).decode("ascii")


class S3Connector(ObjectStorageConnector):
    """
    S3 REST API wrapper using httpx.

    Args:
        get_logger: logger factory
        provider: addressing rules of the target service
        access_key / secret_key: credential pair, handed to the signer only
        timeouts: per-operation timeout table
        retry: backoff for idempotent requests (GET, HEAD, listings)
        debug_callback: optional ``(message, context)`` hook
        now: clock override for signing
        transport: httpx transport override (tests use httpx.MockTransport)
        sleep: coroutine used between retries
    """

    def __init__(
        self,
        get_logger,
        provider: Provider,
        access_key: str,
        secret_key: str,
        *,
        timeouts: Optional[TimeoutSettings] = None,
        retry: Optional[RetrySettings] = None,
        debug_callback: Optional[DebugCallback] = None,
        now=None,
        verify_ssl: bool = True,
        max_connections: int = 100,
        max_keepalive_connections: int = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        super().__init__(name=f"s3:{provider.id}")
        self.logger = get_logger()
        self.provider = provider
        self.signer = SigV4Signer(
            provider,
            access_key,
            secret_key,
            now=now,
            debug_callback=debug_callback,
            get_logger=get_logger,
        )
        self.timeouts = timeouts or TimeoutSettings()
        self.retry = retry or RetrySettings()
        self.verify_ssl = verify_ssl
        self.max_connections = max_connections
        self.max_keepalive_connections = max_keepalive_connections
        self._transport = transport
        self._sleep = sleep

        # HTTP client (created on initialize)
        self._client: Optional[httpx.AsyncClient] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Initialize async HTTP client"""
        if self._client is not None:
            return
        try:
            limits = httpx.Limits(
                max_connections=self.max_connections,
                max_keepalive_connections=self.max_keepalive_connections,
            )
            self._client = httpx.AsyncClient(
                timeout=self.timeouts.default,
                verify=self.verify_ssl,
                limits=limits,
                transport=self._transport,
            )
            self._set_health(True)
            self.logger.info(
                f"S3 connector initialized: provider={self.provider.id}, "
                f"region={self.provider.region}, endpoint={self.provider.get_endpoint()}"
            )
        except Exception as e:
            self.logger.error(f"Failed to initialize S3 connector: {e}")
            self._set_health(False)
            raise

    async def shutdown(self) -> None:
        """Shutdown async HTTP client"""
        if self._client:
            try:
                await self._client.aclose()
                self.logger.info("S3 HTTP client closed")
            finally:
                self._client = None
                self._set_health(False)

    async def health_check(self) -> bool:
        """Signed ListBuckets probe"""
        try:
            response = await self.list_buckets(max_keys=1)
        except RuntimeError as e:
            self.logger.warning(f"S3 health check failed: {e}")
            self._set_health(False)
            return False
        healthy = response.is_successful()
        if not healthy:
            self.logger.warning(f"S3 health check failed: {response.error_code}")
        self._set_health(healthy)
        return healthy

    @property
    def http(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("S3 connector not initialized")
        return self._client

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _network_error(self, operation: str, exc: Exception, **data: Any) -> ErrorResponse:
        timed_out = isinstance(exc, httpx.TimeoutException)
        return ErrorResponse(
            status_code=504 if timed_out else 503,
            error_code=ErrorCode.NETWORK_ERROR.value,
            error_message=f"{'Request timed out' if timed_out else 'Network error'}: {exc}",
            error_data={"operation": operation, "exception": type(exc).__name__, "timeout": timed_out, **data},
        )

    def handle_error_response(self, response: httpx.Response, operation: str, **data: Any) -> ErrorResponse:
        """Envelope for a non-2xx response: remote S3 error code when parseable, http_error otherwise"""
        parsed = xml_codec.parse_error(response.content)
        error_data = {"operation": operation, "status": response.status_code, **data}
        if parsed:
            code, message = parsed
            return ErrorResponse(
                status_code=response.status_code,
                error_code=code,
                error_message=message or code,
                error_data=error_data,
            )
        if response.content:
            error_data["body"] = response.text[:DEBUG_BODY_LIMIT]
        return ErrorResponse(
            status_code=response.status_code,
            error_code=ErrorCode.HTTP_ERROR.value,
            error_message=f"status {response.status_code}",
            error_data=error_data,
        )

    @staticmethod
    def _parse_failure(response: httpx.Response, exc: XmlParseError, operation: str) -> ErrorResponse:
        return ErrorResponse(
            status_code=502,
            error_code=exc.code,
            error_message=exc.message,
            error_data={"operation": operation, "status": response.status_code, **exc.data},
        )

    async def _send(
        self,
        operation: str,
        method: str,
        bucket: str = "",
        object_key: str = "",
        query_params: Optional[Mapping[str, Any]] = None,
        payload: bytes = b"",
        headers: Optional[Mapping[str, str]] = None,
        idempotent: bool = False,
    ) -> Union[httpx.Response, ErrorResponse]:
        """
        Issue one signed request.

        Idempotent requests are retried on transport failures, 5xx and 429 with
        bounded backoff; the last failure is returned. Everything else is
        attempted exactly once.
        """
        url = self.signer.request_url(bucket, object_key, query_params)
        timeout = self.timeouts.for_operation(operation)
        delays = iter(self.retry.delays() if idempotent else ())
        attempt = 0

        while True:
            attempt += 1
            # re-signed on each attempt so x-amz-date stays fresh
            signed_headers = self.signer.generate_auth_headers(
                method, bucket, object_key, query_params, payload, extra_headers=headers
            )
            self.signer.debug(f"{operation}: {method} request", {
                "method": method,
                "url": url,
                "headers": self.signer.mask_headers(signed_headers),
                "attempt": attempt,
            })

            outcome: Union[httpx.Response, ErrorResponse]
            try:
                response = await self.http.request(
                    method,
                    url,
                    headers=signed_headers,
                    content=payload or None,
                    timeout=timeout,
                )
            except httpx.HTTPError as e:
                self.logger.error(f"{operation} {method} {url} failed: {e}")
                outcome = self._network_error(operation, e, bucket=bucket, key=object_key)
                retryable = True
            else:
                self.signer.debug(f"{operation}: response", {
                    "status": response.status_code,
                    "body": response.text[:DEBUG_BODY_LIMIT] if method != "GET" or response.status_code >= 300 else "",
                })
                outcome = response
                retryable = response.status_code in RETRYABLE_STATUS

            if not retryable:
                return outcome

            delay = next(delays, None)
            if delay is None:
                return outcome
            self.logger.warning(f"{operation} attempt {attempt} failed, retrying in {delay:.2f}s")
            await self._sleep(delay)

    # ------------------------------------------------------------------
    # Buckets and listings
    # ------------------------------------------------------------------

    async def list_buckets(self, max_keys: int = 1000, prefix: str = "", marker: str = "") -> Response:
        query: Dict[str, Any] = {}
        if max_keys != 1000:
            query["max-keys"] = max_keys
        if prefix:
            query["prefix"] = prefix
        if marker:
            query["marker"] = marker

        response = await self._send("list", "GET", query_params=query, idempotent=True)
        if isinstance(response, ErrorResponse):
            return response
        if not response.is_success:
            return self.handle_error_response(response, "list_buckets")
        try:
            buckets = xml_codec.parse_buckets_list(response.content)
        except XmlParseError as e:
            return self._parse_failure(response, e, "list_buckets")

        return SuccessResponse(
            status_code=response.status_code,
            message=f"Found {len(buckets.buckets)} buckets",
            data=buckets,
        )

    async def list_objects(
        self,
        bucket: str,
        max_keys: int = 1000,
        prefix: str = "",
        delimiter: str = "/",
        continuation_token: str = "",
    ) -> Response:
        """ListObjectsV2 page"""
        query: Dict[str, Any] = {"list-type": "2", "max-keys": max_keys}
        if prefix:
            query["prefix"] = prefix
        if delimiter:
            query["delimiter"] = delimiter
        if continuation_token:
            query["continuation-token"] = continuation_token

        response = await self._send("list", "GET", bucket, query_params=query, idempotent=True)
        if isinstance(response, ErrorResponse):
            return response
        if not response.is_success:
            return self.handle_error_response(response, "list_objects", bucket=bucket, prefix=prefix)
        try:
            objects = xml_codec.parse_objects_list(response.content)
        except XmlParseError as e:
            return self._parse_failure(response, e, "list_objects")

        objects.prefix = objects.prefix or prefix
        objects.delimiter = objects.delimiter or delimiter
        return SuccessResponse(
            status_code=response.status_code,
            message=f"Found {len(objects.objects)} objects and {len(objects.prefixes)} prefixes",
            data=objects,
        )

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    @staticmethod
    def _metadata(bucket: str, object_key: str, response: httpx.Response) -> Dict[str, Any]:
        headers = response.headers
        return {
            "bucket": bucket,
            "key": normalize_object_key(object_key),
            "content_type": headers.get("content-type", ""),
            "content_length": int(headers.get("content-length") or 0),
            "etag": headers.get("etag", "").strip('"'),
            "last_modified": headers.get("last-modified", ""),
            "user_metadata": {
                name[len("x-amz-meta-"):]: value
                for name, value in headers.items()
                if name.lower().startswith("x-amz-meta-")
            },
        }

    async def get_object(self, bucket: str, object_key: str) -> Response:
        response = await self._send("get", "GET", bucket, object_key, idempotent=True)
        if isinstance(response, ErrorResponse):
            return response
        if not response.is_success:
            return self.handle_error_response(response, "get_object", bucket=bucket, key=object_key)

        metadata = self._metadata(bucket, object_key, response)
        metadata["content_length"] = metadata["content_length"] or len(response.content)
        return SuccessResponse(
            status_code=response.status_code,
            message=f"Retrieved {object_key}",
            data=ObjectContent(content=response.content, **metadata),
        )

    async def head_object(self, bucket: str, object_key: str) -> Response:
        response = await self._send("head", "HEAD", bucket, object_key, idempotent=True)
        if isinstance(response, ErrorResponse):
            return response
        if not response.is_success:
            return self.handle_error_response(response, "head_object", bucket=bucket, key=object_key)
        return SuccessResponse(
            status_code=response.status_code,
            message=f"Metadata for {object_key}",
            data=ObjectMetadata(**self._metadata(bucket, object_key, response)),
        )

    async def delete_object(self, bucket: str, object_key: str) -> Response:
        response = await self._send(
            "delete", "DELETE", bucket, object_key, headers={"Content-Length": "0"}
        )
        if isinstance(response, ErrorResponse):
            return response
        if not response.is_success:
            return self.handle_error_response(response, "delete_object", bucket=bucket, key=object_key)
        return SuccessResponse(
            status_code=response.status_code,
            message=f"Deleted {object_key}",
            data={"bucket": bucket, "key": normalize_object_key(object_key)},
        )

    async def copy_object(self, source_bucket: str, source_key: str, target_bucket: str, target_key: str) -> Response:
        """
        Server-side copy.

        S3 may answer 200 with an <Error> body when the copy fails midway, so a
        2xx body is checked for an error document before it counts as success.
        """
        copy_source = f"{source_bucket}/{encode_object_key(source_key)}"
        response = await self._send(
            "copy", "PUT", target_bucket, target_key, headers={"x-amz-copy-source": copy_source}
        )
        if isinstance(response, ErrorResponse):
            return response
        error_data = {"source_bucket": source_bucket, "source_key": source_key,
                      "target_bucket": target_bucket, "target_key": target_key}
        if not response.is_success:
            return self.handle_error_response(response, "copy_object", **error_data)

        embedded_error = xml_codec.parse_error(response.content)
        if embedded_error:
            code, message = embedded_error
            return ErrorResponse(status_code=500, error_code=code, error_message=message or code,
                                 error_data={"operation": "copy_object", **error_data})

        try:
            result = xml_codec.parse_copy_result(response.content)
        except XmlParseError:
            result = CopyResult()
        result.source_bucket = source_bucket
        result.source_key = normalize_object_key(source_key)
        result.target_bucket = target_bucket
        result.target_key = normalize_object_key(target_key)
        return SuccessResponse(
            status_code=response.status_code,
            message=f"Copied {source_bucket}/{source_key} to {target_bucket}/{target_key}",
            data=result,
        )

    async def put_object(
        self,
        bucket: str,
        object_key: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> Response:
        """Signed PUT with the SHA-256 of the body in x-amz-content-sha256"""
        response = await self._send(
            "put",
            "PUT",
            bucket,
            object_key,
            payload=content,
            headers={"Content-Type": content_type, "Content-Length": str(len(content))},
        )
        if isinstance(response, ErrorResponse):
            return response
        if not response.is_success:
            return self.handle_error_response(response, "put_object", bucket=bucket, key=object_key)
        return SuccessResponse(
            status_code=response.status_code,
            message=f"Uploaded {object_key}",
            data={
                "bucket": bucket,
                "key": normalize_object_key(object_key),
                "etag": response.headers.get("etag", "").strip('"'),
                "size": len(content),
            },
        )

    # ------------------------------------------------------------------
    # Presigned URLs
    # ------------------------------------------------------------------

    def get_presigned_url(
        self, bucket: str, object_key: str, expires_minutes: int = 60, method: str = "GET"
    ) -> Response:
        try:
            minutes = self.signer.clamp_expiry(expires_minutes)
            url = self.signer.generate_presigned_url(bucket, object_key, minutes, method=method)
        except S3BridgeError as e:
            return ErrorResponse.from_exception(e)
        return SuccessResponse(
            message=f"Presigned {method} URL valid for {minutes} minutes",
            data=PresignedUrl(url=url, method=method, expires_minutes=minutes, created_at=self.signer.now()),
        )

    def get_presigned_upload_url(self, bucket: str, object_key: str, expires_minutes: int = 15) -> Response:
        return self.get_presigned_url(bucket, object_key, expires_minutes, method="PUT")

    async def upload_to_presigned_url(
        self,
        url: str,
        content: bytes,
        content_type: str = "application/octet-stream",
    ) -> Response:
        """PUT raw bytes to a presigned URL (never retried)"""
        timeout = self.timeouts.for_operation("upload")
        headers = {"Content-Type": content_type, "Content-Length": str(len(content))}
        self.signer.debug("upload: PUT presigned", {"url": url.split("?", 1)[0], "size": len(content)})
        try:
            response = await self.http.put(url, content=content, headers=headers, timeout=timeout)
        except httpx.HTTPError as e:
            self.logger.error(f"Upload to presigned URL failed: {e}")
            return self._network_error("upload", e)
        if not response.is_success:
            return self.handle_error_response(response, "upload")
        return SuccessResponse(
            status_code=response.status_code,
            message="Upload complete",
            data={"etag": response.headers.get("etag", "").strip('"'), "size": len(content)},
        )

    # ------------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------------

    async def get_cors_configuration(self, bucket: str) -> Response:
        """Bucket CORS rules; a bucket without configuration yields an empty rule set"""
        response = await self._send("get", "GET", bucket, query_params={"cors": ""}, idempotent=True)
        if isinstance(response, ErrorResponse):
            return response

        if response.status_code == 404:
            error = self.handle_error_response(response, "get_cors_configuration", bucket=bucket)
            if error.error_code in (ErrorCode.HTTP_ERROR.value, "NoSuchCORSConfiguration"):
                return SuccessResponse(
                    message=f'Bucket "{bucket}" has no CORS configuration',
                    data=CorsConfiguration(bucket=bucket),
                )
            return error
        if not response.is_success:
            return self.handle_error_response(response, "get_cors_configuration", bucket=bucket)

        try:
            config = xml_codec.parse_cors_configuration(response.content, bucket)
        except XmlParseError as e:
            return self._parse_failure(response, e, "get_cors_configuration")
        return SuccessResponse(
            status_code=response.status_code,
            message=f"Found {len(config.rules)} CORS rules",
            data=config,
        )

    async def put_cors_configuration(self, bucket: str, rules: Iterable[CorsRule]) -> Response:
        try:
            rules = validate_cors_rules(rules)
        except S3BridgeError as e:
            return ErrorResponse.from_exception(e)

        body = xml_codec.build_cors_configuration(rules)
        response = await self._send(
            "put",
            "PUT",
            bucket,
            query_params={"cors": ""},
            payload=body,
            headers={"Content-Type": "application/xml", "Content-MD5": _content_md5(body)},
        )
        if isinstance(response, ErrorResponse):
            return response
        if not response.is_success:
            return self.handle_error_response(response, "put_cors_configuration", bucket=bucket)
        return SuccessResponse(
            status_code=response.status_code,
            message=f"CORS configuration with {len(rules)} rules applied",
            data=CorsConfiguration(bucket=bucket, rules=rules),
        )

    async def delete_cors_configuration(self, bucket: str) -> Response:
        response = await self._send("delete", "DELETE", bucket, query_params={"cors": ""})
        if isinstance(response, ErrorResponse):
            return response
        if response.status_code == 404:
            return SuccessResponse(
                message=f'Bucket "{bucket}" had no CORS configuration',
                data={"bucket": bucket, "was_present": False},
            )
        if not response.is_success:
            return self.handle_error_response(response, "delete_cors_configuration", bucket=bucket)
        return SuccessResponse(
            status_code=response.status_code,
            message="CORS configuration deleted",
            data={"bucket": bucket, "was_present": True},
        )

    # ------------------------------------------------------------------
    # Multi-object delete
    # ------------------------------------------------------------------

    async def batch_delete(self, bucket: str, object_keys: List[str]) -> Response:
        """POST ?delete for up to 100 keys; per-key outcomes in BatchDeleteResult"""
        if not object_keys:
            return ErrorResponse.invalid_parameters("No object keys given", bucket=bucket)
        if len(object_keys) > MAX_BATCH_DELETE_KEYS:
            return ErrorResponse(
                status_code=400,
                error_code=ErrorCode.TOO_MANY_OBJECTS.value,
                error_message=f"Cannot delete more than {MAX_BATCH_DELETE_KEYS} objects per request",
                error_data={"bucket": bucket, "count": len(object_keys)},
            )

        body = xml_codec.build_batch_delete(object_keys)
        response = await self._send(
            "batch_delete",
            "POST",
            bucket,
            query_params={"delete": ""},
            payload=body,
            headers={"Content-Type": "application/xml", "Content-MD5": _content_md5(body)},
        )
        if isinstance(response, ErrorResponse):
            if response.error_data.get("timeout"):
                response.error_code = ErrorCode.BATCH_DELETE_TIMEOUT.value
            return response
        if not response.is_success:
            error = self.handle_error_response(response, "batch_delete", bucket=bucket, count=len(object_keys))
            if error.error_code == "MalformedXML":
                error.error_data["remote_code"] = error.error_code
                error.error_code = ErrorCode.BATCH_DELETE_NOT_SUPPORTED.value
            return error

        try:
            result = xml_codec.parse_batch_delete_response(response.content)
        except XmlParseError as e:
            return self._parse_failure(response, e, "batch_delete")
        return SuccessResponse(
            status_code=response.status_code,
            message=f"Deleted {result.success_count} of {len(object_keys)} objects",
            data=result,
        )
