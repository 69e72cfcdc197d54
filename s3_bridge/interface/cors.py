"""
Bucket CORS management on top of the signed connector.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional

from s3_bridge.models.response_model import ErrorResponse, Response, SuccessResponse
from s3_bridge.models.s3_model import CorsRule
from s3_bridge.utils.cors_rules import analyze_cors_rules, generate_cors_rules, upload_check

if TYPE_CHECKING:
    from s3_bridge.interface.s3_client import S3Client


class CorsOperations:
    """
    CORS delegate of S3Client.

    Configurations are cached per bucket; every write drops the cached entry.
    """

    def __init__(self, client: "S3Client"):
        self.client = client
        self.connector = client.connector
        self.cache = client.cache
        self.logger = client.logger

    async def get_cors_configuration(self, bucket: str, use_cache: bool = True) -> Response:
        if not bucket:
            return ErrorResponse.invalid_parameters("Bucket is required")
        return await self.cache.cached(
            self.cache.cors_key(bucket),
            lambda: self.connector.get_cors_configuration(bucket),
            scope=bucket,
            use_cache=use_cache,
        )

    async def set_cors_configuration(self, bucket: str, rules: Iterable[CorsRule]) -> Response:
        if not bucket:
            return ErrorResponse.invalid_parameters("Bucket is required")
        response = await self.connector.put_cors_configuration(bucket, list(rules))
        if response.is_successful():
            await self.cache.invalidate_cors(bucket)
            self.logger.info(f"CORS configuration updated for bucket {bucket}")
        return response

    async def delete_cors_configuration(self, bucket: str) -> Response:
        if not bucket:
            return ErrorResponse.invalid_parameters("Bucket is required")
        response = await self.connector.delete_cors_configuration(bucket)
        if response.is_successful():
            await self.cache.invalidate_cors(bucket)
            self.logger.info(f"CORS configuration removed from bucket {bucket}")
        return response

    async def has_cors_configuration(self, bucket: str, use_cache: bool = True) -> Response:
        response = await self.get_cors_configuration(bucket, use_cache)
        if not response.is_successful():
            return response
        config = response.data
        return SuccessResponse(
            message=f'Bucket "{bucket}" {"has" if config.has_cors else "has no"} CORS configuration',
            data={"bucket": bucket, "has_cors": config.has_cors, "rules_count": len(config.rules)},
        )

    async def cors_allows_upload(self, bucket: str, origin: str = "*", use_cache: bool = True) -> Response:
        response = await self.get_cors_configuration(bucket, use_cache)
        if not response.is_successful():
            return response

        check = upload_check(response.data.rules, origin)
        verb = "allows" if check["allows_upload"] else "does not allow"
        return SuccessResponse(
            message=f'CORS {verb} uploads from "{origin}" to bucket "{bucket}"',
            data={"bucket": bucket, **check},
        )

    def generate_cors_rules(
        self,
        scenario: str = "public_read",
        origins: Optional[List[str]] = None,
        extra_config: Optional[Dict[str, Any]] = None,
    ) -> List[CorsRule]:
        return generate_cors_rules(scenario, origins, extra_config)

    async def set_cors_scenario(
        self,
        bucket: str,
        scenario: str,
        origins: Optional[List[str]] = None,
        extra_config: Optional[Dict[str, Any]] = None,
    ) -> Response:
        return await self.set_cors_configuration(bucket, generate_cors_rules(scenario, origins, extra_config))

    async def analyze_cors_configuration(self, bucket: str, use_cache: bool = True) -> Response:
        response = await self.get_cors_configuration(bucket, use_cache)
        if not response.is_successful():
            return response
        analysis = analyze_cors_rules(response.data.rules, bucket)
        return SuccessResponse(
            message=f'Analyzed {analysis["rules_count"]} CORS rules for bucket "{bucket}"',
            data=analysis,
        )

    async def setup_cors_for_uploads(self, bucket: str, origin: str) -> Response:
        """
        Apply the upload_only scenario for ``origin`` and wait until the bucket
        reports it.

        Propagation is polled with backoff, bounded by ``cors_verify_timeout``.
        A configuration that is applied but not yet visible is still a success
        with ``verification_passed`` False.
        """
        if not bucket or not origin:
            return ErrorResponse.invalid_parameters("Bucket and origin are required", bucket=bucket, origin=origin)

        set_result = await self.set_cors_scenario(bucket, "upload_only", [origin])
        if not set_result.is_successful():
            return set_result

        delay = max(self.client.cors_verify_initial_delay, 0.05)
        waited = 0.0
        attempts = 0
        verified = False
        last_error: Optional[ErrorResponse] = None

        while True:
            await self.client.sleep(delay)
            waited += delay
            attempts += 1
            check = await self.cors_allows_upload(bucket, origin, use_cache=False)
            if check.is_successful():
                verified = check.data["allows_upload"]
                last_error = None
            else:
                last_error = check
            delay *= 1.5
            if verified or waited + delay > self.client.cors_verify_timeout:
                break

        if not verified:
            self.logger.warning(f"CORS for {bucket} not visible after {attempts} checks")

        data: Dict[str, Any] = {
            "bucket": bucket,
            "origin": origin,
            "verification_passed": verified,
            "verification_attempts": attempts,
        }
        if last_error is not None:
            data["verification_error"] = {"code": last_error.error_code, "message": last_error.error_message}
        return SuccessResponse(
            message=f'CORS configured for uploads from {origin} to bucket "{bucket}"',
            data=data,
        )
