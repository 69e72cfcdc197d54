"""
AWS Signature Version 4 for S3.

Pure signing logic: builds canonical requests, derives the signing key and
produces either Authorization headers or presigned URLs. No network I/O.
The signer keeps no per-call state, so one instance can be shared by
concurrent requests.
"""
from __future__ import annotations

import hashlib
import hmac
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from s3_bridge.core.errors import InvalidArgumentError
from s3_bridge.providers.base import Provider
from s3_bridge.utils.encoding import (
    canonical_query_string,
    encode_canonical_path,
    normalize_object_key,
)
from s3_bridge.utils.logging import get_logger as default_get_logger
from s3_bridge.utils.logging import mask_access_key, register_secret

ALGORITHM = "AWS4-HMAC-SHA256"
SERVICE = "s3"
TERMINATOR = "aws4_request"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"
EMPTY_PAYLOAD_HASH = hashlib.sha256(b"").hexdigest()

MIN_EXPIRES_MINUTES = 1
MAX_EXPIRES_MINUTES = 10080  # 7 days

DebugCallback = Callable[[str, Dict[str, Any]], None]
HeaderInput = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]


def sha256_hex(payload: Union[bytes, str]) -> str:
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def hmac_sha256(key: bytes, msg: str) -> bytes:
    return hmac.new(key, msg.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret_key: str, date_stamp: str, region: str, service: str = SERVICE) -> bytes:
    """AWS4 + secret -> date -> region -> service -> aws4_request"""
    k_date = hmac_sha256(f"AWS4{secret_key}".encode("utf-8"), date_stamp)
    k_region = hmac_sha256(k_date, region)
    k_service = hmac_sha256(k_region, service)
    return hmac_sha256(k_service, TERMINATOR)


def canonical_headers(headers: HeaderInput) -> Tuple[str, str]:
    """
    Canonical header block and signed-headers list.

    Names are lower-cased, values trimmed with inner whitespace collapsed,
    entries sorted by name and repeated names comma-joined in input order.
    """
    items = headers.items() if isinstance(headers, Mapping) else headers
    grouped: Dict[str, List[str]] = {}
    for name, value in items:
        grouped.setdefault(name.strip().lower(), []).append(" ".join(str(value).split()))

    names = sorted(grouped)
    block = "".join(f"{name}:{','.join(grouped[name])}\n" for name in names)
    return block, ";".join(names)


def build_canonical_request(
    method: str,
    canonical_uri: str,
    canonical_query: str,
    headers_block: str,
    signed_headers: str,
    payload_hash: str,
) -> str:
    return "\n".join([method.upper(), canonical_uri, canonical_query, headers_block, signed_headers, payload_hash])


def build_string_to_sign(amz_date: str, scope: str, canonical_request: str) -> str:
    return "\n".join([ALGORITHM, amz_date, scope, sha256_hex(canonical_request)])


class SigV4Signer:
    """
    Signs S3 requests for one provider and one credential pair.

    Args:
        provider: addressing rules (host, canonical URI, signing region)
        access_key: access key id
        secret_key: secret access key, never logged
        now: clock returning an aware UTC datetime, injectable for tests
        debug_callback: optional ``(message, context)`` hook; contexts never
            contain the secret key
        get_logger: logger factory
    """

    def __init__(
        self,
        provider: Provider,
        access_key: str,
        secret_key: str,
        *,
        now: Optional[Callable[[], datetime]] = None,
        debug_callback: Optional[DebugCallback] = None,
        get_logger: Optional[Callable[[], logging.Logger]] = None,
    ):
        if not access_key or not secret_key:
            raise InvalidArgumentError("Access key and secret key are required")

        self.provider = provider
        self._access_key = access_key
        self._secret_key = secret_key
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._debug_callback = debug_callback
        self.logger = (get_logger or default_get_logger)()
        register_secret(secret_key)

    def __repr__(self) -> str:
        return f"<SigV4Signer provider={self.provider.id} access_key={mask_access_key(self._access_key)}>"

    @property
    def access_key(self) -> str:
        return self._access_key

    def now(self) -> datetime:
        return self._now().astimezone(timezone.utc)

    def set_debug_callback(self, callback: Optional[DebugCallback]) -> None:
        self._debug_callback = callback

    def debug(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Forward a debug event to the callback and the logger"""
        context = context or {}
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"{message}: {context}")
        if self._debug_callback is not None:
            self._debug_callback(message, context)

    def mask_headers(self, headers: Mapping[str, str]) -> Dict[str, str]:
        """Copy of request headers safe for logs"""
        masked = dict(headers)
        for name in list(masked):
            if name.lower() == "authorization":
                masked[name] = masked[name].replace(self._access_key, mask_access_key(self._access_key))
        return masked

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def _timestamps(self) -> Tuple[str, str]:
        now = self.now()
        return now.strftime("%Y%m%dT%H%M%SZ"), now.strftime("%Y%m%d")

    def _scope(self, date_stamp: str) -> str:
        return f"{date_stamp}/{self.provider.signing_region}/{SERVICE}/{TERMINATOR}"

    def canonical_uri(self, bucket: str, object_key: str = "") -> str:
        raw_path = self.provider.format_canonical_uri(bucket, normalize_object_key(object_key))
        return encode_canonical_path(raw_path)

    def request_url(self, bucket: str, object_key: str = "", query_params: Optional[Mapping[str, Any]] = None) -> str:
        """URL whose path and query match what gets signed"""
        url = self.provider.format_url(bucket, normalize_object_key(object_key))
        query = canonical_query_string(query_params)
        return f"{url}?{query}" if query else url

    def _signature(self, date_stamp: str, string_to_sign: str) -> str:
        signing_key = derive_signing_key(self._secret_key, date_stamp, self.provider.signing_region)
        return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()

    # ------------------------------------------------------------------
    # Authorization header
    # ------------------------------------------------------------------

    def generate_auth_headers(
        self,
        method: str,
        bucket: str = "",
        object_key: str = "",
        query_params: Optional[Mapping[str, Any]] = None,
        payload: Union[bytes, str] = b"",
        extra_headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, str]:
        """
        Headers for a header-authenticated request.

        ``host``, ``x-amz-content-sha256``, ``x-amz-date`` and any ``x-amz-*``
        entry of ``extra_headers`` are signed. Other extra headers are passed
        through unsigned.
        """
        amz_date, date_stamp = self._timestamps()
        payload_hash = sha256_hex(payload)

        signed = {
            "host": self.provider.get_host(bucket),
            "x-amz-content-sha256": payload_hash,
            "x-amz-date": amz_date,
        }
        unsigned: Dict[str, str] = {}
        for name, value in (extra_headers or {}).items():
            if name.lower().startswith("x-amz-"):
                signed[name.lower()] = value
            else:
                unsigned[name] = value

        headers_block, signed_headers = canonical_headers(signed)
        canonical_request = build_canonical_request(
            method,
            self.canonical_uri(bucket, object_key),
            canonical_query_string(query_params),
            headers_block,
            signed_headers,
            payload_hash,
        )
        scope = self._scope(date_stamp)
        string_to_sign = build_string_to_sign(amz_date, scope, canonical_request)
        signature = self._signature(date_stamp, string_to_sign)

        headers = {
            "Host": signed["host"],
            "x-amz-content-sha256": payload_hash,
            "x-amz-date": amz_date,
            "Authorization": (
                f"{ALGORITHM} Credential={self._access_key}/{scope},"
                f"SignedHeaders={signed_headers},Signature={signature}"
            ),
        }
        for name, value in signed.items():
            if name not in ("host", "x-amz-content-sha256", "x-amz-date"):
                headers[name] = value
        headers.update(unsigned)

        self.debug("Canonical request", {"method": method.upper(), "canonical_request": canonical_request})
        return headers

    # ------------------------------------------------------------------
    # Presigned URLs
    # ------------------------------------------------------------------

    def clamp_expiry(self, expires_minutes: int) -> int:
        """
        Validate a presigned URL lifetime.

        Below one minute is rejected; anything above seven days is clamped
        to seven days.
        """
        try:
            minutes = int(expires_minutes)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(
                f"Invalid expiry: {expires_minutes!r}", data={"expires_minutes": expires_minutes}
            ) from e
        if minutes < MIN_EXPIRES_MINUTES:
            raise InvalidArgumentError(
                f"Expiry must be between {MIN_EXPIRES_MINUTES} and {MAX_EXPIRES_MINUTES} minutes",
                data={"expires_minutes": minutes},
            )
        if minutes > MAX_EXPIRES_MINUTES:
            self.logger.warning(f"Presigned URL expiry {minutes} min clamped to {MAX_EXPIRES_MINUTES} min")
            return MAX_EXPIRES_MINUTES
        return minutes

    def generate_presigned_url(
        self,
        bucket: str,
        object_key: str,
        expires_minutes: int = 60,
        method: str = "GET",
        extra_query: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Query-string authenticated URL, only ``host`` signed, payload UNSIGNED-PAYLOAD"""
        minutes = self.clamp_expiry(expires_minutes)
        amz_date, date_stamp = self._timestamps()
        scope = self._scope(date_stamp)
        host = self.provider.get_host(bucket)

        query: Dict[str, Any] = dict(extra_query or {})
        query.update({
            "X-Amz-Algorithm": ALGORITHM,
            "X-Amz-Credential": f"{self._access_key}/{scope}",
            "X-Amz-Date": amz_date,
            "X-Amz-Expires": str(minutes * 60),
            "X-Amz-SignedHeaders": "host",
        })
        canonical_query = canonical_query_string(query)
        headers_block, signed_headers = canonical_headers({"host": host})

        canonical_request = build_canonical_request(
            method,
            self.canonical_uri(bucket, object_key),
            canonical_query,
            headers_block,
            signed_headers,
            UNSIGNED_PAYLOAD,
        )
        string_to_sign = build_string_to_sign(amz_date, scope, canonical_request)
        signature = self._signature(date_stamp, string_to_sign)

        url = self.provider.format_url(bucket, normalize_object_key(object_key))
        self.debug("Presigned URL generated", {
            "method": method.upper(),
            "bucket": bucket,
            "object_key": object_key,
            "expires_minutes": minutes,
        })
        return f"{url}?{canonical_query}&X-Amz-Signature={signature}"
