"""
Base provider abstraction.

A provider describes one storage backend's addressing rules: endpoint host,
path-style vs virtual-hosted-style URLs, regions, custom domains and public or
CDN URLs. Providers do no I/O.
"""
from __future__ import annotations

import abc
import re
from typing import Any, Dict, List, Optional

from s3_bridge.core.errors import InvalidArgumentError
from s3_bridge.models.result_model import ProviderUrl
from s3_bridge.utils.encoding import decode_object_key, encode_object_key

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


class Provider(abc.ABC):
    """Addressing rules for one S3-compatible backend."""

    id: str = ""
    label: str = ""
    endpoint_template: str = ""
    path_style: bool = True
    default_region: str = ""
    # code -> {"label": ..., and provider specific attributes}
    regions: Dict[str, Dict[str, str]] = {}

    def __init__(self, region: str = "", **params: Any):
        self._region = region or self.default_region
        self._params: Dict[str, Any] = dict(params)
        self._custom_domains: Dict[str, str] = {}
        self._public_urls: Dict[str, str] = {}

        custom_domains = self._params.pop("custom_domains", None) or {}
        for bucket, domain in custom_domains.items():
            self.set_custom_domain(bucket, domain)
        public_urls = self._params.pop("public_urls", None) or {}
        for bucket, url in public_urls.items():
            self.set_public_url(bucket, url)

        if region and not self.is_valid_region(region):
            raise InvalidArgumentError(
                f'Invalid region "{region}" for provider "{self.label}". '
                f"Available regions: {', '.join(self.regions)}",
                data={"region": region, "provider": self.id},
            )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id} region={self._region}>"

    # ------------------------------------------------------------------
    # Identity / regions
    # ------------------------------------------------------------------

    @property
    def region(self) -> str:
        return self._region

    @property
    def signing_region(self) -> str:
        """Region used in the SigV4 credential scope"""
        return self._region

    @property
    def scheme(self) -> str:
        return "https"

    def get_available_regions(self) -> Dict[str, str]:
        return {code: attrs.get("label", code) for code, attrs in self.regions.items()}

    def is_valid_region(self, region: str) -> bool:
        return region in self.regions

    def region_attribute(self, name: str, default: str = "") -> str:
        return self.regions.get(self._region, {}).get(name, default)

    def requires_account_id(self) -> bool:
        return False

    def get_param(self, key: str, default: Any = None) -> Any:
        return self._params.get(key, default)

    def set_param(self, key: str, value: Any) -> "Provider":
        self._params[key] = value
        return self

    # ------------------------------------------------------------------
    # Endpoints and URLs
    # ------------------------------------------------------------------

    def get_endpoint(self) -> str:
        """Concrete hostname for the configured region"""
        return self.endpoint_template.replace("{region}", self._region)

    def get_alternative_endpoints(self) -> List[str]:
        """Other hostnames (legacy, global, other regions) that address this provider"""
        return []

    def get_host(self, bucket: str = "") -> str:
        """Host header value for a request against ``bucket``"""
        endpoint = self.get_endpoint()
        if bucket and not self.path_style:
            return f"{bucket}.{endpoint}"
        return endpoint

    def format_url(self, bucket: str, object_key: str = "") -> str:
        """Request URL with the object key percent-encoded once"""
        endpoint = self.get_endpoint()
        encoded = encode_object_key(object_key) if object_key else ""
        suffix = f"/{encoded}" if encoded else ""

        if not bucket:
            return f"{self.scheme}://{endpoint}/"
        if self.path_style:
            return f"{self.scheme}://{endpoint}/{bucket}{suffix}"
        return f"{self.scheme}://{bucket}.{endpoint}{suffix}"

    def format_canonical_uri(self, bucket: str, object_key: str = "") -> str:
        """Raw (not yet encoded) request path used for signing"""
        if not bucket:
            return "/"
        object_key = object_key.lstrip("/")
        if self.path_style:
            return f"/{bucket}/{object_key}" if object_key else f"/{bucket}"
        return f"/{object_key}"

    # ------------------------------------------------------------------
    # Custom domains, public and CDN URLs
    # ------------------------------------------------------------------

    def set_custom_domain(self, bucket: str, domain: str) -> "Provider":
        self._custom_domains[bucket] = _SCHEME_RE.sub("", domain).rstrip("/")
        return self

    def get_custom_domain(self, bucket: str) -> Optional[str]:
        return self._custom_domains.get(bucket)

    @property
    def custom_domains(self) -> Dict[str, str]:
        return dict(self._custom_domains)

    def set_public_url(self, bucket: str, url: str) -> "Provider":
        self._public_urls[bucket] = url
        return self

    def get_public_url(self, bucket: str, object_key: str = "") -> Optional[str]:
        object_key = object_key.lstrip("/")
        custom_domain = self._custom_domains.get(bucket)
        if custom_domain:
            return f"https://{custom_domain}/{object_key}"
        public_url = self._public_urls.get(bucket)
        if public_url:
            return f"{public_url.rstrip('/')}/{object_key}"
        return None

    def has_integrated_cdn(self) -> bool:
        return False

    def get_cdn_url(self, bucket: str, object_key: str = "") -> Optional[str]:
        return None

    # ------------------------------------------------------------------
    # URL recognition
    # ------------------------------------------------------------------

    def _url_domains(self) -> Dict[str, str]:
        """Domain -> bucket for every domain that maps directly onto one bucket"""
        return {domain: bucket for bucket, domain in self._custom_domains.items()}

    @staticmethod
    def _split_url(url: str) -> Optional[tuple]:
        rest = _SCHEME_RE.sub("", url.strip())
        rest = rest.split("?", 1)[0].split("#", 1)[0]
        if not rest:
            return None
        host, _, path = rest.partition("/")
        return rest, host.lower(), path

    def _endpoint_hosts(self) -> List[str]:
        return [self.get_endpoint().lower()] + [e.lower() for e in self.get_alternative_endpoints()]

    @staticmethod
    def _bucket_from_host(host: str, endpoint: str) -> Optional[str]:
        """Bucket label in front of ``endpoint``; bucket names may contain dots"""
        suffix = "." + endpoint
        if not host.endswith(suffix):
            return None
        bucket = host[: -len(suffix)]
        if not bucket or bucket.startswith(".") or bucket.endswith(".") or ".." in bucket:
            return None
        return bucket

    @staticmethod
    def _match_domain(rest: str, domain: str) -> Optional[str]:
        """Remaining path when ``rest`` sits under ``domain`` on a segment boundary"""
        if rest == domain:
            return ""
        if rest.startswith(domain + "/"):
            return rest[len(domain) + 1:]
        return None

    def is_provider_url(self, url: str) -> bool:
        """True when the URL points at this provider's endpoints or a configured domain"""
        if not url:
            return False
        parts = self._split_url(url)
        if parts is None:
            return False
        rest, host, _ = parts

        for endpoint in self._endpoint_hosts():
            if host == endpoint or self._bucket_from_host(host, endpoint):
                return True

        return any(self._match_domain(rest, domain) is not None for domain in self._url_domains())

    def parse_provider_url(self, url: str) -> Optional[ProviderUrl]:
        """
        Recover bucket and object key from a provider URL.

        Tried in order: path-style (host is exactly an endpoint),
        virtual-hosted-style, then configured custom domains. Returns None when
        nothing matches.
        """
        if not self.is_provider_url(url):
            return None
        rest, host, path = self._split_url(url)
        endpoints = self._endpoint_hosts()

        if host in endpoints:
            bucket, _, object_key = path.partition("/")
            if bucket:
                return ProviderUrl(bucket=bucket, object_key=decode_object_key(object_key))

        for endpoint in sorted(endpoints, key=len, reverse=True):
            bucket = self._bucket_from_host(host, endpoint)
            if bucket:
                return ProviderUrl(bucket=bucket, object_key=decode_object_key(path))

        for domain, bucket in self._url_domains().items():
            remaining = self._match_domain(rest, domain)
            if remaining is not None:
                return ProviderUrl(bucket=bucket, object_key=decode_object_key(remaining))

        return None
