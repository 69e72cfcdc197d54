"""
Cloudflare R2
"""
from typing import Any, Optional

from s3_bridge.core.errors import InvalidArgumentError
from s3_bridge.core.registry import register_provider
from s3_bridge.providers.base import Provider


@register_provider("cloudflare_r2")
class CloudflareR2Provider(Provider):
    """R2 endpoints are per account; every jurisdiction signs with region ``auto``."""

    id = "cloudflare_r2"
    label = "Cloudflare R2"
    endpoint_template = "{account_id}.{region_prefix}r2.cloudflarestorage.com"
    path_style = True
    default_region = "default"
    regions = {
        "default": {"label": "Automatic", "prefix": ""},
        "eu": {"label": "European Union", "prefix": "eu."},
        "fedramp": {"label": "FedRAMP", "prefix": "fedramp."},
        "apac": {"label": "Asia Pacific", "prefix": "apac."},
    }

    def __init__(self, region: str = "", **params: Any):
        if not params.get("account_id"):
            raise InvalidArgumentError("Account ID is required for Cloudflare R2", data={"provider": self.id})
        super().__init__(region, **params)

    @property
    def account_id(self) -> str:
        return self.get_param("account_id", "")

    @property
    def signing_region(self) -> str:
        return "auto"

    def requires_account_id(self) -> bool:
        return True

    def get_endpoint(self) -> str:
        if not self.account_id:
            raise InvalidArgumentError("Account ID is required for Cloudflare R2", data={"provider": self.id})
        return (
            self.endpoint_template
            .replace("{account_id}", self.account_id)
            .replace("{region_prefix}", self.region_attribute("prefix"))
        )

    def get_public_url(self, bucket: str, object_key: str = "") -> Optional[str]:
        url = super().get_public_url(bucket, object_key)
        if url:
            return url
        return f"{build_public_url(self.account_id, bucket)}/{object_key.lstrip('/')}"


def build_public_url(account_id: str, bucket: str) -> str:
    """r2.dev development URL of a public bucket"""
    return f"https://{bucket}.{account_id}.r2.dev"
