"""
Wasabi hot cloud storage
"""
from typing import Optional

from s3_bridge.core.registry import register_provider
from s3_bridge.providers.base import Provider


@register_provider("wasabi")
class WasabiProvider(Provider):
    id = "wasabi"
    label = "Wasabi"
    endpoint_template = "s3.{region}.wasabisys.com"
    path_style = False
    default_region = "us-east-1"
    regions = {
        "us-east-1": {"label": "US East 1 (N. Virginia)"},
        "us-east-2": {"label": "US East 2 (N. Virginia)"},
        "us-central-1": {"label": "US Central 1 (Texas)"},
        "ca-central-1": {"label": "CA Central 1 (Toronto)"},
        "us-west-1": {"label": "US West 1 (Oregon)"},
        "eu-west-1": {"label": "EU West 1 (London)"},
        "eu-west-2": {"label": "EU West 2 (Paris)"},
        "eu-central-1": {"label": "EU Central 1 (Amsterdam)"},
        "eu-central-2": {"label": "EU Central 2 (Frankfurt)"},
        "ap-northeast-1": {"label": "AP Northeast 1 (Tokyo)"},
        "ap-northeast-2": {"label": "AP Northeast 2 (Osaka)"},
        "ap-southeast-2": {"label": "AP Southeast 2 (Sydney)"},
        "ap-southeast-1": {"label": "AP Southeast 1 (Singapore)"},
    }

    def set_cdn_domain(self, bucket: str, cdn_domain: str) -> "WasabiProvider":
        return self.set_param(f"cdn_domain_{bucket}", cdn_domain)

    def has_integrated_cdn(self) -> bool:
        return True

    def get_cdn_url(self, bucket: str, object_key: str = "") -> Optional[str]:
        cdn_domain = self.get_param(f"cdn_domain_{bucket}")
        if cdn_domain:
            return f"https://{cdn_domain}/{object_key.lstrip('/')}"
        return self.format_url(bucket, object_key)
