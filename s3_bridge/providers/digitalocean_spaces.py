"""
DigitalOcean Spaces
"""
from typing import Any, Dict, Optional

from s3_bridge.core.registry import register_provider
from s3_bridge.providers.base import Provider


@register_provider("digitalocean_spaces")
class DigitalOceanSpacesProvider(Provider):
    """Spaces ship a built-in CDN; a custom CDN hostname may be set per bucket."""

    id = "digitalocean_spaces"
    label = "DigitalOcean Spaces"
    endpoint_template = "{region}.digitaloceanspaces.com"
    path_style = False
    default_region = "sfo3"
    regions = {
        "nyc3": {"label": "New York 3"},
        "sfo3": {"label": "San Francisco 3"},
        "sfo2": {"label": "San Francisco 2"},
        "ams3": {"label": "Amsterdam 3"},
        "sgp1": {"label": "Singapore 1"},
        "fra1": {"label": "Frankfurt 1"},
        "syd1": {"label": "Sydney 1"},
    }

    def __init__(self, region: str = "", **params: Any):
        custom_cdn = params.pop("custom_cdn", None) or {}
        super().__init__(region, **params)
        self._custom_cdn: Dict[str, str] = dict(custom_cdn)

    def set_custom_cdn(self, bucket: str, domain: str) -> "DigitalOceanSpacesProvider":
        self._custom_cdn[bucket] = domain.split("://", 1)[-1].rstrip("/")
        return self

    def has_integrated_cdn(self) -> bool:
        return True

    def get_cdn_url(self, bucket: str, object_key: str = "") -> Optional[str]:
        object_key = object_key.lstrip("/")
        custom = self._custom_cdn.get(bucket)
        if custom:
            return f"https://{custom}/{object_key}"
        return f"https://{bucket}.{self._region}.cdn.digitaloceanspaces.com/{object_key}"
