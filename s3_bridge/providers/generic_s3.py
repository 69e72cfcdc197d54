"""
Any S3-compatible service (MinIO, Ceph, Garage, ...) reached by explicit endpoint
"""
from typing import Any, Dict, Union

from s3_bridge.core.errors import InvalidArgumentError
from s3_bridge.core.registry import register_provider
from s3_bridge.providers.base import Provider, _SCHEME_RE


@register_provider("generic_s3")
class GenericS3Provider(Provider):
    """
    Provider for self-hosted or otherwise unlisted S3 services.

    Params:
        endpoint: host[:port], scheme optional (required)
        path_style: bool, default True
        use_https: bool, default True
        signing_region: region used for the credential scope, defaults to the region
        regions: extra region codes, ``{code: label}``
        service_name: display label
    """

    id = "generic_s3"
    label = "S3-Compatible Storage"
    endpoint_template = "{endpoint}"
    default_region = "auto"

    def __init__(self, region: str = "", **params: Any):
        if not params.get("endpoint"):
            raise InvalidArgumentError("Endpoint is required for generic S3 provider", data={"provider": self.id})

        self.regions = {"auto": {"label": "Automatic"}}
        self.add_regions(params.pop("regions", None) or {})
        self.path_style = bool(params.pop("path_style", True))
        service_name = params.pop("service_name", None)
        if service_name:
            self.label = service_name

        super().__init__(region, **params)

    def add_regions(self, regions: Dict[str, Union[str, Dict[str, str]]]) -> "GenericS3Provider":
        for code, region in regions.items():
            if isinstance(region, str):
                self.regions[code] = {"label": region}
            elif isinstance(region, dict) and "label" in region:
                self.regions[code] = dict(region)
        return self

    def get_endpoint(self) -> str:
        endpoint = self.get_param("endpoint")
        if not endpoint:
            raise InvalidArgumentError("Endpoint is required for generic S3 provider", data={"provider": self.id})
        return _SCHEME_RE.sub("", endpoint).rstrip("/")

    @property
    def signing_region(self) -> str:
        return self.get_param("signing_region") or self._region

    @property
    def scheme(self) -> str:
        return "https" if self.get_param("use_https", True) else "http"

    def set_path_style(self, use_path_style: bool) -> "GenericS3Provider":
        self.path_style = use_path_style
        return self

    def set_signing_region(self, signing_region: str) -> "GenericS3Provider":
        return self.set_param("signing_region", signing_region)

    def set_use_https(self, use_https: bool = True) -> "GenericS3Provider":
        return self.set_param("use_https", use_https)
