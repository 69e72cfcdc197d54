"""
Amazon S3
"""
from typing import Any, Dict, List, Optional

from s3_bridge.core.registry import register_provider
from s3_bridge.providers.base import Provider

STANDARD_ENDPOINT = "s3.amazonaws.com"


@register_provider("aws_s3")
class AwsS3Provider(Provider):
    """
    Amazon S3 with regional endpoints.

    ``use_standard_endpoint`` switches us-east-1 to the global
    ``s3.amazonaws.com`` host. CloudFront distributions are configured per bucket
    through ``cloudfront_domains`` and act as both CDN and recognizable URL.
    """

    id = "aws_s3"
    label = "Amazon S3"
    endpoint_template = "s3.{region}.amazonaws.com"
    path_style = True
    default_region = "us-east-1"
    regions = {
        "us-east-1": {"label": "US East (N. Virginia)"},
        "us-east-2": {"label": "US East (Ohio)"},
        "us-west-1": {"label": "US West (N. California)"},
        "us-west-2": {"label": "US West (Oregon)"},
        "ca-central-1": {"label": "Canada (Central)"},
        "eu-west-1": {"label": "EU (Ireland)"},
        "eu-west-2": {"label": "EU (London)"},
        "eu-west-3": {"label": "EU (Paris)"},
        "eu-central-1": {"label": "EU (Frankfurt)"},
        "eu-central-2": {"label": "EU (Zurich)"},
        "eu-north-1": {"label": "EU (Stockholm)"},
        "eu-south-1": {"label": "EU (Milan)"},
        "eu-south-2": {"label": "EU (Spain)"},
        "ap-east-1": {"label": "Asia Pacific (Hong Kong)"},
        "ap-northeast-1": {"label": "Asia Pacific (Tokyo)"},
        "ap-northeast-2": {"label": "Asia Pacific (Seoul)"},
        "ap-northeast-3": {"label": "Asia Pacific (Osaka)"},
        "ap-southeast-1": {"label": "Asia Pacific (Singapore)"},
        "ap-southeast-2": {"label": "Asia Pacific (Sydney)"},
        "ap-southeast-3": {"label": "Asia Pacific (Jakarta)"},
        "ap-southeast-4": {"label": "Asia Pacific (Melbourne)"},
        "ap-south-1": {"label": "Asia Pacific (Mumbai)"},
        "ap-south-2": {"label": "Asia Pacific (Hyderabad)"},
        "sa-east-1": {"label": "South America (São Paulo)"},
        "me-south-1": {"label": "Middle East (Bahrain)"},
        "me-central-1": {"label": "Middle East (UAE)"},
        "af-south-1": {"label": "Africa (Cape Town)"},
        "il-central-1": {"label": "Israel (Tel Aviv)"},
    }

    def __init__(self, region: str = "", **params: Any):
        cloudfront_domains = params.pop("cloudfront_domains", None) or {}
        virtual_hosted = params.pop("virtual_hosted_style", None)
        super().__init__(region, **params)
        self._cloudfront_domains: Dict[str, str] = {}
        for bucket, domain in cloudfront_domains.items():
            self.set_cloudfront_domain(bucket, domain)
        if virtual_hosted is not None:
            self.set_virtual_hosted_style(bool(virtual_hosted))

    def get_endpoint(self) -> str:
        if self._region == "us-east-1" and self.get_param("use_standard_endpoint", False):
            return STANDARD_ENDPOINT
        return super().get_endpoint()

    def get_alternative_endpoints(self) -> List[str]:
        alternatives = [STANDARD_ENDPOINT]
        alternatives.extend(
            self.endpoint_template.replace("{region}", code)
            for code in self.regions
            if code != self._region
        )
        return [endpoint for endpoint in alternatives if endpoint != self.get_endpoint()]

    def _url_domains(self) -> Dict[str, str]:
        domains = super()._url_domains()
        for bucket, domain in self._cloudfront_domains.items():
            domains.setdefault(domain, bucket)
        return domains

    def set_virtual_hosted_style(self, use_virtual: bool = True) -> "AwsS3Provider":
        self.path_style = not use_virtual
        return self

    def set_use_standard_endpoint(self, use_standard: bool = True) -> "AwsS3Provider":
        return self.set_param("use_standard_endpoint", use_standard)

    def set_cloudfront_domain(self, bucket: str, domain: str) -> "AwsS3Provider":
        self._cloudfront_domains[bucket] = domain.split("://", 1)[-1].rstrip("/")
        return self

    def get_cloudfront_domain(self, bucket: str) -> Optional[str]:
        return self._cloudfront_domains.get(bucket)

    def has_integrated_cdn(self) -> bool:
        return bool(self._cloudfront_domains)

    def get_cdn_url(self, bucket: str, object_key: str = "") -> Optional[str]:
        domain = self.get_cloudfront_domain(bucket)
        if not domain:
            return None
        return f"https://{domain}/{object_key.lstrip('/')}"
