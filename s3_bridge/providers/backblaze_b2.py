"""
Backblaze B2 (S3-compatible API)
"""
from typing import Optional

from s3_bridge.core.registry import register_provider
from s3_bridge.providers.base import Provider


@register_provider("backblaze")
class BackblazeB2Provider(Provider):
    id = "backblaze"
    label = "Backblaze B2"
    endpoint_template = "s3.{region}.backblazeb2.com"
    path_style = False
    default_region = "us-west-004"
    regions = {
        "us-west-000": {"label": "US West (Sacramento)"},
        "us-west-001": {"label": "US West (Sacramento 2)"},
        "us-west-002": {"label": "US West (Phoenix)"},
        "us-west-003": {"label": "US West (Phoenix 2)"},
        "us-west-004": {"label": "US West (Phoenix 3)"},
        "eu-central-003": {"label": "EU Central (Amsterdam)"},
    }

    def set_account_id(self, account_id: str) -> "BackblazeB2Provider":
        return self.set_param("account_id", account_id)

    def get_public_url(self, bucket: str, object_key: str = "") -> Optional[str]:
        url = super().get_public_url(bucket, object_key)
        if url:
            return url
        account_id = self.get_param("account_id")
        if not account_id:
            return None
        return f"https://f{account_id}.backblazeb2.com/file/{bucket}/{object_key.lstrip('/')}"
