"""
MEGA S4 object storage
"""
from typing import Any, List

from s3_bridge.core.errors import InvalidArgumentError
from s3_bridge.core.registry import register_provider
from s3_bridge.providers.base import Provider

GLOBAL_ENDPOINT = "g.s4.mega.io"


@register_provider("mega_s4")
class MegaS4Provider(Provider):
    id = "mega_s4"
    label = "Mega S4"
    endpoint_template = "s3.{region}.s4.mega.io"
    path_style = True
    default_region = "eu-central-1"
    regions = {
        "eu-central-1": {"label": "Amsterdam", "location": "Amsterdam"},
        "eu-central-2": {"label": "Bettembourg", "location": "Bettembourg"},
        "ca-central-1": {"label": "Montreal", "location": "Montreal"},
        "ca-west-1": {"label": "Vancouver", "location": "Vancouver"},
    }

    def __init__(self, region: str = "", **params: Any):
        if not params.get("account_id"):
            raise InvalidArgumentError("Account ID is required for Mega S4", data={"provider": self.id})
        super().__init__(region, **params)

    def requires_account_id(self) -> bool:
        return True

    def get_alternative_endpoints(self) -> List[str]:
        return [GLOBAL_ENDPOINT]

    def get_iam_endpoint(self) -> str:
        return f"iam.{self.get_endpoint()}"
