"""
Linode (Akamai) Object Storage
"""
from typing import Optional

from s3_bridge.core.errors import InvalidArgumentError
from s3_bridge.core.registry import register_provider
from s3_bridge.providers.base import Provider


def _cluster(label: str, host: str) -> dict:
    return {"label": label, "endpoint": f"{host}.linodeobjects.com"}


@register_provider("linode")
class LinodeProvider(Provider):
    """Endpoints are looked up per region; some regions share a cluster hostname."""

    id = "linode"
    label = "Linode Object Storage"
    endpoint_template = "{endpoint}"
    path_style = True
    default_region = "us-east"
    regions = {
        "us-southeast": _cluster("Atlanta, GA", "us-southeast-1"),
        "us-ord": _cluster("Chicago, IL", "us-ord-1"),
        "us-lax": _cluster("Los Angeles, CA", "us-lax-1"),
        "us-mia": _cluster("Miami, FL", "us-mia-1"),
        "us-east": _cluster("Newark, NJ", "us-east-1"),
        "us-sea": _cluster("Seattle, WA", "us-sea-1"),
        "us-iad": _cluster("Washington, DC", "us-iad-1"),
        "id-cgk": _cluster("Jakarta, ID", "id-cgk-1"),
        "in-maa": _cluster("Chennai, IN", "in-maa-1"),
        "in-bom-2": _cluster("Mumbai 2, IN", "in-bom-1"),
        "jp-osa": _cluster("Osaka, JP", "jp-osa-1"),
        "jp-tyo-3": _cluster("Tokyo 3, JP", "jp-tyo-1"),
        "ap-south": _cluster("Singapore, SG", "ap-south-1"),
        "sg-sin-2": _cluster("Singapore 2, SG", "sg-sin-1"),
        "eu-central": _cluster("Frankfurt, DE", "eu-central-1"),
        "de-fra-2": _cluster("Frankfurt 2, DE", "de-fra-1"),
        "es-mad": _cluster("Madrid, ES", "es-mad-1"),
        "fr-par": _cluster("Paris, FR", "fr-par-1"),
        "gb-lon": _cluster("London 2, GB", "gb-lon-1"),
        "it-mil": _cluster("Milan, IT", "it-mil-1"),
        "nl-ams": _cluster("Amsterdam, NL", "nl-ams-1"),
        "se-sto": _cluster("Stockholm, SE", "se-sto-1"),
        "au-mel": _cluster("Melbourne, AU", "au-mel-1"),
        "br-gru": _cluster("Sao Paulo, BR", "br-gru-1"),
    }

    def get_endpoint(self) -> str:
        endpoint = self.region_attribute("endpoint")
        if not endpoint:
            raise InvalidArgumentError(f'No endpoint found for region "{self._region}"', data={"provider": self.id})
        return endpoint

    def set_website_enabled(self, bucket: str, enabled: bool = True) -> "LinodeProvider":
        return self.set_param(f"website_enabled_{bucket}", enabled)

    def get_public_url(self, bucket: str, object_key: str = "") -> Optional[str]:
        url = super().get_public_url(bucket, object_key)
        if url:
            return url
        if self.get_param(f"website_enabled_{bucket}", False):
            return f"https://{bucket}.{self.get_endpoint()}/{object_key.lstrip('/')}"
        return None
