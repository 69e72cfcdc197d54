"""
Vultr Object Storage
"""
from s3_bridge.core.registry import register_provider
from s3_bridge.providers.base import Provider


@register_provider("vultr")
class VultrProvider(Provider):
    id = "vultr"
    label = "Vultr Object Storage"
    endpoint_template = "{region}.vultrobjects.com"
    path_style = True
    default_region = "ewr1"
    regions = {
        "ams1": {"label": "Amsterdam"},
        "blr1": {"label": "Bangalore"},
        "sgp1": {"label": "Singapore"},
        "del1": {"label": "Delhi"},
        "ewr1": {"label": "New Jersey"},
        "sjc1": {"label": "Silicon Valley"},
    }
