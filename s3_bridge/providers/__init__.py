"""
Storage providers. Importing the package registers every built-in provider.
"""
from s3_bridge.providers.base import Provider
from s3_bridge.providers.aws_s3 import AwsS3Provider
from s3_bridge.providers.backblaze_b2 import BackblazeB2Provider
from s3_bridge.providers.cloudflare_r2 import CloudflareR2Provider
from s3_bridge.providers.digitalocean_spaces import DigitalOceanSpacesProvider
from s3_bridge.providers.generic_s3 import GenericS3Provider
from s3_bridge.providers.linode import LinodeProvider
from s3_bridge.providers.mega_s4 import MegaS4Provider
from s3_bridge.providers.vultr import VultrProvider
from s3_bridge.providers.wasabi import WasabiProvider

__all__ = [
    "Provider",
    "AwsS3Provider",
    "BackblazeB2Provider",
    "CloudflareR2Provider",
    "DigitalOceanSpacesProvider",
    "GenericS3Provider",
    "LinodeProvider",
    "MegaS4Provider",
    "VultrProvider",
    "WasabiProvider",
]
