"""
Connectors module exports - Centralized imports for connector functionality.
"""

from .sigv4 import SigV4Signer
from .s3_connector import S3Connector

__all__ = [
    'SigV4Signer',
    'S3Connector',
]
