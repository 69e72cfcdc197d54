from .base import BaseInterface
from .s3_client import S3Client
from .cors import CorsOperations
from .bulk import BulkOperations
from .permissions import PermissionProbe

__all__ = [
    "BaseInterface",
    "S3Client",
    "CorsOperations",
    "BulkOperations",
    "PermissionProbe",
]
