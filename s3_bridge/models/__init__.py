"""
Models module exports - Centralized imports for data models.
"""

from .s3_model import Owner, S3Bucket, S3Object, S3Prefix, CorsRule
from .result_model import (
    ProviderUrl,
    BucketsList,
    ObjectsList,
    ObjectListingItem,
    ObjectMetadata,
    ObjectContent,
    CopyResult,
    CorsConfiguration,
    DeletedObject,
    DeleteError,
    BatchDeleteResult,
    PresignedUrl,
)
from .response_model import SuccessResponse, ErrorResponse, Response

__all__ = [
    'Owner',
    'S3Bucket',
    'S3Object',
    'S3Prefix',
    'CorsRule',
    'ProviderUrl',
    'BucketsList',
    'ObjectsList',
    'ObjectListingItem',
    'ObjectMetadata',
    'ObjectContent',
    'CopyResult',
    'CorsConfiguration',
    'DeletedObject',
    'DeleteError',
    'BatchDeleteResult',
    'PresignedUrl',
    'SuccessResponse',
    'ErrorResponse',
    'Response',
]
