"""
Utils module exports - Centralized imports for utility functionality.

The codec, cache and CORS helpers depend on the models and are imported from
their modules directly.
"""

from .logging import get_logger, get_logger_from_config, mask_access_key, register_secret
from .encoding import (
    normalize_object_key,
    encode_object_key,
    decode_object_key,
    uri_encode,
    canonical_query_string,
)

__all__ = [
    'get_logger',
    'get_logger_from_config',
    'mask_access_key',
    'register_secret',
    'normalize_object_key',
    'encode_object_key',
    'decode_object_key',
    'uri_encode',
    'canonical_query_string',
]
