"""
Error taxonomy shared by providers, the codec, the connector and the client.

Lower layers raise S3BridgeError subclasses; the connector and the client turn
them into ErrorResponse envelopes at their public boundary.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Stable error codes carried by ErrorResponse.error_code"""
    INVALID_ARGUMENT = "invalid_argument"
    INVALID_PARAMETERS = "invalid_parameters"
    NETWORK_ERROR = "network_error"
    HTTP_ERROR = "http_error"
    XML_PARSE_ERROR = "xml_parse_error"
    EMPTY_RESPONSE = "empty_response"
    UNEXPECTED_ERROR = "unexpected_error"

    # Composite operations
    RENAME_ERROR = "rename_error"
    RENAME_PREFIX_ERROR = "rename_prefix_error"
    PARTIAL_BATCH_DELETE_FAILURE = "partial_batch_delete_failure"
    BATCH_DELETE_NOT_SUPPORTED = "batch_delete_not_supported"
    BATCH_DELETE_TIMEOUT = "batch_delete_timeout"
    TOO_MANY_OBJECTS = "too_many_objects"
    FOLDER_CHECK_ERROR = "folder_check_error"
    FOLDER_CREATION_ERROR = "folder_creation_error"
    UPLOAD_ERROR = "upload_error"

    # CORS validation
    TOO_MANY_RULES = "too_many_rules"
    MISSING_ALLOWED_METHODS = "missing_allowed_methods"
    MISSING_ALLOWED_ORIGINS = "missing_allowed_origins"
    INVALID_HTTP_METHOD = "invalid_http_method"
    RULE_ID_TOO_LONG = "rule_id_too_long"


class S3BridgeError(Exception):
    """Base exception with a machine-readable code and structured detail."""

    code: str = ErrorCode.UNEXPECTED_ERROR.value

    def __init__(self, message: str, *, code: Optional[str] = None, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.data: Dict[str, Any] = data or {}


class InvalidArgumentError(S3BridgeError, ValueError):
    """Bad configuration or call arguments (unknown region, missing endpoint, bad expiry)"""
    code = ErrorCode.INVALID_ARGUMENT.value


class XmlParseError(S3BridgeError):
    """Response body is not well-formed XML, or is nested deeper than allowed"""
    code = ErrorCode.XML_PARSE_ERROR.value


class EmptyResponseError(XmlParseError):
    code = ErrorCode.EMPTY_RESPONSE.value
