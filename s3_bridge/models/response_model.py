"""
Uniform success/error envelope returned by every client operation
"""
from __future__ import annotations

from typing import Any, Dict, Union

from pydantic import BaseModel, Field

from s3_bridge.core.errors import ErrorCode, S3BridgeError


class SuccessResponse(BaseModel):
    """Successful outcome; 207 marks a partial success whose data lists what failed"""
    status_code: int = 200
    message: str = ""
    data: Any = None

    def is_successful(self) -> bool:
        return True

    @property
    def is_partial(self) -> bool:
        return self.status_code == 207


class ErrorResponse(BaseModel):
    status_code: int = 400
    error_code: str
    error_message: str
    error_data: Dict[str, Any] = Field(default_factory=dict)

    def is_successful(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, exc: S3BridgeError, status_code: int = 400) -> "ErrorResponse":
        return cls(
            status_code=status_code,
            error_code=exc.code,
            error_message=exc.message,
            error_data=dict(exc.data),
        )

    @classmethod
    def invalid_parameters(cls, message: str, **error_data: Any) -> "ErrorResponse":
        return cls(
            status_code=400,
            error_code=ErrorCode.INVALID_PARAMETERS.value,
            error_message=message,
            error_data=error_data,
        )


Response = Union[SuccessResponse, ErrorResponse]
