"""
Per-operation HTTP timeout table
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class TimeoutSettings(BaseSettings):
    """Timeouts in seconds, keyed by connector operation"""
    head: float = Field(default=15.0, description="HEAD requests")
    delete: float = Field(default=15.0, description="DELETE requests")
    get: float = Field(default=30.0, description="GET object")
    listing: float = Field(default=30.0, description="Bucket/object listings")
    copy_object: float = Field(default=30.0, description="Server-side copy")
    put: float = Field(default=60.0, description="Signed PUT")
    batch_delete: float = Field(default=60.0, description="Multi-object delete")
    upload: float = Field(default=120.0, description="Upload to presigned URL")
    default: float = Field(default=30.0, description="Anything else")

    class Config:
        env_prefix = "TIMEOUT_"

    def for_operation(self, operation: str) -> float:
        field = {"list": "listing", "copy": "copy_object"}.get(operation, operation)
        return float(getattr(self, field, self.default))
