"""
Typed payloads carried in SuccessResponse.data
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from s3_bridge.models.s3_model import CorsRule, Owner, S3Bucket, S3Object, S3Prefix


class ProviderUrl(BaseModel):
    """Bucket and object key recovered from a provider URL"""
    bucket: str
    object_key: str = ""


class BucketsList(BaseModel):
    buckets: List[S3Bucket] = Field(default_factory=list)
    owner: Optional[Owner] = None
    truncated: bool = False
    next_marker: Optional[str] = None


class ObjectsList(BaseModel):
    objects: List[S3Object] = Field(default_factory=list)
    prefixes: List[S3Prefix] = Field(default_factory=list)
    truncated: bool = False
    continuation_token: Optional[str] = Field(
        default=None, description="NextContinuationToken to pass to the next page"
    )
    prefix: str = ""
    delimiter: str = ""
    key_count: Optional[int] = None


class ObjectListingItem(BaseModel):
    """Element yielded by the objects iterator"""
    kind: str = Field(..., description="object or prefix")
    value: Union[S3Object, S3Prefix]


class ObjectMetadata(BaseModel):
    bucket: str
    key: str
    content_type: str = ""
    content_length: int = 0
    etag: str = ""
    last_modified: str = ""
    user_metadata: Dict[str, str] = Field(default_factory=dict)


class ObjectContent(ObjectMetadata):
    content: bytes = b""


class CopyResult(BaseModel):
    source_bucket: str = ""
    source_key: str = ""
    target_bucket: str = ""
    target_key: str = ""
    etag: str = ""
    last_modified: str = ""


class CorsConfiguration(BaseModel):
    bucket: str
    rules: List[CorsRule] = Field(default_factory=list)

    @property
    def has_cors(self) -> bool:
        return bool(self.rules)


class DeletedObject(BaseModel):
    key: str
    version_id: Optional[str] = None


class DeleteError(BaseModel):
    key: str
    code: str = ""
    message: str = ""


class BatchDeleteResult(BaseModel):
    deleted: List[DeletedObject] = Field(default_factory=list)
    errors: List[DeleteError] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.deleted)

    @property
    def error_count(self) -> int:
        return len(self.errors)


class PresignedUrl(BaseModel):
    url: str
    method: str = "GET"
    expires_minutes: int
    created_at: datetime

    @property
    def expires_at(self) -> datetime:
        return self.created_at + timedelta(minutes=self.expires_minutes)

    def has_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at
