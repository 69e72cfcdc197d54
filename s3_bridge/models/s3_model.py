"""
S3 value objects: buckets, objects, folder prefixes and CORS rules
"""
from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from s3_bridge.utils import files

_MD5_RE = re.compile(r"^[a-f0-9]{32}$", re.IGNORECASE)


def _format_timestamp(value: str, fmt: str) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime(fmt)
    except ValueError:
        return value


class Owner(BaseModel):
    id: str = ""
    display_name: str = ""


class S3Bucket(BaseModel):
    """Bucket entry from ListAllMyBuckets"""
    name: str
    creation_date: str = Field(default="", description="ISO8601 creation timestamp")
    region: Optional[str] = None

    def formatted_date(self, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
        return _format_timestamp(self.creation_date, fmt)


class S3Object(BaseModel):
    """
    Object entry from ListObjectsV2.

    The ETag of a multipart upload is a hash of part hashes followed by
    ``-<part count>``; it is exposed through ``multipart_info`` and never
    reported as a content MD5.
    """
    key: str
    size: int = 0
    last_modified: str = ""
    etag: str = ""
    storage_class: str = "STANDARD"

    @field_validator("etag", mode="before")
    @classmethod
    def _strip_quotes(cls, value: Any) -> str:
        return str(value or "").strip('"')

    @property
    def filename(self) -> str:
        return files.file_name(self.key)

    @property
    def mime_type(self) -> str:
        return files.mime_type(self.filename)

    @property
    def category(self) -> str:
        return files.category(self.filename)

    @property
    def formatted_size(self) -> str:
        return files.format_size(self.size)

    @property
    def is_multipart(self) -> bool:
        return "-" in self.etag

    @property
    def md5_checksum(self) -> Optional[str]:
        """Content MD5, only when the ETag is a plain single-part hash"""
        if not self.etag or self.is_multipart:
            return None
        return self.etag if _MD5_RE.match(self.etag) else None

    @property
    def multipart_info(self) -> Optional[Dict[str, Any]]:
        if not self.is_multipart:
            return None
        composite_hash, _, part_count = self.etag.partition("-")
        if not part_count.isdigit():
            return None
        return {
            "composite_hash": composite_hash,
            "part_count": int(part_count),
            "full_etag": self.etag,
        }

    def formatted_date(self, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
        return _format_timestamp(self.last_modified, fmt)


class S3Prefix(BaseModel):
    """A "folder": common prefix, always ending with a single slash"""
    prefix: str

    @field_validator("prefix")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return value.rstrip("/") + "/"

    @property
    def folder_name(self) -> str:
        return self.prefix.rstrip("/").split("/")[-1]

    @property
    def parent_prefix(self) -> str:
        return files.directory_prefix(self.prefix)

    @property
    def path_parts(self) -> List[str]:
        return [part for part in self.prefix.split("/") if part]

    @property
    def is_root_level(self) -> bool:
        return self.prefix.count("/") <= 1


class CorsRule(BaseModel):
    """One CORSRule. ``max_age_seconds`` of 0 is kept distinct from absent."""
    id: Optional[str] = None
    allowed_methods: List[str] = Field(default_factory=list)
    allowed_origins: List[str] = Field(default_factory=list)
    allowed_headers: List[str] = Field(default_factory=list)
    expose_headers: List[str] = Field(default_factory=list)
    max_age_seconds: Optional[int] = None

    def allows_origin(self, origin: str) -> bool:
        return "*" in self.allowed_origins or origin in self.allowed_origins

    def allows_upload(self) -> bool:
        methods = {method.upper() for method in self.allowed_methods}
        return bool(methods & {"PUT", "POST"})
