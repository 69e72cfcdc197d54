"""
Response Cache Configuration Module
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class CacheSettings(BaseSettings):
    enabled: bool = Field(default=True, description="Cache list responses")
    ttl_seconds: int = Field(default=300, description="Time to live of cached responses")
    key_prefix: str = Field(default="s3_bridge:", description="Prefix of every cache key")

    class Config:
        env_prefix = "CACHE_"
