"""
Logging Configuration Module
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class LoggingSettings(BaseSettings):
    """Logger name, level and optional rotating file"""
    name: str = Field(default="s3_bridge", description="Logger name")
    level: str = Field(default="INFO", description="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    enable_debug: bool = Field(default=False, description="Force DEBUG regardless of level")
    file: Optional[str] = Field(default=None, description="Rotating log file, console only when unset")

    class Config:
        env_prefix = "LOG_"
