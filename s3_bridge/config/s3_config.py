"""
S3 Connection Configuration Module
"""

from typing import Any, Dict, Optional
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings


class S3Settings(BaseSettings):
    """Provider and credential settings"""
    provider: str = Field(default="aws_s3", description="Provider id")
    region: str = Field(default="", description="Region code, empty for the provider default")
    access_key: str = Field(default="", description="Access key id")
    secret_key: SecretStr = Field(default=SecretStr(""), description="Secret access key")
    account_id: Optional[str] = Field(default=None, description="Account id")
    endpoint: Optional[str] = Field(default=None, description="Endpoint for generic S3 services")
    path_style: Optional[bool] = Field(default=None, description="URL style override")
    use_https: bool = Field(default=True, description="Use https for generic endpoints")

    class Config:
        env_prefix = "S3_"

    def provider_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if self.account_id:
            params["account_id"] = self.account_id
        if self.provider == "generic_s3":
            params["endpoint"] = self.endpoint
            params["use_https"] = self.use_https
            if self.path_style is not None:
                params["path_style"] = self.path_style
        elif self.provider == "aws_s3" and self.path_style is not None:
            params["virtual_hosted_style"] = not self.path_style
        return params
