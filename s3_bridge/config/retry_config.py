"""
Retry Configuration Module
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class RetrySettings(BaseSettings):
    """Bounded backoff for idempotent requests (GET, HEAD, listings)"""
    max_retries: int = Field(default=2, description="Retries after the first attempt")
    initial_delay: float = Field(default=0.5, description="Initial delay")
    max_delay: float = Field(default=5.0, description="Max delay")
    backoff_factor: float = Field(default=1.5, description="Delay multiplier per retry")

    class Config:
        env_prefix = "RETRY_"

    def delays(self):
        """Sleep before each retry"""
        delay = self.initial_delay
        for _ in range(self.max_retries):
            yield min(delay, self.max_delay)
            delay *= self.backoff_factor
