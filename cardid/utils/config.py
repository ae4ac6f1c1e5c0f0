"""Configuration and settings management."""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Settings(BaseSettings):
    # Vision oracle
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o"
    OPENAI_BASE_URL: Optional[str] = None

    # Logging
    LOG_LEVEL: str = "INFO"

    # Catalog HTTP
    HTTP_TIMEOUT_S: float = Field(default=10.0, gt=0)
    USER_AGENT: str = "cardid/1.0"

    # Caches
    PRICE_CACHE_HOURS: float = Field(default=6.0, ge=0)
    METADATA_CACHE_HOURS: float = Field(default=24.0, ge=0)

    # Collection pricing worker pool
    PRICE_CONCURRENCY: int = Field(default=8, ge=1, le=32)

    # Corrective oracle calls after a failed verification
    MAX_ORACLE_RETRIES: int = Field(default=1, ge=0, le=1)

    @field_validator('OPENAI_API_KEY', 'OPENAI_BASE_URL', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        """Convert empty/whitespace strings to None."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator('LOG_LEVEL', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        """Convert empty/whitespace strings to default."""
        if isinstance(v, str) and not v.strip():
            return "INFO"
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore"
    }

    @property
    def price_ttl_s(self) -> float:
        return self.PRICE_CACHE_HOURS * 3600

    @property
    def metadata_ttl_s(self) -> float:
        return self.METADATA_CACHE_HOURS * 3600


# Global settings instance
settings = Settings()
