"""Settings for the terminal chat client.

Values are read from ``CHATBOT_*`` environment variables (or ``.env``)
so the client can point at a gateway on another host without code
changes.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientConfig(BaseSettings):
    """Connection and retry settings used by :mod:`chatbot_web.client`."""

    server_url: str = Field("http://localhost:3000")
    max_attempts: int = Field(3)
    retry_base_delay: float = Field(1.0)
    timeout: float = Field(60.0)
    storage_path: Optional[str] = Field(None)
    locale: str = Field("id")
    log_dir: Optional[str] = Field(None)

    @field_validator("server_url")
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("max_attempts")
    def validate_max_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("CHATBOT_MAX_ATTEMPTS must be at least 1")
        return value

    @field_validator("retry_base_delay", "timeout")
    def validate_non_negative(cls, value: float) -> float:
        if value < 0:
            raise ValueError("Delays and timeouts must not be negative")
        return value

    model_config = SettingsConfigDict(env_file=".env", env_prefix="CHATBOT_", extra="ignore")


@lru_cache()
def get_client_config() -> ClientConfig:
    """Return a cached client configuration instance."""

    return ClientConfig()
