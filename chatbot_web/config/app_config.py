from functools import lru_cache
from typing import Annotated, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",  # Vite dev server
    "http://localhost:8080",  # Alternative dev port
]


class AppConfig(BaseSettings):
    """Application configuration settings."""

    # Environment
    app_env: str = Field("development")
    app_debug: bool = Field(False)
    app_host: str = Field("0.0.0.0", validation_alias=AliasChoices("HOST", "APP_HOST"))
    app_port: int = Field(3000, validation_alias=AliasChoices("PORT", "APP_PORT"))
    app_locale: str = Field("id")

    # HTTP surface
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS)
    )
    frontend_url: Optional[str] = Field(None)
    api_base_url: str = Field("")
    enable_request_logging: bool = Field(True)
    trust_proxy_headers: bool = Field(False)
    startup_connection_check: bool = Field(True)
    static_dir: Optional[str] = Field(None)

    # Rate limiting
    global_rate_limit_max: int = Field(100)
    global_rate_limit_window_seconds: float = Field(15 * 60)
    chat_rate_limit_max: int = Field(10)
    chat_rate_limit_window_seconds: float = Field(60)

    # Logging
    log_level: str = Field("INFO")
    log_file: Optional[str] = Field(None)

    @field_validator("app_env")
    def validate_app_env(cls, value: str) -> str:
        if value not in ["development", "staging", "production"]:
            raise ValueError("APP_ENV must be development, staging, or production")
        return value

    @field_validator("app_locale")
    def validate_app_locale(cls, value: str) -> str:
        locale = value.strip().lower()
        if locale not in ["id", "en"]:
            raise ValueError("APP_LOCALE must be id or en")
        return locale

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: list[str] | str | None) -> list[str]:
        if value is None:
            return list(DEFAULT_ALLOWED_ORIGINS)
        if isinstance(value, list):
            return value
        return [part.strip() for part in value.split(",") if part.strip()]

    @field_validator(
        "global_rate_limit_max",
        "chat_rate_limit_max",
        "global_rate_limit_window_seconds",
        "chat_rate_limit_window_seconds",
    )
    def validate_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Rate limit settings must be positive")
        return value

    @field_validator("log_level")
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError("LOG_LEVEL must be a valid Loguru level")
        return level

    @property
    def cors_origins(self) -> list[str]:
        """Allowed origins plus the production frontend, when one is set."""

        origins = list(self.allowed_origins)
        if self.frontend_url and self.frontend_url not in origins:
            origins.append(self.frontend_url)
        return origins

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


@lru_cache()
def get_app_config() -> AppConfig:
    """Return a cached application configuration instance."""

    return AppConfig()
