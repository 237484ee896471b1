from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

PLACEHOLDER_API_KEY = "your_groq_api_key_here"
MIN_API_KEY_LENGTH = 10


class LlmConfig(BaseSettings):
    """Configuration settings for the upstream completion provider.

    The provider is reached through its OpenAI-compatible endpoint, so any
    service speaking that protocol can be swapped in via ``LLM_BASE_URL``.
    Construction fails when the credential is missing, too short or still
    the placeholder from ``.env.example``; the server refuses to start in
    that case.
    """

    api_key: str = Field(
        ...,
        alias="GROQ_API_KEY",
        validation_alias=AliasChoices("GROQ_API_KEY", "LLM_API_KEY"),
    )
    base_url: Optional[str] = Field(
        default="https://api.groq.com/openai/v1", alias="LLM_BASE_URL"
    )
    model: str = Field("llama-3.3-70b-versatile", alias="LLM_MODEL")
    temperature: float = Field(0.7, alias="LLM_TEMPERATURE")
    max_tokens: int = Field(2000, alias="LLM_MAX_TOKENS")
    top_p: float = Field(1.0, alias="LLM_TOP_P")
    timeout: int = Field(30, alias="LLM_TIMEOUT")

    @field_validator("api_key")
    def validate_api_key(cls, value: str) -> str:
        key = value.strip()
        if not key:
            raise ValueError("GROQ_API_KEY is not set in environment variables")
        if key == PLACEHOLDER_API_KEY:
            raise ValueError("Please replace the placeholder GROQ_API_KEY with your actual API key")
        if len(key) < MIN_API_KEY_LENGTH:
            raise ValueError("GROQ_API_KEY appears to be invalid (too short)")
        return key

    @field_validator("temperature")
    def validate_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 2.0:
            raise ValueError("LLM_TEMPERATURE must be between 0.0 and 2.0")
        return value

    @field_validator("top_p")
    def validate_top_p(cls, value: float) -> float:
        if not 0.0 < value <= 1.0:
            raise ValueError("LLM_TOP_P must be in (0.0, 1.0]")
        return value

    @field_validator("timeout")
    def validate_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("LLM_TIMEOUT must be positive")
        return value

    @field_validator("max_tokens")
    def validate_max_tokens(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("LLM_MAX_TOKENS must be positive")
        return value

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)


@lru_cache()
def get_llm_config() -> LlmConfig:
    """Return a cached language model configuration."""

    return LlmConfig()
