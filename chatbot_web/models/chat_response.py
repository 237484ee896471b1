"""Response models for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field


class ChatResponse(BaseModel):
    """The assistant's reply to a chat request."""

    response: str
    timestamp: str = Field(..., description="ISO-8601 time at which the reply was produced.")


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    error: str


class HealthResponse(BaseModel):
    status: str = "OK"
    timestamp: str
    uptime: float = Field(..., description="Seconds since the application started.")


class ConfigResponse(BaseModel):
    """Lets the client discover the base URL it should call."""

    model_config = ConfigDict(populate_by_name=True)

    api_base_url: str = Field("", alias="apiBaseUrl")
    timestamp: str
