"""HTTP client for the chat gateway, built on httpx.

Each method performs exactly one request; retries are layered on top by
:func:`chatbot_web.client.retry.with_retry`.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
from loguru import logger
from pydantic import ValidationError

from ..models.chat_response import ChatResponse, HealthResponse


class ConnectionFailure(Exception):
    """The gateway could not be reached at all."""


class ChatRequestError(Exception):
    """The gateway answered, but not with a usable reply."""

    def __init__(self, status_code: int, message: Optional[str] = None) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"HTTP {status_code}: {message}" if message else f"HTTP {status_code}")


class NetworkClient:
    """Talks to ``/api/config``, ``/api/chat`` and ``/health``."""

    def __init__(
        self,
        server_url: str,
        *,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.server_url = server_url.rstrip("/")
        self._base_url = self.server_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    def api(self, path: str) -> str:
        return f"{self._base_url}/api{path}"

    async def configure(self) -> str:
        """Ask the gateway which base URL to use; fall back to ``server_url``."""
        try:
            response = await self._client.get(f"{self.server_url}/api/config")
            response.raise_for_status()
            configured = response.json().get("apiBaseUrl") or ""
        except (httpx.HTTPError, ValueError, AttributeError) as exc:
            logger.warning("Could not fetch API config, using fallback {}: {}", self.server_url, exc)
            configured = ""

        self._base_url = configured.rstrip("/") or self.server_url
        logger.info("API Base URL configured: {}", self._base_url)
        return self._base_url

    async def send_chat(self, prompt: str) -> ChatResponse:
        """POST ``prompt`` and return the parsed reply."""
        try:
            response = await self._client.post(self.api("/chat"), json={"prompt": prompt})
        except httpx.TransportError as exc:
            raise ConnectionFailure(str(exc) or type(exc).__name__) from exc

        body = self._json_or_none(response)
        error = body.get("error") if isinstance(body, dict) else None
        if not response.is_success:
            raise ChatRequestError(response.status_code, error if isinstance(error, str) else None)
        if error:
            raise ChatRequestError(response.status_code, str(error))

        try:
            return ChatResponse.model_validate(body)
        except ValidationError as exc:
            raise ChatRequestError(response.status_code, "malformed response") from exc

    async def health(self) -> HealthResponse:
        try:
            response = await self._client.get(f"{self._base_url}/health")
        except httpx.TransportError as exc:
            raise ConnectionFailure(str(exc) or type(exc).__name__) from exc
        if not response.is_success:
            raise ChatRequestError(response.status_code)
        return HealthResponse.model_validate(response.json())

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "NetworkClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None
