"""Error handling utilities and custom exceptions.

Every failure that leaves the gateway is rendered as ``{"error": "..."}``
with a single localized message.  Provider payloads, credentials and stack
traces are only ever written to the log.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from .messages import get_message


class ChatError(Exception):
    """Base class for failures that map onto an HTTP error response."""

    status_code: int = 500
    message_key: str = "processing_failed"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        locale: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        self.message = message or get_message(self.message_key, locale)
        self.headers = headers or {}
        super().__init__(self.message)


class PromptValidationError(ChatError):
    """The prompt failed validation; permanent for that input."""

    status_code = 400
    message_key = "prompt_invalid_type"

    def __init__(self, violations: list[str], **kwargs: object) -> None:
        self.violations = list(violations)
        first = self.violations[0] if self.violations else None
        super().__init__(first, **kwargs)


class RateLimitError(ChatError):
    """A request limit was exceeded; the caller should back off."""

    status_code = 429
    message_key = "chat_rate_limited"


class UpstreamRateLimited(RateLimitError):
    """The model provider answered with HTTP 429."""

    message_key = "upstream_rate_limited"


class UpstreamUnavailable(ChatError):
    """The model provider could not be reached (DNS, refused, timeout)."""

    status_code = 503
    message_key = "upstream_unavailable"


class UpstreamMisconfigured(ChatError):
    """The provider rejected our credential; operator action required."""

    status_code = 500
    message_key = "upstream_misconfigured"


class GenericServerError(ChatError):
    """Catch-all for failures while producing a completion."""

    status_code = 500
    message_key = "processing_failed"


def _locale_of(request: Request) -> Optional[str]:
    config = getattr(request.app.state, "app_config", None)
    return config.app_locale if config is not None else None


def render_chat_error(exc: ChatError) -> JSONResponse:
    """Build the ``{error}`` response for a ChatError."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=exc.headers or None,
    )


async def chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    """Convert a ChatError into its HTTP status and ``{error}`` body."""
    if exc.status_code >= 500:
        logger.error("{} on {} {}: {}", type(exc).__name__, request.method, request.url.path, exc)
    else:
        logger.warning("{} on {} {}: {}", type(exc).__name__, request.method, request.url.path, exc)
    return render_chat_error(exc)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render routing errors (404, 405, ...) in the ``{error}`` shape."""
    locale = _locale_of(request)
    if exc.status_code == 404:
        message = get_message("not_found", locale)
    elif exc.status_code == 405:
        message = get_message("method_not_allowed", locale)
    else:
        message = str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request bodies are reported like a non-string prompt."""
    logger.warning("Malformed request body on {}: {}", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": get_message("prompt_invalid_type", _locale_of(request))},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last line of defence: log everything, reveal nothing."""
    logger.opt(exception=exc).error(
        "Unhandled exception on {} {}", request.method, request.url.path
    )
    return JSONResponse(
        status_code=500,
        content={"error": get_message("internal_error", _locale_of(request))},
    )
