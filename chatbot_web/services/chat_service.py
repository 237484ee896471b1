"""Orchestration service for a single chat request.

The ChatService validates the prompt, charges the chat rate limiter,
sanitises the prompt and asks the LLM service for a completion.  It
centralises the request lifecycle so the controller can remain thin.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import Request
from loguru import logger

from ..models.chat_response import ChatResponse
from ..models.enums import RequestState
from ..utils.error_handler import (
    ChatError,
    GenericServerError,
    PromptValidationError,
    RateLimitError,
)
from ..utils.helpers import utc_timestamp
from ..utils.validation import sanitize_prompt, validate_prompt
from .llm_service import LLMService
from .rate_limiter import FixedWindowRateLimiter, RateLimitDecision


class ChatService:
    """Coordinates validation, rate limiting and completion.

    Every request walks ``received -> validated -> rate_checked ->
    completing -> responded`` and may stop early in ``rejected`` or
    ``failed``.  The limiter is the only state shared between requests and
    is handed in by the caller.
    """

    def __init__(
        self,
        llm_service: LLMService,
        chat_limiter: FixedWindowRateLimiter,
        locale: Optional[str] = None,
    ) -> None:
        self.llm_service = llm_service
        self.chat_limiter = chat_limiter
        self.locale = locale

    async def chat(self, prompt: Any, client_id: str) -> tuple[ChatResponse, RateLimitDecision]:
        """Produce a reply for ``prompt`` sent by ``client_id``.

        Returns the response together with the chat limiter's decision so
        the controller can emit ``RateLimit-*`` headers.

        Raises
        ------
        PromptValidationError
            The prompt is malformed; the first violation is the message.
        RateLimitError
            The client exceeded the chat limiter.
        ChatError
            Any upstream failure, already translated.
        """
        self._transition(client_id, RequestState.RECEIVED)

        violations = validate_prompt(prompt, self.locale)
        if violations:
            self._transition(client_id, RequestState.REJECTED, reason=violations[0])
            raise PromptValidationError(violations)
        self._transition(client_id, RequestState.VALIDATED)

        decision = self.chat_limiter.hit(client_id)
        if not decision.allowed:
            self._transition(client_id, RequestState.REJECTED, reason="chat rate limit")
            raise RateLimitError(locale=self.locale, headers=decision.headers())
        self._transition(client_id, RequestState.RATE_CHECKED)

        sanitized = sanitize_prompt(prompt)
        logger.info("Received chat request: {}...", sanitized[:100])

        self._transition(client_id, RequestState.COMPLETING)
        try:
            text = await self.llm_service.complete(sanitized)
        except ChatError as exc:
            self._transition(client_id, RequestState.FAILED, reason=type(exc).__name__)
            exc.headers = {**decision.headers(), **exc.headers}
            raise
        except Exception as exc:
            logger.exception("Unexpected failure while completing prompt")
            self._transition(client_id, RequestState.FAILED, reason=type(exc).__name__)
            raise GenericServerError(locale=self.locale) from exc

        self._transition(client_id, RequestState.RESPONDED)
        logger.info("Chat response generated successfully")
        response = ChatResponse(
            response=text,
            timestamp=utc_timestamp(),
        )
        return response, decision

    @staticmethod
    def _transition(
        client_id: str, state: RequestState, reason: Optional[str] = None
    ) -> None:
        level = "INFO" if state.is_terminal else "DEBUG"
        if reason:
            logger.log(level, "Chat request from {}: {} ({})", client_id, state.value, reason)
        else:
            logger.log(level, "Chat request from {}: {}", client_id, state.value)


def client_identity(request: Request, trust_proxy_headers: bool = False) -> str:
    """Return the network identity used to key rate limit buckets."""
    if trust_proxy_headers:
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_chat_service(request: Request) -> ChatService:
    """FastAPI dependency returning the service built by ``create_app``."""
    return request.app.state.chat_service
