"""Enumerations used across models."""

from enum import Enum


class MessageRole(str, Enum):
    """Sender of a message in the client's chat history."""

    USER = "user"
    ASSISTANT = "assistant"


class Theme(str, Enum):
    """Colour theme persisted by the client under ``currentTheme``."""

    FUTURISTIC = "futuristic"
    NEON = "neon"
    MINIMAL = "minimal"
    DARK = "dark"


class RequestState(str, Enum):
    """Lifecycle of a single chat request inside the gateway.

    ``RESPONDED``, ``REJECTED`` and ``FAILED`` are terminal.  Requests
    are rejected at ``VALIDATED`` or ``RATE_CHECKED`` and fail at
    ``COMPLETING``.
    """

    RECEIVED = "received"
    VALIDATED = "validated"
    RATE_CHECKED = "rate_checked"
    COMPLETING = "completing"
    RESPONDED = "responded"
    REJECTED = "rejected"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RequestState.RESPONDED, RequestState.REJECTED, RequestState.FAILED)
