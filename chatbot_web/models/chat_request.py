"""Request model for the chat API."""

from typing import Any

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Represents a request payload for a chat message.

    ``prompt`` is deliberately typed loosely: length bounds, emptiness and
    content rules are checked by :func:`chatbot_web.utils.validation.validate_prompt`
    so that a bad prompt yields a single localized 400 message instead of
    FastAPI's 422 validation report.
    """

    prompt: Any = Field(
        default=None,
        description="The user's prompt; 2 to 4000 characters after trimming.",
    )
