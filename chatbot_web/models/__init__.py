"""Pydantic models shared by the gateway and the client.

The HTTP request and response bodies live next to the client-side
:class:`ChatMessage` so both ends validate the same shapes.
"""

from .chat_request import ChatRequest  # noqa: F401
from .chat_response import ChatResponse, ConfigResponse, ErrorResponse, HealthResponse  # noqa: F401
from .chat_message import ChatMessage  # noqa: F401
from .enums import MessageRole, RequestState, Theme  # noqa: F401
