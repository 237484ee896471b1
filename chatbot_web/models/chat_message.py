"""Chat messages as persisted by the client."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, model_validator

from .enums import MessageRole


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Return the ``HH:MM`` wall-clock label shown next to a message."""
    return (moment or datetime.now()).strftime("%H:%M")


class ChatMessage(BaseModel):
    """Represents a single message in the client's history.

    Messages are frozen: once appended to a history they are never edited.
    The ``timestamp`` is a display label in local time rather than a
    machine-readable instant, matching what the chat view prints.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    role: MessageRole
    timestamp: str

    @model_validator(mode="before")
    @classmethod
    def _migrate_legacy_type(cls, data: Any) -> Any:
        """Backwards compatibility for records stored as ``type: user|bot``."""
        if not isinstance(data, dict) or "role" in data:
            return data

        legacy = data.get("type")
        if legacy is None:
            return data

        migrated = {key: value for key, value in data.items() if key != "type"}
        migrated["role"] = MessageRole.ASSISTANT if legacy == "bot" else legacy
        return migrated

    @classmethod
    def create(cls, content: str, role: MessageRole, moment: Optional[datetime] = None) -> "ChatMessage":
        return cls(content=content, role=role, timestamp=format_timestamp(moment))
