"""Bounded, persisted chat history."""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import ValidationError

from ..models.chat_message import ChatMessage
from ..utils.helpers import utc_timestamp
from .storage import LocalStore

HISTORY_KEY = "chatHistory"
HISTORY_LIMIT = 50


class HistoryStore:
    """Chronological list of at most ``limit`` messages.

    Appending beyond the limit evicts the oldest entries.  Messages are
    never edited; the history only grows, gets truncated from the front or
    is cleared.  Every change is written through to the ``LocalStore``.
    """

    def __init__(self, store: LocalStore, limit: int = HISTORY_LIMIT) -> None:
        if limit < 1:
            raise ValueError("limit must be positive")
        self._store = store
        self._limit = limit
        self._messages: list[ChatMessage] = self._load()

    def _load(self) -> list[ChatMessage]:
        raw = self._store.get(HISTORY_KEY, [])
        if not isinstance(raw, list):
            logger.warning("Ignoring malformed chat history in client store")
            return []
        messages: list[ChatMessage] = []
        for item in raw:
            try:
                messages.append(ChatMessage.model_validate(item))
            except ValidationError:
                logger.warning("Dropping unreadable history entry: {!r}", item)
        return messages[-self._limit :]

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def append(self, message: ChatMessage) -> None:
        self._messages.append(message)
        if len(self._messages) > self._limit:
            del self._messages[: len(self._messages) - self._limit]
        self._persist()

    def clear(self) -> None:
        self._messages = []
        self._store.remove(HISTORY_KEY)

    def export(self) -> dict[str, Any]:
        """Snapshot suitable for writing to a ``chat-export-*.json`` file."""
        return {
            "timestamp": utc_timestamp(),
            "messages": [message.model_dump(mode="json") for message in self._messages],
        }

    def _persist(self) -> None:
        self._store.set(HISTORY_KEY, [message.model_dump(mode="json") for message in self._messages])

    def __len__(self) -> int:
        return len(self._messages)
