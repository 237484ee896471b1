"""Client session controller.

Composes the network client, retry controller, history store and
connectivity monitor.  It owns the only concurrency guard on the client
side: while one prompt is in flight, input is disabled and further sends
are refused.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Optional

from loguru import logger

from ..models.chat_message import ChatMessage
from ..models.enums import MessageRole
from ..utils.messages import get_message
from .connectivity import ConnectivityMonitor
from .history import HistoryStore
from .network import ChatRequestError, ConnectionFailure, NetworkClient
from .preferences import Preferences
from .retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS, RetryPredicate, Sleep, with_retry

NOTICE_TTL_SECONDS = 5.0


@dataclass(frozen=True)
class Notice:
    """A short-lived message shown to the user."""

    message: str
    level: str
    created_at: float
    expires_at: float

    def is_active(self, now: float) -> bool:
        return now < self.expires_at


class ChatSession:
    """Thin controller tying the client components together."""

    def __init__(
        self,
        network: NetworkClient,
        history: HistoryStore,
        connectivity: ConnectivityMonitor,
        preferences: Optional[Preferences] = None,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        sleep: Sleep = asyncio.sleep,
        should_retry: Optional[RetryPredicate] = None,
        locale: Optional[str] = None,
        clock: Callable[[], float] = time.monotonic,
        on_controls_changed: Optional[Callable[[bool], None]] = None,
        on_focus: Optional[Callable[[], None]] = None,
    ) -> None:
        self.network = network
        self.history = history
        self.connectivity = connectivity
        self.preferences = preferences
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.locale = locale
        self._sleep = sleep
        self._should_retry = should_retry
        self._clock = clock
        self._on_controls_changed = on_controls_changed
        self._on_focus = on_focus
        self._controls_enabled = True
        self._notices: list[Notice] = []

    @property
    def controls_enabled(self) -> bool:
        return self._controls_enabled

    @property
    def busy(self) -> bool:
        return not self._controls_enabled

    async def send_prompt(self, text: str) -> Optional[ChatMessage]:
        """Send one prompt and return the assistant's message, if any.

        Returns ``None`` when the prompt was refused locally or the request
        failed; in both cases a notice explains why.  Controls are always
        re-enabled before returning.
        """
        prompt = text.strip()
        if not prompt:
            self.show_error(get_message("client_empty_prompt", self.locale))
            return None

        if not self.connectivity.is_online:
            self.show_error(get_message("client_offline", self.locale))
            return None

        if self.busy:
            self.show_error(get_message("client_busy", self.locale))
            return None

        self._set_controls(False)
        try:
            self.history.append(ChatMessage.create(prompt, MessageRole.USER))
            reply = await with_retry(
                lambda: self.network.send_chat(prompt),
                self.max_attempts,
                self.base_delay,
                sleep=self._sleep,
                should_retry=self._should_retry,
            )
            message = ChatMessage.create(reply.response, MessageRole.ASSISTANT)
            self.history.append(message)
            return message
        except Exception as exc:
            logger.error("Sending prompt failed: {}", exc)
            if isinstance(exc, ConnectionFailure):
                self.connectivity.set_online(False)
            self.show_error(self._error_message(exc))
            return None
        finally:
            self._set_controls(True)
            if self._on_focus is not None:
                self._on_focus()

    def clear_history(self) -> None:
        self.history.clear()
        logger.info("Chat history cleared")

    def show_error(self, message: str) -> Notice:
        now = self._clock()
        notice = Notice(message, "error", now, now + NOTICE_TTL_SECONDS)
        self._notices.append(notice)
        return notice

    def active_notices(self) -> list[Notice]:
        """Notices still on screen; expired ones are dropped."""
        now = self._clock()
        self._notices = [notice for notice in self._notices if notice.is_active(now)]
        return list(self._notices)

    def _set_controls(self, enabled: bool) -> None:
        self._controls_enabled = enabled
        if self._on_controls_changed is not None:
            self._on_controls_changed(enabled)

    def _error_message(self, exc: Exception) -> str:
        if isinstance(exc, ConnectionFailure):
            return get_message("client_connection_failed", self.locale)
        if isinstance(exc, ChatRequestError):
            if exc.status_code == 429:
                return get_message("client_too_many_requests", self.locale)
            if exc.status_code == 500:
                return get_message("client_server_error", self.locale)
            if exc.message:
                return exc.message
        return get_message("client_generic_error", self.locale)
