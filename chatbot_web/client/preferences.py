"""Persisted display preferences."""

from __future__ import annotations

from loguru import logger

from ..models.enums import Theme
from .storage import LocalStore

DARK_MODE_KEY = "darkMode"
THEME_KEY = "currentTheme"


class Preferences:
    """``darkMode`` and ``currentTheme`` stored alongside the chat history."""

    def __init__(self, store: LocalStore) -> None:
        self._store = store

    @property
    def dark_mode(self) -> bool:
        return self._store.get(DARK_MODE_KEY) in (True, "true")

    def toggle_dark_mode(self) -> bool:
        enabled = not self.dark_mode
        self._store.set(DARK_MODE_KEY, enabled)
        return enabled

    @property
    def theme(self) -> Theme:
        raw = self._store.get(THEME_KEY, Theme.FUTURISTIC.value)
        try:
            return Theme(raw)
        except ValueError:
            logger.warning("Unknown theme {!r} in client store; using default", raw)
            return Theme.FUTURISTIC

    def set_theme(self, theme: Theme | str) -> Theme:
        resolved = Theme(theme)
        self._store.set(THEME_KEY, resolved.value)
        return resolved
