"""Local key-value store for client state.

Plays the part of the browser's ``localStorage``: a flat mapping from
string keys to JSON values, written through to a single JSON file.  With
no path the store lives in memory only.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

from loguru import logger


class StorageError(RuntimeError):
    """Raised when the store file cannot be written."""


class LocalStore:
    """JSON-file backed key-value store."""

    def __init__(self, path: Optional[str | Path] = None) -> None:
        self._path = Path(path).expanduser() if path else None
        self._data: dict[str, Any] = self._load()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def _load(self) -> dict[str, Any]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Client store {} is unreadable; starting empty", self._path)
            return {}
        if not isinstance(data, dict):
            logger.warning("Client store {} is not a JSON object; starting empty", self._path)
            return {}
        return data

    def _flush(self) -> None:
        if self._path is None:
            return
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(self._data, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp_path.replace(self._path)
        except OSError as exc:
            raise StorageError(f"Could not persist client state to {self._path}") from exc

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()
