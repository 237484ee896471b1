"""Prompt validation and sanitisation.

``validate_prompt`` collects every violation so callers can log the full
picture, but only the first one is ever shown to the user.  Prompts that
pass are run through ``sanitize_prompt`` before they leave the gateway.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from .messages import get_message

MIN_PROMPT_LENGTH = 2
MAX_PROMPT_LENGTH = 4000

DISALLOWED_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(eval|exec|system|shell_exec)\s*\(", re.IGNORECASE),
    re.compile(r"\b(drop|delete|truncate|alter)\s+table\b", re.IGNORECASE),
    re.compile(r"\b(union|select|insert|update)\s+.*from\b", re.IGNORECASE),
    re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE),
)

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_URI = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)


def validate_prompt(candidate: Any, locale: Optional[str] = None) -> list[str]:
    """Return the list of violations for ``candidate`` (empty when valid)."""
    errors: list[str] = []

    if not isinstance(candidate, str):
        errors.append(get_message("prompt_invalid_type", locale))
        return errors

    trimmed = candidate.strip()

    if len(trimmed) == 0:
        errors.append(get_message("prompt_empty", locale))

    if len(trimmed) > MAX_PROMPT_LENGTH:
        errors.append(get_message("prompt_too_long", locale, max_length=MAX_PROMPT_LENGTH))

    if len(trimmed) < MIN_PROMPT_LENGTH:
        errors.append(get_message("prompt_too_short", locale, min_length=MIN_PROMPT_LENGTH))

    for pattern in DISALLOWED_PATTERNS:
        if pattern.search(trimmed):
            errors.append(get_message("prompt_disallowed", locale))
            break

    # Markup-only prompts such as "<>" pass the length checks but clean to nothing.
    if not errors and len(sanitize_prompt(trimmed)) < MIN_PROMPT_LENGTH:
        errors.append(get_message("prompt_too_short", locale, min_length=MIN_PROMPT_LENGTH))

    return errors


def _strip_once(text: str) -> str:
    text = _ANGLE_BRACKETS.sub("", text)
    text = _JAVASCRIPT_URI.sub("", text)
    text = _EVENT_HANDLER.sub("", text)
    text = text.replace("\0", "")
    return text.strip()


def sanitize_prompt(text: Any) -> str:
    """Strip markup-ish fragments from an already validated prompt.

    Removing one fragment can splice a new one together
    (``"javajavascript:script:"``), so the pass repeats until nothing
    changes.  Each changing pass shortens the text, which bounds the loop.
    """
    if not isinstance(text, str):
        return ""

    cleaned = _strip_once(text)
    while True:
        again = _strip_once(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again
