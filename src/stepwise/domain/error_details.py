"""Summaries of exceptions that are safe to log."""

from __future__ import annotations

import re
from typing import Any, Dict

REDACTED_VALUE = "<redacted>"
DEFAULT_MAX_STRING_LENGTH = 256

_TOKEN_PATTERNS = (
    re.compile(r"sk-[A-Za-z0-9_-]{10,}"),
    re.compile(r"(?i)bearer\s+[A-Za-z0-9._-]{10,}"),
)


def redact(text: str, max_length: int = DEFAULT_MAX_STRING_LENGTH) -> str:
    """Redact API keys and bearer tokens, then cap the length.

    Args:
        text: Input text.
        max_length: Maximum length of the returned string.

    Returns:
        Redacted, length-capped text.
    """

    for pattern in _TOKEN_PATTERNS:
        text = pattern.sub(REDACTED_VALUE, text)
    if len(text) <= max_length:
        return text
    return f"{text[:max_length]}...[truncated]"


def build_exception_details(
    error: BaseException, max_string_length: int = DEFAULT_MAX_STRING_LENGTH
) -> Dict[str, Any]:
    """Build a redacted detail mapping from an exception and its cause."""

    details: Dict[str, Any] = {"error_class": error.__class__.__name__}
    message = str(error)
    if message:
        details["error_message"] = redact(message, max_length=max_string_length)
    cause = error.__cause__
    if isinstance(cause, BaseException):
        details["cause_class"] = cause.__class__.__name__
        cause_message = str(cause)
        if cause_message:
            details["cause_message"] = redact(cause_message, max_length=max_string_length)
    return details
