"""Helpers for inspecting message content and roles."""

import json
from typing import Any, Awaitable, Callable, Optional, Sequence

from langchain_core.messages import BaseMessage

ASSISTANT_TYPES = frozenset({"ai"})
TOOL_TYPES = frozenset({"tool", "function"})


def message_text(content: Any) -> str:
    """Render message content as plain text.

    Args:
        content: A string or a list of content blocks as used by LangChain
            messages.

    Returns:
        The concatenated text parts. JSON blocks are serialized; image blocks
        are skipped.
    """

    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, dict):
        content = [content]
    parts: list[str] = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict):
            block_type = block.get("type")
            if block_type == "text":
                parts.append(str(block.get("text", "")))
            elif block_type == "json":
                parts.append(json.dumps(block.get("data"), sort_keys=True))
    return "".join(parts)


def has_content(content: Any) -> bool:
    """Return True when the content carries non-whitespace text or non-text blocks."""

    if not content:
        return False
    if isinstance(content, str):
        return content.strip() != ""
    blocks = [content] if isinstance(content, dict) else content
    for block in blocks:
        if isinstance(block, str):
            if block.strip():
                return True
        elif isinstance(block, dict) and block.get("type") != "text":
            return True
        elif isinstance(block, dict) and str(block.get("text", "")).strip():
            return True
    return False


def text_includes(content: Any, substr: str, case_insensitive: bool = False) -> bool:
    """Return True when the text of ``content`` contains ``substr``."""

    text = message_text(content)
    if case_insensitive:
        return substr.lower() in text.lower()
    return substr in text


def is_assistant_message(message: Optional[BaseMessage]) -> bool:
    return message is not None and message.type in ASSISTANT_TYPES


def is_tool_message(message: Optional[BaseMessage]) -> bool:
    return message is not None and message.type in TOOL_TYPES


def is_empty_assistant_message(message: Optional[BaseMessage]) -> bool:
    """An assistant turn with no usable content."""

    return is_assistant_message(message) and not has_content(message.content)


def has_two_assistant_in_row(messages: Sequence[BaseMessage]) -> bool:
    """Two most recent messages are both assistant turns."""

    return (
        len(messages) > 1
        and is_assistant_message(messages[-1])
        and is_assistant_message(messages[-2])
    )


def last_message_includes(
    text: str, case_insensitive: bool = False
) -> Callable[[Any], Awaitable[bool]]:
    """Build an async goal test checking the last message for ``text``.

    Args:
        text: Substring to look for.
        case_insensitive: Compare lower-cased text when True.

    Returns:
        An async predicate over any object exposing ``messages``.
    """

    async def predicate(state: Any) -> bool:
        messages = getattr(state, "messages", None)
        if not messages:
            return False
        last = messages[-1]
        if not last.content:
            return False
        return text_includes(last.content, text, case_insensitive=case_insensitive)

    return predicate
