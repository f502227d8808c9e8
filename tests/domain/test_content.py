"""Tests for message content helpers."""

from types import SimpleNamespace

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from stepwise.domain.content import (
    has_content,
    has_two_assistant_in_row,
    is_assistant_message,
    is_empty_assistant_message,
    is_tool_message,
    last_message_includes,
    message_text,
    text_includes,
)


def test_message_text_joins_blocks() -> None:
    """Text blocks are joined, JSON serialized, images skipped."""
    content = [
        {"type": "text", "text": "a"},
        {"type": "image_url", "image_url": {"url": "http://x"}},
        {"type": "json", "data": {"n": 1}},
        "b",
    ]

    assert message_text(content) == 'a{"n": 1}b'
    assert message_text("plain") == "plain"
    assert message_text(None) == ""


@pytest.mark.parametrize(
    "content, expected",
    [
        ("", False),
        ("   ", False),
        ("hi", True),
        ([], False),
        ([{"type": "text", "text": " "}], False),
        ([{"type": "text", "text": "x"}], True),
        ([{"type": "image_url", "image_url": {"url": "u"}}], True),
    ],
)
def test_has_content(content, expected) -> None:
    assert has_content(content) is expected


def test_text_includes_case() -> None:
    assert text_includes("Say YES", "yes", case_insensitive=True)
    assert not text_includes("Say YES", "yes")


def test_role_checks() -> None:
    """Roles are derived from LangChain message types."""
    ai = AIMessage(content="x")
    tool_msg = ToolMessage(content="r", tool_call_id="1")

    assert is_assistant_message(ai)
    assert not is_assistant_message(HumanMessage(content="x"))
    assert not is_assistant_message(None)
    assert is_tool_message(tool_msg)
    assert is_empty_assistant_message(AIMessage(content=""))
    assert not is_empty_assistant_message(ai)


def test_two_assistant_in_row() -> None:
    assert has_two_assistant_in_row([AIMessage(content="a"), AIMessage(content="b")])
    assert not has_two_assistant_in_row([HumanMessage(content="a"), AIMessage(content="b")])
    assert not has_two_assistant_in_row([AIMessage(content="a")])


@pytest.mark.asyncio
async def test_last_message_includes() -> None:
    """Builds a goal test over the last message of a transcript."""
    predicate = last_message_includes("done", case_insensitive=True)

    assert await predicate(SimpleNamespace(messages=[AIMessage(content="All DONE")]))
    assert not await predicate(SimpleNamespace(messages=[AIMessage(content="working")]))
    assert not await predicate(SimpleNamespace(messages=[]))
    assert not await predicate(SimpleNamespace(messages=[AIMessage(content="")]))
