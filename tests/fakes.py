"""Deterministic model fakes shared by the test suite."""

from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from langchain_core.messages import AIMessage, BaseMessage

from stepwise.llm.model import Completion

Reply = Union[
    BaseMessage,
    List[BaseMessage],
    Exception,
    Callable[[tuple, Optional[Dict[str, Any]]], Completion],
]


class FakeModel:
    """
    Deterministic model returning scripted replies.

    Each reply is appended to the transcript. A list appends several
    messages, an exception is raised, and a callable builds the completion
    itself. Once the script runs out the transcript is returned unchanged.

    Args:
        replies: Scripted replies consumed one per call.
    """

    def __init__(self, replies: Optional[Sequence[Reply]] = None) -> None:
        self.replies: List[Reply] = list(replies or [])
        self.calls: List[Dict[str, Any]] = []
        self.stopped = False

    async def complete(
        self,
        messages: Sequence[BaseMessage],
        memory: Optional[Dict[str, Any]] = None,
        tools: Any = None,
    ) -> Completion:
        self.calls.append({"messages": tuple(messages), "memory": memory, "tools": tools})
        if not self.replies:
            return Completion(messages=tuple(messages), memory=memory)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            return reply(tuple(messages), memory)
        new = list(reply) if isinstance(reply, list) else [reply]
        return Completion(messages=tuple(messages) + tuple(new), memory=memory)

    async def stop(self) -> None:
        self.stopped = True


class HeuristicModel:
    """
    Fake yes/no model answering with a fixed word, or via ``decide``.

    Args:
        answer: Word returned when ``decide`` is not set.
        decide: Optional callable mapping (guidelines, content) to an answer.
    """

    def __init__(
        self,
        answer: str = "no",
        decide: Optional[Callable[[str, str], str]] = None,
    ) -> None:
        self.answer = answer
        self.decide = decide
        self.prompts: List[str] = []

    async def complete(
        self,
        messages: Sequence[BaseMessage],
        memory: Optional[Dict[str, Any]] = None,
        tools: Any = None,
    ) -> Completion:
        guidelines = str(messages[0].content)
        text = str(messages[-1].content)
        self.prompts.append(text)
        answer = self.decide(guidelines, text) if self.decide else self.answer
        return Completion(messages=tuple(messages) + (AIMessage(content=answer),), memory=memory)

    async def stop(self) -> None:
        pass


