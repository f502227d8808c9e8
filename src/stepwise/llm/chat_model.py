from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_openai import ChatOpenAI

from stepwise.domain.content import message_text
from stepwise.domain.exceptions import ModelStoppedError
from stepwise.engine.tool_registry import ToolRegistry
from stepwise.engine.tool_runner import ToolRunner
from stepwise.llm.model import Completion

if TYPE_CHECKING:
    from stepwise.config import Config

logger = logging.getLogger(__name__)


def remove_think_section(text: str) -> str:
    """Strip a ``<think>...</think>`` section emitted by reasoning models."""

    start = text.find("<think>")
    end = text.rfind("</think>")
    if start == -1 or end == -1 or end < start:
        return text.strip()
    return (text[:start] + text[end + len("</think>") :]).strip()


class ChatModel:
    """Chat model backed by a LangChain chat model (OpenAI-compatible by default).

    Produces the next assistant turn, executes its tool calls through the
    registry, and supports cooperative cancellation via ``stop``.
    """

    def __init__(
        self,
        model_name: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        temperature: Optional[float] = None,
        remove_think: bool = False,
        no_think_prompt: Optional[str] = None,
        llm: Optional[BaseChatModel] = None,
    ) -> None:
        """Initialize the chat model.

        Args:
            model_name: Provider model identifier.
            api_key: Optional API key; the provider SDK falls back to its env var.
            api_base: Optional OpenAI-compatible base URL (e.g. a local Ollama).
            temperature: Optional sampling temperature.
            remove_think: Strip ``<think>`` sections from replies.
            no_think_prompt: Suffix appended to the last request message when
                ``remove_think`` is set.
            llm: Optional pre-built LangChain chat model, mainly for tests.
        """

        self.name = model_name
        self._remove_think = remove_think
        self._no_think_prompt = no_think_prompt
        self._llm = llm if llm is not None else self._build_llm(
            model_name, api_key, api_base, temperature
        )
        self._inflight: Optional[asyncio.Future] = None
        self._stop_requested = False

    @classmethod
    def from_config(cls, config: "Config", heuristic: bool = False) -> "ChatModel":
        """Build a chat model from configuration.

        Args:
            config: Loaded configuration.
            heuristic: Build the small loop-management model instead of the
                main one.

        Returns:
            A configured ChatModel.
        """

        return cls(
            model_name=(
                config.get_heuristic_model_name() if heuristic else config.get_model_name()
            ),
            api_key=config.get_openai_api_key(),
            api_base=config.get_api_base(),
            temperature=0.0 if heuristic else config.temperature,
            remove_think=config.remove_think,
        )

    @staticmethod
    def _build_llm(
        model_name: str,
        api_key: Optional[str],
        api_base: Optional[str],
        temperature: Optional[float],
    ) -> BaseChatModel:
        kwargs: Dict[str, Any] = {"model": model_name}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if api_base:
            kwargs["base_url"] = api_base
        if temperature is not None:
            kwargs["temperature"] = temperature
        return ChatOpenAI(**kwargs)

    async def complete(
        self,
        messages: Sequence[BaseMessage],
        memory: Optional[Dict[str, Any]] = None,
        tools: Optional[ToolRegistry] = None,
    ) -> Completion:
        """Run one completion and the tool calls it requests.

        Args:
            messages: Conversation so far.
            memory: Memory snapshot handed to tool handlers.
            tools: Registry whose tools are bound to the model.

        Returns:
            Completion with the assistant turn, any tool messages, and the
            composed memory.

        Raises:
            ModelStoppedError: If ``stop`` cancelled the request.
            ToolNotFoundError: If the model called an unregistered tool.
            MemoryPatchConflictError: If two tools wrote the same memory key.
        """

        llm: Any = self._llm
        if tools is not None and len(tools):
            specs = await tools.list_tools()
            llm = llm.bind_tools([spec.as_openai_tool() for spec in specs])

        reply = self._finalize(await self._invoke(llm, self._format_messages(messages)))
        transcript = tuple(messages) + (reply,)
        if tools is None or not reply.tool_calls:
            return Completion(messages=transcript, memory=memory)

        result = await ToolRunner(tools).run(reply.tool_calls, memory)
        return Completion(messages=transcript + tuple(result.messages), memory=result.memory)

    async def stop(self) -> None:
        """Cancel the in-flight completion, if any."""

        if self._inflight is not None and not self._inflight.done():
            self._stop_requested = True
            self._inflight.cancel()

    async def _invoke(self, llm: Any, messages: List[BaseMessage]) -> BaseMessage:
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._stop_requested = False
        inflight = asyncio.ensure_future(llm.ainvoke(messages))
        self._inflight = inflight
        logger.debug("LLM request start", extra={"model": self.name, "message_count": len(messages)})
        try:
            return await inflight
        except asyncio.CancelledError:
            if self._stop_requested:
                raise ModelStoppedError(f"Completion with '{self.name}' was stopped.") from None
            raise
        finally:
            if self._inflight is inflight:
                self._inflight = None
            logger.debug("LLM request complete", extra={"model": self.name})

    def _format_messages(self, messages: Sequence[BaseMessage]) -> List[BaseMessage]:
        formatted = list(messages)
        if self._remove_think and self._no_think_prompt and formatted:
            last = formatted[-1]
            formatted[-1] = last.model_copy(
                update={"content": message_text(last.content) + self._no_think_prompt}
            )
        return formatted

    def _finalize(self, reply: BaseMessage) -> AIMessage:
        if not isinstance(reply, AIMessage):
            reply = AIMessage(content=reply.content)
        if self._remove_think and isinstance(reply.content, str):
            reply = reply.model_copy(update={"content": remove_think_section(reply.content)})
        return reply
