"""Tool execution utilities for agent loops."""

import logging
from typing import Any, List, Mapping, NamedTuple, Optional, Sequence

from langchain_core.messages import ToolMessage

from stepwise.domain.content import message_text
from stepwise.domain.error_details import build_exception_details
from stepwise.domain.tool import ChatMemory, ChatMemoryPatch
from stepwise.engine.patches import compose_patches
from stepwise.engine.tool_registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolRunResult(NamedTuple):
    messages: List[ToolMessage]
    memory: ChatMemory


class ToolRunner:
    """
    Executes tool calls using a tool registry.

    Args:
        registry: The registry used to resolve tool calls.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def run(
        self,
        tool_calls: Sequence[Mapping[str, Any]],
        memory: Optional[ChatMemory] = None,
    ) -> ToolRunResult:
        """
        Executes tool calls and composes their memory patches.

        Every handler sees the same memory snapshot taken before the turn;
        patches are composed afterwards so two tools writing the same key
        fail instead of silently overwriting each other.

        Args:
            tool_calls: Tool call payloads emitted by the LLM.
            memory: Memory snapshot for the turn.

        Returns:
            ToolMessage instances plus the composed memory.

        Raises:
            ToolNotFoundError: If a call names an unregistered tool.
            MemoryPatchConflictError: If two tools wrote the same key.
        """
        base: ChatMemory = dict(memory or {})
        results: List[ToolMessage] = []
        patches: List[Optional[ChatMemoryPatch]] = []
        for tool_call in tool_calls:
            tool_name = tool_call["name"]
            tool_args = tool_call.get("args") or {}
            tool_id = tool_call.get("id") or ""

            registered = await self.registry.get(tool_name)
            try:
                response = await registered.handler(tool_args, dict(base))
            except Exception as exc:
                logger.warning(
                    "Tool handler raised",
                    extra={"tool_name": tool_name, **build_exception_details(exc)},
                )
                results.append(
                    ToolMessage(
                        content=f"Error executing {tool_name}: {exc}",
                        tool_call_id=tool_id,
                        name=tool_name,
                        status="error",
                    )
                )
                continue

            if response.is_error:
                results.append(
                    ToolMessage(
                        content=response.error or "",
                        tool_call_id=tool_id,
                        name=tool_name,
                        status="error",
                    )
                )
            else:
                results.append(
                    ToolMessage(
                        content=message_text(response.content or []),
                        tool_call_id=tool_id,
                        name=tool_name,
                    )
                )
            patches.append(response.mem_patch)

        return ToolRunResult(messages=results, memory=compose_patches(base, patches))
