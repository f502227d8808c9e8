from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from stepwise.engine.tool_registry import ToolRegistry


class Completion(BaseModel):
    """Transcript and memory returned by a model completion."""

    messages: Tuple[BaseMessage, ...] = Field(
        description="Full transcript including the new assistant and tool turns."
    )
    memory: Optional[Dict[str, Any]] = Field(
        default=None, description="Memory snapshot after tool patches."
    )

    model_config = ConfigDict(frozen=True)


@runtime_checkable
class Model(Protocol):
    """Protocol for a model usable by the agent loop."""

    async def complete(
        self,
        messages: Sequence[BaseMessage],
        memory: Optional[Dict[str, Any]] = None,
        tools: Optional["ToolRegistry"] = None,
    ) -> Completion:
        """Produce the next assistant turn, run its tool calls, and return the
        updated transcript plus memory.

        Args:
            messages: Conversation so far.
            memory: Memory snapshot handed to tool handlers.
            tools: Registry whose tools are offered to the model.

        Returns:
            Completion with the updated transcript and memory.
        """

        ...

    async def stop(self) -> None:
        """Cancel the in-flight completion, if any."""

        ...
