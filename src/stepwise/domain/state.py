from typing import Generic, Optional, Tuple, TypeVar

from langchain_core.messages import BaseMessage
from pydantic import BaseModel, ConfigDict, Field

from stepwise.domain.halt import HaltStatus
from stepwise.domain.tool import ChatMemory
from stepwise.llm.model import Model

MemoryT = TypeVar("MemoryT", bound=ChatMemory)


class AgentState(BaseModel, Generic[MemoryT]):
    """Immutable snapshot travelling between agent steps."""

    id: Optional[str] = Field(
        default=None, description="Optional identifier for debugging and telemetry."
    )
    model: Model = Field(description="Model implementation used for completions.")
    messages: Tuple[BaseMessage, ...] = Field(
        default=(), description="Conversation so far, append-only."
    )
    memory: Optional[MemoryT] = Field(
        default=None, description="Opaque serializable key-value memory."
    )
    halted: Optional[HaltStatus] = Field(
        default=None, description="Halt condition; None while running."
    )

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def last_message(self) -> Optional[BaseMessage]:
        return self.messages[-1] if self.messages else None

    @property
    def is_terminal(self) -> bool:
        return self.halted is not None and self.halted.is_terminal

    def halt(self, status: HaltStatus) -> "AgentState[MemoryT]":
        """Return a copy carrying ``status``."""
        return self.model_copy(update={"halted": status})

    def resume(self) -> "AgentState[MemoryT]":
        """Return a copy with the halt status cleared."""
        return self.model_copy(update={"halted": None})

    def append(self, *messages: BaseMessage) -> "AgentState[MemoryT]":
        """Return a copy with ``messages`` appended to the transcript."""
        return self.model_copy(update={"messages": self.messages + tuple(messages)})
