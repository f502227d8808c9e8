from stepwise.domain.exceptions import (
    ConfigurationError,
    LLMError,
    MemoryPatchConflictError,
    ModelStoppedError,
    StepwiseError,
    ToolNotFoundError,
)
from stepwise.domain.halt import (
    AWAIT_USER,
    AwaitingUser,
    Done,
    HaltKind,
    HaltStatus,
    Stopped,
    ToolError,
)
from stepwise.domain.state import AgentState, MemoryT
from stepwise.domain.tool import (
    ChatMemory,
    ChatMemoryPatch,
    RegisteredTool,
    ToolCallResponse,
    ToolSpec,
    ToolType,
    content,
    error,
    tool,
)

__all__ = [
    "AWAIT_USER",
    "AgentState",
    "AwaitingUser",
    "ChatMemory",
    "ChatMemoryPatch",
    "ConfigurationError",
    "Done",
    "HaltKind",
    "HaltStatus",
    "LLMError",
    "MemoryPatchConflictError",
    "MemoryT",
    "ModelStoppedError",
    "RegisteredTool",
    "Stopped",
    "StepwiseError",
    "ToolCallResponse",
    "ToolError",
    "ToolNotFoundError",
    "ToolSpec",
    "ToolType",
    "content",
    "error",
    "tool",
]
