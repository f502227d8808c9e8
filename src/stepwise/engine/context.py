"""Behaviour contract driving an agent loop."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Generic, NamedTuple, Optional

from stepwise.domain.state import AgentState, MemoryT
from stepwise.engine.tool_registry import ToolRegistry

if TYPE_CHECKING:
    from stepwise.engine.options import SequenceOptions


class NextStage(NamedTuple):
    """Context, state and options of the stage that follows a finished one."""

    ctx: "AgentContext"
    state: AgentState
    options: Optional["SequenceOptions"] = None


@dataclass(frozen=True)
class AgentContext(Generic[MemoryT]):
    """
    Agent behaviour contract.

    Every hook must be side-effect free except ``get_user_input``, which is
    allowed to perform I/O. Optional hooks are ``None`` when unset.

    Args:
        is_final: Async goal test over the state.
        name: Context name used for logging only.
        registry: Tools offered to the model.
        get_user_input: Async hook returning the next user turn while the
            loop awaits user input.
        next_sequence: Async hook computing the next stage of a workflow
            once this one is done; returning None ends the workflow.
        controller: Async recovery hook invoked on tool errors and stuck
            states; typically appends a system message to re-orient the agent.
        guidelines: Async system guidelines generator. Not inserted into the
            transcript automatically.
    """

    is_final: Callable[[AgentState[MemoryT]], Awaitable[bool]]
    name: Optional[str] = None
    registry: Optional[ToolRegistry] = None
    get_user_input: Optional[
        Callable[["AgentContext[MemoryT]", AgentState[MemoryT]], Awaitable[str]]
    ] = None
    next_sequence: Optional[
        Callable[[AgentState[MemoryT]], Awaitable[Optional[NextStage]]]
    ] = None
    controller: Optional[
        Callable[[AgentState[MemoryT]], Awaitable[AgentState[MemoryT]]]
    ] = None
    guidelines: Optional[Callable[[MemoryT], Awaitable[str]]] = None
