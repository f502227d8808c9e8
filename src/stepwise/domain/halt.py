from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class HaltKind(str, Enum):
    """Enumerates why an agent loop halted."""

    AWAITING_USER = "await_user"
    TOOL_ERROR = "tool_error"
    DONE = "done"
    STOPPED = "stopped"


TERMINAL_KINDS = frozenset({HaltKind.DONE, HaltKind.STOPPED})


class HaltStatus(BaseModel):
    """Base halt status attached to an agent state.

    ``AwaitingUser`` and ``ToolError`` are recoverable; ``Done`` and
    ``Stopped`` are terminal.
    """

    kind: HaltKind

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def is_terminal(self) -> bool:
        """Whether no further transition may change the state."""
        return self.kind in TERMINAL_KINDS


class AwaitingUser(HaltStatus):
    """Loop paused until externally supplied text is appended."""

    kind: HaltKind = HaltKind.AWAITING_USER


class ToolError(HaltStatus):
    """A model or tool call failed; carries the original error."""

    kind: HaltKind = HaltKind.TOOL_ERROR
    error: Any = Field(default=None, description="Error raised by the failed call")


class Done(HaltStatus):
    """The goal test passed."""

    kind: HaltKind = HaltKind.DONE


class Stopped(HaltStatus):
    """The step budget was exhausted."""

    kind: HaltKind = HaltKind.STOPPED


AWAIT_USER = AwaitingUser()
