import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from stepwise.domain.exceptions import ToolNotFoundError
from stepwise.domain.tool import ChatMemory, RegisteredTool, ToolCallResponse, ToolSpec

logger = logging.getLogger(__name__)

ToolLoader = Callable[[], Awaitable[RegisteredTool]]
ToolEntry = Union[RegisteredTool, ToolLoader]


class ToolRegistry:
    """
    In-memory registry resolving tool names to handlers.

    Entries are either registered tools or async loaders returning one, which
    lets expensive tools be imported on first use. The registry holds no
    global state.

    Args:
        initial: Optional mapping of tool name to entry.
    """

    def __init__(self, initial: Optional[Dict[str, ToolEntry]] = None) -> None:
        self._tools: Dict[str, ToolEntry] = dict(initial or {})

    @classmethod
    def of(cls, *tools: RegisteredTool) -> "ToolRegistry":
        """Build a registry from registered tools keyed by their names."""
        return cls({registered.name: registered for registered in tools})

    @property
    def tools(self) -> Dict[str, ToolEntry]:
        """Shallow copy of the tool map."""
        return dict(self._tools)

    def snapshot(self) -> Dict[str, ToolEntry]:
        """Read-only snapshot of the tool map."""
        return dict(self._tools)

    def add(self, registered: RegisteredTool) -> None:
        """Register or overwrite a tool."""
        self._tools[registered.name] = registered

    def add_lazy(self, name: str, loader: ToolLoader) -> None:
        """Register a loader resolved on first use."""
        self._tools[name] = loader

    def remove(self, name: str) -> None:
        """Remove a tool; unknown names are ignored."""
        self._tools.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    async def get(self, name: str) -> RegisteredTool:
        """
        Resolves a tool by name, running its loader if needed.

        Args:
            name: Registered tool name.

        Returns:
            The registered tool.

        Raises:
            ToolNotFoundError: If the name is not registered.
        """
        entry = self._tools.get(name)
        if entry is None:
            raise ToolNotFoundError(name)
        if isinstance(entry, RegisteredTool):
            return entry
        return await entry()

    async def list_tools(self) -> List[ToolSpec]:
        """Resolve every entry and return the tool descriptions."""
        return [(await self.get(name)).spec for name in list(self._tools)]

    async def call(
        self, name: str, args: Dict[str, Any], memory: ChatMemory
    ) -> ToolCallResponse:
        """
        Executes a single tool against a memory snapshot.

        Args:
            name: Registered tool name.
            args: Validated tool arguments.
            memory: Memory snapshot handed to the handler.

        Returns:
            The handler's response. Memory patches are returned, not applied.
        """
        registered = await self.get(name)
        logger.debug("Tool call", extra={"tool_name": name, "tool_type": registered.type.value})
        return await registered.handler(args, memory)
