from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

ChatMemory = Dict[str, Any]
ChatMemoryPatch = Callable[[ChatMemory], ChatMemory]

CONTENT_TYPES = ("text", "json", "image", "image_url")


class ToolType(str, Enum):
    """
    Enumerates tool trust levels.

    Internal tools are trusted; external ones may run over the network.
    """

    INTERNAL = "internal"
    EXTERNAL = "external"


@dataclass(frozen=True)
class ToolSpec:
    """
    Schema description of a callable tool as shown to the model.
    """

    name: str
    description: str
    parameters: Dict[str, Any]

    def as_openai_tool(self) -> Dict[str, Any]:
        """
        Returns an OpenAI-compatible tool schema definition.

        Returns:
            A dictionary describing the tool for LLM binding.
        """
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolCallResponse(BaseModel):
    """Result returned by a tool handler."""

    content: Optional[List[Any]] = Field(
        default=None, description="Content blocks produced by the tool."
    )
    error: Optional[str] = Field(
        default=None, description="Error message; exclusive with content."
    )
    mem_patch: Optional[ChatMemoryPatch] = Field(
        default=None,
        description="Pure function producing the next memory snapshot.",
        exclude=True,
    )

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @model_validator(mode="after")
    def _check_exclusive(self) -> "ToolCallResponse":
        if self.content and self.error:
            raise ValueError("A tool response carries either content or error, not both.")
        return self

    @property
    def is_error(self) -> bool:
        return self.error is not None


ToolHandler = Callable[[Dict[str, Any], ChatMemory], Awaitable[ToolCallResponse]]


@dataclass(frozen=True)
class RegisteredTool:
    """
    A tool description paired with its executable handler.
    """

    spec: ToolSpec
    handler: ToolHandler
    type: ToolType = ToolType.INTERNAL

    @property
    def name(self) -> str:
        return self.spec.name


def to_content(value: Any) -> Dict[str, Any]:
    """Wrap a value into a content block; content blocks pass through unchanged."""

    if isinstance(value, str):
        return {"type": "text", "text": value}
    if isinstance(value, dict) and value.get("type") in CONTENT_TYPES:
        return value
    return {"type": "json", "data": value}


def content(value: Any, mem_patch: Optional[ChatMemoryPatch] = None) -> ToolCallResponse:
    """
    Builds a successful tool response.

    Args:
        value: A single value or a list of values to wrap as content blocks.
        mem_patch: Optional memory patch to apply after the call.

    Returns:
        A ToolCallResponse with content blocks.
    """
    values = value if isinstance(value, list) else [value]
    return ToolCallResponse(content=[to_content(v) for v in values], mem_patch=mem_patch)


def error(value: Union[str, Exception]) -> ToolCallResponse:
    """Builds an error tool response from a message or exception."""
    return ToolCallResponse(error=str(value))


def tool(
    name: str,
    description: str,
    parameters: Dict[str, Any],
    handler: ToolHandler,
    type: ToolType = ToolType.INTERNAL,
) -> RegisteredTool:
    """Factory producing a RegisteredTool in one call."""
    return RegisteredTool(
        spec=ToolSpec(name=name, description=description, parameters=parameters),
        handler=handler,
        type=type,
    )
