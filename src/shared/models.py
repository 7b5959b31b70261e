"""Core data models for the MCP tool console.

This module defines the shared data structures passed between the
session controller and the MCP client: tool descriptors, typed argument
values, execution results and server log messages.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class PropertyKind(str, Enum):
    """Primitive kinds the console knows how to coerce."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"


class SchemaProperty(BaseModel):
    """A single named parameter of a tool's input schema."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: Optional[str] = None
    required: bool = False
    description: Optional[str] = None

    @property
    def kind(self) -> Optional[PropertyKind]:
        """Declared kind, or None when the schema type is missing or unknown."""
        try:
            return PropertyKind(self.type)
        except ValueError:
            return None


class ToolDefinition(BaseModel):
    """
    Snapshot of a tool advertised by the server.

    Produced once per session by the client and never mutated afterwards.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Tool name, unique within a session")
    description: Optional[str] = None
    input_schema: dict[str, Any] = Field(
        default_factory=dict,
        description="JSON Schema for the tool arguments"
    )

    @property
    def required(self) -> list[str]:
        """Names listed in the schema's ``required`` array."""
        return list(self.input_schema.get("required") or [])

    def properties(self) -> list[SchemaProperty]:
        """
        Schema properties in their declared order.

        Only a single string ``type`` is kept; union types such as
        ``["string", "null"]`` and malformed entries have no declared kind.
        """
        required = set(self.required)
        properties = self.input_schema.get("properties") or {}

        result = []
        for key, prop in properties.items():
            prop = prop if isinstance(prop, dict) else {}
            declared = prop.get("type")
            description = prop.get("description")
            result.append(SchemaProperty(
                name=key,
                type=declared if isinstance(declared, str) else None,
                required=key in required,
                description=description if isinstance(description, str) else None,
            ))

        return result


# Argument values: a tagged union discriminated on ``kind``

class StringValue(BaseModel):
    kind: Literal["string"] = "string"
    value: str


class NumberValue(BaseModel):
    kind: Literal["number"] = "number"
    value: Union[int, float]


class BooleanValue(BaseModel):
    kind: Literal["boolean"] = "boolean"
    value: bool


class StructuredValue(BaseModel):
    """Parsed JSON text supplied for an ``object`` property."""
    kind: Literal["structured"] = "structured"
    value: Any


class RawValue(BaseModel):
    """Operator text kept verbatim (object parse fallback, unknown kinds)."""
    kind: Literal["raw"] = "raw"
    value: str


ArgumentValue = Annotated[
    Union[StringValue, NumberValue, BooleanValue, StructuredValue, RawValue],
    Field(discriminator="kind"),
]


class ArgumentSet(BaseModel):
    """Arguments collected for one tool invocation."""
    tool_name: str
    values: dict[str, ArgumentValue] = Field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __len__(self) -> int:
        return len(self.values)

    def set(self, name: str, value: ArgumentValue) -> None:
        self.values[name] = value

    def to_dict(self) -> dict[str, Any]:
        """Plain argument mapping as sent to the server."""
        return {name: item.value for name, item in self.values.items()}


class ToolResultStatus(str, Enum):
    """Status of tool execution."""
    SUCCESS = "success"
    ERROR = "error"


class ToolResult(BaseModel):
    """
    Result of a tool execution.

    Content blocks are already rendered to text by the client.
    """
    tool_name: str
    status: ToolResultStatus
    content: list[str] = Field(default_factory=list)
    structured: Optional[dict[str, Any]] = None
    execution_time_ms: float = 0

    @property
    def ok(self) -> bool:
        return self.status == ToolResultStatus.SUCCESS

    @property
    def text(self) -> str:
        return "\n".join(self.content)


class LogMessage(BaseModel):
    """A log notification sent by the server."""
    level: str = "info"
    logger: Optional[str] = None
    data: Any = None
