# orchestrator/core/services/tools/types.py
"""Types de données du registre de tools."""

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union


class ToolType(str, Enum):
    """Where a tool's work happens."""
    INTERNAL = "internal"
    EXTERNAL = "external"
    HYBRID = "hybrid"


PARAMETER_TYPES = ("string", "number", "boolean", "object", "array", "any")


@dataclass
class ToolParameter:
    """One declared tool parameter."""
    name: str
    type: str
    description: str
    required: bool = False
    enum: Optional[List[Any]] = None
    default: Any = None

    def __post_init__(self):
        if self.type not in PARAMETER_TYPES:
            raise ValueError(f"Unsupported parameter type '{self.type}' for {self.name}")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "required": self.required,
        }
        if self.enum is not None:
            data["enum"] = list(self.enum)
        if self.default is not None:
            data["default"] = self.default
        return data


@dataclass
class RateLimit:
    """At most `max_calls` per caller within `window_ms` milliseconds."""
    max_calls: int
    window_ms: int

    def to_dict(self) -> Dict[str, int]:
        return {"max_calls": self.max_calls, "window_ms": self.window_ms}


@dataclass
class ToolReturns:
    type: str
    description: str


@dataclass
class InvocationContext:
    """Who is calling, on whose behalf and from where."""
    user_id: Optional[str] = None
    organization_id: Optional[str] = None
    session_id: Optional[str] = None
    agent_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def actor(self) -> str:
        return self.user_id or "anonymous"


DEFAULT_FAILURE_MESSAGE = "Tool execution failed"


@dataclass
class ToolResult:
    """
    Outcome of one tool invocation.

    A failed result never carries data and always carries a non-empty error.
    """
    success: bool
    data: Any = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.success:
            self.data = None
            if not self.error:
                self.error = DEFAULT_FAILURE_MESSAGE

    @classmethod
    def ok(cls, data: Any = None, **metadata) -> "ToolResult":
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata) -> "ToolResult":
        return cls(success=False, error=error, metadata=metadata)

    @classmethod
    def from_value(cls, value: Any) -> "ToolResult":
        """
        Normalize a handler return value.

        Accepts a ToolResult, or a dict shaped like
        {"success": bool, "data"|"result": ..., "error": str, "metadata": {...}}.
        Anything else is treated as successful data.
        """
        if isinstance(value, ToolResult):
            return value
        if isinstance(value, dict) and "success" in value:
            data = value.get("data", value.get("result"))
            return cls(
                success=bool(value["success"]),
                data=data,
                error=value.get("error"),
                metadata=dict(value.get("metadata") or {})
            )
        return cls(success=True, data=value)

    def to_dict(self) -> Dict[str, Any]:
        data = {"success": self.success}
        if self.success:
            data["data"] = self.data
        else:
            data["error"] = self.error
        if self.metadata:
            data["metadata"] = self.metadata
        return data


ToolHandler = Callable[
    [Dict[str, Any], InvocationContext],
    Union[ToolResult, Dict[str, Any], Awaitable[Union[ToolResult, Dict[str, Any]]]]
]


@dataclass
class Tool:
    """A named capability with declared parameters and a handler."""
    name: str
    description: str
    type: ToolType
    parameters: List[ToolParameter] = field(default_factory=list)
    returns: ToolReturns = field(default_factory=lambda: ToolReturns("object", ""))
    rate_limit: Optional[RateLimit] = None
    requires_auth: bool = False
    handler: Optional[ToolHandler] = None

    async def invoke(self, parameters: Dict[str, Any], context: InvocationContext) -> ToolResult:
        """Call the handler (sync or async) and normalize what it returns."""
        if self.handler is None:
            raise RuntimeError(f"Tool '{self.name}' has no handler bound")
        value = self.handler(parameters, context)
        if inspect.isawaitable(value):
            value = await value
        return ToolResult.from_value(value)

    def input_schema(self) -> Dict[str, Any]:
        """JSON-schema view of the declared parameters."""
        properties: Dict[str, Any] = {}
        required: List[str] = []
        for param in self.parameters:
            prop: Dict[str, Any] = {"description": param.description}
            if param.type != "any":
                prop["type"] = param.type
            if param.enum is not None:
                prop["enum"] = list(param.enum)
            if param.default is not None:
                prop["default"] = param.default
            properties[param.name] = prop
            if param.required:
                required.append(param.name)
        return {"type": "object", "properties": properties, "required": required}
