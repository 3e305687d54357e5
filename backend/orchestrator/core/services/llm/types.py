# orchestrator/core/services/llm/types.py
"""Types de données pour le tool calling multi-provider."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional
from orchestrator.core.services.agents.types import AgentDefinition, ToolCallRecord
from orchestrator.core.services.tools.types import ToolResult


@dataclass
class ToolDefinition:
    """Format unifié d'un tool pour tous les providers."""
    name: str
    description: str
    input_schema: Dict[str, Any]


@dataclass
class ToolCall:
    """Un appel de tool demandé par le modèle."""
    id: str
    name: str
    arguments: Dict[str, Any]


@dataclass
class ToolCallResult:
    """Résultat d'un tool, prêt à être renvoyé au modèle."""
    tool_call_id: str
    content: str
    is_error: bool = False


@dataclass
class ModelReply:
    """One provider response, already parsed."""
    text: str
    tool_calls: List[ToolCall]
    assistant_message: Dict[str, Any]
    tokens_used: Optional[int] = None


ToolExecutor = Callable[[str, Dict[str, Any]], Awaitable[ToolResult]]


@dataclass
class TurnRequest:
    """Everything an adapter needs to run one agent turn."""
    agent: AgentDefinition
    history: List[Dict[str, Any]]
    prompt: str
    tools: List[ToolDefinition]
    max_iterations: int
    execute_tool: ToolExecutor


@dataclass
class TurnOutcome:
    content: str
    messages: List[Dict[str, Any]]
    tool_calls: List[ToolCallRecord] = field(default_factory=list)
    iterations: int = 0
    tokens_used: Optional[int] = None
    max_iterations_reached: bool = False
    tools_disabled: bool = False
