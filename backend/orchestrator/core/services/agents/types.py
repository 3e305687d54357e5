# orchestrator/core/services/agents/types.py
"""Types de données du moteur d'agents."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

MIN_ITERATIONS = 1
MAX_ITERATIONS = 10
DEFAULT_ITERATIONS = 5


class ProviderFamily(str, Enum):
    """
    How a model provider shapes a conversation.

    - openai: tool calling, tool results as separate `tool` messages
    - anthropic: tool calling, tool use/results as inline content blocks
    - gemini: text only, no tools
    """
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"


class AgentCapability(str, Enum):
    COMPLIANCE_ANALYSIS = "compliance_analysis"
    DOCUMENT_GENERATION = "document_generation"
    RISK_ASSESSMENT = "risk_assessment"
    GAP_ANALYSIS = "gap_analysis"
    QUALITY_SCORING = "quality_scoring"
    DATA_EXTRACTION = "data_extraction"
    EXTERNAL_API_CALLS = "external_api_calls"
    CHAT_INTERACTION = "chat_interaction"


@dataclass(frozen=True)
class AgentDefinition:
    """Immutable agent configuration."""
    id: str
    name: str
    description: str
    provider: ProviderFamily
    model: str
    system_prompt: str
    tools: Tuple[str, ...] = ()
    temperature: float = 0.7
    max_tokens: int = 2000
    capabilities: Tuple[AgentCapability, ...] = ()

    def to_summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "provider": self.provider.value,
            "model": self.model,
            "capabilities": [capability.value for capability in self.capabilities],
            "tool_count": len(self.tools),
        }

    def to_detail(self) -> Dict[str, Any]:
        detail = self.to_summary()
        detail.pop("tool_count")
        detail.update({
            "tools": list(self.tools),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        })
        return detail


@dataclass
class Attachment:
    """User-supplied file; content is text (data URLs allowed)."""
    content: str = ""
    name: Optional[str] = None
    type: Optional[str] = None


def clamp_iterations(value: Optional[int]) -> int:
    if value is None:
        return DEFAULT_ITERATIONS
    return max(MIN_ITERATIONS, min(MAX_ITERATIONS, int(value)))


@dataclass
class AgentRequest:
    agent_id: str
    prompt: str
    attachments: List[Attachment] = field(default_factory=list)
    max_iterations: int = DEFAULT_ITERATIONS
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.max_iterations = clamp_iterations(self.max_iterations)


@dataclass
class ToolCallRecord:
    """One tool invocation performed during an agent turn."""
    id: str
    tool_name: str
    parameters: Dict[str, Any]
    success: bool
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "tool_name": self.tool_name,
            "parameters": self.parameters,
            "success": self.success,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class AgentResponse:
    content: str
    tool_calls: List[ToolCallRecord] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "tool_calls": [call.to_dict() for call in self.tool_calls],
            "metadata": self.metadata,
        }
