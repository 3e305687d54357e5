# orchestrator/core/services/llm/adapters/base.py
"""Interface de base pour tous les adapters LLM et boucle de tool calling commune."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from config.logger import logger
from orchestrator.core.exceptions import ProviderUnavailableError
from orchestrator.core.services.agents.types import AgentDefinition, ProviderFamily, ToolCallRecord
from orchestrator.core.services.llm.types import (
    ModelReply,
    ToolCallResult,
    ToolDefinition,
    TurnOutcome,
    TurnRequest,
)
from orchestrator.core.services.llm.utils.messages import serialize_tool_result
from orchestrator.core.utils.circuit_breaker import CircuitBreaker

MAX_ITERATIONS_MESSAGE = "Maximum iterations reached. Task may be incomplete."


class BaseAdapter(ABC):
    """
    Provider adapter.

    `run_turn` owns the loop shared by every provider: call the model, execute
    the requested tools one after another through the registry, feed the
    results back, and stop on a plain answer or when iterations run out.
    Subclasses only shape messages and parse responses.
    """

    family: ProviderFamily
    api_key_setting: str
    supports_tools: bool = True

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Any = None,
        breaker: Optional[CircuitBreaker] = None
    ):
        self.api_key = api_key
        self.client = client
        self.breaker = breaker or CircuitBreaker(name=self.family.value)

    def get_client(self) -> Any:
        """SDK client, created on first use."""
        if self.client is None:
            if not self.api_key:
                raise ProviderUnavailableError(
                    f"{self.api_key_setting} is not configured",
                    details={"provider": self.family.value}
                )
            self.client = self.create_client()
        return self.client

    @abstractmethod
    def create_client(self) -> Any:
        pass

    # ========== Provider hooks ==========

    @abstractmethod
    def start_messages(self, history: List[Dict[str, Any]], agent: AgentDefinition, prompt: str) -> List[Dict[str, Any]]:
        """Stored history extended with this turn's user message."""
        pass

    @abstractmethod
    def format_tools(self, tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    async def call_model(
        self,
        agent: AgentDefinition,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]]
    ) -> ModelReply:
        """One provider request; `messages` is the full running conversation."""
        pass

    @abstractmethod
    def tool_result_messages(self, results: List[ToolCallResult]) -> List[Dict[str, Any]]:
        pass

    # ========== Shared loop ==========

    async def run_turn(self, turn: TurnRequest) -> TurnOutcome:
        self.get_client()
        agent = turn.agent
        messages = self.start_messages(turn.history, agent, turn.prompt)
        provider_tools = self.format_tools(turn.tools) if self.supports_tools else []
        records: List[ToolCallRecord] = []
        tokens_used: Optional[int] = None

        iteration = 0
        while iteration < turn.max_iterations:
            iteration += 1

            reply = await self.breaker.call(self.call_model, agent, messages, provider_tools)
            if isinstance(reply.tokens_used, int):
                tokens_used = (tokens_used or 0) + reply.tokens_used

            messages.append(reply.assistant_message)

            if not reply.tool_calls or not self.supports_tools:
                return TurnOutcome(
                    content=reply.text,
                    messages=messages,
                    tool_calls=records,
                    iterations=iteration,
                    tokens_used=tokens_used,
                    tools_disabled=not self.supports_tools
                )

            results: List[ToolCallResult] = []
            for call in reply.tool_calls:
                logger.info(f"Executing tool {call.name} for agent {agent.id}")
                result = await turn.execute_tool(call.name, call.arguments)
                records.append(ToolCallRecord(
                    id=call.id,
                    tool_name=call.name,
                    parameters=call.arguments,
                    success=result.success
                ))
                results.append(serialize_tool_result(call.id, result))

            messages.extend(self.tool_result_messages(results))

        logger.warning(f"Agent {agent.id} reached max iterations ({turn.max_iterations})")
        return TurnOutcome(
            content=MAX_ITERATIONS_MESSAGE,
            messages=messages,
            tool_calls=records,
            iterations=iteration,
            tokens_used=tokens_used,
            max_iterations_reached=True
        )
