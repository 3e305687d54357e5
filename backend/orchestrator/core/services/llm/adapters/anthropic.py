# orchestrator/core/services/llm/adapters/anthropic.py
"""Adapter pour Anthropic Claude API (tool_use / tool_result en blocs)."""

from typing import Any, Dict, List, Optional
import httpx
from anthropic import AsyncAnthropic
from config.logger import logger
from orchestrator.core.services.agents.types import AgentDefinition, ProviderFamily
from orchestrator.core.services.llm.registry import clamp_max_tokens, clamp_temperature
from orchestrator.core.services.llm.types import ModelReply, ToolCall, ToolCallResult, ToolDefinition
from orchestrator.core.services.llm.utils.messages import (
    anthropic_assistant_message,
    anthropic_tool_results_message,
    is_anthropic_tool_results,
)
from orchestrator.core.utils.circuit_breaker import CircuitBreaker
from .base import BaseAdapter


def request_messages(messages: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Conversation as sent to the API.

    The first message must be a plain user message: leading assistant
    messages and tool_result messages orphaned by window truncation are
    skipped, as are empty assistant answers.
    """
    start = 0
    while start < len(messages) and (
        messages[start].get("role") != "user" or is_anthropic_tool_results(messages[start])
    ):
        start += 1
    return [
        message for message in messages[start:]
        if not (message.get("role") == "assistant" and message.get("content") in ("", None))
    ]


class AnthropicAdapter(BaseAdapter):
    """Adapter pour l'API Anthropic Claude."""

    family = ProviderFamily.ANTHROPIC
    api_key_setting = "ANTHROPIC_API_KEY"

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Any = None,
        breaker: Optional[CircuitBreaker] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(api_key=api_key, client=client, breaker=breaker)
        self.http_client = http_client

    def create_client(self) -> AsyncAnthropic:
        return AsyncAnthropic(api_key=self.api_key, http_client=self.http_client)

    def start_messages(self, history: List[Dict[str, Any]], agent: AgentDefinition, prompt: str) -> List[Dict[str, Any]]:
        # System prompt travels as a request parameter, never in history
        return list(history) + [{"role": "user", "content": prompt}]

    def format_tools(self, tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.input_schema
            }
            for tool in tools
        ]

    async def call_model(
        self,
        agent: AgentDefinition,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]]
    ) -> ModelReply:
        params: Dict[str, Any] = {
            "model": agent.model,
            "max_tokens": clamp_max_tokens("anthropic", agent.max_tokens),
            "messages": request_messages(messages),
            "temperature": clamp_temperature("anthropic", agent.temperature),
        }
        if agent.system_prompt:
            params["system"] = agent.system_prompt
        if tools:
            params["tools"] = tools

        try:
            response = await self.get_client().messages.create(**params)
        except Exception as e:
            logger.error(f"Anthropic messages error (agent {agent.id}): {e}")
            raise

        texts = []
        tool_calls = []
        for block in response.content:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                texts.append(block.text)
            elif block_type == "tool_use":
                tool_calls.append(ToolCall(
                    id=str(block.id),
                    name=block.name,
                    arguments=block.input if isinstance(block.input, dict) else {}
                ))

        text = texts[0] if texts else ""
        usage = getattr(response, "usage", None)
        tokens_used = None
        if usage is not None:
            tokens_used = (usage.input_tokens or 0) + (usage.output_tokens or 0)

        return ModelReply(
            text=text,
            tool_calls=tool_calls,
            assistant_message=anthropic_assistant_message("\n".join(texts), tool_calls),
            tokens_used=tokens_used
        )

    def tool_result_messages(self, results: List[ToolCallResult]) -> List[Dict[str, Any]]:
        return [anthropic_tool_results_message(results)]
