# orchestrator/core/services/llm/adapters/openai.py
"""Adapter pour OpenAI API (tool results en messages `tool` séparés)."""

from typing import Any, Dict, List, Optional
import httpx
from openai import AsyncOpenAI
from config.logger import logger
from orchestrator.core.services.agents.types import AgentDefinition, ProviderFamily
from orchestrator.core.services.llm.registry import clamp_max_tokens, clamp_temperature
from orchestrator.core.services.llm.types import ModelReply, ToolCall, ToolCallResult, ToolDefinition
from orchestrator.core.services.llm.utils.messages import (
    openai_assistant_message,
    openai_tool_messages,
    parse_tool_arguments,
)
from orchestrator.core.utils.circuit_breaker import CircuitBreaker
from .base import BaseAdapter


def request_messages(messages: List[Dict[str, Any]], system_prompt: str) -> List[Dict[str, Any]]:
    """
    Conversation as sent to the API.

    Window truncation can leave `tool` messages whose assistant call was
    evicted, and can evict the system prompt; both are repaired here without
    touching the stored history.
    """
    start = 0
    while start < len(messages) and messages[start].get("role") == "tool":
        start += 1
    trimmed = messages[start:]

    if not trimmed or trimmed[0].get("role") != "system":
        trimmed = [{"role": "system", "content": system_prompt}] + trimmed
    return trimmed


class OpenAIAdapter(BaseAdapter):
    """Adapter pour l'API OpenAI."""

    family = ProviderFamily.OPENAI
    api_key_setting = "OPENAI_API_KEY"

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Any = None,
        breaker: Optional[CircuitBreaker] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(api_key=api_key, client=client, breaker=breaker)
        self.http_client = http_client

    def create_client(self) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=self.api_key, http_client=self.http_client)

    def start_messages(self, history: List[Dict[str, Any]], agent: AgentDefinition, prompt: str) -> List[Dict[str, Any]]:
        messages = list(history)
        if not messages:
            messages.append({"role": "system", "content": agent.system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    def format_tools(self, tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.input_schema
                }
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
            "messages": request_messages(messages, agent.system_prompt),
            "temperature": clamp_temperature("openai", agent.temperature),
            "max_completion_tokens": clamp_max_tokens("openai", agent.max_tokens),
        }
        if tools:
            params["tools"] = tools
            params["tool_choice"] = "auto"

        try:
            response = await self.get_client().chat.completions.create(**params)
        except Exception as e:
            logger.error(f"OpenAI completion error (agent {agent.id}): {e}")
            raise

        message = response.choices[0].message
        tool_calls = []
        for tool_call in message.tool_calls or []:
            function = getattr(tool_call, "function", None)
            if function is None:
                continue
            tool_calls.append(ToolCall(
                id=tool_call.id,
                name=function.name,
                arguments=parse_tool_arguments(function.arguments)
            ))

        text = message.content or ""
        usage = getattr(response, "usage", None)
        return ModelReply(
            text=text,
            tool_calls=tool_calls,
            assistant_message=openai_assistant_message(text, tool_calls),
            tokens_used=getattr(usage, "total_tokens", None) if usage else None
        )

    def tool_result_messages(self, results: List[ToolCallResult]) -> List[Dict[str, Any]]:
        return openai_tool_messages(results)
