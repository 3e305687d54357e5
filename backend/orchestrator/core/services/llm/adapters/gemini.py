# orchestrator/core/services/llm/adapters/gemini.py
"""Adapter pour Google Gemini, sans tool calling."""

import asyncio
from typing import Any, Dict, List, Optional
import google.generativeai as genai
from config.logger import logger
from orchestrator.core.services.agents.types import AgentDefinition, ProviderFamily
from orchestrator.core.services.llm.registry import clamp_max_tokens, clamp_temperature
from orchestrator.core.services.llm.types import ModelReply, ToolCallResult, ToolDefinition
from orchestrator.core.services.llm.utils.messages import build_transcript
from orchestrator.core.utils.circuit_breaker import CircuitBreaker
from .base import BaseAdapter

TRANSCRIPT_WINDOW = 10


def build_gemini_prompt(system_prompt: str, messages: List[Dict[str, Any]]) -> str:
    transcript = build_transcript(messages, limit=TRANSCRIPT_WINDOW)
    return f"{system_prompt}\n\nConversation:\n{transcript}\n\nassistant:"


def _response_text(response: Any) -> str:
    text = getattr(response, "text", None)
    if text:
        return text
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        parts = getattr(candidates[0].content, "parts", None) or []
        if parts:
            return getattr(parts[0], "text", "") or ""
    return ""


class GeminiAdapter(BaseAdapter):
    """
    Text-only provider: the conversation is flattened into one transcript
    prompt and answered in a single generation call.
    """

    family = ProviderFamily.GEMINI
    api_key_setting = "GEMINI_API_KEY"
    supports_tools = False

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Any = None,
        breaker: Optional[CircuitBreaker] = None
    ):
        super().__init__(api_key=api_key, client=client, breaker=breaker)
        self._models: Dict[str, Any] = {}

    def create_client(self) -> Any:
        genai.configure(api_key=self.api_key)
        return genai

    def _model(self, agent: AgentDefinition) -> Any:
        model = self._models.get(agent.id)
        if model is None:
            model = self.get_client().GenerativeModel(
                model_name=agent.model,
                generation_config={
                    "temperature": clamp_temperature("gemini", agent.temperature),
                    "max_output_tokens": clamp_max_tokens("gemini", agent.max_tokens),
                }
            )
            self._models[agent.id] = model
        return model

    def start_messages(self, history: List[Dict[str, Any]], agent: AgentDefinition, prompt: str) -> List[Dict[str, Any]]:
        messages = list(history)
        if not messages:
            messages.append({"role": "system", "content": agent.system_prompt})
        messages.append({"role": "user", "content": prompt})
        return messages

    def format_tools(self, tools: List[ToolDefinition]) -> List[Dict[str, Any]]:
        return []

    async def call_model(
        self,
        agent: AgentDefinition,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]]
    ) -> ModelReply:
        prompt = build_gemini_prompt(agent.system_prompt, messages)
        model = self._model(agent)

        try:
            # SDK call is blocking
            response = await asyncio.to_thread(model.generate_content, prompt)
        except Exception as e:
            logger.error(f"Gemini generation error (agent {agent.id}): {e}")
            raise

        text = _response_text(response)
        usage = getattr(response, "usage_metadata", None)
        return ModelReply(
            text=text,
            tool_calls=[],
            assistant_message={"role": "assistant", "content": text},
            tokens_used=getattr(usage, "total_token_count", None) if usage else None
        )

    def tool_result_messages(self, results: List[ToolCallResult]) -> List[Dict[str, Any]]:
        return []
