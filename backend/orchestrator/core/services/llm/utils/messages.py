# orchestrator/core/services/llm/utils/messages.py
"""Utilitaires pour formater les messages selon les providers."""

import json
from typing import Any, Dict, List
from orchestrator.core.services.llm.types import ToolCall, ToolCallResult
from orchestrator.core.services.tools.types import ToolResult


def serialize_tool_result(tool_call_id: str, result: ToolResult) -> ToolCallResult:
    """Encode a registry result as the JSON text sent back to the model."""
    return ToolCallResult(
        tool_call_id=tool_call_id,
        content=json.dumps(result.to_dict(), default=str),
        is_error=not result.success
    )


def parse_tool_arguments(raw: Any) -> Dict[str, Any]:
    """Tool arguments as a dict; anything unparsable becomes {}."""
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return parsed if isinstance(parsed, dict) else {}


# ========== OpenAI ==========

def openai_assistant_message(text: str, tool_calls: List[ToolCall]) -> Dict[str, Any]:
    message: Dict[str, Any] = {"role": "assistant", "content": text or None}
    if tool_calls:
        message["tool_calls"] = [
            {
                "id": tc.id,
                "type": "function",
                "function": {
                    "name": tc.name,
                    "arguments": json.dumps(tc.arguments)
                }
            }
            for tc in tool_calls
        ]
    elif message["content"] is None:
        message["content"] = ""
    return message


def openai_tool_messages(results: List[ToolCallResult]) -> List[Dict[str, Any]]:
    """One `tool` message per result."""
    return [
        {
            "role": "tool",
            "tool_call_id": result.tool_call_id,
            "content": result.content
        }
        for result in results
    ]


# ========== Anthropic ==========

def anthropic_assistant_message(text: str, tool_calls: List[ToolCall]) -> Dict[str, Any]:
    if not tool_calls:
        return {"role": "assistant", "content": text}

    content_blocks: List[Dict[str, Any]] = []
    if text:
        content_blocks.append({"type": "text", "text": text})
    content_blocks.extend(
        {
            "type": "tool_use",
            "id": tc.id,
            "name": tc.name,
            "input": tc.arguments
        }
        for tc in tool_calls
    )
    return {"role": "assistant", "content": content_blocks}


def anthropic_tool_results_message(results: List[ToolCallResult]) -> Dict[str, Any]:
    """A single user message carrying every tool_result block."""
    return {
        "role": "user",
        "content": [
            {
                "type": "tool_result",
                "tool_use_id": result.tool_call_id,
                "content": result.content,
                "is_error": result.is_error
            }
            for result in results
        ]
    }


def is_anthropic_tool_results(message: Dict[str, Any]) -> bool:
    content = message.get("content")
    return (
        message.get("role") == "user"
        and isinstance(content, list)
        and any(isinstance(block, dict) and block.get("type") == "tool_result" for block in content)
    )


# ========== Text transcript ==========

def message_text(message: Dict[str, Any]) -> str:
    """Plain-text view of a stored message, whatever its provider shape."""
    content = message.get("content")
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if not isinstance(block, dict):
                parts.append(str(block))
            elif block.get("type") == "text":
                parts.append(block.get("text", ""))
            elif block.get("type") == "tool_result":
                parts.append(str(block.get("content", "")))
        return "\n".join(part for part in parts if part)
    return str(content)


def build_transcript(messages: List[Dict[str, Any]], limit: int = 10) -> str:
    """`role: content` lines for the most recent `limit` messages."""
    return "\n".join(f"{message['role']}: {message_text(message)}" for message in messages[-limit:])
