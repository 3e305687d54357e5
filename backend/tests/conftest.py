"""Pytest configuration and shared fixtures for all tests."""

import json
import os
from types import SimpleNamespace

# Settings are read at import time: pin them before any application import
os.environ["LOG_FILE"] = ""
os.environ["DEBUG"] = "false"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-key-min-32-chars-long-12345"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["DAILY_TOKEN_BUDGET"] = "0"
os.environ["OPENAI_API_KEY"] = ""
os.environ["ANTHROPIC_API_KEY"] = ""
os.environ["GEMINI_API_KEY"] = ""

import pytest
from orchestrator.core.services.accounting.audit import InMemoryAuditSink
from orchestrator.core.services.accounting.classification import KeywordOutputClassifier
from orchestrator.core.services.accounting.usage import InMemoryUsageLedger
from orchestrator.core.services.agents.conversations import ConversationStore
from orchestrator.core.services.agents.engine import AgentEngine
from orchestrator.core.services.agents.types import AgentDefinition, ProviderFamily
from orchestrator.core.services.tools.registry import ToolRegistry
from orchestrator.core.services.tools.types import InvocationContext, Tool, ToolType


@pytest.fixture
def audit_sink():
    """Audit sink keeping events in memory."""
    return InMemoryAuditSink()


@pytest.fixture
def context():
    """Authenticated invocation context."""
    return InvocationContext(user_id="user-1", organization_id="org-1", session_id="sess-1")


@pytest.fixture
def make_tool():
    """Factory for tools with an echo handler by default."""
    def _make(
        name="echo",
        handler=None,
        tool_type=ToolType.INTERNAL,
        parameters=None,
        rate_limit=None,
        requires_auth=False
    ):
        async def echo_handler(params, ctx):
            return {"success": True, "data": {"echo": params}}

        return Tool(
            name=name,
            description=f"{name} tool",
            type=tool_type,
            parameters=parameters or [],
            rate_limit=rate_limit,
            requires_auth=requires_auth,
            handler=handler or echo_handler
        )
    return _make


@pytest.fixture
def registry(audit_sink):
    return ToolRegistry(audit_sink=audit_sink)


@pytest.fixture
def make_agent():
    """Factory for agent definitions."""
    def _make(agent_id="test-agent", provider=ProviderFamily.OPENAI, tools=("echo",), max_tokens=2000):
        return AgentDefinition(
            id=agent_id,
            name="Test Agent",
            description="Agent used in tests",
            provider=provider,
            model="test-model",
            system_prompt="You are a test agent.",
            tools=tuple(tools),
            max_tokens=max_tokens
        )
    return _make


@pytest.fixture
def make_engine(registry, audit_sink):
    """Factory for an engine over the shared registry and audit sink."""
    def _make(adapters, usage=None, tool_timeout=30.0, history_limit=20):
        return AgentEngine(
            registry=registry,
            adapters=adapters,
            conversations=ConversationStore(history_limit=history_limit),
            usage=usage or InMemoryUsageLedger(),
            classifier=KeywordOutputClassifier(),
            audit_sink=audit_sink,
            tool_timeout=tool_timeout
        )
    return _make


# ========== Provider response builders ==========

def _openai_response(content=None, tool_calls=None, total_tokens=10):
    calls = [
        SimpleNamespace(
            id=call_id,
            type="function",
            function=SimpleNamespace(name=name, arguments=json.dumps(arguments))
        )
        for call_id, name, arguments in tool_calls or []
    ]
    message = SimpleNamespace(content=content, tool_calls=calls or None)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message)],
        usage=SimpleNamespace(total_tokens=total_tokens)
    )


def _anthropic_response(text=None, tool_uses=None, input_tokens=5, output_tokens=7):
    content = []
    if text is not None:
        content.append(SimpleNamespace(type="text", text=text))
    for use_id, name, arguments in tool_uses or []:
        content.append(SimpleNamespace(type="tool_use", id=use_id, name=name, input=arguments))
    return SimpleNamespace(
        content=content,
        usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens)
    )


@pytest.fixture
def openai_response():
    """Builds a chat.completions response: tool_calls is a list of (id, name, args)."""
    return _openai_response


@pytest.fixture
def anthropic_response():
    """Builds a messages response: tool_uses is a list of (id, name, args)."""
    return _anthropic_response
