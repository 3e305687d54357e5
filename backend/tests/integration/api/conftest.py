"""Pytest configuration and fixtures for API integration tests.

These tests drive the FastAPI app through TestClient with the real registry,
engine and gateway. Model providers are replaced by mocked SDK clients.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock
from config.config import Settings
from orchestrator.api.main import create_app
from orchestrator.core.init import initialize_orchestrator
from orchestrator.core.services.accounting.audit import InMemoryAuditSink
from orchestrator.core.services.agents.types import ProviderFamily
from orchestrator.core.services.llm.adapters.anthropic import AnthropicAdapter
from orchestrator.core.services.llm.adapters.openai import OpenAIAdapter
from orchestrator.core.utils.auth import create_access_token


@pytest.fixture
def openai_client():
    """Mocked AsyncOpenAI client (chat.completions.create)."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def anthropic_client():
    """Mocked AsyncAnthropic client (messages.create)."""
    client = MagicMock()
    client.messages.create = AsyncMock()
    return client


@pytest.fixture
def api_audit_sink():
    return InMemoryAuditSink()


@pytest.fixture
def services(openai_client, anthropic_client, api_audit_sink):
    """Orchestrator services with built-in tools, predefined agents and mocked providers."""
    return initialize_orchestrator(
        Settings(tool_timeout_seconds=0.2, max_batch_size=3),
        audit_sink=api_audit_sink,
        adapters={
            ProviderFamily.OPENAI: OpenAIAdapter(api_key="sk-test", client=openai_client),
            ProviderFamily.ANTHROPIC: AnthropicAdapter(api_key="sk-ant-test", client=anthropic_client),
        }
    )


@pytest.fixture
def client(services):
    """FastAPI TestClient; unhandled errors come back as 500 responses."""
    with TestClient(create_app(services), raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Bearer token for user-1 in org-1."""
    token = create_access_token({"sub": "user-1", "org_id": "org-1", "sid": "sess-1"})
    return {"Authorization": f"Bearer {token}"}
