"""Unit tests for the agent execution engine."""

import asyncio
import dataclasses
import pytest
from unittest.mock import AsyncMock, MagicMock
from orchestrator.core.exceptions import CircuitBreakerOpenError, NotFoundError, ValidationError
from orchestrator.core.services.accounting.audit import AuditSeverity
from orchestrator.core.services.accounting.usage import BudgetDecision, InMemoryUsageLedger, UsageService
from orchestrator.core.services.agents.engine import BUDGET_BLOCKED_MESSAGE
from orchestrator.core.services.agents.types import AgentRequest, Attachment, ProviderFamily
from orchestrator.core.services.llm.adapters.anthropic import AnthropicAdapter
from orchestrator.core.services.llm.adapters.base import MAX_ITERATIONS_MESSAGE
from orchestrator.core.services.llm.adapters.openai import OpenAIAdapter
from orchestrator.core.utils.circuit_breaker import CircuitBreaker


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def engine(make_engine, openai_client, registry, make_tool, make_agent):
    registry.register(make_tool("echo"))
    engine = make_engine({ProviderFamily.OPENAI: OpenAIAdapter(api_key="k", client=openai_client)})
    engine.register_agent(make_agent())
    return engine


class TestAgentCatalogue:

    def test_register_and_list(self, engine):
        assert engine.get_agent("test-agent").name == "Test Agent"
        assert [agent.id for agent in engine.list_agents()] == ["test-agent"]
        assert engine.get_agent("missing") is None

    @pytest.mark.asyncio
    async def test_unknown_agent(self, engine, context):
        with pytest.raises(NotFoundError):
            await engine.execute(AgentRequest(agent_id="missing", prompt="hi"), context)

    @pytest.mark.asyncio
    async def test_provider_without_adapter(self, engine, make_agent, context):
        engine.register_agent(make_agent("gemini-agent", provider=ProviderFamily.GEMINI))

        with pytest.raises(ValidationError, match="Unsupported provider"):
            await engine.execute(AgentRequest(agent_id="gemini-agent", prompt="hi"), context)


class TestExecute:

    @pytest.mark.asyncio
    async def test_plain_answer_metadata(self, engine, openai_client, openai_response, context, audit_sink):
        openai_client.chat.completions.create.return_value = openai_response("ISO 27001 answer", total_tokens=50)

        response = await engine.execute(AgentRequest(agent_id="test-agent", prompt="What is ISO 27001?"), context)

        assert response.content == "ISO 27001 answer"
        assert response.tool_calls == []
        metadata = response.metadata
        assert metadata["model"] == "test-model"
        assert metadata["iterations"] == 1
        assert metadata["tokens_used"] == 50
        assert metadata["attachment_count"] == 0
        assert metadata["prompt_template"] == {"key": "mcp_agent", "version": "1.0.0"}
        assert metadata["output_classification"]["label"] == "safe"
        assert metadata["usage"]["purpose"] == "MCP agent execution: Test Agent"
        assert "max_iterations_reached" not in metadata

        events = audit_sink.find("ai_agent_execution")
        assert len(events) == 1
        assert events[0].resource_id == "test-agent"
        assert events[0].organization_id == "org-1"
        # Metadata only, never the prompt or the answer
        assert "What is ISO 27001?" not in str(events[0].details)
        assert "ISO 27001 answer" not in str(events[0].details)

    @pytest.mark.asyncio
    async def test_max_iterations_two(self, engine, openai_client, openai_response, context, registry, make_tool):
        handler = AsyncMock(return_value={"success": True, "data": "pong"})
        registry.register(make_tool("echo", handler=handler))
        openai_client.chat.completions.create.return_value = openai_response(
            tool_calls=[("call_1", "echo", {"text": "ping"})]
        )

        response = await engine.execute(
            AgentRequest(agent_id="test-agent", prompt="loop", max_iterations=2),
            context
        )

        assert response.content == MAX_ITERATIONS_MESSAGE
        assert response.metadata["max_iterations_reached"] is True
        assert openai_client.chat.completions.create.await_count == 2
        assert handler.await_count == 2
        assert len(response.tool_calls) == 2
        # Tool context carries the agent id
        assert handler.await_args.args[1].agent_id == "test-agent"
        # History still persisted
        assert engine.get_conversation("user-1", "test-agent")

    @pytest.mark.asyncio
    async def test_iterations_are_clamped(self, engine, openai_client, openai_response, context):
        openai_client.chat.completions.create.return_value = openai_response(
            tool_calls=[("call_1", "echo", {})]
        )

        response = await engine.execute(AgentRequest(agent_id="test-agent", prompt="loop", max_iterations=50), context)

        assert response.metadata["iterations"] == 10
        assert openai_client.chat.completions.create.await_count == 10

    @pytest.mark.asyncio
    async def test_budget_denial_makes_no_model_call(self, make_engine, openai_client, make_agent, context, audit_sink):
        usage = AsyncMock(spec=UsageService)
        usage.check_budget.return_value = BudgetDecision(allowed=False, reason="daily_cap")
        engine = make_engine({ProviderFamily.OPENAI: OpenAIAdapter(api_key="k", client=openai_client)}, usage=usage)
        engine.register_agent(make_agent(max_tokens=1234))

        response = await engine.execute(AgentRequest(agent_id="test-agent", prompt="hi"), context)

        assert response.content == BUDGET_BLOCKED_MESSAGE
        assert response.tool_calls == []
        assert response.metadata == {"blocked": True, "reason": "daily_cap"}
        openai_client.chat.completions.create.assert_not_called()
        usage.record_usage.assert_not_called()
        assert usage.check_budget.await_args.kwargs["expected_tokens"] == 1234
        assert usage.check_budget.await_args.kwargs["scope"] == "org-1"

        events = audit_sink.find("ai_agent_execution_blocked")
        assert len(events) == 1
        assert events[0].severity == AuditSeverity.MEDIUM

    @pytest.mark.asyncio
    async def test_budget_denial_default_reason(self, make_engine, openai_client, make_agent, context):
        usage = AsyncMock(spec=UsageService)
        usage.check_budget.return_value = BudgetDecision(allowed=False)
        engine = make_engine({ProviderFamily.OPENAI: OpenAIAdapter(api_key="k", client=openai_client)}, usage=usage)
        engine.register_agent(make_agent())

        response = await engine.execute(AgentRequest(agent_id="test-agent", prompt="hi"), context)

        assert response.metadata["reason"] == "budget_exceeded"

    @pytest.mark.asyncio
    async def test_provider_error_leaves_history_untouched(self, engine, openai_client, openai_response, context):
        openai_client.chat.completions.create.return_value = openai_response("first")
        await engine.execute(AgentRequest(agent_id="test-agent", prompt="one"), context)
        before = engine.get_conversation("user-1", "test-agent")

        openai_client.chat.completions.create.side_effect = RuntimeError("provider down")
        with pytest.raises(RuntimeError):
            await engine.execute(AgentRequest(agent_id="test-agent", prompt="two"), context)

        assert engine.get_conversation("user-1", "test-agent") == before

    @pytest.mark.asyncio
    async def test_history_per_caller_and_clear(self, engine, openai_client, openai_response, context):
        openai_client.chat.completions.create.return_value = openai_response("answer")
        await engine.execute(AgentRequest(agent_id="test-agent", prompt="one"), context)

        assert engine.get_conversation("someone-else", "test-agent") == []
        assert await engine.clear_conversation("user-1", "test-agent") is True
        assert await engine.clear_conversation("user-1", "test-agent") is False
        assert engine.get_conversation("user-1", "test-agent") == []

    @pytest.mark.asyncio
    async def test_attachments_inlined_into_prompt(self, engine, openai_client, openai_response, context):
        openai_client.chat.completions.create.return_value = openai_response("read it")

        response = await engine.execute(
            AgentRequest(
                agent_id="test-agent",
                prompt="Review",
                attachments=[Attachment(content="access control policy", name="policy.txt", type="text/plain")]
            ),
            context
        )

        sent = openai_client.chat.completions.create.await_args.kwargs["messages"]
        assert 'content]: access control policy' in sent[-1]["content"]
        assert response.metadata["attachment_count"] == 1

    @pytest.mark.asyncio
    async def test_stale_tool_names_are_dropped(self, engine, openai_client, openai_response, make_agent, context):
        engine.register_agent(make_agent("stale", tools=("echo", "get_company_profile")))
        openai_client.chat.completions.create.return_value = openai_response("ok")

        await engine.execute(AgentRequest(agent_id="stale", prompt="hi"), context)

        tools = openai_client.chat.completions.create.await_args.kwargs["tools"]
        assert [tool["function"]["name"] for tool in tools] == ["echo"]

    @pytest.mark.asyncio
    async def test_tool_timeout_fed_back_to_model(self, make_engine, openai_client, openai_response, registry, make_tool, make_agent, context):
        async def slow(params, ctx):
            await asyncio.sleep(0.2)
            return {"success": True, "data": "late"}

        registry.register(make_tool("echo", handler=slow))
        engine = make_engine({ProviderFamily.OPENAI: OpenAIAdapter(api_key="k", client=openai_client)}, tool_timeout=0.01)
        engine.register_agent(make_agent())
        openai_client.chat.completions.create.side_effect = [
            openai_response(tool_calls=[("call_1", "echo", {})]),
            openai_response("gave up on the tool"),
        ]

        response = await engine.execute(AgentRequest(agent_id="test-agent", prompt="hi"), context)

        assert response.content == "gave up on the tool"
        assert response.tool_calls[0].success is False
        tool_message = openai_client.chat.completions.create.await_args.kwargs["messages"][-1]
        assert tool_message["role"] == "tool"
        assert "timed out" in tool_message["content"]

    @pytest.mark.asyncio
    async def test_usage_recorded_against_scope(self, make_engine, openai_client, openai_response, make_agent, context):
        ledger = InMemoryUsageLedger()
        engine = make_engine({ProviderFamily.OPENAI: OpenAIAdapter(api_key="k", client=openai_client)}, usage=ledger)
        engine.register_agent(make_agent())
        openai_client.chat.completions.create.return_value = openai_response("a" * 40)

        await engine.execute(AgentRequest(agent_id="test-agent", prompt="b" * 8), context)

        assert ledger.spent("org-1") == 12

    @pytest.mark.asyncio
    async def test_anthropic_agent(self, make_engine, registry, make_tool, make_agent, anthropic_response, context):
        registry.register(make_tool("echo"))
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=[
            anthropic_response(tool_uses=[("tu_1", "echo", {"text": "x"})]),
            anthropic_response("Drafted"),
        ])
        engine = make_engine({ProviderFamily.ANTHROPIC: AnthropicAdapter(api_key="k", client=client)})
        engine.register_agent(make_agent("writer", provider=ProviderFamily.ANTHROPIC))

        response = await engine.execute(AgentRequest(agent_id="writer", prompt="Write"), context)

        assert response.content == "Drafted"
        assert [call.tool_name for call in response.tool_calls] == ["echo"]
        assert response.tool_calls[0].success is True
        assert response.metadata["tokens_used"] == 24


class TestFailures:

    @pytest.mark.asyncio
    async def test_provider_error_is_audited(self, engine, openai_client, context, audit_sink):
        openai_client.chat.completions.create.side_effect = RuntimeError("provider down")

        with pytest.raises(RuntimeError):
            await engine.execute(AgentRequest(agent_id="test-agent", prompt="secret question"), context)

        events = audit_sink.find("ai_agent_execution_error")
        assert len(events) == 1
        assert events[0].severity == AuditSeverity.HIGH
        assert events[0].resource_id == "test-agent"
        assert events[0].organization_id == "org-1"
        assert events[0].details["error_type"] == "RuntimeError"
        assert events[0].details["error"] == "provider down"
        assert events[0].details["request_id"] == "sess-1"
        assert "secret question" not in str(events[0].details)
        assert audit_sink.find("ai_agent_execution") == []

    @pytest.mark.asyncio
    async def test_long_error_message_is_truncated(self, engine, openai_client, context, audit_sink):
        openai_client.chat.completions.create.side_effect = RuntimeError("x" * 500)

        with pytest.raises(RuntimeError):
            await engine.execute(AgentRequest(agent_id="test-agent", prompt="hi"), context)

        assert len(audit_sink.find("ai_agent_execution_error")[0].details["error"]) == 200

    @pytest.mark.asyncio
    async def test_open_circuit_is_audited(self, make_engine, openai_client, make_agent, registry, make_tool, context, audit_sink):
        registry.register(make_tool("echo"))
        adapter = OpenAIAdapter(
            api_key="k",
            client=openai_client,
            breaker=CircuitBreaker(name="openai", failure_threshold=1)
        )
        engine = make_engine({ProviderFamily.OPENAI: adapter})
        engine.register_agent(make_agent())
        openai_client.chat.completions.create.side_effect = RuntimeError("provider down")

        with pytest.raises(RuntimeError):
            await engine.execute(AgentRequest(agent_id="test-agent", prompt="one"), context)
        with pytest.raises(CircuitBreakerOpenError):
            await engine.execute(AgentRequest(agent_id="test-agent", prompt="two"), context)

        assert openai_client.chat.completions.create.await_count == 1
        events = audit_sink.find("ai_agent_circuit_open")
        assert len(events) == 1
        assert events[0].severity == AuditSeverity.HIGH
        assert events[0].details["error_type"] == "CircuitBreakerOpenError"


class TestToolPermissions:

    @pytest.mark.asyncio
    async def test_tool_outside_agent_list_is_refused(self, engine, openai_client, openai_response, registry, make_tool, context, audit_sink):
        send_email = AsyncMock(return_value={"success": True})
        registry.register(make_tool("send_email", handler=send_email))
        openai_client.chat.completions.create.side_effect = [
            openai_response(tool_calls=[("call_1", "send_email", {"to": "all@example.com"})]),
            openai_response("could not send"),
        ]

        response = await engine.execute(AgentRequest(agent_id="test-agent", prompt="mail everyone"), context)

        send_email.assert_not_awaited()
        assert response.content == "could not send"
        assert response.tool_calls[0].tool_name == "send_email"
        assert response.tool_calls[0].success is False
        tool_message = openai_client.chat.completions.create.await_args.kwargs["messages"][-1]
        assert "not permitted for agent test-agent" in tool_message["content"]

        events = audit_sink.find("tool_not_permitted")
        assert len(events) == 1
        assert events[0].severity == AuditSeverity.MEDIUM
        assert events[0].details["tool_name"] == "send_email"
        assert audit_sink.find("tool_execution") == []

    @pytest.mark.asyncio
    async def test_listed_tool_still_runs(self, engine, openai_client, openai_response, registry, make_tool, context, audit_sink):
        handler = AsyncMock(return_value={"success": True, "data": "ok"})
        registry.register(make_tool("echo", handler=handler))
        openai_client.chat.completions.create.side_effect = [
            openai_response(tool_calls=[("call_1", "echo", {})]),
            openai_response("done"),
        ]

        await engine.execute(AgentRequest(agent_id="test-agent", prompt="hi"), context)

        handler.assert_awaited_once()
        assert audit_sink.find("tool_not_permitted") == []


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_parallel_turns_keep_histories_apart(self, engine, openai_client, openai_response, context):
        in_flight = 0
        peak = 0

        async def slow_create(**kwargs):
            nonlocal in_flight, peak
            prompt = kwargs["messages"][-1]["content"]
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.05)
            in_flight -= 1
            return openai_response(f"answer to {prompt}")

        openai_client.chat.completions.create.side_effect = slow_create
        other = dataclasses.replace(context, user_id="user-2", session_id="sess-2")

        await asyncio.gather(
            engine.execute(AgentRequest(agent_id="test-agent", prompt="first"), context),
            engine.execute(AgentRequest(agent_id="test-agent", prompt="second"), context),
            engine.execute(AgentRequest(agent_id="test-agent", prompt="other"), other),
        )

        # Different callers overlap, the same caller's turns never do
        assert peak == 2
        history = engine.get_conversation("user-1", "test-agent")
        assert [(message["role"], message["content"]) for message in history[1:]] == [
            ("user", "first"),
            ("assistant", "answer to first"),
            ("user", "second"),
            ("assistant", "answer to second"),
        ]
        other_history = engine.get_conversation("user-2", "test-agent")
        assert [message["content"] for message in other_history[1:]] == ["other", "answer to other"]

    @pytest.mark.asyncio
    async def test_clear_waits_for_running_turn(self, engine, openai_client, openai_response, context):
        started = asyncio.Event()

        async def slow_create(**kwargs):
            started.set()
            await asyncio.sleep(0.05)
            return openai_response("late answer")

        openai_client.chat.completions.create.side_effect = slow_create

        turn = asyncio.create_task(engine.execute(AgentRequest(agent_id="test-agent", prompt="one"), context))
        await started.wait()
        cleared = await engine.clear_conversation("user-1", "test-agent")
        await turn

        # The turn saved before the clear ran, so nothing survives it
        assert cleared is True
        assert engine.get_conversation("user-1", "test-agent") == []
