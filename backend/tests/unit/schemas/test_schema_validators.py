#!/usr/bin/env python3
"""
Unit tests for the request schemas.

Tests validator logic in isolation without requiring API context.
Focus areas:
- camelCase aliases (toolName, maxIterations)
- Empty attachment arrays
- Untyped tool parameters (left to the registry)
"""

import pytest
from pydantic import ValidationError
from orchestrator.api.v1.schemas import AgentExecuteRequest, BatchExecuteRequest, ToolExecuteRequest


# ===== TOOLS =====

class TestToolExecuteRequest:

    def test_defaults(self):
        request = ToolExecuteRequest()
        assert request.parameters == {}
        assert request.context is None

    def test_parameters_shape_not_checked(self):
        """Non-object parameters reach the registry, which reports them."""
        assert ToolExecuteRequest(parameters=["a"]).parameters == ["a"]


class TestBatchExecuteRequest:

    def test_accepts_both_spellings(self):
        request = BatchExecuteRequest(executions=[
            {"toolName": "web_search", "parameters": {"query": "iso"}},
            {"tool_name": "fetch_url"},
        ])

        dumped = [execution.model_dump() for execution in request.executions]
        assert dumped[0] == {"tool_name": "web_search", "parameters": {"query": "iso"}}
        assert dumped[1] == {"tool_name": "fetch_url", "parameters": {}}

    def test_executions_required(self):
        with pytest.raises(ValidationError):
            BatchExecuteRequest()

    def test_executions_must_be_list(self):
        with pytest.raises(ValidationError):
            BatchExecuteRequest(executions="web_search")


# ===== AGENTS =====

class TestAgentExecuteRequest:

    def test_max_iterations_alias(self):
        assert AgentExecuteRequest(prompt="hi", maxIterations=3).max_iterations == 3
        assert AgentExecuteRequest(prompt="hi", max_iterations=4).max_iterations == 4

    def test_empty_attachments_become_none(self):
        assert AgentExecuteRequest(prompt="hi", attachments=[]).attachments is None

    def test_attachment_fields(self):
        request = AgentExecuteRequest(
            prompt="hi",
            attachments=[{"content": {"rows": 2}, "name": "data.json", "type": "application/json"}]
        )
        attachment = request.attachments[0]
        assert attachment.content == {"rows": 2}
        assert attachment.name == "data.json"

    def test_prompt_optional_at_schema_level(self):
        """Presence is enforced by the gateway so the error is a 400."""
        assert AgentExecuteRequest().prompt is None

    def test_attachment_name_length(self):
        with pytest.raises(ValidationError):
            AgentExecuteRequest(prompt="hi", attachments=[{"content": "x", "name": "n" * 256}])
