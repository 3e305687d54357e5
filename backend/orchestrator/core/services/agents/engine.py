# orchestrator/core/services/agents/engine.py
"""
Moteur d'exécution des agents.

One turn goes through: budget check → model call → (tool requests → tool
execution → model call)* → terminal answer, then usage accounting, output
classification and a metadata audit record.
"""

import dataclasses
from typing import Any, Dict, List, Optional
from config.logger import logger
from orchestrator.core.exceptions import (
    AppException,
    CircuitBreakerOpenError,
    NotFoundError,
    ToolTimeoutError,
    ValidationError,
)
from orchestrator.core.services.accounting.audit import AuditSink, AuditSeverity, emit_audit
from orchestrator.core.services.accounting.classification import OutputClassifier
from orchestrator.core.services.accounting.usage import UsageService
from orchestrator.core.services.agents.conversations import ConversationStore, conversation_key
from orchestrator.core.services.agents.prompts import (
    PromptTemplateRegistry,
    build_prompt_with_attachments,
    default_templates,
)
from orchestrator.core.services.agents.types import (
    AgentDefinition,
    AgentRequest,
    AgentResponse,
    ProviderFamily,
)
from orchestrator.core.services.llm.adapters.base import BaseAdapter
from orchestrator.core.services.llm.types import TurnRequest
from orchestrator.core.services.llm.utils.tools import build_tools_for_agent
from orchestrator.core.services.tools.registry import ToolRegistry
from orchestrator.core.services.tools.types import InvocationContext, ToolResult
from orchestrator.core.utils.timeout import run_with_timeout

ACTION_TYPE = "mcp_agent_execution"
BUDGET_BLOCKED_MESSAGE = "AI usage budget exceeded for this scope. Agent execution blocked."
DEFAULT_EXPECTED_TOKENS = 2000
MAX_ERROR_MESSAGE_CHARS = 200


class AgentEngine:
    """Runs agent turns against the provider adapters and the tool registry."""

    def __init__(
        self,
        registry: ToolRegistry,
        adapters: Dict[ProviderFamily, BaseAdapter],
        conversations: ConversationStore,
        usage: UsageService,
        classifier: OutputClassifier,
        audit_sink: AuditSink,
        templates: Optional[PromptTemplateRegistry] = None,
        tool_timeout: float = 30.0
    ):
        self.registry = registry
        self.adapters = adapters
        self.conversations = conversations
        self.usage = usage
        self.classifier = classifier
        self.audit_sink = audit_sink
        self.templates = templates or default_templates()
        self.tool_timeout = tool_timeout
        self._agents: Dict[str, AgentDefinition] = {}

    # ========== Agents ==========

    def register_agent(self, agent: AgentDefinition):
        self._agents[agent.id] = agent
        logger.info(f"Registered agent: {agent.name} ({agent.id})")

    def get_agent(self, agent_id: str) -> Optional[AgentDefinition]:
        return self._agents.get(agent_id)

    def list_agents(self) -> List[AgentDefinition]:
        return list(self._agents.values())

    # ========== Conversations ==========

    async def clear_conversation(self, caller_id: Optional[str], agent_id: str) -> bool:
        """Clear one history, waiting for any in-flight turn on it to save first."""
        key = conversation_key(caller_id, agent_id)
        async with self.conversations.session(key):
            cleared = self.conversations.clear(key)
        logger.debug(f"Conversation {caller_id or 'anon'}/{agent_id} cleared (existed={cleared})")
        return cleared

    def get_conversation(self, caller_id: Optional[str], agent_id: str) -> List[Dict[str, Any]]:
        return self.conversations.get(conversation_key(caller_id, agent_id))

    # ========== Execution ==========

    async def execute(self, request: AgentRequest, context: InvocationContext) -> AgentResponse:
        agent = self.get_agent(request.agent_id)
        if not agent:
            raise NotFoundError(f"Agent {request.agent_id} not found", details={"agent_id": request.agent_id})

        adapter = self.adapters.get(agent.provider)
        if adapter is None:
            raise ValidationError(
                f"Unsupported provider: {agent.provider.value}",
                details={"agent_id": agent.id}
            )

        template = self.templates.render(
            "mcp_agent",
            agent_id=agent.id,
            prompt=request.prompt[:1000]
        )
        template_info = {"key": template.key, "version": template.version}
        scope = context.organization_id or context.actor

        decision = await self.usage.check_budget(
            actor=context.actor,
            scope=scope,
            action_type=ACTION_TYPE,
            model=agent.model,
            prompt=request.prompt,
            expected_tokens=agent.max_tokens or DEFAULT_EXPECTED_TOKENS
        )
        if not decision.allowed:
            reason = decision.reason or "budget_exceeded"
            logger.warning(f"Agent {agent.id} blocked for {scope}: {reason}")
            await emit_audit(
                self.audit_sink,
                action="ai_agent_execution_blocked",
                actor=context.actor,
                resource_type="ai_agent",
                resource_id=agent.id,
                severity=AuditSeverity.MEDIUM,
                details={
                    "action_type": ACTION_TYPE,
                    "model": agent.model,
                    "request_id": context.session_id,
                    "prompt_template": template_info,
                    "blocked_reason": reason,
                },
                organization_id=context.organization_id
            )
            return AgentResponse(
                content=BUDGET_BLOCKED_MESSAGE,
                tool_calls=[],
                metadata={"blocked": True, "reason": reason}
            )

        prompt = build_prompt_with_attachments(request.prompt, request.attachments)
        tools = build_tools_for_agent(self.registry, agent.id, agent.tools)
        tool_context = dataclasses.replace(context, agent_id=agent.id)
        permitted = {tool.name for tool in tools}

        async def execute_tool(name: str, parameters: Dict[str, Any]) -> ToolResult:
            if name not in permitted:
                logger.warning(f"Agent {agent.id} requested tool outside its list: {name}")
                await emit_audit(
                    self.audit_sink,
                    action="tool_not_permitted",
                    actor=context.actor,
                    resource_type="ai_agent",
                    resource_id=agent.id,
                    severity=AuditSeverity.MEDIUM,
                    details={
                        "tool_name": name,
                        "model": agent.model,
                        "request_id": context.session_id,
                    },
                    organization_id=context.organization_id
                )
                return ToolResult.fail(f"Tool '{name}' is not permitted for agent {agent.id}")
            try:
                return await run_with_timeout(
                    self.registry.execute(name, parameters, tool_context),
                    self.tool_timeout,
                    label=f"Tool {name}"
                )
            except ToolTimeoutError as e:
                return ToolResult.fail(e.message, timed_out=True)

        key = conversation_key(context.user_id, agent.id)
        async with self.conversations.session(key):
            history = self.conversations.get(key)
            try:
                outcome = await adapter.run_turn(TurnRequest(
                    agent=agent,
                    history=history,
                    prompt=prompt,
                    tools=tools,
                    max_iterations=request.max_iterations,
                    execute_tool=execute_tool
                ))
            except Exception as e:
                logger.error(f"{agent.provider.value} agent execution failed ({agent.id}): {e}")
                await self._audit_failure(agent, context, template_info, e)
                raise
            self.conversations.save(key, outcome.messages)

        metadata: Dict[str, Any] = {
            "model": agent.model,
            "iterations": outcome.iterations,
            "attachment_count": len(request.attachments),
        }
        if outcome.tokens_used is not None:
            metadata["tokens_used"] = outcome.tokens_used
        if outcome.max_iterations_reached:
            metadata["max_iterations_reached"] = True
        if outcome.tools_disabled:
            metadata["tools_disabled"] = True

        usage = await self.usage.record_usage(
            actor=context.actor,
            scope=scope,
            action_type=ACTION_TYPE,
            model=agent.model,
            prompt=request.prompt,
            response=outcome.content,
            purpose=f"MCP agent execution: {agent.name}"
        )
        classification = self.classifier.classify(outcome.content or "")

        await emit_audit(
            self.audit_sink,
            action="ai_agent_execution",
            actor=context.actor,
            resource_type="ai_agent",
            resource_id=agent.id,
            severity=AuditSeverity.LOW,
            details={
                "action_type": ACTION_TYPE,
                "model": agent.model,
                "request_id": context.session_id,
                "prompt_template": template_info,
                "usage": usage.to_dict(),
                "output_classification": classification.to_dict(),
                "tool_call_count": len(outcome.tool_calls),
            },
            organization_id=context.organization_id
        )

        metadata.update({
            "usage": usage.to_dict(),
            "output_classification": classification.to_dict(),
            "prompt_template": template_info,
        })
        return AgentResponse(content=outcome.content, tool_calls=outcome.tool_calls, metadata=metadata)

    async def _audit_failure(
        self,
        agent: AgentDefinition,
        context: InvocationContext,
        template_info: Dict[str, Any],
        error: Exception
    ):
        # Provider exceptions can echo request payloads; keep a bounded message only
        message = error.message if isinstance(error, AppException) else str(error)
        await emit_audit(
            self.audit_sink,
            action="ai_agent_circuit_open" if isinstance(error, CircuitBreakerOpenError) else "ai_agent_execution_error",
            actor=context.actor,
            resource_type="ai_agent",
            resource_id=agent.id,
            severity=AuditSeverity.HIGH,
            details={
                "action_type": ACTION_TYPE,
                "model": agent.model,
                "request_id": context.session_id,
                "prompt_template": template_info,
                "error_type": type(error).__name__,
                "error": message[:MAX_ERROR_MESSAGE_CHARS],
            },
            organization_id=context.organization_id
        )
