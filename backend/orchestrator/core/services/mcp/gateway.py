# orchestrator/core/services/mcp/gateway.py
"""
Gateway MCP : frontière entre les requêtes HTTP et le coeur d'orchestration.

Validates payloads, attaches the caller's identity, enforces caller-side
timeouts and writes the gateway-level audit trail.
"""

from typing import Any, Dict, List, Optional, Sequence
from config.logger import logger
from orchestrator.core.exceptions import NotFoundError, ToolTimeoutError, ValidationError
from orchestrator.core.services.accounting.audit import AuditSink, AuditSeverity, emit_audit
from orchestrator.core.services.agents.engine import AgentEngine
from orchestrator.core.services.agents.types import AgentDefinition, AgentRequest, AgentResponse, Attachment
from orchestrator.core.services.mcp.attachments import attachment_names, normalize_attachments
from orchestrator.core.services.tools.registry import ToolRegistry
from orchestrator.core.services.tools.types import ToolResult
from orchestrator.core.utils.auth import Caller
from orchestrator.core.utils.timeout import run_with_timeout


class MCPGateway:
    """Request-boundary operations over the tool registry and agent engine."""

    def __init__(
        self,
        registry: ToolRegistry,
        engine: AgentEngine,
        audit_sink: AuditSink,
        tool_timeout: float = 30.0,
        max_batch_size: int = 10,
        max_prompt_chars: int = 10_000,
        max_attachments: int = 10,
        max_attachment_chars: int = 2_000_000,
        max_total_attachment_chars: int = 8_000_000,
        default_max_iterations: int = 5
    ):
        self.registry = registry
        self.engine = engine
        self.audit_sink = audit_sink
        self.tool_timeout = tool_timeout
        self.max_batch_size = max_batch_size
        self.max_prompt_chars = max_prompt_chars
        self.max_attachments = max_attachments
        self.max_attachment_chars = max_attachment_chars
        self.max_total_attachment_chars = max_total_attachment_chars
        self.default_max_iterations = default_max_iterations

    # ========== Discovery ==========

    def list_tools(self) -> List[Dict[str, Any]]:
        return self.registry.list_documentation()

    def get_tool(self, name: str) -> Dict[str, Any]:
        documentation = self.registry.get_documentation(name)
        if documentation is None:
            raise NotFoundError("Tool not found", details={"tool_name": name})
        return documentation

    def list_agents(self) -> List[AgentDefinition]:
        return self.engine.list_agents()

    def get_agent(self, agent_id: str) -> AgentDefinition:
        agent = self.engine.get_agent(agent_id)
        if agent is None:
            raise NotFoundError("Agent not found", details={"agent_id": agent_id})
        return agent

    # ========== Tools ==========

    async def execute_tool(
        self,
        name: str,
        parameters: Any,
        caller: Caller,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ToolResult:
        """
        Execute one tool under the caller-side timeout.

        Raises:
            NotFoundError: Unknown tool
            ToolTimeoutError: The registry did not settle in time
        """
        if self.registry.get(name) is None:
            raise NotFoundError(f"Tool '{name}' not found", details={"tool_name": name})

        result = await self._run_tool(name, parameters, caller, metadata)
        await self._audit_tool(name, parameters, caller, result)
        return result

    async def execute_batch(self, executions: Sequence[Dict[str, Any]], caller: Caller) -> List[Dict[str, Any]]:
        """
        Run up to `max_batch_size` executions sequentially.

        An invalid entry anywhere fails the whole batch; a timed-out entry
        only fails itself.
        """
        if not isinstance(executions, (list, tuple)):
            raise ValidationError("executions must be an array")
        if len(executions) > self.max_batch_size:
            raise ValidationError(
                f"Too many executions (max {self.max_batch_size})",
                details={"count": len(executions), "max": self.max_batch_size}
            )

        results: List[Dict[str, Any]] = []
        for index, execution in enumerate(executions):
            tool_name = execution.get("tool_name") if isinstance(execution, dict) else None
            parameters = execution.get("parameters", {}) if isinstance(execution, dict) else None

            if not tool_name or self.registry.get(tool_name) is None:
                raise ValidationError(
                    f"Execution {index}: unknown tool '{tool_name}'",
                    details={"index": index, "tool_name": tool_name}
                )
            if not isinstance(parameters, dict):
                raise ValidationError(
                    f"Execution {index}: parameters must be an object",
                    details={"index": index, "tool_name": tool_name}
                )

            try:
                result = await self._run_tool(tool_name, parameters, caller)
            except ToolTimeoutError as e:
                result = ToolResult.fail(e.message, timed_out=True)

            await self._audit_tool(tool_name, parameters, caller, result)
            results.append({"tool_name": tool_name, "result": result.to_dict()})

        logger.info(f"Batch of {len(results)} tool execution(s) completed for {caller.user_id}")
        return results

    async def _run_tool(
        self,
        name: str,
        parameters: Any,
        caller: Caller,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ToolResult:
        context = caller.to_context(metadata=metadata)
        try:
            return await run_with_timeout(
                self.registry.execute(name, parameters, context),
                self.tool_timeout,
                label=f"Tool {name}"
            )
        except ToolTimeoutError as e:
            await emit_audit(
                self.audit_sink,
                action="tool_execution_timeout",
                actor=context.actor,
                resource_type="tool_execution",
                resource_id=name,
                severity=AuditSeverity.MEDIUM,
                details={"tool_name": name, "timeout_seconds": e.timeout},
                organization_id=caller.organization_id
            )
            raise

    async def _audit_tool(self, name: str, parameters: Any, caller: Caller, result: ToolResult):
        await emit_audit(
            self.audit_sink,
            action="tool_execution",
            actor=caller.user_id or "anonymous",
            resource_type="tool_execution",
            resource_id=name,
            severity=AuditSeverity.LOW,
            details={"tool_name": name, "success": result.success, "parameters": parameters},
            organization_id=caller.organization_id
        )

    # ========== Agents ==========

    async def execute_agent(
        self,
        agent_id: str,
        prompt: Optional[str],
        attachments: Any,
        caller: Caller,
        max_iterations: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> AgentResponse:
        """
        Validate the request and run one agent turn.

        Raises:
            ValidationError: Missing/oversized prompt or invalid attachments
            NotFoundError: Unknown agent
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt is required")
        if len(prompt) > self.max_prompt_chars:
            raise ValidationError(
                f"Prompt exceeds {self.max_prompt_chars} characters",
                details={"length": len(prompt), "max_chars": self.max_prompt_chars}
            )

        normalized = normalize_attachments(
            attachments,
            max_count=self.max_attachments,
            max_item_chars=self.max_attachment_chars,
            max_total_chars=self.max_total_attachment_chars
        )

        self.get_agent(agent_id)

        request = AgentRequest(
            agent_id=agent_id,
            prompt=prompt,
            attachments=normalized,
            max_iterations=max_iterations if max_iterations is not None else self.default_max_iterations,
            context=dict(context or {})
        )
        try:
            response = await self.engine.execute(request, caller.to_context(agent_id=agent_id, metadata=context))
        except Exception as e:
            await self._audit_agent(agent_id, prompt, normalized, caller, error=e)
            raise

        await self._audit_agent(agent_id, prompt, normalized, caller, response=response)
        return response

    async def _audit_agent(
        self,
        agent_id: str,
        prompt: str,
        attachments: List[Attachment],
        caller: Caller,
        response: Optional[AgentResponse] = None,
        error: Optional[Exception] = None
    ):
        details: Dict[str, Any] = {
            "agent_id": agent_id,
            "prompt": prompt[:100],
            "tool_calls_count": len(response.tool_calls) if response else 0,
            "attachment_count": len(attachments),
            "attachments": attachment_names(attachments),
            "success": error is None,
        }
        if error is not None:
            details["error_type"] = type(error).__name__
        await emit_audit(
            self.audit_sink,
            action="agent_execution",
            actor=caller.user_id or "anonymous",
            resource_type="agent_execution",
            resource_id=agent_id,
            severity=AuditSeverity.LOW if error is None else AuditSeverity.HIGH,
            details=details,
            organization_id=caller.organization_id
        )

    async def clear_conversation(self, agent_id: str, caller: Caller) -> bool:
        return await self.engine.clear_conversation(caller.user_id, agent_id)

    # ========== Health ==========

    def health(self) -> Dict[str, Any]:
        return {
            "tool_registry": {
                "status": "operational",
                "tools_registered": len(self.registry.list_names()),
            },
            "agent_engine": {
                "status": "operational",
                "agents_registered": len(self.engine.list_agents()),
            },
        }
