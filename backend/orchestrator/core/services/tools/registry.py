# orchestrator/core/services/tools/registry.py
"""Registre des tools : enregistrement, documentation et exécution contrôlée."""

from typing import Any, Dict, Iterable, List, Optional
from config.logger import logger
from orchestrator.core.exceptions import CircuitBreakerOpenError
from orchestrator.core.services.accounting.audit import AuditSink, AuditSeverity, emit_audit
from orchestrator.core.services.tools.rate_limit import RateLimiter
from orchestrator.core.services.tools.types import (
    InvocationContext,
    Tool,
    ToolResult,
    ToolType,
)
from orchestrator.core.services.tools.validation import apply_defaults, validate_parameters
from orchestrator.core.utils.circuit_breaker import CircuitBreakerRegistry

GENERIC_EXECUTION_ERROR = "An internal error occurred during tool execution"


class ToolRegistry:
    """
    Name → Tool map with a guarded execution path.

    `execute` never raises for tool-level problems: every refusal or failure
    comes back as a failed ToolResult.
    """

    def __init__(
        self,
        audit_sink: AuditSink,
        circuit_breakers: Optional[CircuitBreakerRegistry] = None,
        rate_limiter: Optional[RateLimiter] = None,
        expose_error_details: bool = False
    ):
        self.audit_sink = audit_sink
        self.circuit_breakers = circuit_breakers or CircuitBreakerRegistry()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.expose_error_details = expose_error_details
        self._tools: Dict[str, Tool] = {}

    # ========== Catalogue ==========

    def register(self, tool: Tool):
        if tool.name in self._tools:
            logger.warning(f"Tool {tool.name} already registered, overwriting")
        self._tools[tool.name] = tool
        logger.info(f"Registered MCP tool: {tool.name} ({tool.type.value})")

    def register_many(self, tools: Iterable[Tool]):
        for tool in tools:
            self.register(tool)

    def unregister(self, name: str) -> bool:
        return self._tools.pop(name, None) is not None

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def list_tools(self) -> List[Tool]:
        return list(self._tools.values())

    def list_by_type(self, tool_type: ToolType) -> List[Tool]:
        return [tool for tool in self._tools.values() if tool.type == tool_type]

    def list_names(self) -> List[str]:
        return list(self._tools.keys())

    def get_documentation(self, name: str) -> Optional[Dict[str, Any]]:
        """Public description of a tool (never includes the handler)."""
        tool = self._tools.get(name)
        if not tool:
            return None
        return {
            "name": tool.name,
            "description": tool.description,
            "type": tool.type.value,
            "parameters": [param.to_dict() for param in tool.parameters],
            "returns": {"type": tool.returns.type, "description": tool.returns.description},
            "requires_auth": tool.requires_auth,
            "rate_limit": tool.rate_limit.to_dict() if tool.rate_limit else None,
        }

    def list_documentation(self) -> List[Dict[str, Any]]:
        return [self.get_documentation(name) for name in self._tools]

    # ========== Execution ==========

    async def execute(
        self,
        name: str,
        parameters: Any,
        context: Optional[InvocationContext] = None
    ) -> ToolResult:
        """
        Run a tool through lookup, auth, validation, rate limit, audit and
        circuit breaker, in that order.
        """
        context = context or InvocationContext()

        tool = self._tools.get(name)
        if not tool:
            return ToolResult.fail(f"Tool '{name}' not found")

        if tool.requires_auth and not context.user_id:
            return ToolResult.fail("Authentication required for this tool")

        is_valid, error = validate_parameters(tool.parameters, parameters)
        if not is_valid:
            return ToolResult.fail(error)

        if tool.rate_limit and not self.rate_limiter.check(tool.name, context.user_id, tool.rate_limit):
            await self._audit(
                "tool_rate_limit_exceeded", tool, context, AuditSeverity.MEDIUM,
                {"rate_limit": tool.rate_limit.to_dict()}
            )
            return ToolResult.fail("Rate limit exceeded for this tool")

        await self._audit(
            "execute_mcp_tool", tool, context, AuditSeverity.LOW,
            {"parameters": parameters, "tool_type": tool.type.value}
        )

        resolved = apply_defaults(tool.parameters, parameters)

        try:
            if tool.type == ToolType.EXTERNAL:
                breaker = self.circuit_breakers.get(tool.name)
                result = await breaker.call(tool.invoke, resolved, context)
            else:
                result = await tool.invoke(resolved, context)
        except CircuitBreakerOpenError as e:
            logger.warning(f"Tool {tool.name} refused: {e.message}")
            await self._audit(
                "tool_circuit_open", tool, context, AuditSeverity.HIGH,
                {"circuit": e.details.get("circuit"), "retry_in": e.details.get("retry_in")}
            )
            return ToolResult.fail(e.message, circuit_open=True)
        except Exception as e:
            logger.error(f"Tool {tool.name} raised: {e}", exc_info=True)
            await self._audit(
                "tool_execution_error", tool, context, AuditSeverity.HIGH,
                {"error": str(e), "exception": e.__class__.__name__}
            )
            message = f"Tool execution failed: {e}" if self.expose_error_details else GENERIC_EXECUTION_ERROR
            return ToolResult.fail(message)

        if not result.success:
            await self._audit(
                "tool_execution_failed", tool, context, AuditSeverity.MEDIUM,
                {"error": result.error}
            )

        return result

    async def _audit(
        self,
        action: str,
        tool: Tool,
        context: InvocationContext,
        severity: AuditSeverity,
        details: Dict[str, Any]
    ):
        await emit_audit(
            self.audit_sink,
            action=action,
            actor=context.actor,
            resource_type="mcp_tool",
            resource_id=tool.name,
            severity=severity,
            details={**details, "session_id": context.session_id, "agent_id": context.agent_id},
            organization_id=context.organization_id
        )
