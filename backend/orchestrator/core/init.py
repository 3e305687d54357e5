"""
Initialisation du coeur d'orchestration au démarrage de l'application.

Every piece of process-wide state is built here once and handed to the API
through `app.state.services`.
"""

from dataclasses import dataclass
from typing import Dict, Optional
from config.config import Settings, settings as default_settings
from config.logger import logger
from orchestrator.core.services.accounting.audit import AuditSink, InMemoryAuditSink
from orchestrator.core.services.accounting.classification import KeywordOutputClassifier, OutputClassifier
from orchestrator.core.services.accounting.usage import InMemoryUsageLedger, UsageService
from orchestrator.core.services.agents.conversations import ConversationStore
from orchestrator.core.services.agents.engine import AgentEngine
from orchestrator.core.services.agents.prompts import default_templates
from orchestrator.core.services.agents.types import ProviderFamily
from orchestrator.core.services.llm.adapters.anthropic import AnthropicAdapter
from orchestrator.core.services.llm.adapters.base import BaseAdapter
from orchestrator.core.services.llm.adapters.gemini import GeminiAdapter
from orchestrator.core.services.llm.adapters.openai import OpenAIAdapter
from orchestrator.core.services.mcp.gateway import MCPGateway
from orchestrator.core.services.tools.registry import ToolRegistry
from orchestrator.core.system.definitions import BUILTIN_TOOLS, build_predefined_agents
from orchestrator.core.system.handler import bind_handlers
from orchestrator.core.utils.circuit_breaker import CircuitBreakerRegistry


@dataclass
class OrchestratorServices:
    """Conteneur des services partagés par les routes."""
    settings: Settings
    audit_sink: AuditSink
    usage: UsageService
    classifier: OutputClassifier
    circuit_breakers: CircuitBreakerRegistry
    registry: ToolRegistry
    engine: AgentEngine
    gateway: MCPGateway


def build_adapters(settings: Settings, breakers: CircuitBreakerRegistry) -> Dict[ProviderFamily, BaseAdapter]:
    """One adapter per provider family, each behind its own circuit breaker."""
    return {
        ProviderFamily.OPENAI: OpenAIAdapter(
            api_key=settings.openai_api_key or None,
            breaker=breakers.register(ProviderFamily.OPENAI.value)
        ),
        ProviderFamily.ANTHROPIC: AnthropicAdapter(
            api_key=settings.anthropic_api_key or None,
            breaker=breakers.register(ProviderFamily.ANTHROPIC.value)
        ),
        ProviderFamily.GEMINI: GeminiAdapter(
            api_key=settings.gemini_api_key or None,
            breaker=breakers.register(ProviderFamily.GEMINI.value)
        ),
    }


def initialize_orchestrator(
    settings: Optional[Settings] = None,
    audit_sink: Optional[AuditSink] = None,
    usage: Optional[UsageService] = None,
    classifier: Optional[OutputClassifier] = None,
    adapters: Optional[Dict[ProviderFamily, BaseAdapter]] = None
) -> OrchestratorServices:
    """
    Build the registry, engine and gateway, then register the built-in tools
    and predefined agents. Collaborators can be swapped for real
    implementations (or test doubles).
    """
    settings = settings or default_settings
    audit_sink = audit_sink or InMemoryAuditSink()
    usage = usage or InMemoryUsageLedger(daily_token_budget=settings.daily_token_budget)
    classifier = classifier or KeywordOutputClassifier()

    breakers = CircuitBreakerRegistry(
        failure_threshold=settings.circuit_failure_threshold,
        recovery_timeout=settings.circuit_recovery_timeout
    )

    registry = ToolRegistry(
        audit_sink=audit_sink,
        circuit_breakers=breakers,
        expose_error_details=settings.debug
    )
    tools = bind_handlers(BUILTIN_TOOLS)
    registry.register_many(tools)
    for tool in registry.list_tools():
        if tool.type.value == "external":
            breakers.register(tool.name)

    engine = AgentEngine(
        registry=registry,
        adapters=adapters or build_adapters(settings, breakers),
        conversations=ConversationStore(history_limit=settings.conversation_history_limit),
        usage=usage,
        classifier=classifier,
        audit_sink=audit_sink,
        templates=default_templates(),
        tool_timeout=settings.tool_timeout_seconds
    )
    for agent in build_predefined_agents(settings):
        engine.register_agent(agent)

    gateway = MCPGateway(
        registry=registry,
        engine=engine,
        audit_sink=audit_sink,
        tool_timeout=settings.tool_timeout_seconds,
        max_batch_size=settings.max_batch_size,
        max_prompt_chars=settings.max_prompt_chars,
        max_attachments=settings.max_attachments,
        max_attachment_chars=settings.max_attachment_chars,
        max_total_attachment_chars=settings.max_total_attachment_chars,
        default_max_iterations=settings.default_max_iterations
    )

    logger.info(
        f"✅ Orchestrator initialized: {len(registry.list_names())} tools, "
        f"{len(engine.list_agents())} agents"
    )
    return OrchestratorServices(
        settings=settings,
        audit_sink=audit_sink,
        usage=usage,
        classifier=classifier,
        circuit_breakers=breakers,
        registry=registry,
        engine=engine,
        gateway=gateway
    )
