"""Utilities pour construire la liste des tools disponibles pour un agent."""

from typing import List, Sequence
from config.logger import logger
from orchestrator.core.services.llm.types import ToolDefinition
from orchestrator.core.services.tools.registry import ToolRegistry


def build_tools_for_agent(
    registry: ToolRegistry,
    agent_id: str,
    tool_names: Sequence[str]
) -> List[ToolDefinition]:
    """
    Resolve an agent's permitted tool names against the registry.

    Names that no longer resolve are dropped with a warning; order is kept.
    """
    tools = []
    for name in tool_names:
        tool = registry.get(name)
        if not tool:
            logger.warning(f"Tool {name} not found in registry (agent {agent_id})")
            continue
        tools.append(ToolDefinition(
            name=tool.name,
            description=tool.description,
            input_schema=tool.input_schema()
        ))

    logger.debug(f"Built {len(tools)} tools for agent {agent_id}")
    return tools
