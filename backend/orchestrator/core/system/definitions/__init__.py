"""Exports des définitions système."""

from orchestrator.core.system.definitions.agents import build_predefined_agents, get_recommended_agent
from orchestrator.core.system.definitions.tools import BUILTIN_TOOLS, EXTERNAL_TOOLS, INTERNAL_TOOLS

__all__ = [
    'build_predefined_agents',
    'get_recommended_agent',
    'BUILTIN_TOOLS',
    'EXTERNAL_TOOLS',
    'INTERNAL_TOOLS'
]
