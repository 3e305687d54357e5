"""Exports des tools intégrés."""

from orchestrator.core.system.definitions.tools.external import EXTERNAL_TOOLS
from orchestrator.core.system.definitions.tools.internal import INTERNAL_TOOLS

BUILTIN_TOOLS = INTERNAL_TOOLS + EXTERNAL_TOOLS

__all__ = ['EXTERNAL_TOOLS', 'INTERNAL_TOOLS', 'BUILTIN_TOOLS']
