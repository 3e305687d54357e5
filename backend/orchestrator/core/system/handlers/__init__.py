"""
Handlers modulaires pour les tools intégrés.

L'import de ces modules déclenche l'auto-registration via @tool_handler.
"""

from . import external
from . import internal

__all__ = ["external", "internal"]
