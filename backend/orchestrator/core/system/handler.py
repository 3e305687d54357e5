"""
Registre des handlers des tools intégrés.

Architecture :
- Registry global alimenté par le décorateur @tool_handler
- Handlers modulaires dans handlers/
- Les définitions (definitions/tools/) sont liées à leur handler au démarrage
"""

import dataclasses
from typing import Callable, Dict, Iterable, List
from config.logger import logger
from orchestrator.core.services.tools.types import Tool

# Registry global des handlers
_TOOL_HANDLERS: Dict[str, Callable] = {}


def tool_handler(tool_name: str):
    """
    Décorateur pour enregistrer le handler d'un tool intégré.

    Usage:
        @tool_handler("my_tool")
        async def handle_my_tool(parameters: Dict[str, Any], context: InvocationContext) -> Dict[str, Any]:
            return {"success": True, "data": ..., "error": None}

    Args:
        tool_name: Nom du tool à enregistrer
    """
    def decorator(func: Callable):
        _TOOL_HANDLERS[tool_name] = func
        logger.debug(f"Registered built-in tool handler: {tool_name}")
        return func
    return decorator


def bind_handlers(tools: Iterable[Tool]) -> List[Tool]:
    """
    Copies of `tools` with their registered handler attached.

    A definition without a handler is kept as-is; executing it fails at call
    time.
    """
    # Importing the package registers every handler
    from orchestrator.core.system import handlers  # noqa: F401

    bound = []
    for tool in tools:
        handler = _TOOL_HANDLERS.get(tool.name)
        if handler is None:
            logger.warning(f"No handler registered for built-in tool: {tool.name}")
            bound.append(tool)
            continue
        bound.append(dataclasses.replace(tool, handler=handler))
    return bound


def get_registered_tools() -> list[str]:
    """Retourne la liste des tools enregistrés (utile pour debug)."""
    return list(_TOOL_HANDLERS.keys())
