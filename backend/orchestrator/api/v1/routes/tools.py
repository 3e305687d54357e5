#!/usr/bin/env python3
# orchestrator/api/v1/routes/tools.py

from fastapi import APIRouter, Depends
from config.logger import logger
from orchestrator.api.v1.dependencies import get_services
from orchestrator.api.v1.schemas import ToolExecuteRequest, BatchExecuteRequest
from orchestrator.core.init import OrchestratorServices
from orchestrator.core.utils.auth import Caller, get_current_caller

router = APIRouter(prefix="/tools", tags=["tools"])


@router.get("")
async def list_tools(services: OrchestratorServices = Depends(get_services)):
    """Documentation de tous les tools enregistrés."""
    tools = services.gateway.list_tools()
    return {"success": True, "count": len(tools), "tools": tools}


# Déclarée avant /{name} pour ne pas être capturée par le paramètre
@router.post("/batch")
async def execute_batch(
    body: BatchExecuteRequest,
    caller: Caller = Depends(get_current_caller),
    services: OrchestratorServices = Depends(get_services)
):
    """Exécute jusqu'à 10 tools séquentiellement."""
    executions = [execution.model_dump() for execution in body.executions]
    results = await services.gateway.execute_batch(executions, caller)
    return {"success": True, "results": results}


@router.get("/{name}")
async def get_tool(name: str, services: OrchestratorServices = Depends(get_services)):
    """Documentation d'un tool."""
    return {"success": True, "tool": services.gateway.get_tool(name)}


@router.post("/{name}/execute")
async def execute_tool(
    name: str,
    body: ToolExecuteRequest,
    caller: Caller = Depends(get_current_caller),
    services: OrchestratorServices = Depends(get_services)
):
    """
    Exécute un tool pour l'appelant authentifié.

    A failed tool still answers 200: the failure is carried by `result`.
    """
    result = await services.gateway.execute_tool(name, body.parameters, caller, metadata=body.context)
    if not result.success:
        logger.debug(f"Tool {name} returned a failure: {result.error}")
    return {"success": True, "result": result.to_dict()}
