#!/usr/bin/env python3
# orchestrator/api/v1/routes/agents.py

from fastapi import APIRouter, Depends, Query
from orchestrator.api.v1.dependencies import get_services
from orchestrator.api.v1.schemas import AgentExecuteRequest
from orchestrator.core.init import OrchestratorServices
from orchestrator.core.system.definitions import get_recommended_agent
from orchestrator.core.utils.auth import Caller, get_current_caller

router = APIRouter(prefix="/agents", tags=["agents"])


@router.get("")
async def list_agents(services: OrchestratorServices = Depends(get_services)):
    """Liste tous les agents enregistrés."""
    agents = [agent.to_summary() for agent in services.gateway.list_agents()]
    return {"success": True, "count": len(agents), "agents": agents}


@router.get("/recommend")
async def recommend_agent(
    task: str = Query(..., min_length=1, description="Free-text task description"),
    services: OrchestratorServices = Depends(get_services)
):
    """Agent le plus adapté à une tâche."""
    agent = services.gateway.get_agent(get_recommended_agent(task))
    return {"success": True, "agent": agent.to_summary()}


@router.get("/{agent_id}")
async def get_agent(agent_id: str, services: OrchestratorServices = Depends(get_services)):
    """Récupère un agent par ID."""
    return {"success": True, "agent": services.gateway.get_agent(agent_id).to_detail()}


@router.post("/{agent_id}/execute")
async def execute_agent(
    agent_id: str,
    body: AgentExecuteRequest,
    caller: Caller = Depends(get_current_caller),
    services: OrchestratorServices = Depends(get_services)
):
    """Exécute un tour d'agent (validation, budget, boucle de tools)."""
    response = await services.gateway.execute_agent(
        agent_id,
        body.prompt,
        body.attachments,
        caller,
        max_iterations=body.max_iterations,
        context=body.context
    )
    return {"success": True, "response": response.to_dict()}


@router.post("/{agent_id}/clear")
async def clear_conversation(
    agent_id: str,
    caller: Caller = Depends(get_current_caller),
    services: OrchestratorServices = Depends(get_services)
):
    """Efface l'historique de conversation (idempotent)."""
    await services.gateway.clear_conversation(agent_id, caller)
    return {"success": True, "message": "Conversation cleared"}
