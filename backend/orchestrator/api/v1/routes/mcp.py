#!/usr/bin/env python3
# orchestrator/api/v1/routes/mcp.py

from datetime import datetime, timezone
from fastapi import APIRouter, Depends
from orchestrator.api.v1.dependencies import get_services
from orchestrator.api.v1.routes import agents, tools
from orchestrator.core.init import OrchestratorServices

router = APIRouter(prefix="/mcp", tags=["mcp"])
router.include_router(tools.router)
router.include_router(agents.router)


@router.get("/health")
async def mcp_health(services: OrchestratorServices = Depends(get_services)):
    """Statut du registre de tools et du moteur d'agents."""
    return {
        "success": True,
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": services.gateway.health()
    }
