#!/usr/bin/env python3
# orchestrator/api/v1/routes/health.py

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from config.config import settings
from orchestrator.api.v1.dependencies import get_services
from orchestrator.core.init import OrchestratorServices

router = APIRouter(prefix="", tags=["health"])

@router.get("/health")
async def health_check():
    return {"status": "ok", "app": settings.app_name, "version": "1.0.0"}

@router.get("/health/circuit-breakers")
async def get_circuit_breaker_status(services: OrchestratorServices = Depends(get_services)):
    """
    Return circuit breaker status for model providers and external tools.

    Returns HTTP 200 if all circuits are CLOSED (healthy).
    Returns HTTP 503 if any circuit is OPEN (degraded).
    """
    statuses = services.circuit_breakers.states()
    all_closed = all(state["state"] == "closed" for state in statuses.values())

    status_code = 200 if all_closed else 503
    return JSONResponse(
        content={
            "status": "healthy" if all_closed else "degraded",
            "circuit_breakers": statuses
        },
        status_code=status_code
    )
