# orchestrator/api/v1/dependencies.py

from fastapi import Request
from orchestrator.core.init import OrchestratorServices


def get_services(request: Request) -> OrchestratorServices:
    """Services construits au démarrage (voir create_app)."""
    return request.app.state.services
