#!/usr/bin/env python3
# orchestrator/api/main.py

import uvicorn
from typing import Optional
from fastapi import FastAPI, APIRouter, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from config.config import settings
from config.logger import logger
from orchestrator.api.v1.routes import health, mcp
from orchestrator.api.v1.exception_handlers import (
    app_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler
)
from orchestrator.core.exceptions import AppException
from orchestrator.core.init import OrchestratorServices, initialize_orchestrator
from orchestrator.core.utils.http_client import init_http_client, close_http_client


def create_app(services: Optional[OrchestratorServices] = None) -> FastAPI:
    """
    Construit l'application FastAPI.

    Args:
        services: Pre-built services (tests); built from settings otherwise
    """

    async def lifespan(app: FastAPI):
        logger.info("🚀 Démarrage de l'application")

        # Initialize HTTP client pool
        await init_http_client()

        logger.info("✅ Startup complete")

        yield

        # Close HTTP client pool
        await close_http_client()
        logger.info("🛑 Arrêt de l'application")

    app = FastAPI(title=settings.app_name, debug=settings.debug, lifespan=lifespan)
    app.state.services = services or initialize_orchestrator(settings)

    # --- Handler d'exceptions globales ---
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --- Configuration CORS ---
    allowed_origins = [
        "http://localhost:3000",  # Frontend dev
        "http://127.0.0.1:3000",  # Frontend dev alternative
    ]

    # Ajouter l'URL du frontend en production si définie
    if settings.frontend_url:
        allowed_origins.append(settings.frontend_url)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept"],
        expose_headers=["Content-Type"],
        max_age=3600,  # Cache preflight 1h
    )

    # --- Middleware de logging des requêtes (DEBUG uniquement) ---
    if settings.debug:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            logger.debug(f"{request.method} {request.url.path}")
            response = await call_next(request)
            return response

    # --- Router principal v1 ---
    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(mcp.router)

    app.include_router(api_v1_router)
    app.include_router(health.router)  # Health check reste hors versioning

    return app


app = create_app()

# --- Lancement en mode script ---
if __name__ == "__main__":
    uvicorn.run("orchestrator.api.main:app", host=settings.host, port=settings.port, reload=settings.debug, factory=False)
