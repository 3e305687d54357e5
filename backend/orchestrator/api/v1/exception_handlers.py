#!/usr/bin/env python3
# orchestrator/api/v1/exception_handlers.py
"""
Handlers d'exceptions globaux pour mapper les exceptions métier aux codes HTTP.

Utilisé dans main.py via app.add_exception_handler().
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from datetime import datetime, timezone
from config.config import settings
from orchestrator.core.exceptions import (
    AppException,
    ValidationError,
    NotFoundError,
    AuthenticationError,
    CircuitBreakerOpenError,
    ProviderUnavailableError,
    ToolTimeoutError
)
from orchestrator.core.schemas.errors import ErrorDetail, ProblemDetails
from config.logger import logger

GENERIC_ERROR_MESSAGE = "An internal error occurred"


def _status_for(exc: AppException) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (CircuitBreakerOpenError, ProviderUnavailableError)):
        return 503
    if isinstance(exc, ToolTimeoutError):
        return 504
    return 500


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handler global pour toutes les exceptions métier (AppException).

    Mapping exceptions → HTTP codes:
    - ValidationError → 400 Bad Request
    - AuthenticationError → 401 Unauthorized
    - NotFoundError → 404 Not Found
    - CircuitBreakerOpenError, ProviderUnavailableError → 503 Service Unavailable
    - ToolTimeoutError → 504 Gateway Timeout
    - AppException (générique) → 500 Internal Server Error
    """
    status_code = _status_for(exc)

    if status_code >= 500:
        logger.error(f"[{exc.__class__.__name__}] {exc.message} | Path: {request.url.path}")
    else:
        logger.warning(f"[{exc.__class__.__name__}] {exc.message} | Path: {request.url.path}")

    problem = ProblemDetails(
        error=exc.message,
        type=exc.__class__.__name__,
        title=exc.__class__.__name__.replace('Error', ' Error'),
        status=status_code,
        detail=exc.message,
        instance=str(request.url),
        timestamp=datetime.now(timezone.utc).isoformat()
    )

    response_data = problem.model_dump(exclude_none=True)
    # Extensions RFC 7807 (sans écraser l'enveloppe)
    for key, value in exc.details.items():
        response_data.setdefault(key, value)

    return JSONResponse(status_code=status_code, content=response_data)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Erreurs non prévues : 500 avec un message générique hors DEBUG."""
    logger.error(f"[{exc.__class__.__name__}] Unhandled error | Path: {request.url.path}", exc_info=exc)

    message = str(exc) if settings.debug else GENERIC_ERROR_MESSAGE
    problem = ProblemDetails(
        error=message,
        type="InternalServerError",
        title="Internal Server Error",
        status=500,
        detail=message,
        instance=str(request.url),
        timestamp=datetime.now(timezone.utc).isoformat()
    )
    return JSONResponse(status_code=500, content=problem.model_dump(exclude_none=True))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handler for Pydantic validation errors (422).

    Transforms Pydantic error format into a structured response with
    field-level error information.
    """
    error_details = []
    for error in exc.errors():
        # Ignore first element: 'body', 'query', 'path'
        loc = error.get('loc', ())
        field_path = ' → '.join(str(x) for x in loc[1:]) if len(loc) > 1 else 'unknown'

        value = error.get('input')
        error_details.append(ErrorDetail(
            field=field_path,
            message=error.get('msg', 'Validation error'),
            value=value if isinstance(value, (str, int, float, bool)) or value is None else str(value)
        ))

    error_count = len(error_details)
    message = f"{error_count} validation error(s) detected"
    problem = ProblemDetails(
        error=message,
        type="ValidationError",
        title="Validation Failed",
        status=422,
        detail=message,
        instance=str(request.url),
        errors=error_details,
        timestamp=datetime.now(timezone.utc).isoformat()
    )

    logger.warning(f"Validation error on {request.url.path}: {error_count} error(s)")

    return JSONResponse(
        status_code=422,
        content=problem.model_dump(exclude_none=True)
    )
