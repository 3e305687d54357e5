#!/usr/bin/env python3
# orchestrator/core/exceptions.py
"""
Typed business exceptions for the orchestration core.

Raised across the application for consistent error handling.
Each exception maps to a specific HTTP status through the global handler.
"""

from typing import Optional, Dict, Any


class AppException(Exception):
    """Base exception for every business error."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Invalid input shape or value (HTTP 400)."""
    pass


class NotFoundError(AppException):
    """Unknown tool or agent (HTTP 404)."""
    pass


class AuthenticationError(AppException):
    """No resolvable caller identity (HTTP 401)."""
    pass


class CircuitBreakerOpenError(AppException):
    """Circuit breaker is open, dependency temporarily unavailable (HTTP 503)."""
    pass


class ProviderUnavailableError(AppException):
    """Model provider not configured or not reachable (HTTP 503)."""
    pass


class ToolTimeoutError(AppException):
    """Operation did not settle before the caller-side timeout (HTTP 504)."""

    def __init__(self, message: str, timeout: float, details: Optional[Dict[str, Any]] = None):
        self.timeout = timeout
        super().__init__(message, details)
