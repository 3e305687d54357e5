#!/usr/bin/env python3
# orchestrator/core/schemas/__init__.py
"""
Schemas shared by the core and the HTTP layer.
"""

from .errors import ErrorDetail, ProblemDetails

__all__ = ['ErrorDetail', 'ProblemDetails']
