#!/usr/bin/env python3
# orchestrator/core/schemas/errors.py
"""
Error response schemas (RFC 7807 inspired) wrapped in the `{success, error}`
envelope every endpoint returns.
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Any


class ErrorDetail(BaseModel):
    """Single field-level validation error."""

    field: str = Field(..., description="Field path in error")
    message: str = Field(..., description="Error message")
    value: Optional[Any] = Field(None, description="Invalid value provided")


class ProblemDetails(BaseModel):
    """
    Structured error body.

    Attributes:
        success: Always False, mirrors the success envelope
        error: Human-readable message (same as detail)
        type: Machine-readable error type (e.g., "ValidationError")
        title: Short human-readable title
        status: HTTP status code
        detail: Detailed explanation
        instance: Request URI that caused the error
        errors: Field errors for 422 responses
        timestamp: ISO 8601 timestamp
    """

    success: bool = Field(False, description="Envelope flag, always False")
    error: str = Field(..., description="Error message")
    type: str = Field(..., description="Machine-readable error type")
    title: str = Field(..., description="Human-readable error title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Detailed error explanation")
    instance: Optional[str] = Field(None, description="Request URI that caused error")
    errors: Optional[List[ErrorDetail]] = Field(None, description="Validation errors list")
    timestamp: Optional[str] = Field(None, description="ISO 8601 timestamp")
