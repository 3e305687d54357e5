#!/usr/bin/env python3
# orchestrator/api/v1/schemas/tools.py
"""Pydantic schemas for tool execution."""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ToolExecuteRequest(BaseModel):
    """
    Body of POST /mcp/tools/{name}/execute.

    `parameters` is left untyped: shape errors are reported by the registry
    as a failed result, not as a 422.
    """

    parameters: Any = Field(default_factory=dict, description="Tool parameters")
    context: Optional[Dict[str, Any]] = Field(None, description="Free-form request metadata")


class BatchExecution(BaseModel):
    """One entry of a batch."""

    tool_name: Optional[str] = Field(None, alias="toolName", description="Registered tool name")
    parameters: Any = Field(default_factory=dict, description="Tool parameters")

    class Config:
        populate_by_name = True


class BatchExecuteRequest(BaseModel):
    """Body of POST /mcp/tools/batch."""

    executions: List[BatchExecution] = Field(..., description="Executions run sequentially")
