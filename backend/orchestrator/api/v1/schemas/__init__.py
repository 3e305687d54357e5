#!/usr/bin/env python3
# orchestrator/api/v1/schemas/__init__.py
"""
Pydantic schemas for API v1.

    from orchestrator.api.v1.schemas import ToolExecuteRequest, AgentExecuteRequest
"""

# Tools
from .tools import ToolExecuteRequest, BatchExecution, BatchExecuteRequest

# Agents
from .agents import AttachmentIn, AgentExecuteRequest

__all__ = [
    'ToolExecuteRequest',
    'BatchExecution',
    'BatchExecuteRequest',
    'AttachmentIn',
    'AgentExecuteRequest',
]
