#!/usr/bin/env python3
# orchestrator/api/v1/schemas/agents.py
"""Pydantic schemas for agent execution."""

from pydantic import BaseModel, Field, validator
from typing import Any, Dict, List, Optional


class AttachmentIn(BaseModel):
    """Attachment sent inline with a prompt (plain text or data URL)."""

    content: Any = Field("", description="Text, data URL, or JSON value")
    name: Optional[str] = Field(None, max_length=255, description="File name")
    type: Optional[str] = Field(None, description="MIME type")


class AgentExecuteRequest(BaseModel):
    """Body of POST /mcp/agents/{agent_id}/execute."""

    prompt: Optional[str] = Field(None, description="User prompt (required, max 10000 characters)")
    attachments: Optional[List[AttachmentIn]] = Field(None, description="Inline attachments (max 10)")
    max_iterations: Optional[int] = Field(None, alias="maxIterations", description="Tool loop cap, clamped to 1-10")
    context: Optional[Dict[str, Any]] = Field(None, description="Free-form request metadata")

    class Config:
        populate_by_name = True

    @validator('attachments', pre=True)
    def drop_null_attachments(cls, v):
        """Un tableau vide ou absent équivaut à aucune pièce jointe."""
        return v or None
