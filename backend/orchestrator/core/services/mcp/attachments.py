#!/usr/bin/env python3
# orchestrator/core/services/mcp/attachments.py
"""
Normalisation des pièces jointes reçues à la frontière HTTP.

Limits are checked in a fixed order: count, then each item, then the total.
"""

import json
from typing import Any, List, Optional
from orchestrator.core.exceptions import ValidationError
from orchestrator.core.services.agents.types import Attachment


def _content_text(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, (dict, list)):
        return json.dumps(content)
    return str(content)


def _coerce(raw: Any, index: int) -> Attachment:
    if isinstance(raw, Attachment):
        return Attachment(content=_content_text(raw.content), name=raw.name, type=raw.type)
    if hasattr(raw, "model_dump"):
        raw = raw.model_dump()
    if not isinstance(raw, dict):
        raise ValidationError(f"Attachment {index} must be an object", details={"index": index})

    name = raw.get("name")
    attachment_type = raw.get("type")
    return Attachment(
        content=_content_text(raw.get("content")),
        name=str(name) if name is not None else None,
        type=str(attachment_type) if attachment_type is not None else None
    )


def normalize_attachments(
    raw: Any,
    max_count: int = 10,
    max_item_chars: int = 2_000_000,
    max_total_chars: int = 8_000_000
) -> List[Attachment]:
    """
    Validate and normalize request attachments.

    Raises:
        ValidationError: Not a list, too many, one too large, or too large combined
    """
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise ValidationError("Attachments must be an array")
    if len(raw) > max_count:
        raise ValidationError(
            f"Too many attachments (max {max_count})",
            details={"count": len(raw), "max": max_count}
        )

    attachments = [_coerce(item, index) for index, item in enumerate(raw)]

    for index, attachment in enumerate(attachments):
        if len(attachment.content) > max_item_chars:
            label = attachment.name or f"#{index}"
            raise ValidationError(
                f"Attachment {label} exceeds {max_item_chars} characters",
                details={"index": index, "max_chars": max_item_chars}
            )

    total = sum(len(attachment.content) for attachment in attachments)
    if total > max_total_chars:
        raise ValidationError(
            f"Attachments exceed combined limit of {max_total_chars} characters",
            details={"total_chars": total, "max_total_chars": max_total_chars}
        )

    return attachments


def attachment_names(attachments: Optional[List[Attachment]]) -> List[str]:
    return [attachment.name or "unnamed-file" for attachment in attachments or []]
