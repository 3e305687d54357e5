# orchestrator/core/services/agents/prompts.py
"""Prompt templates and attachment-aware prompt assembly."""

import base64
import binascii
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
from urllib.parse import unquote
from config.logger import logger
from orchestrator.core.services.agents.types import Attachment

INLINE_TYPES = ("text/plain", "application/json")
MAX_INLINE_ATTACHMENTS = 10
MAX_SNIPPET_CHARS = 2000
TOTAL_INLINE_BUDGET = 8000

DEFAULT_ATTACHMENT_NAME = "unnamed-file"
DEFAULT_ATTACHMENT_TYPE = "application/octet-stream"


# ========== Templates ==========

@dataclass(frozen=True)
class PromptTemplate:
    key: str
    version: str
    template: str


@dataclass(frozen=True)
class RenderedPrompt:
    key: str
    version: str
    text: str


class PromptTemplateRegistry:
    """Versioned `str.format` templates addressed by key."""

    def __init__(self):
        self._templates: Dict[str, PromptTemplate] = {}

    def register(self, key: str, version: str, template: str) -> PromptTemplate:
        entry = PromptTemplate(key=key, version=version, template=template)
        self._templates[key] = entry
        return entry

    def get(self, key: str) -> Optional[PromptTemplate]:
        return self._templates.get(key)

    def render(self, key: str, **values) -> RenderedPrompt:
        entry = self._templates.get(key)
        if entry is None:
            raise KeyError(f"Unknown prompt template: {key}")
        return RenderedPrompt(key=entry.key, version=entry.version, text=entry.template.format(**values))


def default_templates() -> PromptTemplateRegistry:
    templates = PromptTemplateRegistry()
    templates.register(
        "mcp_agent",
        "1.0.0",
        "Agent {agent_id} request:\n{prompt}"
    )
    return templates


# ========== Attachments ==========

def decode_data_url(content: str) -> str:
    """
    Decode a `data:` URL payload; plain content is returned unchanged.

    Base64 payloads that fail to decode yield an empty string; percent-encoded
    payloads that fail to decode are returned raw.
    """
    if not content.startswith("data:"):
        return content

    header, sep, data = content.partition(",")
    if not sep:
        return ""

    if ";base64" not in header.lower():
        try:
            return unquote(data, errors="strict")
        except UnicodeDecodeError:
            return data

    try:
        return base64.b64decode(data).decode("utf-8")
    except (binascii.Error, ValueError):
        return ""


def decode_attachment_text(attachment_type: str, content: str) -> Optional[str]:
    """Inline text for textual attachments, None for everything else."""
    if not content:
        return None
    if attachment_type.lower() not in INLINE_TYPES:
        return None
    return decode_data_url(content)


def build_prompt_with_attachments(prompt: str, attachments: Optional[Sequence[Attachment]]) -> str:
    """
    Append one line per attachment to the prompt.

    Textual attachments are inlined as snippets under a shared character
    budget; once it is spent, later attachments are only referenced by name.
    """
    if not attachments:
        return prompt

    lines: List[str] = []
    remaining = TOTAL_INLINE_BUDGET

    for attachment in list(attachments)[:MAX_INLINE_ATTACHMENTS]:
        name = attachment.name or DEFAULT_ATTACHMENT_NAME
        attachment_type = attachment.type or DEFAULT_ATTACHMENT_TYPE

        decoded = decode_attachment_text(attachment_type, attachment.content or "")
        if decoded is None or remaining <= 0:
            lines.append(f'[Attachment "{name}" ({attachment_type}) attached]')
            continue

        text = decoded.strip()
        if not text:
            lines.append(f'[Attachment "{name}" ({attachment_type}) was empty after decoding]')
            continue

        limit = min(remaining, MAX_SNIPPET_CHARS)
        snippet = f"{text[:limit]}..." if len(text) > limit else text
        lines.append(f'[Attachment "{name}" ({attachment_type}) content]: {snippet}')
        remaining -= len(snippet)

    if len(attachments) > MAX_INLINE_ATTACHMENTS:
        logger.debug(f"Ignoring {len(attachments) - MAX_INLINE_ATTACHMENTS} attachment(s) beyond the inline limit")

    return f"{prompt}\n\n" + "\n".join(lines)
