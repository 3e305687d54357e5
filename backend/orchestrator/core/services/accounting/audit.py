# orchestrator/core/services/accounting/audit.py
"""Audit sink contract and the in-process default implementation."""

from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, List, Optional
from config.logger import logger
from orchestrator.core.utils.id_generator import generate_id


class AuditSeverity(str, Enum):
    """Risk level attached to an audit event."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class AuditEvent:
    """One audit record."""
    action: str
    actor: str
    resource_type: str
    resource_id: str
    severity: AuditSeverity = AuditSeverity.LOW
    details: Dict[str, Any] = field(default_factory=dict)
    organization_id: Optional[str] = None
    id: str = field(default_factory=lambda: generate_id('audit'))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditSink(ABC):
    """Destination for audit events (database, SIEM, log shipper...)."""

    @abstractmethod
    async def log(
        self,
        action: str,
        actor: str,
        resource_type: str,
        resource_id: str,
        severity: AuditSeverity = AuditSeverity.LOW,
        details: Optional[Dict[str, Any]] = None,
        organization_id: Optional[str] = None
    ) -> None:
        """Persist one audit event."""
        pass


class InMemoryAuditSink(AuditSink):
    """
    Keeps the most recent events in a bounded buffer and mirrors them to the
    application log. Suitable for a single process and for tests.
    """

    def __init__(self, max_events: int = 1000):
        self._events: Deque[AuditEvent] = deque(maxlen=max_events)

    async def log(
        self,
        action: str,
        actor: str,
        resource_type: str,
        resource_id: str,
        severity: AuditSeverity = AuditSeverity.LOW,
        details: Optional[Dict[str, Any]] = None,
        organization_id: Optional[str] = None
    ) -> None:
        event = AuditEvent(
            action=action,
            actor=actor,
            resource_type=resource_type,
            resource_id=resource_id,
            severity=AuditSeverity(severity),
            details=details or {},
            organization_id=organization_id
        )
        self._events.append(event)
        logger.info(
            f"[audit] {event.action} actor={event.actor} "
            f"{event.resource_type}:{event.resource_id} severity={event.severity.value}"
        )

    @property
    def events(self) -> List[AuditEvent]:
        return list(self._events)

    def find(self, action: str) -> List[AuditEvent]:
        """Events recorded for one action, oldest first."""
        return [event for event in self._events if event.action == action]


async def emit_audit(
    sink: AuditSink,
    action: str,
    actor: str,
    resource_type: str,
    resource_id: str,
    severity: AuditSeverity = AuditSeverity.LOW,
    details: Optional[Dict[str, Any]] = None,
    organization_id: Optional[str] = None
) -> None:
    """
    Fire-and-forget audit: a failing sink is logged and never aborts the
    operation being audited.
    """
    try:
        await sink.log(
            action=action,
            actor=actor,
            resource_type=resource_type,
            resource_id=resource_id,
            severity=severity,
            details=details,
            organization_id=organization_id
        )
    except Exception as e:
        logger.error(f"Audit sink failed for action '{action}' on {resource_type}:{resource_id}: {e}")
