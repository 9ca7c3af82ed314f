"""
Audit Storage Interface

Audit logs are append-only: implementations never delete or modify events.
"""

from abc import ABC, abstractmethod
from typing import Optional

from paytrack.models.audit import AuditEvent, AuditEventType


class AuditStorageInterface(ABC):
    """Abstract sink for audit events."""

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass


class InMemoryAuditStorage(AuditStorageInterface):
    """Keeps events in a list. Used in local mode and in tests."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def of_type(self, event_type: AuditEventType) -> list[AuditEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def for_entity(self, entity_id: str, entity_type: Optional[str] = None) -> list[AuditEvent]:
        """Events about one entity, in the order they were logged."""
        return [
            e for e in self.events
            if e.entity_id == entity_id
            and (entity_type is None or e.entity_type == entity_type)
        ]
