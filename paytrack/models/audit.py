"""
Audit Models for Paytrack

Every ledger mutation and every sync pass produces an audit event.
This gives:
1. A trail of local writes made while offline
2. Visibility into what the remote store accepted or rejected
3. Debugging information when totals or sync state look wrong

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Navigation
    MONTH_SELECTED = "month_selected"
    MONTH_LOADED = "month_loaded"
    MONTH_LOAD_FAILED = "month_load_failed"

    # Local ledger writes
    PAYMENT_ADDED = "payment_added"
    PAYMENT_UPDATED = "payment_updated"
    PAYMENT_DELETED = "payment_deleted"
    PAYMENT_NOT_FOUND = "payment_not_found"

    # Sync queue
    MUTATION_ENQUEUED = "mutation_enqueued"
    MUTATION_CANCELLED = "mutation_cancelled"
    MUTATION_SYNCED = "mutation_synced"
    FLUSH_COMPLETED = "flush_completed"
    FLUSH_FAILED = "flush_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about? Payment ids are client strings, not UUIDs.
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'payment', 'month', 'queue')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row for Google Sheets storage.

        Columns: [event_id, timestamp, event_type, severity, entity_type,
        entity_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Builds audit events for the common ledger and sync happenings.

    Usage:
        event = AuditEventBuilder.payment_added(payment.id, str(payment.amount), 0, 3)
        event = AuditEventBuilder.flush_failed(payment.id, error, attempted, remaining)
    """

    @staticmethod
    def month_selected(month: int, year: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_SELECTED,
            entity_type="month",
            entity_id=f"{year:04d}-{month + 1:02d}",
            description=f"Month selected: {year:04d}-{month + 1:02d}",
            details={"month": month, "year": year},
            is_user_action=True,
        )

    @staticmethod
    def month_loaded(month: int, year: int, remote_payments: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_LOADED,
            entity_type="month",
            entity_id=f"{year:04d}-{month + 1:02d}",
            description=f"Loaded {remote_payments} remote payments",
            details={"remote_payments": remote_payments},
        )

    @staticmethod
    def month_load_failed(month: int, year: int, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MONTH_LOAD_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="month",
            entity_id=f"{year:04d}-{month + 1:02d}",
            description="Failed to load remote payments",
            error_message=error_message,
        )

    @staticmethod
    def payment_added(payment_id: str, amount: str, week_index: int, day_index: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_ADDED,
            entity_type="payment",
            entity_id=payment_id,
            description=f"Payment added: {amount}",
            details={
                "amount": amount,
                "week_index": week_index,
                "day_index": day_index,
            },
            is_user_action=True,
        )

    @staticmethod
    def payment_updated(payment_id: str, fields: list[str], week_index: int, day_index: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_UPDATED,
            entity_type="payment",
            entity_id=payment_id,
            description=f"Payment updated: {', '.join(fields) or 'no fields'}",
            details={
                "fields": fields,
                "week_index": week_index,
                "day_index": day_index,
            },
            is_user_action=True,
        )

    @staticmethod
    def payment_deleted(payment_id: str, week_index: int, day_index: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_DELETED,
            entity_type="payment",
            entity_id=payment_id,
            description="Payment deleted",
            details={"week_index": week_index, "day_index": day_index},
            is_user_action=True,
        )

    @staticmethod
    def payment_not_found(
        operation: str,
        payment_id: Optional[str],
        week_index: int,
        day_index: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_NOT_FOUND,
            severity=AuditSeverity.DEBUG,
            entity_type="payment",
            entity_id=payment_id,
            description=f"{operation} ignored: no match at week {week_index}, day {day_index}",
            details={
                "operation": operation,
                "week_index": week_index,
                "day_index": day_index,
            },
        )

    @staticmethod
    def mutation_enqueued(payment_id: str, kind: str, sequence: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_ENQUEUED,
            severity=AuditSeverity.DEBUG,
            entity_type="payment",
            entity_id=payment_id,
            description=f"Queued {kind} #{sequence}",
            details={"kind": kind, "sequence": sequence},
        )

    @staticmethod
    def mutation_cancelled(payment_id: str, dropped: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_CANCELLED,
            entity_type="payment",
            entity_id=payment_id,
            description=f"Deleted before first sync, dropped {dropped} queued entries",
            details={"dropped": dropped},
        )

    @staticmethod
    def mutation_synced(payment_id: str, kind: str, sequence: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_SYNCED,
            entity_type="payment",
            entity_id=payment_id,
            description=f"Remote store accepted {kind} #{sequence}",
            details={"kind": kind, "sequence": sequence},
        )

    @staticmethod
    def flush_completed(attempted: int, remaining: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FLUSH_COMPLETED,
            entity_type="queue",
            description=f"Flush completed: {attempted} sent, {remaining} still queued",
            details={"attempted": attempted, "remaining": remaining},
        )

    @staticmethod
    def flush_failed(
        payment_id: str,
        error_message: str,
        attempted: int,
        remaining: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FLUSH_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="payment",
            entity_id=payment_id,
            description="Flush pass aborted, entries kept for the next attempt",
            error_message=error_message,
            details={"attempted": attempted, "remaining": remaining},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
