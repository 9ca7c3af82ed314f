"""
Data Models Package

All Pydantic models used by Paytrack: the ledger hierarchy, the sync queue
entries and the audit trail.
"""

from paytrack.models.ledger import (
    DAYS_PER_WEEK,
    Day,
    Month,
    Payment,
    PaymentDraft,
    PaymentPatch,
    Week,
    WeekStart,
)
from paytrack.models.sync import (
    FlushResult,
    MutationEntry,
    MutationKind,
)
from paytrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DAYS_PER_WEEK",
    "Day",
    "Month",
    "Payment",
    "PaymentDraft",
    "PaymentPatch",
    "Week",
    "WeekStart",
    # Sync models
    "FlushResult",
    "MutationEntry",
    "MutationKind",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
