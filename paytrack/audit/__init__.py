"""Audit logging package."""

from paytrack.audit.logger import AuditLogger, configure_logging
from paytrack.audit.storage import AuditStorageInterface, InMemoryAuditStorage

__all__ = [
    "AuditLogger",
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "configure_logging",
]
