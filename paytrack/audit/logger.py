"""
Audit Logger

DESIGN DECISION: Every ledger mutation and sync pass is logged.
This provides:
1. A trail of what was changed while offline
2. Visibility into what the remote store accepted
3. Debugging capability when totals or sync state look wrong

The audit logger:
- Is synchronous: ledger mutations are synchronous and must stay cheap
- Gracefully handles sink failures (never breaks a mutation)
"""

import logging
from typing import Optional

import structlog

from paytrack.audit.storage import AuditStorageInterface
from paytrack.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at the given level."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))
    logging.getLogger("paytrack").setLevel(level.upper())


_LEVEL_METHODS = {
    AuditSeverity.DEBUG: "debug",
    AuditSeverity.INFO: "info",
    AuditSeverity.WARNING: "warning",
    AuditSeverity.ERROR: "error",
    AuditSeverity.CRITICAL: "critical",
}


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An optional audit sink (in memory, Google Sheets, ...)
    """

    def __init__(self, storage: Optional[AuditStorageInterface] = None):
        """
        Args:
            storage: Sink for persistence. If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("paytrack.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Returns True if the sink write succeeded (or no sink is configured).
        """
        getattr(self._logger, _LEVEL_METHODS[event.severity])("audit_event", **event.to_log_dict())

        if self._storage is None:
            return True

        try:
            return self._storage.append_event(event)
        except Exception as e:
            # Sink failures must never break the ledger operation being audited
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    def log_month_selected(self, month: int, year: int) -> None:
        self.log(AuditEventBuilder.month_selected(month, year))

    def log_month_loaded(self, month: int, year: int, remote_payments: int) -> None:
        self.log(AuditEventBuilder.month_loaded(month, year, remote_payments))

    def log_month_load_failed(self, month: int, year: int, error_message: str) -> None:
        self.log(AuditEventBuilder.month_load_failed(month, year, error_message))

    def log_payment_added(self, payment_id: str, amount: str, week_index: int, day_index: int) -> None:
        self.log(AuditEventBuilder.payment_added(payment_id, amount, week_index, day_index))

    def log_payment_updated(
        self,
        payment_id: str,
        fields: list[str],
        week_index: int,
        day_index: int,
    ) -> None:
        self.log(AuditEventBuilder.payment_updated(payment_id, fields, week_index, day_index))

    def log_payment_deleted(self, payment_id: str, week_index: int, day_index: int) -> None:
        self.log(AuditEventBuilder.payment_deleted(payment_id, week_index, day_index))

    def log_payment_not_found(
        self,
        operation: str,
        payment_id: Optional[str],
        week_index: int,
        day_index: int,
    ) -> None:
        self.log(AuditEventBuilder.payment_not_found(operation, payment_id, week_index, day_index))

    def log_mutation_enqueued(self, payment_id: str, kind: str, sequence: int) -> None:
        self.log(AuditEventBuilder.mutation_enqueued(payment_id, kind, sequence))

    def log_mutation_cancelled(self, payment_id: str, dropped: int) -> None:
        self.log(AuditEventBuilder.mutation_cancelled(payment_id, dropped))

    def log_mutation_synced(self, payment_id: str, kind: str, sequence: int) -> None:
        self.log(AuditEventBuilder.mutation_synced(payment_id, kind, sequence))

    def log_flush_completed(self, attempted: int, remaining: int) -> None:
        self.log(AuditEventBuilder.flush_completed(attempted, remaining))

    def log_flush_failed(
        self,
        payment_id: str,
        error_message: str,
        attempted: int,
        remaining: int,
    ) -> None:
        self.log(AuditEventBuilder.flush_failed(payment_id, error_message, attempted, remaining))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.log(AuditEventBuilder.system_error(error_type, error_message, details))
