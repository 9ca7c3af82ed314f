"""
Main Orchestrator for Paytrack

This module ties together the ledger, the mutation queue and the remote
store, and defines the end-to-end flows for:
1. Navigation (select month → build skeleton → refresh from remote)
2. Local writes (add/update/delete → recompute totals → enqueue)
3. Sync (flush queue → mark confirmed payments synced)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every local write is applied and recomputed before it is queued
- Navigation never touches the queue
- A bad (week_index, day_index, payment_id) triple is a not-found result,
  never an exception
- Every step is audited

State changes go through paytrack.ledger.apply_command. LedgerStore only
holds the current LedgerState and performs the side effects around it.
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import uuid4

import structlog

from paytrack.audit import AuditLogger, InMemoryAuditStorage, configure_logging
from paytrack.config import LedgerSettings, get_settings
from paytrack.ledger import (
    AddPayment,
    DeletePayment,
    LedgerState,
    LoadFailed,
    LoadStarted,
    LoadSucceeded,
    MarkSynced,
    SelectMonth,
    Transition,
    UpdatePayment,
    apply_command,
    months_spanned,
)
from paytrack.models.ledger import Month, Payment, PaymentDraft, PaymentPatch
from paytrack.models.sync import FlushResult, MutationKind
from paytrack.parsing import parse_expression
from paytrack.services.remote import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRemoteStore,
    HttpRemoteStore,
    InMemoryRemoteStore,
    RemotePaymentStore,
)
from paytrack.sync import MutationQueue


logger = structlog.get_logger(__name__)


class LedgerStore:
    """
    Owns the selected month's ledger and keeps it in step with the remote store.

    Flow for a local write:
    1. Apply the command to the current state (totals recomputed inline)
    2. Enqueue the write for the remote store
    3. Audit

    Nothing is sent until flush() is called. Flushing is triggered by a
    collaborator (reconnect, timer, user action), never by the write itself.
    """

    def __init__(
        self,
        remote: Optional[RemotePaymentStore] = None,
        queue: Optional[MutationQueue] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
        id_factory: Optional[Callable[[], str]] = None,
        month: Optional[int] = None,
        year: Optional[int] = None,
    ):
        self._settings = settings or LedgerSettings()
        self._remote = remote or InMemoryRemoteStore()
        self._audit_logger = audit_logger
        self._queue = queue or MutationQueue(self._remote, audit_logger)
        self._id_factory = id_factory or (lambda: str(uuid4()))

        today = date.today()
        initial = LedgerState(
            month=today.month - 1,
            year=today.year,
            week_start=self._settings.week_start,
        )
        self._state = apply_command(
            initial,
            SelectMonth(
                month=today.month - 1 if month is None else month,
                year=today.year if year is None else year,
            ),
        ).state

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def month_data(self) -> Optional[Month]:
        return self._state.month_data

    @property
    def is_loading(self) -> bool:
        return self._state.is_loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def queue(self) -> MutationQueue:
        return self._queue

    @property
    def pending_count(self) -> int:
        return len(self._queue)

    def _apply(self, command) -> Transition:
        transition = apply_command(self._state, command)
        self._state = transition.state
        return transition

    def _not_found(
        self,
        operation: str,
        payment_id: Optional[str],
        week_index: int,
        day_index: int,
    ) -> None:
        logger.info(
            "payment_not_found",
            operation=operation,
            payment_id=payment_id,
            week_index=week_index,
            day_index=day_index,
        )
        if self._audit_logger:
            self._audit_logger.log_payment_not_found(operation, payment_id, week_index, day_index)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def select_month(self, month: int, year: int) -> Month:
        """
        Discard the current ledger and build the skeleton for (month, year).

        `month` is zero-based. The mutation queue is left untouched: writes
        made in the previous month are still flushed.
        """
        self._apply(SelectMonth(month=month, year=year))
        logger.debug("month_selected", month=month, year=year, pending=self.pending_count)
        if self._audit_logger:
            self._audit_logger.log_month_selected(month, year)
        return self._state.month_data

    async def refresh(self) -> bool:
        """
        Load the payments of every day the selected month's weeks show.

        The first and last weeks borrow days from the adjacent months, so
        each calendar month those weeks touch is listed.

        Returns True on success. On failure the skeleton and local payments
        are kept and `error` is set.
        """
        month, year = self._state.month, self._state.year
        weeks = self._state.month_data.weeks
        first, last = weeks[0].start_date, weeks[-1].end_date
        self._apply(LoadStarted())
        fetched: dict[str, Payment] = {}
        try:
            for list_year, list_month in months_spanned(first, last):
                listed = await self._remote.list_payments(
                    self._settings.workspace_id, list_year, list_month
                )
                for payment in listed:
                    if first <= payment.date <= last:
                        fetched.setdefault(payment.id, payment)
        except Exception as e:
            error = f"{type(e).__name__}: {e}"
            logger.warning("month_load_failed", month=month, year=year, error=error)
            self._apply(LoadFailed(month=month, year=year, error=error))
            if self._audit_logger:
                self._audit_logger.log_month_load_failed(month, year, error)
            return False

        # Queued writes are newer than what the remote returned
        pending = {
            payment_id: snapshot
            for payment_id, snapshot in self._queue.latest_snapshots().items()
            if snapshot is None
            or (
                snapshot.workspace_id == self._settings.workspace_id
                and first <= snapshot.date <= last
            )
        }
        merged = [p for p in fetched.values() if p.id not in pending]
        merged.extend(snapshot for snapshot in pending.values() if snapshot is not None)

        transition = self._apply(LoadSucceeded(
            month=month,
            year=year,
            payments=tuple(merged),
            unsynced_ids=frozenset(pending),
        ))
        logger.info(
            "month_loaded",
            month=month,
            year=year,
            fetched=len(fetched),
            placed=len(transition.payments),
        )
        if self._audit_logger:
            self._audit_logger.log_month_loaded(month, year, len(transition.payments))
        return True

    # -------------------------------------------------------------------------
    # Local writes
    # -------------------------------------------------------------------------

    def add_payment(
        self,
        week_index: int,
        day_index: int,
        data: Union[PaymentDraft, dict],
    ) -> Optional[Payment]:
        """
        Add a payment to a day and queue it for creation.

        Returns the new payment, or None if the day does not exist.
        """
        draft = data if isinstance(data, PaymentDraft) else PaymentDraft.model_validate(data)

        month_data = self._state.month_data
        day = month_data.day_at(week_index, day_index) if month_data is not None else None
        if day is None:
            self._not_found("add", None, week_index, day_index)
            return None

        payment = Payment(
            id=self._id_factory(),
            date=day.date,
            amount=draft.amount,
            description=draft.description,
            currency_code=draft.currency_code or self._settings.default_currency,
            workspace_id=draft.workspace_id or self._settings.workspace_id,
            synced=False,
        )
        self._apply(AddPayment(week_index=week_index, day_index=day_index, payment=payment))
        self._queue.enqueue(payment, MutationKind.CREATE)
        if self._audit_logger:
            self._audit_logger.log_payment_added(payment.id, str(payment.amount), week_index, day_index)
        return payment

    def add_from_expression(
        self,
        week_index: int,
        day_index: int,
        text: Optional[str],
        **fields,
    ) -> Optional[Payment]:
        """Quick entry: add a payment whose amount is a `10+15` style expression."""
        return self.add_payment(
            week_index,
            day_index,
            PaymentDraft(amount=parse_expression(text), **fields),
        )

    def update_payment(
        self,
        week_index: int,
        day_index: int,
        payment_id: str,
        patch: Union[PaymentPatch, dict],
    ) -> Optional[Payment]:
        """
        Merge a patch into a payment of that specific day and queue the result.

        Returns the merged payment, or None if the day holds no such payment.
        """
        patch = patch if isinstance(patch, PaymentPatch) else PaymentPatch.model_validate(patch)
        changes = patch.changes()

        transition = self._apply(UpdatePayment(
            week_index=week_index,
            day_index=day_index,
            payment_id=payment_id,
            changes=changes,
        ))
        if not transition.found:
            self._not_found("update", payment_id, week_index, day_index)
            return None

        payment = transition.payment
        self._queue.enqueue(payment, MutationKind.UPDATE)
        if self._audit_logger:
            self._audit_logger.log_payment_updated(payment_id, sorted(changes), week_index, day_index)
        return payment

    def delete_payment(self, week_index: int, day_index: int, payment_id: str) -> Optional[Payment]:
        """
        Remove a payment from that specific day and queue the deletion.

        Returns the removed payment, or None if the day holds no such payment.
        """
        transition = self._apply(DeletePayment(
            week_index=week_index,
            day_index=day_index,
            payment_id=payment_id,
        ))
        if not transition.found:
            self._not_found("delete", payment_id, week_index, day_index)
            return None

        self._queue.enqueue_delete(payment_id)
        if self._audit_logger:
            self._audit_logger.log_payment_deleted(payment_id, week_index, day_index)
        return transition.payment

    # -------------------------------------------------------------------------
    # Sync
    # -------------------------------------------------------------------------

    async def flush(self) -> FlushResult:
        """
        Replay queued writes, then mark the confirmed payments as synced.

        A payment is only marked synced when none of its writes is still
        queued, so a failed later edit keeps it unsynced.
        """
        result = await self._queue.flush()
        confirmed = frozenset(
            payment_id for payment_id in result.synced_ids
            if not self._queue.has_pending(payment_id)
        )
        if confirmed:
            self._apply(MarkSynced(payment_ids=confirmed))
        return result

    def month_total(self) -> Decimal:
        month_data = self._state.month_data
        return month_data.total if month_data is not None else Decimal("0")


# =============================================================================
# FACTORY
# =============================================================================

def create_ledger_store(
    backend: str = "memory",
    remote: Optional[RemotePaymentStore] = None,
    **store_kwargs,
) -> LedgerStore:
    """
    Factory function to create a fully wired LedgerStore.

    Args:
        backend: "memory", "http" or "sheets". Ignored when `remote` is given.
        remote: A ready remote store to use instead of building one.
        **store_kwargs: Passed through to LedgerStore (id_factory, month, year).

    Raises:
        ValueError: If the backend name is unknown
    """
    settings = get_settings()
    configure_logging(settings.app.log_level)

    audit_storage = None
    if remote is None:
        if backend == "memory":
            remote = InMemoryRemoteStore()
        elif backend == "http":
            remote = HttpRemoteStore(settings.remote_store)
        elif backend == "sheets":
            sheets_client = GoogleSheetsClient(settings.google_sheets)
            remote = GoogleSheetsRemoteStore(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        else:
            raise ValueError(f"Unknown backend: {backend!r} (expected memory, http or sheets)")

    audit_logger = AuditLogger(audit_storage or InMemoryAuditStorage())
    queue = MutationQueue(remote, audit_logger)

    logger.info("ledger_store_created", backend=backend, remote=type(remote).__name__)
    return LedgerStore(
        remote=remote,
        queue=queue,
        audit_logger=audit_logger,
        settings=settings.ledger,
        **store_kwargs,
    )
