"""
Mutation Queue

Records local payment writes that the remote store has not confirmed yet,
and replays them with at-least-once semantics.

QUEUE CONTRACT (per-id FIFO with precise removal):
1. enqueue() appends a full snapshot. Two edits of the same payment before a
   flush are two entries; nothing is deduplicated.
2. flush() snapshots the queue at call time and dispatches entries in
   enqueue order. After each successful call ONLY that entry is removed,
   so a newer edit of the same payment is always sent after an older one
   and never dropped.
3. The first failing entry aborts the pass. It and everything after it
   stay queued for the next externally triggered flush.
4. One pass at a time. A flush() issued while a pass is running does not
   start a second pass: it waits for the running call, which performs one
   more pass after the current one if it succeeded.

Dispatch is create-or-update keyed by the payment id: a create that finds
the id already stored (a retried create whose first response was lost)
becomes an update, and an update for an id the store does not know becomes
a create.

Deletes are queued too. A delete for a payment whose create was never
attempted cancels that payment's entries instead: the remote never saw it.

The queue is in memory only. It survives month navigation but not a
process restart.
"""

import asyncio
import itertools
from typing import Optional

import structlog

from paytrack.audit import AuditLogger
from paytrack.models.ledger import Payment
from paytrack.models.sync import FlushResult, MutationEntry, MutationKind
from paytrack.services.remote.interface import (
    DuplicateError,
    NotFoundError,
    RemotePaymentStore,
    RemoteStoreError,
)


logger = structlog.get_logger(__name__)


class MutationQueue:
    """In-memory queue of unsynced payment writes."""

    def __init__(
        self,
        remote: RemotePaymentStore,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._remote = remote
        self._audit_logger = audit_logger
        self._entries: list[MutationEntry] = []
        self._sequence = itertools.count(1)
        # Sequences of queued entries that reached the remote at least once
        self._attempted: set[int] = set()
        self._active: Optional[asyncio.Future] = None
        self._rerun_requested = False

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[MutationEntry, ...]:
        """Queued entries in enqueue order."""
        return tuple(self._entries)

    @property
    def is_flushing(self) -> bool:
        return self._active is not None

    def pending_for(self, payment_id: str) -> list[MutationEntry]:
        return [e for e in self._entries if e.payment_id == payment_id]

    def has_pending(self, payment_id: str) -> bool:
        return any(e.payment_id == payment_id for e in self._entries)

    def latest_snapshots(self) -> dict[str, Optional[Payment]]:
        """Newest queued state per payment id; None means a delete is queued."""
        latest: dict[str, Optional[Payment]] = {}
        for entry in self._entries:
            latest[entry.payment_id] = entry.payment
        return latest

    # -------------------------------------------------------------------------
    # Enqueue
    # -------------------------------------------------------------------------

    def _append(self, payment_id: str, kind: MutationKind, payment: Optional[Payment]) -> MutationEntry:
        entry = MutationEntry(
            payment_id=payment_id,
            kind=kind,
            payment=payment,
            sequence=next(self._sequence),
        )
        self._entries.append(entry)
        logger.debug(
            "mutation_enqueued",
            payment_id=payment_id,
            kind=kind.value,
            sequence=entry.sequence,
            queue_size=len(self._entries),
        )
        if self._audit_logger:
            self._audit_logger.log_mutation_enqueued(payment_id, kind.value, entry.sequence)
        return entry

    def enqueue(self, payment: Payment, kind: MutationKind = MutationKind.UPDATE) -> MutationEntry:
        """
        Queue a full snapshot of a created or updated payment.

        Raises:
            ValueError: If kind is DELETE (use enqueue_delete)
        """
        if kind == MutationKind.DELETE:
            raise ValueError("Use enqueue_delete() for deletions")
        return self._append(payment.id, kind, payment)

    def enqueue_delete(self, payment_id: str) -> Optional[MutationEntry]:
        """
        Queue a delete intent.

        Returns None when the delete cancelled never-sent entries instead
        of being queued.
        """
        pending = self.pending_for(payment_id)
        unsent_create = any(
            e.kind == MutationKind.CREATE and e.sequence not in self._attempted
            for e in pending
        )
        if unsent_create:
            self._entries = [e for e in self._entries if e.payment_id != payment_id]
            self._attempted.difference_update(e.sequence for e in pending)
            logger.debug("mutation_cancelled", payment_id=payment_id, dropped=len(pending))
            if self._audit_logger:
                self._audit_logger.log_mutation_cancelled(payment_id, len(pending))
            return None
        return self._append(payment_id, MutationKind.DELETE, None)

    # -------------------------------------------------------------------------
    # Flush
    # -------------------------------------------------------------------------

    async def flush(self) -> FlushResult:
        """
        Replay queued entries against the remote store.

        Never raises for remote failures: they are logged and reported in
        the returned FlushResult, and the entries stay queued.
        """
        if self._active is not None:
            self._rerun_requested = True
            logger.debug("flush_coalesced", queue_size=len(self._entries))
            return await asyncio.shield(self._active)

        future = asyncio.get_running_loop().create_future()
        self._active = future
        try:
            result = await self._run_pass()
            while self._rerun_requested and result.ok:
                self._rerun_requested = False
                result = self._merge(result, await self._run_pass())
        except BaseException:
            future.cancel()
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._active = None
            self._rerun_requested = False

    @staticmethod
    def _merge(first: FlushResult, second: FlushResult) -> FlushResult:
        synced = list(first.synced_ids)
        synced.extend(pid for pid in second.synced_ids if pid not in synced)
        return FlushResult(
            attempted=first.attempted + second.attempted,
            synced_ids=synced,
            remaining=second.remaining,
            error=second.error,
            skipped=first.skipped and second.skipped,
        )

    def _is_queued(self, entry: MutationEntry) -> bool:
        return any(e.sequence == entry.sequence for e in self._entries)

    def _remove(self, entry: MutationEntry) -> None:
        self._entries = [e for e in self._entries if e.sequence != entry.sequence]
        self._attempted.discard(entry.sequence)

    async def _dispatch(self, entry: MutationEntry) -> None:
        if entry.kind == MutationKind.CREATE:
            try:
                await self._remote.create(entry.payment)
            except DuplicateError:
                await self._remote.update(entry.payment_id, entry.payment)
        elif entry.kind == MutationKind.UPDATE:
            try:
                await self._remote.update(entry.payment_id, entry.payment)
            except NotFoundError:
                await self._remote.create(entry.payment)
        else:
            await self._remote.delete(entry.payment_id)

    async def _run_pass(self) -> FlushResult:
        snapshot = list(self._entries)
        if not snapshot:
            return FlushResult(skipped=True)

        attempted = 0
        synced_ids: list[str] = []

        for entry in snapshot:
            # Cancelled by a delete while an earlier entry was in flight
            if not self._is_queued(entry):
                continue

            self._attempted.add(entry.sequence)
            attempted += 1
            try:
                await self._dispatch(entry)
            except Exception as e:
                remaining = len(self._entries)
                error = f"{type(e).__name__}: {e}"
                if isinstance(e, RemoteStoreError):
                    logger.warning(
                        "flush_pass_aborted",
                        payment_id=entry.payment_id,
                        kind=entry.kind.value,
                        error=error,
                        remaining=remaining,
                    )
                else:
                    logger.error(
                        "flush_pass_crashed",
                        payment_id=entry.payment_id,
                        kind=entry.kind.value,
                        remaining=remaining,
                        exc_info=True,
                    )
                    if self._audit_logger:
                        self._audit_logger.log_error(
                            type(e).__name__,
                            str(e),
                            {"payment_id": entry.payment_id, "kind": entry.kind.value},
                        )
                if self._audit_logger:
                    self._audit_logger.log_flush_failed(entry.payment_id, error, attempted, remaining)
                return FlushResult(
                    attempted=attempted,
                    synced_ids=synced_ids,
                    remaining=remaining,
                    error=error,
                )

            self._remove(entry)
            if entry.payment_id not in synced_ids:
                synced_ids.append(entry.payment_id)
            if self._audit_logger:
                self._audit_logger.log_mutation_synced(entry.payment_id, entry.kind.value, entry.sequence)

        remaining = len(self._entries)
        logger.info("flush_completed", attempted=attempted, remaining=remaining)
        if self._audit_logger:
            self._audit_logger.log_flush_completed(attempted, remaining)
        return FlushResult(attempted=attempted, synced_ids=synced_ids, remaining=remaining)
