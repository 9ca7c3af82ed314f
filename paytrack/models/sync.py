"""
Sync Queue Models

A MutationEntry is a full snapshot of a local write, not a diff.
The queue replays these against the remote store.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from paytrack.models.ledger import Payment


class MutationKind(str, Enum):
    """What the remote store must do with a queued entry."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MutationEntry(BaseModel):
    """
    One queued local write.

    Several entries may exist for the same payment id at once.
    `sequence` is the global enqueue order.
    """
    model_config = ConfigDict(frozen=True)

    payment_id: str = Field(..., min_length=1)
    kind: MutationKind
    payment: Optional[Payment] = Field(
        default=None,
        description="Snapshot of the payment at write time (None for deletes)"
    )
    sequence: int = Field(..., ge=1)
    enqueued_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode="after")
    def validate_payload(self) -> "MutationEntry":
        if self.kind == MutationKind.DELETE:
            if self.payment is not None:
                raise ValueError("Delete entries carry no payment snapshot")
        else:
            if self.payment is None:
                raise ValueError(f"{self.kind.value} entries need a payment snapshot")
            if self.payment.id != self.payment_id:
                raise ValueError("Snapshot id does not match entry payment_id")
        return self


class FlushResult(BaseModel):
    """Outcome of one flush() call (one or more passes)."""

    attempted: int = Field(default=0, ge=0, description="Remote calls issued")
    synced_ids: list[str] = Field(
        default_factory=list,
        description="Payment ids with at least one entry confirmed, in dispatch order"
    )
    remaining: int = Field(default=0, ge=0, description="Entries still queued afterwards")
    error: Optional[str] = Field(
        default=None,
        description="Error that aborted the last pass, if any"
    )
    skipped: bool = Field(
        default=False,
        description="True when there was nothing to flush"
    )

    @property
    def ok(self) -> bool:
        return self.error is None
