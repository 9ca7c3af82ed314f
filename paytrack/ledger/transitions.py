"""
Ledger State Transitions

The ledger's state changes are expressed as a pure function:

    apply_command(state, command) -> Transition

`state` is an immutable LedgerState, `command` one of the command models
below. Nothing here touches the network, the sync queue or the clock, so
every transition can be tested without any harness.

Totals are recomputed inside the same transition as the write that changed
them. A Month handed out by a transition is always consistent.

Commands that address a payment by (week_index, day_index, payment_id)
return a Transition with no payments when the triple does not resolve.
That is the not-found signal; the state is returned unchanged.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from paytrack.ledger.aggregator import recompute_week, sum_week_totals
from paytrack.ledger.weeks import DEFAULT_WEEK_START, build_month_skeleton
from paytrack.models.ledger import MAX_YEAR, MIN_YEAR, Day, Month, Payment, WeekStart


_FROZEN = ConfigDict(frozen=True)


class LedgerState(BaseModel):
    """Selected month, its ledger and the loading flags."""
    model_config = _FROZEN

    month: int = Field(..., ge=0, le=11)
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)
    week_start: WeekStart = DEFAULT_WEEK_START
    month_data: Optional[Month] = None
    is_loading: bool = False
    error: Optional[str] = None


# =============================================================================
# COMMANDS
# =============================================================================

class SelectMonth(BaseModel):
    model_config = _FROZEN

    month: int = Field(..., ge=0, le=11)
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)


class LoadStarted(BaseModel):
    model_config = _FROZEN


class LoadSucceeded(BaseModel):
    """
    Remote payments for (month, year). Ignored if the selector moved on.

    Placed payments are marked synced, except those listed in unsynced_ids
    (local writes still waiting in the queue).
    """
    model_config = _FROZEN

    month: int
    year: int
    payments: tuple[Payment, ...] = ()
    unsynced_ids: frozenset[str] = frozenset()


class LoadFailed(BaseModel):
    model_config = _FROZEN

    month: int
    year: int
    error: str


class AddPayment(BaseModel):
    model_config = _FROZEN

    week_index: int
    day_index: int
    payment: Payment


class UpdatePayment(BaseModel):
    model_config = _FROZEN

    week_index: int
    day_index: int
    payment_id: str
    changes: dict = Field(default_factory=dict)


class DeletePayment(BaseModel):
    model_config = _FROZEN

    week_index: int
    day_index: int
    payment_id: str


class MarkSynced(BaseModel):
    model_config = _FROZEN

    payment_ids: frozenset[str]


LedgerCommand = Union[
    SelectMonth,
    LoadStarted,
    LoadSucceeded,
    LoadFailed,
    AddPayment,
    UpdatePayment,
    DeletePayment,
    MarkSynced,
]


class Transition(BaseModel):
    """New state plus the payments the command touched."""
    model_config = _FROZEN

    state: LedgerState
    payments: tuple[Payment, ...] = ()

    @property
    def payment(self) -> Optional[Payment]:
        """The single affected payment, or None when nothing matched."""
        return self.payments[0] if self.payments else None

    @property
    def found(self) -> bool:
        return bool(self.payments)


# =============================================================================
# HELPERS
# =============================================================================

def _resolve_day(month_data: Optional[Month], week_index: int, day_index: int) -> Optional[Day]:
    if month_data is None:
        return None
    return month_data.day_at(week_index, day_index)


def _with_days(month_data: Month, replacements: dict[tuple[int, int], Day]) -> Month:
    """Swap in new days, recompute the touched weeks, then the month total."""
    weeks = list(month_data.weeks)
    touched = {week_index for week_index, _ in replacements}
    for week_index in touched:
        days = list(weeks[week_index].days)
        for (w, d), day in replacements.items():
            if w == week_index:
                days[d] = day
        weeks[week_index] = recompute_week(
            weeks[week_index].model_copy(update={"days": tuple(days)})
        )
    return month_data.model_copy(
        update={"weeks": tuple(weeks), "total": sum_week_totals(weeks)}
    )


def _unchanged(state: LedgerState) -> Transition:
    return Transition(state=state)


# =============================================================================
# TRANSITIONS
# =============================================================================

def _select_month(state: LedgerState, command: SelectMonth) -> Transition:
    month_data = build_month_skeleton(command.month, command.year, state.week_start)
    return Transition(state=state.model_copy(update={
        "month": command.month,
        "year": command.year,
        "month_data": month_data,
        "is_loading": False,
        "error": None,
    }))


def _load_succeeded(state: LedgerState, command: LoadSucceeded) -> Transition:
    if (command.month, command.year) != (state.month, state.year):
        return _unchanged(state)
    if state.month_data is None:
        return _unchanged(state.model_copy(update={"is_loading": False}))

    month_data = state.month_data
    known = {payment.id for _, _, payment in month_data.iter_payments()}
    placed = []
    for remote in command.payments:
        if remote.id in known:
            continue
        location = month_data.locate_date(remote.date)
        if location is None:
            continue
        week_index, day_index = location
        day = month_data.weeks[week_index].days[day_index]
        payment = remote.model_copy(update={"synced": remote.id not in command.unsynced_ids})
        day = day.model_copy(update={"payments": day.payments + (payment,)})
        month_data = _with_days(month_data, {location: day})
        known.add(payment.id)
        placed.append(payment)

    return Transition(
        state=state.model_copy(update={
            "month_data": month_data,
            "is_loading": False,
            "error": None,
        }),
        payments=tuple(placed),
    )


def _load_failed(state: LedgerState, command: LoadFailed) -> Transition:
    if (command.month, command.year) != (state.month, state.year):
        return _unchanged(state)
    return Transition(state=state.model_copy(update={
        "is_loading": False,
        "error": command.error,
    }))


def _add_payment(state: LedgerState, command: AddPayment) -> Transition:
    day = _resolve_day(state.month_data, command.week_index, command.day_index)
    if day is None:
        return _unchanged(state)

    day = day.model_copy(update={"payments": day.payments + (command.payment,)})
    month_data = _with_days(state.month_data, {(command.week_index, command.day_index): day})
    return Transition(
        state=state.model_copy(update={"month_data": month_data}),
        payments=(command.payment,),
    )


def _update_payment(state: LedgerState, command: UpdatePayment) -> Transition:
    day = _resolve_day(state.month_data, command.week_index, command.day_index)
    if day is None or day.find_payment(command.payment_id) is None:
        return _unchanged(state)

    updated = None
    payments = []
    for payment in day.payments:
        if payment.id == command.payment_id:
            payment = payment.model_copy(update={**command.changes, "synced": False})
            updated = payment
        payments.append(payment)

    day = day.model_copy(update={"payments": tuple(payments)})
    month_data = _with_days(state.month_data, {(command.week_index, command.day_index): day})
    return Transition(
        state=state.model_copy(update={"month_data": month_data}),
        payments=(updated,),
    )


def _delete_payment(state: LedgerState, command: DeletePayment) -> Transition:
    day = _resolve_day(state.month_data, command.week_index, command.day_index)
    removed = day.find_payment(command.payment_id) if day is not None else None
    if removed is None:
        return _unchanged(state)

    day = day.model_copy(update={
        "payments": tuple(p for p in day.payments if p.id != command.payment_id),
    })
    month_data = _with_days(state.month_data, {(command.week_index, command.day_index): day})
    return Transition(
        state=state.model_copy(update={"month_data": month_data}),
        payments=(removed,),
    )


def _mark_synced(state: LedgerState, command: MarkSynced) -> Transition:
    if state.month_data is None or not command.payment_ids:
        return _unchanged(state)

    replacements = {}
    marked = []
    for week_index, week in enumerate(state.month_data.weeks):
        for day_index, day in enumerate(week.days):
            if not any(p.id in command.payment_ids and not p.synced for p in day.payments):
                continue
            payments = []
            for payment in day.payments:
                if payment.id in command.payment_ids and not payment.synced:
                    payment = payment.model_copy(update={"synced": True})
                    marked.append(payment)
                payments.append(payment)
            replacements[(week_index, day_index)] = day.model_copy(
                update={"payments": tuple(payments)}
            )

    if not replacements:
        return _unchanged(state)

    month_data = _with_days(state.month_data, replacements)
    return Transition(
        state=state.model_copy(update={"month_data": month_data}),
        payments=tuple(marked),
    )


def apply_command(state: LedgerState, command: LedgerCommand) -> Transition:
    """Apply one command to the ledger state."""
    if isinstance(command, SelectMonth):
        return _select_month(state, command)
    elif isinstance(command, LoadStarted):
        return Transition(state=state.model_copy(update={"is_loading": True, "error": None}))
    elif isinstance(command, LoadSucceeded):
        return _load_succeeded(state, command)
    elif isinstance(command, LoadFailed):
        return _load_failed(state, command)
    elif isinstance(command, AddPayment):
        return _add_payment(state, command)
    elif isinstance(command, UpdatePayment):
        return _update_payment(state, command)
    elif isinstance(command, DeletePayment):
        return _delete_payment(state, command)
    elif isinstance(command, MarkSynced):
        return _mark_synced(state, command)
    raise TypeError(f"Unknown ledger command: {type(command).__name__}")
