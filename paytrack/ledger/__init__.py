"""
Ledger Package

Calendar skeleton generation, total aggregation and the pure state
transitions the LedgerStore is built on.
"""

from paytrack.ledger.aggregator import recompute_day, recompute_week, sum_week_totals
from paytrack.ledger.transitions import (
    AddPayment,
    DeletePayment,
    LedgerCommand,
    LedgerState,
    LoadFailed,
    LoadStarted,
    LoadSucceeded,
    MarkSynced,
    SelectMonth,
    Transition,
    UpdatePayment,
    apply_command,
)
from paytrack.ledger.weeks import (
    DEFAULT_WEEK_START,
    build_month_skeleton,
    generate_weeks_for_month,
    months_spanned,
    start_of_week,
    week_of_year,
    weeks_in_month,
)

__all__ = [
    # Calendar
    "DEFAULT_WEEK_START",
    "build_month_skeleton",
    "generate_weeks_for_month",
    "months_spanned",
    "start_of_week",
    "week_of_year",
    "weeks_in_month",
    # Aggregation
    "recompute_day",
    "recompute_week",
    "sum_week_totals",
    # Transitions
    "AddPayment",
    "DeletePayment",
    "LedgerCommand",
    "LedgerState",
    "LoadFailed",
    "LoadStarted",
    "LoadSucceeded",
    "MarkSynced",
    "SelectMonth",
    "Transition",
    "UpdatePayment",
    "apply_command",
]
