"""
Ledger Aggregation

Recomputes derived totals bottom-up from payment amounts:

    day.total   = sum of its payment amounts
    week.total  = sum of its day totals
    month.total = sum of its week totals

recompute_week() is scoped to a single week on purpose. Keeping the month
total in step is the caller's job (see sum_week_totals()).
"""

from decimal import Decimal
from typing import Iterable

from paytrack.models.ledger import Day, Week


def recompute_day(day: Day) -> Day:
    """Return the day with its total recomputed from its payments."""
    total = sum((payment.amount for payment in day.payments), Decimal("0"))
    return day.model_copy(update={"total": total})


def recompute_week(week: Week) -> Week:
    """
    Return the week with every day total and the week total recomputed.

    Idempotent: running it on its own output yields an equal week.
    """
    days = tuple(recompute_day(day) for day in week.days)
    total = sum((day.total for day in days), Decimal("0"))
    return week.model_copy(update={"days": days, "total": total})


def sum_week_totals(weeks: Iterable[Week]) -> Decimal:
    """Month total from already recomputed week totals."""
    return sum((week.total for week in weeks), Decimal("0"))
