"""
Ledger Data Models

The ledger is a Month -> Week -> Day -> Payment hierarchy for one calendar
month. These models define its shape and the inputs that mutate it.

DESIGN DECISION: Ledger values are immutable (frozen Pydantic models with
tuple sequences). Every update builds a new value, so a Month handed to a
caller can never change underneath it.

Totals on Day, Week and Month are derived by the aggregator. Callers never
set them directly.

Wire format uses camelCase aliases (dayOfMonth, currencyCode, ...) so the
same models serialize for the remote API.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DAYS_PER_WEEK = 7

# Edge weeks of a month reach into the neighbouring years
MIN_YEAR = 2
MAX_YEAR = 9998


# =============================================================================
# ENUMS
# =============================================================================

class WeekStart(str, Enum):
    """
    First day of the calendar week.

    Declared in Python weekday order so the position of a member
    matches date.weekday().
    """
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def weekday(self) -> int:
        """Weekday index (Monday == 0) of this week start."""
        return list(WeekStart).index(self)


_VALUE_CONFIG = ConfigDict(
    frozen=True,
    str_strip_whitespace=True,
    alias_generator=to_camel,
    populate_by_name=True,
)

_INPUT_CONFIG = ConfigDict(
    str_strip_whitespace=True,
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


# =============================================================================
# PAYMENT
# =============================================================================

class Payment(BaseModel):
    """
    A single payment entered against a calendar day.

    CRITICAL: `id` is generated on the client and never reassigned.
    It is reused as the key in the remote store.
    """
    model_config = _VALUE_CONFIG

    id: str = Field(
        ...,
        min_length=1,
        description="Client-generated identifier, also the remote key"
    )
    date: dt.date = Field(
        ...,
        description="Calendar day the payment belongs to"
    )
    amount: Decimal = Field(
        ...,
        allow_inf_nan=False,
        description="Payment amount (may be negative for refunds)"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free-text note"
    )
    currency_code: str = Field(
        ...,
        min_length=1,
        max_length=10,
        description="ISO currency code (e.g., MAD, USD)"
    )
    workspace_id: str = Field(
        ...,
        min_length=1,
        description="Workspace the payment is recorded in"
    )
    synced: bool = Field(
        default=False,
        description="Has the remote store confirmed the latest local write?"
    )


class PaymentDraft(BaseModel):
    """
    Input for a new payment.

    Currency and workspace fall back to the store defaults when omitted.
    The date is always the date of the day the payment is added to.
    """
    model_config = _INPUT_CONFIG

    amount: Decimal = Field(..., allow_inf_nan=False)
    description: Optional[str] = Field(default=None, max_length=500)
    currency_code: Optional[str] = Field(default=None, min_length=1, max_length=10)
    workspace_id: Optional[str] = Field(default=None, min_length=1)


class PaymentPatch(BaseModel):
    """
    Partial update for an existing payment. Only fields explicitly set are merged.

    The date is not patchable: a payment stays in the day it was added to.
    Move it with a delete and an add.
    """
    model_config = _INPUT_CONFIG

    amount: Optional[Decimal] = Field(default=None, allow_inf_nan=False)
    description: Optional[str] = Field(default=None, max_length=500)
    currency_code: Optional[str] = Field(default=None, min_length=1, max_length=10)

    @field_validator("amount", "currency_code")
    @classmethod
    def reject_explicit_none(cls, v):
        """Only `description` may be cleared; the other fields are required on a payment."""
        if v is None:
            raise ValueError("field cannot be cleared")
        return v

    def changes(self) -> dict:
        """Fields the caller actually set, by field name."""
        return self.model_dump(exclude_unset=True)


# =============================================================================
# CALENDAR HIERARCHY
# =============================================================================

class Day(BaseModel):
    """
    One calendar day inside a week.

    NOTE: day_of_month is NOT unique across a Month. Weeks borrow days from
    the adjacent months, so "30" can appear twice. Address days by
    (week_index, day_index), never by day_of_month.
    """
    model_config = _VALUE_CONFIG

    day_of_month: int = Field(..., ge=1, le=31)
    day_name: str
    date: dt.date
    in_month: bool = Field(
        default=True,
        description="False for days borrowed from the previous/next month"
    )
    payments: tuple[Payment, ...] = ()
    total: Decimal = Decimal("0")

    def find_payment(self, payment_id: str) -> Optional[Payment]:
        """Look up a payment by id within this day only."""
        for payment in self.payments:
            if payment.id == payment_id:
                return payment
        return None


class Week(BaseModel):
    """
    Seven consecutive days starting on the configured week start.

    Both labels are exposed: `week_number` is the week-of-year (not reset per
    month) and `ordinal` is the 1-based position inside the month.
    """
    model_config = _VALUE_CONFIG

    week_number: int = Field(..., ge=1, le=53)
    ordinal: int = Field(..., ge=1)
    start_date: dt.date
    end_date: dt.date
    days: tuple[Day, ...]
    total: Decimal = Decimal("0")

    @field_validator("days")
    @classmethod
    def validate_seven_days(cls, v: tuple[Day, ...]) -> tuple[Day, ...]:
        if len(v) != DAYS_PER_WEEK:
            raise ValueError(f"A week must have exactly {DAYS_PER_WEEK} days, got {len(v)}")
        return v


class Month(BaseModel):
    """
    The ledger for one calendar month.

    `month` is zero-based (0 = January, 11 = December).
    """
    model_config = _VALUE_CONFIG

    month: int = Field(..., ge=0, le=11)
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)
    weeks: tuple[Week, ...] = ()
    total: Decimal = Decimal("0")

    def iter_payments(self) -> Iterator[tuple[int, int, Payment]]:
        """Yield (week_index, day_index, payment) for every payment in the month."""
        for week_index, week in enumerate(self.weeks):
            for day_index, day in enumerate(week.days):
                for payment in day.payments:
                    yield week_index, day_index, payment

    def day_at(self, week_index: int, day_index: int) -> Optional[Day]:
        """The day at (week_index, day_index), or None when out of range.

        Negative indices are out of range, not offsets from the end.
        """
        if not 0 <= week_index < len(self.weeks):
            return None
        days = self.weeks[week_index].days
        if not 0 <= day_index < len(days):
            return None
        return days[day_index]

    def locate_date(self, day: dt.date) -> Optional[tuple[int, int]]:
        """Return the (week_index, day_index) holding a calendar date, if any."""
        for week_index, week in enumerate(self.weeks):
            for day_index, candidate in enumerate(week.days):
                if candidate.date == day:
                    return week_index, day_index
        return None
