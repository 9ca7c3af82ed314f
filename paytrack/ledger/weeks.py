"""
Calendar Skeleton Generation

Builds the Month -> Week -> Day skeleton for a (month, year) pair.

Week 0 starts on the week start that contains day 1 of the month; each
following week starts 7 days later, until the week containing the last day
of the month. Weeks therefore borrow days from the adjacent months.

All functions here are pure: same (month, year, week_start), same result.
`month` is zero-based (0 = January) throughout.
"""

import calendar
from datetime import date, timedelta
from decimal import Decimal

from paytrack.models.ledger import DAYS_PER_WEEK, MAX_YEAR, MIN_YEAR, Day, Month, Week, WeekStart


DEFAULT_WEEK_START = WeekStart.SUNDAY


def _first_and_last_day(month: int, year: int) -> tuple[date, date]:
    if not 0 <= month <= 11:
        raise ValueError(f"month must be 0-11, got {month}")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ValueError(f"year must be {MIN_YEAR}-{MAX_YEAR}, got {year}")
    days_in_month = calendar.monthrange(year, month + 1)[1]
    return date(year, month + 1, 1), date(year, month + 1, days_in_month)


def start_of_week(day: date, week_start: WeekStart = DEFAULT_WEEK_START) -> date:
    """The most recent week start on or before `day`."""
    offset = (day.weekday() - week_start.weekday) % DAYS_PER_WEEK
    return day - timedelta(days=offset)


def weeks_in_month(
    month: int,
    year: int,
    week_start: WeekStart = DEFAULT_WEEK_START,
) -> int:
    """Number of calendar weeks that intersect the month (4 to 6)."""
    first, last = _first_and_last_day(month, year)
    span = start_of_week(last, week_start) - start_of_week(first, week_start)
    return span.days // DAYS_PER_WEEK + 1


def week_of_year(day: date, week_start: WeekStart = DEFAULT_WEEK_START) -> int:
    """
    Week-of-year for `day`, never reset per month.

    With a Monday week start this is the ISO 8601 week number. For any other
    week start, week 1 is the week containing January 1 (locale numbering),
    so the last days of December can already be week 1 of the next year.
    """
    if week_start == WeekStart.MONDAY:
        return day.isocalendar()[1]

    if day.year < date.max.year:
        next_year_start = start_of_week(date(day.year + 1, 1, 1), week_start)
        if day >= next_year_start:
            return 1

    year_start = start_of_week(date(day.year, 1, 1), week_start)
    return (start_of_week(day, week_start) - year_start).days // DAYS_PER_WEEK + 1


def _build_day(day: date, month: int) -> Day:
    return Day(
        day_of_month=day.day,
        day_name=day.strftime("%A"),
        date=day,
        in_month=day.month == month + 1,
    )


def generate_weeks_for_month(
    month: int,
    year: int,
    week_start: WeekStart = DEFAULT_WEEK_START,
) -> tuple[Week, ...]:
    """
    Build the empty weeks covering a month.

    Every week has exactly 7 days with no payments and zero totals.
    """
    first, _ = _first_and_last_day(month, year)
    first_week_start = start_of_week(first, week_start)

    weeks = []
    for index in range(weeks_in_month(month, year, week_start)):
        week_begin = first_week_start + timedelta(days=index * DAYS_PER_WEEK)
        days = tuple(
            _build_day(week_begin + timedelta(days=offset), month)
            for offset in range(DAYS_PER_WEEK)
        )
        weeks.append(Week(
            week_number=week_of_year(week_begin, week_start),
            ordinal=index + 1,
            start_date=week_begin,
            end_date=week_begin + timedelta(days=DAYS_PER_WEEK - 1),
            days=days,
        ))

    return tuple(weeks)


def build_month_skeleton(
    month: int,
    year: int,
    week_start: WeekStart = DEFAULT_WEEK_START,
) -> Month:
    """Wrap the generated weeks in an empty Month aggregate."""
    return Month(
        month=month,
        year=year,
        weeks=generate_weeks_for_month(month, year, week_start),
        total=Decimal("0"),
    )


def months_spanned(start: date, end: date) -> list[tuple[int, int]]:
    """(year, zero-based month) of every calendar month from start to end, inclusive."""
    spanned = []
    cursor = start.replace(day=1)
    while cursor <= end:
        spanned.append((cursor.year, cursor.month - 1))
        cursor = (cursor + timedelta(days=32)).replace(day=1)
    return spanned
