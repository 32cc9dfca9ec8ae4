"""Month arithmetic for installment due dates.

Pure functions. The current date is always passed in by the caller.
"""

import calendar
from datetime import date

from fleetledger.errors import InvalidLoanInputError


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's end.

    Jan 31 + 1 month is Feb 28 (or 29), not early March.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end, ignoring the day of month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def next_anchor_date(today: date, due_day: int | None = None) -> date:
    """First due date of a regenerated schedule.

    With a configured EMI due day: the next occurrence of that day strictly
    after today. Without one: the same day next month.
    """
    if due_day is None:
        return add_months(today, 1)
    if not 1 <= due_day <= 31:
        raise InvalidLoanInputError(f"EMI due day must be between 1 and 31, got {due_day}")

    last_day = calendar.monthrange(today.year, today.month)[1]
    candidate = date(today.year, today.month, min(due_day, last_day))
    if candidate > today:
        return candidate

    following = add_months(date(today.year, today.month, 1), 1)
    last_day = calendar.monthrange(following.year, following.month)[1]
    return date(following.year, following.month, min(due_day, last_day))
