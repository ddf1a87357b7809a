"""Billing-period arithmetic (month, year pairs)."""

import calendar
from collections.abc import Iterator
from datetime import date

CONTRACT_NUMBER_PREFIX = "HD"


def previous_period(month: int, year: int) -> tuple[int, int]:
    if month == 1:
        return 12, year - 1
    return month - 1, year


def next_period(month: int, year: int) -> tuple[int, int]:
    if month == 12:
        return 1, year + 1
    return month + 1, year


def bill_due_date(month: int, year: int, day: int = 5) -> date:
    """Bills for a period fall due on ``day`` of the following month."""
    due_month, due_year = next_period(month, year)
    return date(due_year, due_month, day)


def month_bounds(month: int, year: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def iter_months(start: date, end: date) -> Iterator[tuple[int, int]]:
    """Yield every (month, year) touched by ``[start, end]``, oldest first."""
    month, year = start.month, start.year
    while (year, month) <= (end.year, end.month):
        yield month, year
        month, year = next_period(month, year)


def trailing_months(month: int, year: int, count: int) -> list[tuple[int, int]]:
    """The ``count`` periods ending at (month, year), oldest first."""
    periods = [(month, year)]
    for _ in range(count - 1):
        month, year = previous_period(month, year)
        periods.append((month, year))
    return list(reversed(periods))


def next_contract_number(year: int, latest: str | None) -> str:
    """``HD{year}{seq:04d}`` following ``latest`` (the highest number issued this year)."""
    prefix = f"{CONTRACT_NUMBER_PREFIX}{year}"
    seq = 1
    if latest and latest.startswith(prefix):
        tail = latest[len(prefix):]
        if tail.isdigit():
            seq = int(tail) + 1
    return f"{prefix}{seq:04d}"
