# ttboard/scheduling/date_range.py
"""Day expansion for date assignments.

Single source of truth for "which calendar days does an assignment cover".
The conflict detector, the commit response and the calendar endpoint all go
through ``expand`` so they can never disagree about coverage.

Days are ISO strings (YYYY-MM-DD) on the outside and ``datetime.date`` inside;
arithmetic is done on dates, never on timestamps, so there is no timezone drift.
"""
from __future__ import annotations

import re
from datetime import date, timedelta
from typing import Iterable, Protocol

from ttboard.schemas.tt_task import AssignmentType


class Schedulable(Protocol):
    """Anything carrying the type-dependent scheduling fields (stored assignment or request)."""

    assignment_type: AssignmentType | str | None
    date: str | None
    start_date: str | None
    end_date: str | None
    duration_days: int | None


ISO_DAY = re.compile(r"\d{4}-\d{2}-\d{2}")


def parse_day(value: str) -> date:
    """Strict YYYY-MM-DD. Other ISO 8601 spellings (20240110, 2024-W02-3) are refused."""
    if not ISO_DAY.fullmatch(value):
        raise ValueError(f"Invalid isoformat string: '{value}'")
    return date.fromisoformat(value)


def format_day(value: date) -> str:
    return value.isoformat()


def expand_range(start: str, end: str) -> list[str]:
    """Every day from start to end inclusive, ascending. Empty if start > end."""
    first, last = parse_day(start), parse_day(end)
    return [format_day(first + timedelta(days=i)) for i in range((last - first).days + 1)]


def expand_duration(start: str, duration_days: int) -> list[str]:
    first = parse_day(start)
    return [format_day(first + timedelta(days=i)) for i in range(duration_days)]


def end_of_duration(start: str, duration_days: int) -> str:
    return format_day(parse_day(start) + timedelta(days=duration_days - 1))


def _type_of(item: Schedulable) -> AssignmentType | None:
    try:
        return AssignmentType(item.assignment_type)
    except ValueError:
        return None


def expand(item: Schedulable) -> list[str]:
    """Ordered list of ISO days covered by an assignment.

    Incomplete records (missing type-required fields) cover no days.
    """
    kind = _type_of(item)

    if kind is AssignmentType.single_day:
        return [format_day(parse_day(item.date))] if item.date else []

    if kind is AssignmentType.date_range:
        if item.start_date and item.end_date:
            return expand_range(item.start_date, item.end_date)
        return []

    if kind is AssignmentType.duration_days:
        if item.start_date and item.duration_days:
            return expand_duration(item.start_date, item.duration_days)
        return []

    return []


def overlap(days: Iterable[str], other: Iterable[str]) -> list[str]:
    """Days present in both, in the order of ``days``."""
    other_set = set(other)
    return [d for d in days if d in other_set]


def assignment_summary(item: Schedulable) -> str:
    kind = _type_of(item)
    if kind is AssignmentType.single_day:
        return f"Single day: {item.date}"
    if kind is AssignmentType.date_range:
        return f"Range: {item.start_date} to {item.end_date}"
    if kind is AssignmentType.duration_days:
        return f"{item.duration_days} days from {item.start_date}"
    return "Unknown assignment type"


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


def summary_message(item: Schedulable, item_count: int) -> str:
    """E.g. "2 items over 3 days (Range: 2024-01-10 to 2024-01-12)"."""
    days = len(expand(item))
    return f"{_plural(item_count, 'item')} over {_plural(days, 'day')} ({assignment_summary(item)})"
