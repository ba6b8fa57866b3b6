from __future__ import annotations

from datetime import date, timedelta
from typing import Iterator

from warehouse.errors import InvalidRangeError


def _days(start: date, end: date) -> Iterator[date]:
    d = start
    one = timedelta(days=1)
    while d <= end:
        yield d
        d += one


def date_series(start: date, end: date) -> Iterator[date]:
    """
    Consecutive calendar dates from start to end, both included.

    The range is checked here rather than inside the generator so a bad range
    fails at the call site. The iterator is single-pass; buffer it with list()
    to enumerate twice.
    """
    if start > end:
        raise InvalidRangeError(start, end)
    return _days(start, end)


def trailing_days(today: date, days: int) -> tuple[date, date]:
    """(today - days, today): the window covered by a days-long lookback."""
    if days < 0:
        raise InvalidRangeError(today - timedelta(days=days), today)
    return today - timedelta(days=days), today
