from __future__ import annotations

from datetime import date


class AnalyticsError(Exception):
    """Base class for errors raised by the analytics engine."""


class InvalidRangeError(AnalyticsError, ValueError):
    def __init__(self, start: date, end: date):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: start {start} is after end {end}.")


class EmptyGroupError(AnalyticsError, RuntimeError):
    """
    An average was requested over a group with no contributing values.

    Grouping only emits groups with at least one member, so reaching this is a
    logic fault in the report definition rather than bad data.
    """

    def __init__(self, reducer: str, group: tuple):
        self.reducer = reducer
        self.group = group
        super().__init__(f"Reducer '{reducer}' has no values for group {group!r}.")


class UnknownReportError(AnalyticsError, KeyError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown report: {self.name!r}"
