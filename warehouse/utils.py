from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    # Naive UTC, comparable with dates combined at midnight.
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def safe_div(n: float, d: float) -> float:
    return float(n) / float(d) if d else 0.0


def parse_date(value: Union[str, date, datetime, None]) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    return date.fromisoformat(s[:10])


def as_datetime(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def year_month(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"
