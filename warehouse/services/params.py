from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone

from warehouse.utils import as_datetime

DEFAULT_ANOMALY_CATEGORY = "Pharmaceuticals"


@dataclass(frozen=True)
class ReportParams:
    """Inputs every report may read besides the two record collections."""

    now: datetime
    recent_issue_days: int = 30
    census_days: int = 30
    expiry_horizon_days: int = 90
    moving_average_rows: int = 7
    anomaly_category: str = DEFAULT_ANOMALY_CATEGORY

    def __post_init__(self):
        # A bare date means midnight of that day; an aware now is moved to naive UTC.
        now = as_datetime(self.now)
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc).replace(tzinfo=None)
        object.__setattr__(self, "now", now)
        if self.moving_average_rows < 1:
            raise ValueError("moving_average_rows must be >= 1.")

    @property
    def today(self) -> date:
        return self.now.date()
