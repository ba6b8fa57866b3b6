from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Sequence

from warehouse.errors import AnalyticsError, UnknownReportError
from warehouse.models import Delivery, Issuance
from warehouse.services import reports as r
from warehouse.services.params import ReportParams
from warehouse.store import RecordStore, Snapshot, take_snapshot
from warehouse.utils import utc_now

logger = logging.getLogger(__name__)

ReportFn = Callable[[Sequence[Delivery], Sequence[Issuance], Optional[ReportParams]], list]


@dataclass(frozen=True)
class ReportDefinition:
    name: str
    title: str
    description: str
    fn: ReportFn
    row_type: type


DEFAULT_REPORTS: tuple[ReportDefinition, ...] = (
    ReportDefinition(
        "record_counts",
        "Record counts",
        "Total delivery and issuance rows.",
        r.record_counts,
        r.RecordCountsRow,
    ),
    ReportDefinition(
        "unmatched_deliveries",
        "Delivered but never issued",
        "Deliveries whose LPO has no issuance, newest receipt first.",
        r.unmatched_deliveries,
        Delivery,
    ),
    ReportDefinition(
        "repeated_issuance",
        "Repeated issuance (anomaly category)",
        "LPO/item pairs issued more than once for LPOs delivered under the anomaly category.",
        r.repeated_issuance,
        r.RepeatedIssuanceRow,
    ),
    ReportDefinition(
        "category_cost",
        "Category cost vs overall",
        "Average unit cost per category beside the overall average.",
        r.category_cost,
        r.CategoryCostRow,
    ),
    ReportDefinition(
        "delivery_issuance_pairs",
        "Delivery / issuance pairs",
        "Every delivery line matched with every issuance on the same LPO.",
        r.delivery_issuance_pairs,
        r.DeliveryIssuancePairRow,
    ),
    ReportDefinition(
        "reconciliation",
        "Reconciliation",
        "Issued quantity and remaining stock per LPO line, most remaining first.",
        r.reconciliation,
        r.ReconciliationRow,
    ),
    ReportDefinition(
        "supplier_ranking",
        "Supplier ranking",
        "Suppliers ranked by total delivered value.",
        r.supplier_ranking,
        r.SupplierRankingRow,
    ),
    ReportDefinition(
        "issuance_running_totals",
        "Issuance running totals",
        "Cumulative issued quantity and value with a trailing moving average.",
        r.issuance_running_totals,
        r.RunningTotalRow,
    ),
    ReportDefinition(
        "recent_issuance",
        "Recently issued deliveries",
        "Deliveries with at least one issuance inside the recent-issue window.",
        r.recent_issuance,
        Delivery,
    ),
    ReportDefinition(
        "monthly_category_summary",
        "Monthly category summary",
        "Delivered value per month and category with a running total per category.",
        r.monthly_category_summary,
        r.MonthlySummaryRow,
    ),
    ReportDefinition(
        "daily_activity",
        "Daily activity census",
        "Distinct deliveries and issuances per day over the census window.",
        r.daily_activity,
        r.DailyActivityRow,
    ),
    ReportDefinition(
        "turnover",
        "Stock turnover",
        "Issued over held quantity per category.",
        r.turnover,
        r.TurnoverRow,
    ),
    ReportDefinition(
        "expiry_risk",
        "Expiry risk",
        "Stock expiring inside the expiry horizon, soonest first.",
        r.expiry_risk,
        r.ExpiryRiskRow,
    ),
)


class ReportCatalog:
    """Named reports, each run against a single point-in-time snapshot."""

    def __init__(self, definitions: Iterable[ReportDefinition] = DEFAULT_REPORTS):
        self._definitions: dict[str, ReportDefinition] = {}
        for d in definitions:
            if d.name in self._definitions:
                raise ValueError(f"Duplicate report name: {d.name}")
            self._definitions[d.name] = d

    def __iter__(self) -> Iterator[ReportDefinition]:
        return iter(self._definitions.values())

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def names(self) -> list[str]:
        return list(self._definitions)

    def get(self, name: str) -> ReportDefinition:
        try:
            return self._definitions[name]
        except KeyError:
            raise UnknownReportError(name) from None

    def run_snapshot(self, name: str, snapshot: Snapshot, params: Optional[ReportParams] = None) -> list:
        definition = self.get(name)
        params = params if params is not None else ReportParams(now=utc_now())
        try:
            rows = definition.fn(snapshot.deliveries, snapshot.issuances, params)
        except AnalyticsError as e:
            logger.error(f"Report {name} aborted: {e}")
            raise
        logger.info(f"Report {name} produced {len(rows)} row(s)")
        return rows

    def run(self, name: str, store: RecordStore, params: Optional[ReportParams] = None) -> list:
        self.get(name)
        return self.run_snapshot(name, take_snapshot(store), params)

    def run_all(self, store: RecordStore, params: Optional[ReportParams] = None) -> dict[str, list]:
        """Every report over one shared snapshot, so the results agree with each other."""
        snapshot = take_snapshot(store)
        params = params if params is not None else ReportParams(now=utc_now())
        return {name: self.run_snapshot(name, snapshot, params) for name in self._definitions}
