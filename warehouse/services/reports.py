from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import date, timedelta
from typing import Iterable, Optional

import pandas as pd

from warehouse.models import Delivery, Issuance
from warehouse.operators.aggregate import aggregate, avg_of, count, count_distinct, sum_of
from warehouse.operators.date_series import date_series, trailing_days
from warehouse.operators.fields import as_dict
from warehouse.operators.join import JoinMode, anti_join, join, semi_join
from warehouse.operators.window import Frame, WindowFn, window
from warehouse.services.params import ReportParams
from warehouse.utils import as_datetime, safe_div, utc_now, year_month

SECONDS_PER_DAY = 86400.0


# -------------------------
# Result row types
# -------------------------

@dataclass(frozen=True)
class RepeatedIssuanceRow:
    lpo_number: str
    item_code: str
    issue_count: int


@dataclass(frozen=True)
class CategoryCostRow:
    level1_category: str
    avg_cost: float
    overall_avg: float


@dataclass(frozen=True)
class ReconciliationRow:
    lpo_number: Optional[str]
    item_code: str
    qty_on_hand: float
    total_issued: float
    remaining_stock: float


@dataclass(frozen=True)
class SupplierRankingRow:
    supplier_name: str
    delivery_count: int
    total_value: float
    supplier_rank: int
    row_num: int


@dataclass(frozen=True)
class RunningTotalRow:
    issue_id: str
    issue_date: date
    issued_quantity: float
    total_cost: float
    running_quantity: float
    running_value: float
    weekly_avg_quantity: float


@dataclass(frozen=True)
class MonthlySummaryRow:
    delivery_month: str
    level1_category: str
    delivery_count: int
    monthly_value: float
    ytd_value: float


@dataclass(frozen=True)
class DailyActivityRow:
    report_date: date
    deliveries_on_date: int
    issues_on_date: int


@dataclass(frozen=True)
class TurnoverRow:
    level1_category: str
    total_stock: float
    total_issued: float
    turnover_rate: float


@dataclass(frozen=True)
class ExpiryRiskRow:
    level1_category: str
    level2_category: str
    item_code: str
    batch_no: Optional[str]
    expiry_date: date
    qty_on_hand: float
    unit_cost: float
    stock_value: float
    days_to_expiry: float


@dataclass(frozen=True)
class RecordCountsRow:
    total_deliveries: int
    total_issued: int


@dataclass(frozen=True)
class DeliveryIssuancePairRow:
    lpo_number: str
    item_code: str
    receipt_date: date
    supplier_name: str
    issue_date: date
    issued_to: Optional[str]
    issued_quantity: float
    qty_on_hand: float


def _params(params: Optional[ReportParams]) -> ReportParams:
    return params if params is not None else ReportParams(now=utc_now())


# -------------------------
# Reports
# -------------------------

def record_counts(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[RecordCountsRow]:
    return [RecordCountsRow(total_deliveries=len(list(deliveries)), total_issued=len(list(issuances)))]


def unmatched_deliveries(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[Delivery]:
    """Deliveries whose LPO was never issued against, newest receipt first."""
    rows = anti_join(deliveries, issuances, "lpo_number")
    return sorted(rows, key=lambda d: d.receipt_date, reverse=True)


def repeated_issuance(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[RepeatedIssuanceRow]:
    """
    Issuance (lpo_number, item_code) pairs seen more than once, restricted to
    LPOs delivered under the anomaly category (Pharmaceuticals by default).
    """
    params = _params(params)
    flagged = [d for d in deliveries if d.level1_category == params.anomaly_category]
    matched = semi_join(issuances, flagged, "lpo_number")
    groups = aggregate(matched, ["lpo_number", "item_code"], [count("issue_count")])
    return [RepeatedIssuanceRow(**g) for g in groups if g["issue_count"] > 1]


def category_cost(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[CategoryCostRow]:
    deliveries = list(deliveries)
    groups = aggregate(deliveries, ["level1_category"], [avg_of("unit_cost", "avg_cost")])
    if not groups:
        return []
    overall = aggregate(deliveries, [], [avg_of("unit_cost", "overall_avg")])[0]["overall_avg"]
    return [CategoryCostRow(overall_avg=overall, **g) for g in groups]


def reconciliation(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[ReconciliationRow]:
    """
    Delivered vs. issued per (lpo_number, item_code, qty_on_hand).
    LPOs without issuances keep their full quantity as remaining stock.
    """
    pairs = join(deliveries, issuances, "lpo_number", JoinMode.LEFT_OUTER)
    groups = aggregate(
        pairs,
        ["left.lpo_number", "left.item_code", "left.qty_on_hand"],
        [sum_of("right.issued_quantity", "total_issued", absent=0)],
    )
    rows = [ReconciliationRow(remaining_stock=g["qty_on_hand"] - g["total_issued"], **g) for g in groups]
    return sorted(rows, key=lambda r: r.remaining_stock, reverse=True)


def supplier_ranking(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[SupplierRankingRow]:
    groups = aggregate(
        deliveries,
        ["supplier_name"],
        [count("delivery_count"), sum_of("total_sales", "total_value", absent=0)],
    )
    ranked = window(groups, "total_value", WindowFn.RANK, name="supplier_rank", descending=True)
    numbered = window(ranked, "total_value", WindowFn.ROW_NUMBER, name="row_num", descending=True)
    return [SupplierRankingRow(**r) for r in numbered]


def issuance_running_totals(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[RunningTotalRow]:
    params = _params(params)
    # Same-day issuances share one running total.
    through_day = Frame.cumulative(peers=True)
    rows = window(
        issuances, "issue_date", WindowFn.SUM, field="issued_quantity", frame=through_day, name="running_quantity"
    )
    rows = window(rows, "issue_date", WindowFn.SUM, field="total_cost", frame=through_day, name="running_value")
    rows = window(
        rows,
        "issue_date",
        WindowFn.AVG,
        field="issued_quantity",
        frame=Frame.rows_preceding(params.moving_average_rows - 1),
        name="weekly_avg_quantity",
    )
    return [
        RunningTotalRow(
            issue_id=r["issue_id"],
            issue_date=r["issue_date"],
            issued_quantity=r["issued_quantity"],
            total_cost=r["total_cost"],
            running_quantity=r["running_quantity"],
            running_value=r["running_value"],
            weekly_avg_quantity=r["weekly_avg_quantity"],
        )
        for r in rows
    ]


def recent_issuance(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[Delivery]:
    """Deliveries with at least one issuance on or after today - recent_issue_days."""
    params = _params(params)
    cutoff = params.today - timedelta(days=params.recent_issue_days)
    return semi_join(
        deliveries,
        issuances,
        "lpo_number",
        where=lambda i: i.issue_date is not None and i.issue_date >= cutoff,
    )


def monthly_category_summary(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[MonthlySummaryRow]:
    groups = aggregate(
        deliveries,
        [("delivery_month", lambda d: year_month(d.receipt_date)), "level1_category"],
        [count("delivery_count"), sum_of("total_sales", "monthly_value", absent=0)],
    )
    rows = window(
        groups,
        "delivery_month",
        WindowFn.SUM,
        partition_keys=["level1_category"],
        field="monthly_value",
        name="ytd_value",
    )
    # month desc, then value desc
    rows.sort(key=lambda r: r["monthly_value"], reverse=True)
    rows.sort(key=lambda r: r["delivery_month"], reverse=True)
    return [MonthlySummaryRow(**r) for r in rows]


def daily_activity(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[DailyActivityRow]:
    """One row per day of the census window, zero-activity days included."""
    params = _params(params)
    start, end = trailing_days(params.today, params.census_days)
    days = list(date_series(start, end))

    delivered = aggregate(
        join(days, deliveries, lambda d: d, JoinMode.LEFT_OUTER, right_key="receipt_date"),
        [("report_date", "left")],
        [count_distinct("right.lpo_number", "deliveries_on_date")],
    )
    issued = aggregate(
        join(days, issuances, lambda d: d, JoinMode.LEFT_OUTER, right_key="issue_date"),
        [("report_date", "left")],
        [count_distinct("right.issue_id", "issues_on_date")],
    )
    issues_by_day = {g["report_date"]: g["issues_on_date"] for g in issued}

    rows = [
        DailyActivityRow(
            report_date=g["report_date"],
            deliveries_on_date=g["deliveries_on_date"],
            issues_on_date=issues_by_day.get(g["report_date"], 0),
        )
        for g in delivered
    ]
    return sorted(rows, key=lambda r: r.report_date)


def turnover(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[TurnoverRow]:
    """
    Issued / held quantity per level-1 category.

    Stock is summed once per delivery row. Issued quantity is summed over the
    delivery-issuance fan-out, so an issuance counts once per delivery line
    sharing its LPO.
    """
    deliveries = list(deliveries)
    stock = aggregate(deliveries, ["level1_category"], [sum_of("qty_on_hand", "total_stock", absent=0)])
    issued = aggregate(
        join(deliveries, issuances, "lpo_number", JoinMode.LEFT_OUTER),
        ["left.level1_category"],
        [sum_of("right.issued_quantity", "total_issued", absent=0)],
    )
    issued_by_category = {g["level1_category"]: g["total_issued"] for g in issued}

    rows = []
    for g in stock:
        total_stock = g["total_stock"] or 0
        total_issued = issued_by_category.get(g["level1_category"], 0) or 0
        rate = safe_div(total_issued, total_stock) if total_stock > 0 else 0.0
        rows.append(
            TurnoverRow(
                level1_category=g["level1_category"],
                total_stock=total_stock,
                total_issued=total_issued,
                turnover_rate=rate,
            )
        )
    return sorted(rows, key=lambda r: r.turnover_rate, reverse=True)


def expiry_risk(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[ExpiryRiskRow]:
    """
    Stock expiring between today and today + expiry_horizon_days, soonest first.
    days_to_expiry is fractional: measured from `now` to midnight of the expiry date.
    """
    params = _params(params)
    today = params.today
    horizon = today + timedelta(days=params.expiry_horizon_days)

    rows = [
        ExpiryRiskRow(
            level1_category=d.level1_category,
            level2_category=d.level2_category,
            item_code=d.item_code,
            batch_no=d.batch_no,
            expiry_date=d.expiry_date,
            qty_on_hand=d.qty_on_hand,
            unit_cost=d.unit_cost,
            stock_value=d.stock_value,
            days_to_expiry=(as_datetime(d.expiry_date) - params.now).total_seconds() / SECONDS_PER_DAY,
        )
        for d in deliveries
        if d.expiry_date is not None and today <= d.expiry_date <= horizon
    ]
    rows.sort(key=lambda r: r.stock_value, reverse=True)
    rows.sort(key=lambda r: r.days_to_expiry)
    return rows


def delivery_issuance_pairs(
    deliveries: Iterable[Delivery], issuances: Iterable[Issuance], params: Optional[ReportParams] = None
) -> list[DeliveryIssuancePairRow]:
    return [
        DeliveryIssuancePairRow(
            lpo_number=p.left.lpo_number,
            item_code=p.left.item_code,
            receipt_date=p.left.receipt_date,
            supplier_name=p.left.supplier_name,
            issue_date=p.right.issue_date,
            issued_to=p.right.issued_to,
            issued_quantity=p.right.issued_quantity,
            qty_on_hand=p.left.qty_on_hand,
        )
        for p in join(deliveries, issuances, "lpo_number", JoinMode.INNER)
    ]


def report_frame(rows: list, row_type: Optional[type] = None) -> pd.DataFrame:
    """Result rows as a DataFrame; keeps the column layout when there are no rows."""
    if not rows:
        columns = [f.name for f in fields(row_type)] if row_type is not None else []
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([as_dict(r) for r in rows])
