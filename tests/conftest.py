from __future__ import annotations

from datetime import date, datetime
from typing import Optional

import pytest

from warehouse.db import _connect, ensure_schema
from warehouse.models import Delivery, Issuance
from warehouse.services.params import ReportParams

NOW = datetime(2024, 6, 15, 12, 0, 0)


def make_delivery(
    lpo_number: Optional[str] = "LPO-1",
    qty_on_hand: float = 100,
    *,
    item_code: str = "ITM-1",
    receipt_date: date = date(2024, 6, 1),
    supplier_name: str = "Acme",
    level1_category: str = "Pharmaceuticals",
    level2_category: str = "Antibiotics",
    batch_no: Optional[str] = "B1",
    expiry_date: Optional[date] = None,
    unit_cost: float = 2.0,
    total_sales: float = 0.0,
) -> Delivery:
    return Delivery(
        lpo_number=lpo_number,
        item_code=item_code,
        receipt_date=receipt_date,
        supplier_name=supplier_name,
        level1_category=level1_category,
        level2_category=level2_category,
        batch_no=batch_no,
        expiry_date=expiry_date,
        qty_on_hand=qty_on_hand,
        unit_cost=unit_cost,
        total_sales=total_sales,
    )


def make_issuance(
    lpo_number: Optional[str] = "LPO-1",
    issued_quantity: float = 1,
    *,
    issue_id: str = "ISS-1",
    item_code: str = "ITM-1",
    issue_date: date = date(2024, 6, 10),
    issued_to: Optional[str] = "Ward A",
    total_cost: float = 0.0,
) -> Issuance:
    return Issuance(
        issue_id=issue_id,
        lpo_number=lpo_number,
        item_code=item_code,
        issue_date=issue_date,
        issued_to=issued_to,
        issued_quantity=issued_quantity,
        total_cost=total_cost,
    )


@pytest.fixture
def params() -> ReportParams:
    return ReportParams(now=NOW)


@pytest.fixture
def conn():
    c = _connect(":memory:")
    ensure_schema(c)
    yield c
    c.close()
