from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Delivery:
    lpo_number: Optional[str]
    item_code: str
    receipt_date: date
    supplier_name: str
    level1_category: str
    level2_category: str
    batch_no: Optional[str]
    expiry_date: Optional[date]
    qty_on_hand: float
    unit_cost: float
    total_sales: float  # recorded value; not assumed to equal qty_on_hand * unit_cost

    @property
    def stock_value(self) -> float:
        return float(self.qty_on_hand) * float(self.unit_cost)


@dataclass(frozen=True)
class Issuance:
    issue_id: str
    lpo_number: Optional[str]
    item_code: str
    issue_date: date
    issued_to: Optional[str]
    issued_quantity: float
    total_cost: float
