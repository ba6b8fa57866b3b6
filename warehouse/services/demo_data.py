from __future__ import annotations

import logging
import random
from datetime import date, timedelta
from typing import Optional

from warehouse.db import ensure_schema, x
from warehouse.models import Delivery, Issuance

logger = logging.getLogger(__name__)

DEFAULT_SUPPLIERS = ["MedSource Ltd", "Afya Distributors", "Lakeside Pharma", "Umoja Supplies"]
DEFAULT_CATEGORIES = {
    "Pharmaceuticals": ["Antibiotics", "Analgesics", "Antimalarials"],
    "Medical Supplies": ["Dressings", "Syringes"],
    "Laboratory": ["Reagents", "Test Kits"],
}
DEFAULT_FACILITIES = ["Ward A", "Ward B", "Outpatient", "Theatre", "Maternity"]


def insert_delivery(conn, d: Delivery) -> int:
    return x(
        conn,
        """
        INSERT INTO commodities_delivered (
            lpo_number, item_code, receipt_date, supplier_name,
            level1_category, level2_category, batch_no, expiry_date,
            qty_on_hand, unit_cost, total_sales
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            d.lpo_number,
            d.item_code,
            d.receipt_date.isoformat(),
            d.supplier_name,
            d.level1_category,
            d.level2_category,
            d.batch_no,
            d.expiry_date.isoformat() if d.expiry_date is not None else None,
            float(d.qty_on_hand),
            float(d.unit_cost),
            float(d.total_sales),
        ),
    )


def insert_issuance(conn, i: Issuance) -> int:
    return x(
        conn,
        """
        INSERT INTO commodities_issued (
            issue_id, lpo_number, item_code, issue_date, issued_to, issued_quantity, total_cost
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            i.issue_id,
            i.lpo_number,
            i.item_code,
            i.issue_date.isoformat(),
            i.issued_to,
            float(i.issued_quantity),
            float(i.total_cost),
        ),
    )


def wipe_all(conn) -> None:
    # Keep schema, delete data.
    for t in ["commodities_issued", "commodities_delivered"]:
        conn.execute(f"DELETE FROM {t};")
    conn.commit()


def load_demo_data(conn, *, seed: int = 7, today: Optional[date] = None, lpo_count: int = 24) -> dict:
    """
    Seed deliveries spread over the last ~4 months and issuances against most
    of them. Some LPOs are left unissued, some get repeated issues of the same
    item, and some batches expire inside the next 90 days.
    Existing rows are replaced.
    """
    rng = random.Random(seed)
    today = today or date.today()
    ensure_schema(conn)
    wipe_all(conn)

    deliveries: list[Delivery] = []
    for n in range(lpo_count):
        lpo = f"LPO-{today.year}-{n + 1:04d}"
        receipt = today - timedelta(days=rng.randint(0, 120))
        supplier = rng.choice(DEFAULT_SUPPLIERS)
        level1 = rng.choice(list(DEFAULT_CATEGORIES))

        # One LPO may carry several line items.
        for line in range(rng.choice([1, 1, 2, 3])):
            qty = rng.randint(20, 400)
            cost = round(rng.uniform(5, 250), 2)
            expiry = None if level1 == "Medical Supplies" else today + timedelta(days=rng.randint(-10, 540))
            d = Delivery(
                lpo_number=lpo,
                item_code=f"{level1[:3].upper()}-{rng.randint(100, 999)}",
                receipt_date=receipt,
                supplier_name=supplier,
                level1_category=level1,
                level2_category=rng.choice(DEFAULT_CATEGORIES[level1]),
                batch_no=f"B{receipt.strftime('%y%m%d')}-{line + 1}" if expiry is not None else None,
                expiry_date=expiry,
                qty_on_hand=qty,
                unit_cost=cost,
                total_sales=round(qty * cost * rng.uniform(0.9, 1.3), 2),
            )
            insert_delivery(conn, d)
            deliveries.append(d)

    issued = 0
    for d in deliveries:
        # Roughly a fifth of lines are never issued.
        if rng.random() < 0.2:
            continue
        remaining = float(d.qty_on_hand)
        for _ in range(rng.randint(1, 4)):
            if remaining <= 0:
                break
            qty = min(remaining, float(rng.randint(1, max(1, int(d.qty_on_hand // 3)))))
            issue_date = min(today, d.receipt_date + timedelta(days=rng.randint(0, 60)))
            issued += 1
            insert_issuance(
                conn,
                Issuance(
                    issue_id=f"ISS-{issued:05d}",
                    lpo_number=d.lpo_number,
                    item_code=d.item_code,
                    issue_date=issue_date,
                    issued_to=rng.choice(DEFAULT_FACILITIES),
                    issued_quantity=qty,
                    total_cost=round(qty * float(d.unit_cost), 2),
                ),
            )
            remaining -= qty

    logger.info(f"Loaded demo data: {len(deliveries)} deliveries, {issued} issuances")
    return {"deliveries": len(deliveries), "issuances": issued}
