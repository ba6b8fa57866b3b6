from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Iterable, Protocol

from warehouse.db import q
from warehouse.models import Delivery, Issuance
from warehouse.utils import parse_date

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    """Read side of whatever holds the delivery and issuance records."""

    def deliveries(self) -> Iterable[Delivery]:
        ...

    def issuances(self) -> Iterable[Issuance]:
        ...


@dataclass(frozen=True)
class Snapshot:
    deliveries: tuple[Delivery, ...]
    issuances: tuple[Issuance, ...]


def take_snapshot(store: RecordStore) -> Snapshot:
    """
    Point-in-time copy of both collections.
    Reports only ever read the snapshot, so appends to a live store during a
    run are not seen half-way through.
    """
    return Snapshot(deliveries=tuple(store.deliveries()), issuances=tuple(store.issuances()))


class InMemoryRecordStore:
    def __init__(self, deliveries: Iterable[Delivery] = (), issuances: Iterable[Issuance] = ()):
        self._deliveries = list(deliveries)
        self._issuances = list(issuances)

    def deliveries(self) -> Iterable[Delivery]:
        return iter(self._deliveries)

    def issuances(self) -> Iterable[Issuance]:
        return iter(self._issuances)


def _float_or_zero(v) -> float:
    return float(v) if v is not None else 0.0


def delivery_from_row(r: sqlite3.Row) -> Delivery:
    return Delivery(
        lpo_number=r["lpo_number"],
        item_code=str(r["item_code"]),
        receipt_date=parse_date(r["receipt_date"]),
        supplier_name=str(r["supplier_name"]),
        level1_category=str(r["level1_category"]),
        level2_category=str(r["level2_category"]),
        batch_no=r["batch_no"],
        expiry_date=parse_date(r["expiry_date"]),
        qty_on_hand=_float_or_zero(r["qty_on_hand"]),
        unit_cost=_float_or_zero(r["unit_cost"]),
        total_sales=_float_or_zero(r["total_sales"]),
    )


def issuance_from_row(r: sqlite3.Row) -> Issuance:
    return Issuance(
        issue_id=str(r["issue_id"]),
        lpo_number=r["lpo_number"],
        item_code=str(r["item_code"]),
        issue_date=parse_date(r["issue_date"]),
        issued_to=r["issued_to"],
        issued_quantity=_float_or_zero(r["issued_quantity"]),
        total_cost=_float_or_zero(r["total_cost"]),
    )


class SqliteRecordStore:
    """
    RecordStore over the commodities_delivered / commodities_issued tables.
    Each call re-queries, so callers should go through take_snapshot().
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def deliveries(self) -> list[Delivery]:
        rows = q(self.conn, "SELECT * FROM commodities_delivered ORDER BY id")
        logger.debug(f"Loaded {len(rows)} delivery rows")
        return [delivery_from_row(r) for r in rows]

    def issuances(self) -> list[Issuance]:
        rows = q(self.conn, "SELECT * FROM commodities_issued ORDER BY rowid")
        logger.debug(f"Loaded {len(rows)} issuance rows")
        return [issuance_from_row(r) for r in rows]
