import logging
from datetime import date

import pytest

from conftest import make_delivery, make_issuance

from warehouse.errors import InvalidRangeError, UnknownReportError
from warehouse.services.catalog import DEFAULT_REPORTS, ReportCatalog, ReportDefinition
from warehouse.services.params import ReportParams
from warehouse.store import InMemoryRecordStore


@pytest.fixture
def store():
    return InMemoryRecordStore(
        [
            make_delivery("A", 100, expiry_date=date(2024, 7, 1)),
            make_delivery("B", 10, supplier_name="Other", level1_category="Laboratory"),
        ],
        [make_issuance("B", 4, issue_id="1"), make_issuance("B", 3, issue_id="2")],
    )


class TestReportCatalog:
    def test_default_reports_registered(self):
        catalog = ReportCatalog()

        assert len(catalog) == len(DEFAULT_REPORTS) == 13
        for name in [
            "unmatched_deliveries",
            "repeated_issuance",
            "category_cost",
            "reconciliation",
            "supplier_ranking",
            "issuance_running_totals",
            "recent_issuance",
            "monthly_category_summary",
            "daily_activity",
            "turnover",
            "expiry_risk",
            "record_counts",
            "delivery_issuance_pairs",
        ]:
            assert name in catalog

    def test_run_against_store(self, store, params):
        rows = ReportCatalog().run("reconciliation", store, params)

        assert {r.lpo_number: r.remaining_stock for r in rows} == {"A": 100, "B": 3}

    def test_unknown_report(self, store, params):
        with pytest.raises(UnknownReportError) as exc:
            ReportCatalog().run("nope", store, params)

        assert "nope" in str(exc.value)

    def test_run_all_shares_one_snapshot(self, store, params):
        results = ReportCatalog().run_all(store, params)

        assert set(results) == set(ReportCatalog().names())
        assert results["record_counts"][0].total_deliveries == 2
        assert [d.lpo_number for d in results["unmatched_deliveries"]] == ["A"]
        assert len(results["expiry_risk"]) == 1

    def test_range_error_aborts_and_is_logged(self, store, caplog):
        params = ReportParams(now=date(2024, 6, 15), census_days=-1)

        with caplog.at_level(logging.ERROR, logger="warehouse.services.catalog"):
            with pytest.raises(InvalidRangeError):
                ReportCatalog().run("daily_activity", store, params)

        assert "daily_activity" in caplog.text

    def test_duplicate_names_rejected(self):
        d = DEFAULT_REPORTS[0]

        with pytest.raises(ValueError):
            ReportCatalog([d, d])

    def test_custom_definition(self, store, params):
        only = ReportDefinition("count", "Count", "Rows", lambda ds, iss, p: [len(ds)], int)

        assert ReportCatalog([only]).run("count", store, params) == [2]
