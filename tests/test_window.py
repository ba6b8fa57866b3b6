"""Tests for ordered / partitioned window computations."""

from datetime import date

import pytest

from conftest import make_issuance

from warehouse.operators.window import CUMULATIVE, Frame, WindowFn, window


def _rows(*pairs):
    return [{"id": i, "k": k, "v": v} for i, (k, v) in enumerate(pairs)]


class TestOrdering:
    def test_stable_sort_keeps_tie_input_order(self):
        rows = _rows((2, 1), (1, 1), (2, 1), (1, 1))

        out = window(rows, "k", WindowFn.ROW_NUMBER)

        assert [r["id"] for r in out] == [1, 3, 0, 2]
        assert [r["row_number"] for r in out] == [1, 2, 3, 4]

    def test_row_count_preserved_and_fields_kept(self):
        rows = _rows((1, 5), (2, 6), (3, 7))

        out = window(rows, "k", WindowFn.SUM, field="v", name="running")

        assert len(out) == len(rows)
        assert all({"id", "k", "v", "running"} <= set(r) for r in out)

    def test_accepts_dataclass_rows(self):
        rows = [make_issuance("A", 2, issue_id="1", issue_date=date(2024, 1, 2))]

        out = window(rows, "issue_date", WindowFn.SUM, field="issued_quantity", name="running")

        assert out[0]["issue_id"] == "1" and out[0]["running"] == 2


class TestRanking:
    def test_competition_rank_and_row_number(self):
        rows = [{"s": "a", "v": 300}, {"s": "b", "v": 100}, {"s": "c", "v": 300}]

        ranked = window(rows, "v", WindowFn.RANK, name="rank", descending=True)
        numbered = window(ranked, "v", WindowFn.ROW_NUMBER, name="rn", descending=True)

        assert [(r["s"], r["rank"], r["rn"]) for r in numbered] == [("a", 1, 1), ("c", 1, 2), ("b", 3, 3)]

    def test_rank_gaps_equal_tie_group_size(self):
        rows = _rows((1, 0), (1, 0), (1, 0), (2, 0), (3, 0), (3, 0), (4, 0))

        out = window(rows, "k", WindowFn.RANK)

        assert [r["rank"] for r in out] == [1, 1, 1, 4, 5, 5, 7]

    def test_row_numbers_are_permutation_and_ranks_non_decreasing(self):
        rows = _rows(*[(k % 3, k) for k in range(10)])

        out = window(window(rows, "k", WindowFn.RANK), "k", WindowFn.ROW_NUMBER)

        assert sorted(r["row_number"] for r in out) == list(range(1, 11))
        ranks = [r["rank"] for r in out]
        assert ranks == sorted(ranks)
        for a, b in zip(out, out[1:]):
            assert (a["rank"] == b["rank"]) == (a["k"] == b["k"])

    def test_partitions_rank_independently(self):
        rows = [{"p": "x", "k": 1}, {"p": "y", "k": 1}, {"p": "x", "k": 2}, {"p": "y", "k": 2}]

        out = window(rows, "k", WindowFn.ROW_NUMBER, partition_keys=["p"])

        assert {(r["p"], r["k"]): r["row_number"] for r in out} == {
            ("x", 1): 1,
            ("y", 1): 1,
            ("x", 2): 2,
            ("y", 2): 2,
        }


class TestAccumulation:
    def test_cumulative_sum_last_row_is_total(self):
        rows = _rows((3, 0.1), (1, 0.2), (2, 0.3), (4, 1e-9))

        out = window(rows, "k", WindowFn.SUM, field="v", frame=CUMULATIVE, name="running")

        assert out[-1]["running"] == pytest.approx(0.1 + 0.2 + 0.3 + 1e-9)
        assert [r["k"] for r in out] == [1, 2, 3, 4]

    def test_cumulative_sum_per_partition(self):
        rows = [
            {"cat": "A", "m": "2024-01", "v": 10},
            {"cat": "B", "m": "2024-01", "v": 1},
            {"cat": "A", "m": "2024-02", "v": 5},
            {"cat": "B", "m": "2024-03", "v": 2},
        ]

        out = window(rows, "m", WindowFn.SUM, partition_keys=["cat"], field="v", name="ytd")

        assert [(r["cat"], r["m"], r["ytd"]) for r in out] == [
            ("A", "2024-01", 10),
            ("B", "2024-01", 1),
            ("A", "2024-02", 15),
            ("B", "2024-03", 3),
        ]

    def test_sliding_average(self):
        rows = _rows(*[(k, v) for k, v in enumerate([2, 4, 6, 8])])

        out = window(rows, "k", WindowFn.AVG, field="v", frame=Frame.rows_preceding(1), name="ma")

        assert [r["ma"] for r in out] == [2, 3, 5, 7]

    def test_zero_preceding_is_current_row(self):
        rows = _rows((1, 4), (2, 9))

        out = window(rows, "k", WindowFn.SUM, field="v", frame=Frame.rows_preceding(0), name="s")

        assert [r["s"] for r in out] == [4, 9]

    def test_cumulative_average(self):
        rows = _rows((1, 1.0), (2, 2.0), (3, 6.0))

        out = window(rows, "k", WindowFn.AVG, field="v", name="avg")

        assert [r["avg"] for r in out] == [1.0, 1.5, 3.0]

    def test_null_values_left_out_of_frame(self):
        rows = _rows((1, None), (2, 4))

        out = window(rows, "k", WindowFn.SUM, field="v", name="s")

        assert [r["s"] for r in out] == [None, 4]

    def test_peer_frame_gives_tied_rows_the_group_total(self):
        rows = _rows((1, 5), (1, 3), (2, 2))

        out = window(rows, "k", WindowFn.SUM, field="v", frame=Frame.cumulative(peers=True), name="s")

        assert [r["s"] for r in out] == [8, 8, 10]

    def test_peer_frame_per_partition(self):
        rows = [
            {"p": "a", "k": 1, "v": 1},
            {"p": "b", "k": 1, "v": 10},
            {"p": "a", "k": 1, "v": 2},
            {"p": "b", "k": 2, "v": 20},
        ]

        out = window(
            rows, "k", WindowFn.SUM, partition_keys=["p"], field="v", frame=Frame.cumulative(peers=True), name="s"
        )

        assert [(r["p"], r["s"]) for r in out] == [("a", 3), ("b", 10), ("a", 3), ("b", 30)]

    def test_row_frame_ties_accumulate_in_input_order(self):
        rows = _rows((1, 5), (1, 3), (2, 2))

        out = window(rows, "k", WindowFn.SUM, field="v", frame=CUMULATIVE, name="s")

        assert [r["s"] for r in out] == [5, 8, 10]


class TestValidation:
    def test_negative_frame_rejected(self):
        with pytest.raises(ValueError):
            Frame.rows_preceding(-1)

    def test_bounded_peer_frame_rejected(self):
        with pytest.raises(ValueError):
            Frame(preceding=2, peers=True)

    def test_sum_needs_field(self):
        with pytest.raises(ValueError):
            window([], "k", WindowFn.SUM)

    def test_unknown_function_rejected(self):
        with pytest.raises(ValueError):
            window([], "k", "median")
