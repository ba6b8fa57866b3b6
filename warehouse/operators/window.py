from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

from warehouse.operators.aggregate import stable_sum
from warehouse.operators.fields import ABSENT, Accessor, accessor, as_dict, label_of


class WindowFn(str, Enum):
    SUM = "sum"
    AVG = "avg"
    RANK = "rank"
    ROW_NUMBER = "row_number"


@dataclass(frozen=True)
class Frame:
    """
    Row frame ending at the current row. preceding=None means unbounded.

    With peers=True an unbounded frame runs through the last row sharing the
    current order_key value, so tied rows get the same value (SQL's default
    RANGE frame).
    """

    preceding: Optional[int] = None
    peers: bool = False

    def __post_init__(self):
        if self.preceding is not None and self.preceding < 0:
            raise ValueError("Frame preceding count must be >= 0.")
        if self.peers and self.preceding is not None:
            raise ValueError("A peer frame cannot be bounded.")

    @classmethod
    def cumulative(cls, peers: bool = False) -> "Frame":
        return cls(None, peers)

    @classmethod
    def rows_preceding(cls, n: int) -> "Frame":
        return cls(int(n))

    @property
    def bounded(self) -> bool:
        return self.preceding is not None


CUMULATIVE = Frame.cumulative()


class _RunningSum:
    # Neumaier-compensated running total.
    def __init__(self):
        self.total = 0.0
        self.comp = 0.0
        self.ints = True
        self.int_total = 0

    def add(self, v: Any) -> None:
        if self.ints and isinstance(v, int) and not isinstance(v, bool):
            self.int_total += v
            return
        if self.ints:
            self.ints = False
            self.total = float(self.int_total)
        v = float(v)
        t = self.total + v
        if abs(self.total) >= abs(v):
            self.comp += (self.total - t) + v
        else:
            self.comp += (v - t) + self.total
        self.total = t

    @property
    def value(self):
        return self.int_total if self.ints else self.total + self.comp


class _PartitionState:
    def __init__(self, frame: Frame):
        self.position = 0
        self.rank = 0
        self.last_order: Any = ABSENT
        self.count = 0
        self.running = _RunningSum()
        self.recent: deque = deque(maxlen=frame.preceding + 1) if frame.bounded else deque()
        self.peer_rows: list[dict] = []


def _sort_key(v: Any):
    # Nulls sort first, as in SQLite.
    return (v is not None, v)


def window(
    rows: Iterable[Any],
    order_key: Accessor,
    fn: WindowFn,
    *,
    partition_keys: Sequence[Accessor] = (),
    frame: Frame = CUMULATIVE,
    field: Optional[Accessor] = None,
    name: Optional[str] = None,
    descending: bool = False,
) -> list[dict]:
    """
    Ordered, optionally partitioned window computation.

    Rows are stable-sorted on order_key (ties keep input order) and each
    partition is walked independently. The result has one dict per input row,
    the original fields plus `name`, in sorted order.

    rank is competition ranking on equal order_key values; row_number breaks
    ties by input order. sum/avg read `field` over the frame; null values are
    left out of the frame, and an empty frame yields None.
    """
    fn = WindowFn(fn)
    if fn in (WindowFn.SUM, WindowFn.AVG) and field is None:
        raise ValueError(f"Window function '{fn.value}' needs a field.")

    get_order = accessor(order_key)
    get_field = accessor(field) if field is not None else None
    get_parts = [accessor(k) for k in partition_keys]
    out_name = name or (f"{fn.value}_{label_of(field)}" if field is not None else fn.value)
    peer_frame = frame.peers and fn in (WindowFn.SUM, WindowFn.AVG)

    ordered = sorted(rows, key=lambda r: _sort_key(get_order(r)), reverse=descending)

    states: dict[tuple, _PartitionState] = {}
    out: list[dict] = []
    for r in ordered:
        part = tuple(get(r) for get in get_parts)
        state = states.get(part)
        if state is None:
            state = states[part] = _PartitionState(frame)

        state.position += 1
        order_value = get_order(r)
        if state.last_order is ABSENT or order_value != state.last_order:
            state.rank = state.position
            state.last_order = order_value
            _settle_peers(state.peer_rows, out_name)

        if fn is WindowFn.ROW_NUMBER:
            value = state.position
        elif fn is WindowFn.RANK:
            value = state.rank
        else:
            value = _frame_value(state, frame, fn, get_field(r))

        row = as_dict(r)
        row[out_name] = value
        out.append(row)
        if peer_frame:
            state.peer_rows.append(row)

    for state in states.values():
        _settle_peers(state.peer_rows, out_name)
    return out


def _settle_peers(peer_rows: list[dict], name: str) -> None:
    # Every row of a finished tie group takes the value of its last row.
    if peer_rows:
        value = peer_rows[-1][name]
        for row in peer_rows:
            row[name] = value
        peer_rows.clear()


def _frame_value(state: _PartitionState, frame: Frame, fn: WindowFn, v: Any):
    if v is ABSENT:
        v = None

    if frame.bounded:
        state.recent.append(v)
        values = [x for x in state.recent if x is not None]
        if not values:
            return None
        total = stable_sum(values)
        return total if fn is WindowFn.SUM else total / len(values)

    if v is not None:
        state.running.add(v)
        state.count += 1
    if state.count == 0:
        return None
    total = state.running.value
    return total if fn is WindowFn.SUM else total / state.count
