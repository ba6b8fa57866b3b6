from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional, Sequence, Union

from warehouse.errors import EmptyGroupError
from warehouse.operators.fields import ABSENT, Accessor, accessor, label_of

_NO_DEFAULT = object()


def stable_sum(values: Iterable[Any]) -> Union[int, float]:
    """Exact for ints, correctly rounded (and order independent) for floats."""
    vals = list(values)
    if all(isinstance(v, int) and not isinstance(v, bool) for v in vals):
        return sum(vals)
    return math.fsum(vals)


@dataclass(frozen=True)
class Reducer:
    """
    One summary column of an aggregate.

    `absent` is the value an ABSENT field takes at evaluation time. Without it,
    ABSENT and None values are skipped the way SQL skips NULLs.
    """

    name: str
    kind: str
    get: Optional[Callable[[Any], Any]] = None
    absent: Any = field(default=_NO_DEFAULT, compare=False)

    def _values(self, rows: list[Any]) -> list[Any]:
        out = []
        for r in rows:
            v = self.get(r)
            if v is ABSENT:
                if self.absent is _NO_DEFAULT:
                    continue
                v = self.absent
            if v is None:
                continue
            out.append(v)
        return out

    def __call__(self, rows: list[Any], group: tuple) -> Any:
        if self.kind == "count":
            return len(rows)
        values = self._values(rows)
        if self.kind == "count_of":
            return len(values)
        if self.kind == "count_distinct":
            return len(set(values))
        if self.kind == "sum":
            # SUM over nothing but NULLs is NULL
            return stable_sum(values) if values else None
        if self.kind == "avg":
            if not values:
                raise EmptyGroupError(self.name, group)
            return stable_sum(values) / len(values)
        raise ValueError(f"Unknown reducer kind: {self.kind}")


def count(name: str = "count") -> Reducer:
    return Reducer(name=name, kind="count")


def count_of(key: Accessor, name: Optional[str] = None) -> Reducer:
    return Reducer(name=name or f"count_{label_of(key)}", kind="count_of", get=accessor(key))


def count_distinct(key: Accessor, name: Optional[str] = None) -> Reducer:
    return Reducer(name=name or f"distinct_{label_of(key)}", kind="count_distinct", get=accessor(key))


def sum_of(key: Accessor, name: Optional[str] = None, *, absent: Any = _NO_DEFAULT) -> Reducer:
    return Reducer(name=name or f"sum_{label_of(key)}", kind="sum", get=accessor(key), absent=absent)


def avg_of(key: Accessor, name: Optional[str] = None, *, absent: Any = _NO_DEFAULT) -> Reducer:
    return Reducer(name=name or f"avg_{label_of(key)}", kind="avg", get=accessor(key), absent=absent)


GroupKey = Union[Accessor, tuple[str, Accessor]]


def _group_key(group_key: GroupKey) -> tuple[str, Callable[[Any], Any]]:
    if isinstance(group_key, tuple):
        label, key = group_key
        return label, accessor(key)
    return label_of(group_key), accessor(group_key)


def aggregate(rows: Iterable[Any], group_keys: Sequence[GroupKey], reducers: Sequence[Reducer]) -> list[dict]:
    """
    Group rows by the tuple of group_keys and apply each reducer per group.

    A group key is a field name / dotted path, a callable, or a (label, key)
    pair when the output column should be named differently. Groups are
    emitted in first-appearance order; nothing is sorted here.
    """
    keys = [_group_key(k) for k in group_keys]
    groups: dict[tuple, list[Any]] = {}
    for r in rows:
        groups.setdefault(tuple(get(r) for _, get in keys), []).append(r)

    out: list[dict] = []
    for group, members in groups.items():
        row = {label: value for (label, _), value in zip(keys, group)}
        for reducer in reducers:
            row[reducer.name] = reducer(members, group)
        out.append(row)
    return out
