from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Optional

from warehouse.operators.fields import ABSENT, Accessor, accessor


class JoinMode(str, Enum):
    INNER = "inner"
    LEFT_OUTER = "left_outer"


@dataclass(frozen=True)
class Joined:
    left: Any
    right: Any  # ABSENT for unmatched left rows of an outer join


def _multimap(rows: Iterable[Any], key: Callable[[Any], Any]) -> dict[Any, list[Any]]:
    # Null keys never match, so they are never indexed.
    index: dict[Any, list[Any]] = defaultdict(list)
    for r in rows:
        k = key(r)
        if k is None or k is ABSENT:
            continue
        index[k].append(r)
    return index


def _matches(index: dict[Any, list[Any]], k: Any) -> list[Any]:
    if k is None or k is ABSENT:
        return []
    return index.get(k, [])


def join(
    left: Iterable[Any],
    right: Iterable[Any],
    key: Accessor,
    mode: JoinMode = JoinMode.INNER,
    *,
    right_key: Optional[Accessor] = None,
) -> list[Joined]:
    """
    Hash join of two row sequences on equal key values.

    Every (left, right) pair sharing a key is emitted, so repeated keys on both
    sides fan out into their full Cartesian product. In LEFT_OUTER mode a left
    row without matches is emitted once with right=ABSENT.
    Output follows left input order, then right input order within a left row.
    """
    mode = JoinMode(mode)
    lkey = accessor(key)
    index = _multimap(right, accessor(right_key if right_key is not None else key))

    out: list[Joined] = []
    for l in left:
        matches = _matches(index, lkey(l))
        if matches:
            out.extend(Joined(l, r) for r in matches)
        elif mode is JoinMode.LEFT_OUTER:
            out.append(Joined(l, ABSENT))
    return out


def semi_join(
    left: Iterable[Any],
    right: Iterable[Any],
    key: Accessor,
    *,
    right_key: Optional[Accessor] = None,
    where: Optional[Callable[[Any], bool]] = None,
) -> list[Any]:
    """Left rows with at least one matching right row (each left row at most once)."""
    candidates = right if where is None else (r for r in right if where(r))
    index = _multimap(candidates, accessor(right_key if right_key is not None else key))
    lkey = accessor(key)
    return [l for l in left if _matches(index, lkey(l))]


def anti_join(
    left: Iterable[Any],
    right: Iterable[Any],
    key: Accessor,
    *,
    right_key: Optional[Accessor] = None,
) -> list[Any]:
    """Left rows with zero matching right rows. A null left key has no matches."""
    index = _multimap(right, accessor(right_key if right_key is not None else key))
    lkey = accessor(key)
    return [l for l in left if not _matches(index, lkey(l))]
