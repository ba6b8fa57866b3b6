from __future__ import annotations

import dataclasses
from typing import Any, Callable, Mapping, Union


class _Absent:
    """Marks the missing side of an outer join. Not a zero, not a None."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()

Accessor = Union[str, Callable[[Any], Any]]


def is_absent(value: Any) -> bool:
    return value is ABSENT


def resolve(row: Any, path: str) -> Any:
    """
    Read a field by name or dotted path ("right.issued_quantity").
    Walking through an ABSENT side yields ABSENT.
    """
    value = row
    for part in path.split("."):
        if value is ABSENT:
            return ABSENT
        if isinstance(value, Mapping):
            value = value[part]
        else:
            value = getattr(value, part)
    return value


def accessor(key: Accessor) -> Callable[[Any], Any]:
    if callable(key):
        return key
    return lambda row: resolve(row, key)


def label_of(key: Accessor) -> str:
    if callable(key):
        return getattr(key, "__name__", "value")
    return key.rsplit(".", 1)[-1]


def as_dict(row: Any) -> dict:
    if isinstance(row, Mapping):
        return dict(row)
    if dataclasses.is_dataclass(row) and not isinstance(row, type):
        return {f.name: getattr(row, f.name) for f in dataclasses.fields(row)}
    raise TypeError(f"Cannot turn {type(row).__name__} into a row dict.")
