"""Structural equality with Kubernetes API semantics.

Plain ``==`` is too strict for comparing an observed object with a desired
one: the API server drops empty collections, so an unset field, an empty
mapping and an empty list must all compare equal.  Resource quantities under
``limits``/``requests`` compare by value rather than by spelling.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any

from kubeequality.equality.quantity import quantities_equal
from kubeequality.models.changes import FieldChange

# Mapping keys whose values are resource quantities.
_QUANTITY_KEYS = frozenset({"limits", "requests"})


def _is_empty(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str | bytes):
        return False
    return isinstance(value, Mapping | Sequence) and len(value) == 0


def _is_record(value: object) -> bool:
    return is_dataclass(value) and not isinstance(value, type)


def _is_sequence(value: object) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, str | bytes)


def _quantity_equal(a: object, b: object) -> bool:
    if a is None or b is None:
        return a is b
    return quantities_equal(a, b)


def _equal(a: object, b: object, key: str | None) -> bool:
    if _is_empty(a) and _is_empty(b):
        return True

    if _is_record(a) or _is_record(b):
        if type(a) is not type(b):
            return False
        return all(
            _equal(getattr(a, f.name), getattr(b, f.name), f.name)
            for f in fields(a)  # type: ignore[arg-type]
            if f.compare
        )

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        # A missing key reads as None, so {"args": []} equals {}.
        keys = a.keys() | b.keys()
        if key in _QUANTITY_KEYS:
            return all(_quantity_equal(a.get(k), b.get(k)) for k in keys)
        return all(_equal(a.get(k), b.get(k), k) for k in keys)

    if _is_sequence(a) and _is_sequence(b):
        if len(a) != len(b):  # type: ignore[arg-type]
            return False
        return all(_equal(x, y, key) for x, y in zip(a, b))  # type: ignore[call-overload]

    # True == 1 in Python; not in the API.
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b

    return a == b


def semantic_equal(a: object, b: object) -> bool:
    """Return True if *a* and *b* are equal under Kubernetes API semantics.

    Rules:
        - None, empty mappings and empty sequences are interchangeable.
        - Mappings compare by key, ignoring order; a missing key equals an
          empty value.  Sequences compare in order.
        - Dataclasses compare field by field, recursively, skipping fields
          declared with ``compare=False``.
        - Values under a ``limits`` or ``requests`` key compare as quantities.
        - Everything else compares with ``==`` (booleans only equal booleans).
    """
    return _equal(a, b, None)


# ---------------------------------------------------------------------------
# Field-level reporting
# ---------------------------------------------------------------------------


def _plain(value: Any) -> Any:
    """Convert snapshots to manifest form so paths use API field names."""
    to_manifest = getattr(value, "to_manifest", None)
    if callable(to_manifest):
        return to_manifest()
    if isinstance(value, Enum):
        return value.value
    if _is_sequence(value):
        return [_plain(v) for v in value]
    return value


def _collect(path: str, a: Any, b: Any, key: str | None, changes: list[FieldChange]) -> None:
    if _equal(a, b, key):
        return

    found = len(changes)
    if isinstance(a, Mapping) and isinstance(b, Mapping) and key not in _QUANTITY_KEYS:
        for k in sorted(a.keys() | b.keys()):
            _collect(f"{path}.{k}" if path else k, a.get(k), b.get(k), k, changes)
    elif _is_sequence(a) and _is_sequence(b) and len(a) == len(b):
        for i, (x, y) in enumerate(zip(a, b)):
            _collect(f"{path}[{i}]", x, y, key, changes)

    # Nothing finer to report (quantity maps, length mismatch): the container.
    if len(changes) == found:
        changes.append(FieldChange(field_path=path, old_value=a, new_value=b))


def diff_fields(path: str, current: Any, expected: Any) -> list[FieldChange]:
    """List the leaves under *path* where *current* and *expected* differ.

    Sequences of different length are reported as a single change at
    *path*.  The result is for reporting; :func:`semantic_equal` decides
    whether anything changed.
    """
    changes: list[FieldChange] = []
    _collect(path, _plain(current), _plain(expected), path.rpartition(".")[2] or None, changes)
    return changes
