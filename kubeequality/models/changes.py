"""Results of comparing a current snapshot against an expected one."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class FieldChange:
    """One differing field, addressed by a dotted manifest path.

    Example path: ``spec.ports[0].targetPort``.
    """

    field_path: str
    old_value: Any
    new_value: Any


@dataclass(frozen=True)
class ConfigChange(Generic[T]):
    """Outcome of a comparison.

    ``updated`` is the snapshot to apply, or None when nothing the
    controller manages has drifted.  Unpacks as ``(updated, changed)``::

        updated, changed = service_changed(current, expected)
    """

    updated: T | None = None
    changes: tuple[FieldChange, ...] = ()

    @property
    def changed(self) -> bool:
        return self.updated is not None

    @property
    def field_paths(self) -> list[str]:
        return [c.field_path for c in self.changes]

    def __bool__(self) -> bool:
        return self.changed

    def __iter__(self) -> Iterator[Any]:
        yield self.updated
        yield self.changed
