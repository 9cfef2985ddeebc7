"""Kubernetes resource quantities (``500m``, ``1Gi``, ``2e3``).

Quantities are compared by value, so ``1Gi`` equals ``1024Mi`` and
``0.5`` equals ``500m``.
"""

from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation

_BINARY_SUFFIXES = {
    "Ki": Decimal(2**10),
    "Mi": Decimal(2**20),
    "Gi": Decimal(2**30),
    "Ti": Decimal(2**40),
    "Pi": Decimal(2**50),
    "Ei": Decimal(2**60),
}

_DECIMAL_SUFFIXES = {
    "n": Decimal("1e-9"),
    "u": Decimal("1e-6"),
    "m": Decimal("1e-3"),
    "k": Decimal("1e3"),
    "M": Decimal("1e6"),
    "G": Decimal("1e9"),
    "T": Decimal("1e12"),
    "P": Decimal("1e15"),
    "E": Decimal("1e18"),
}

# The exponent alternative is tried first, so "1E3" is an exponent and "1E" is exa.
_RE_QUANTITY = re.compile(
    r"^(?P<number>[+-]?(?:\d+\.?\d*|\.\d+))"
    r"(?:(?P<exponent>[eE][+-]?\d+)|(?P<suffix>Ki|Mi|Gi|Ti|Pi|Ei|[numkMGTPE]))?$"
)


class QuantityError(ValueError):
    """Raised when a value is not a valid resource quantity."""


def parse_quantity(value: str | int | float) -> Decimal:
    """Parse a resource quantity into its exact decimal value.

    Raises:
        QuantityError: *value* is not a quantity.
    """
    if isinstance(value, bool):
        raise QuantityError(f"not a quantity: {value!r}")
    if isinstance(value, int | float):
        return Decimal(str(value))
    if not isinstance(value, str):
        raise QuantityError(f"not a quantity: {value!r}")

    match = _RE_QUANTITY.match(value.strip())
    if match is None:
        raise QuantityError(f"not a quantity: {value!r}")

    try:
        number = Decimal(match["number"])
    except InvalidOperation as exc:
        raise QuantityError(f"not a quantity: {value!r}") from exc

    if match["exponent"]:
        return number.scaleb(int(match["exponent"][1:]))
    suffix = match["suffix"]
    if suffix is None:
        return number
    if suffix in _BINARY_SUFFIXES:
        return number * _BINARY_SUFFIXES[suffix]
    return number * _DECIMAL_SUFFIXES[suffix]


def quantities_equal(a: object, b: object) -> bool:
    """Compare two quantities by value, falling back to ``==`` when either is not one."""
    try:
        return parse_quantity(a) == parse_quantity(b)  # type: ignore[arg-type]
    except QuantityError:
        return a == b
