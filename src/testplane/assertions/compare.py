"""Equality helpers used by the built-in assertions."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def strict_equal(a: Any, b: Any) -> bool:
    """Identity, or equality between values of the exact same type.

    ``1 == True`` and ``1 == 1.0`` hold in Python but are not strictly equal.
    """
    if a is b:
        return True
    return type(a) is type(b) and bool(a == b)


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality over lists, tuples and mappings.

    Sequences compare length first, then elements index-wise. Mappings
    compare key sets, then every value recursively. Anything else falls back
    to ``strict_equal``.
    """
    if strict_equal(a, b) and not isinstance(a, (list, tuple, Mapping)):
        return True

    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        if type(a) is not type(b) or len(a) != len(b):
            return False
        return all(deep_equal(x, y) for x, y in zip(a, b))

    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)

    return strict_equal(a, b)
