"""Assertion engine exports. Importing this package registers the built-ins."""

from testplane.assertions import builtins as _builtins  # noqa: F401
from testplane.assertions.compare import deep_equal, strict_equal
from testplane.assertions.engine import (
    Assert,
    AssertionRecord,
    AssertState,
    CheckContext,
    CheckFn,
    InfoLine,
)

__all__ = [
    "Assert",
    "AssertionRecord",
    "AssertState",
    "CheckContext",
    "CheckFn",
    "InfoLine",
    "deep_equal",
    "strict_equal",
]
