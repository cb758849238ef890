"""testplane - suite/test registration, filtering and cooperative execution."""

from testplane.api import (
    after_suite,
    after_test,
    before_each,
    before_suite,
    extend,
    get_fixture,
    get_runner,
    reset_runner,
    run,
    start,
    stop,
    suite,
    test,
)
from testplane.assertions import Assert, AssertionRecord, CheckContext

__version__ = "0.9.0"

__all__ = [
    "Assert",
    "AssertionRecord",
    "CheckContext",
    "after_suite",
    "after_test",
    "before_each",
    "before_suite",
    "extend",
    "get_fixture",
    "get_runner",
    "reset_runner",
    "run",
    "start",
    "stop",
    "suite",
    "test",
]
