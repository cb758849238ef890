"""Hook registries consulted by the runner during traversal.

Suite-level hooks are stored on the suite that is open when they are
registered. ``before_each`` outside any suite and ``after_test`` cleanups
live here, in the global scope.
"""

from __future__ import annotations

from collections.abc import Callable

from testplane.core.errors import RegistrationError
from testplane.runner.jobs import HookFn, Suite

SuiteLookup = Callable[[], "Suite | None"]


class HookRegistry:
    """Registers hooks against the suite being defined, or the running one."""

    def __init__(self, defining: SuiteLookup, running: SuiteLookup) -> None:
        self._defining = defining
        self._running = running
        self.before_each_fns: list[HookFn] = []
        self.after_test_fns: list[HookFn] = []

    def before_suite(self, fn: HookFn) -> HookFn:
        """Run ``fn`` once when the enclosing suite is entered."""
        suite = self._defining()
        if suite is None:
            raise RegistrationError.hook_outside_suite("before_suite")
        suite.before_fns.append(fn)
        return fn

    def before_each(self, fn: HookFn) -> HookFn:
        """Run ``fn`` before every test of the enclosing suite (or of the run)."""
        suite = self._defining()
        if suite is None:
            self.before_each_fns.append(fn)
        else:
            suite.before_each_fns.append(fn)
        return fn

    def after_test(self, fn: HookFn) -> HookFn:
        """Run ``fn`` once, after the current (or next) test finishes."""
        self.after_test_fns.append(fn)
        return fn

    def after_suite(self, fn: HookFn) -> HookFn:
        """Run ``fn`` when the enclosing suite is left.

        Valid while a suite is being defined or while one is running.
        """
        suite = self._defining() or self._running()
        if suite is None:
            raise RegistrationError.hook_outside_suite("after_suite")
        suite.after_fns.append(fn)
        return fn

    def pop_after_test(self) -> list[HookFn]:
        """Take the pending cleanups, most recently registered first."""
        fns = self.after_test_fns[::-1]
        self.after_test_fns.clear()
        return fns
