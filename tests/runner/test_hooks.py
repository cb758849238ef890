"""Tests for hook registration scopes."""

import pytest

from testplane.core.errors import ErrorCode, RegistrationError
from testplane.runner.hooks import HookRegistry
from testplane.runner.jobs import Suite


def _hook() -> None:
    return None


class TestHookRegistry:
    """Where each hook kind lands."""

    def test_before_suite_requires_open_suite(self) -> None:
        registry = HookRegistry(lambda: None, lambda: None)

        with pytest.raises(RegistrationError) as exc_info:
            registry.before_suite(_hook)

        assert exc_info.value.code == ErrorCode.HOOK_OUTSIDE_SUITE

    def test_before_suite_lands_on_defining_suite(self) -> None:
        suite = Suite(None, "s")
        registry = HookRegistry(lambda: suite, lambda: None)

        returned = registry.before_suite(_hook)

        assert returned is _hook
        assert suite.before_fns == [_hook]

    def test_before_each_global_outside_suite(self) -> None:
        registry = HookRegistry(lambda: None, lambda: None)

        registry.before_each(_hook)

        assert registry.before_each_fns == [_hook]

    def test_before_each_on_defining_suite(self) -> None:
        suite = Suite(None, "s")
        registry = HookRegistry(lambda: suite, lambda: None)

        registry.before_each(_hook)

        assert suite.before_each_fns == [_hook]
        assert registry.before_each_fns == []

    def test_after_suite_falls_back_to_running_suite(self) -> None:
        running = Suite(None, "running")
        registry = HookRegistry(lambda: None, lambda: running)

        registry.after_suite(_hook)

        assert running.after_fns == [_hook]

    def test_after_suite_without_any_suite(self) -> None:
        registry = HookRegistry(lambda: None, lambda: None)

        with pytest.raises(RegistrationError, match='"after_suite" can only be called inside a suite'):
            registry.after_suite(_hook)

    def test_pop_after_test_reverses_and_clears(self) -> None:
        registry = HookRegistry(lambda: None, lambda: None)

        def first() -> None:
            return None

        def second() -> None:
            return None

        registry.after_test(first)
        registry.after_test(second)

        assert registry.pop_after_test() == [second, first]
        assert registry.pop_after_test() == []
