"""Built-in assertions, registered on import."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from testplane.assertions.compare import deep_equal, strict_equal
from testplane.assertions.engine import Assert, AssertionRecord, CheckContext

Matcher = type[BaseException] | re.Pattern[str] | str


def _not(ctx: CheckContext) -> str:
    return "not " if ctx.is_not else ""


def check_equal(ctx: CheckContext, value: Any, expected: Any) -> AssertionRecord:
    passed = ctx.apply_modifier(strict_equal(value, expected))
    if passed:
        return AssertionRecord(passed, f"values are {_not(ctx)}equal")
    return AssertionRecord(
        passed,
        f"expected values {_not(ctx)}to be equal",
        [ctx.expected(expected), ctx.received(value)],
    )


def check_deep_equal(ctx: CheckContext, value: Any, expected: Any) -> AssertionRecord:
    passed = ctx.apply_modifier(deep_equal(value, expected))
    if passed:
        return AssertionRecord(passed, f"values are {_not(ctx)}deep equal")
    return AssertionRecord(
        passed,
        f"expected values {_not(ctx)}to be deep equal",
        [ctx.expected(expected), ctx.received(value)],
    )


def check_ok(ctx: CheckContext, value: Any) -> AssertionRecord:
    passed = ctx.apply_modifier(value)
    if passed:
        return AssertionRecord(passed, f"value is {_not(ctx)}truthy")
    return AssertionRecord(
        passed,
        f"expected value {_not(ctx)}to be truthy",
        [ctx.received(value)],
    )


def _matches(error: BaseException, matcher: Matcher) -> bool:
    if isinstance(matcher, str):
        return re.search(matcher, str(error)) is not None
    if isinstance(matcher, re.Pattern):
        return matcher.search(str(error)) is not None
    return isinstance(error, matcher)


def check_throws(
    ctx: CheckContext,
    fn: Callable[[], Any],
    matcher: Matcher = Exception,
) -> AssertionRecord:
    if not callable(fn):
        return AssertionRecord(False, "assert.throws requires a function as first argument")
    should_throw = not ctx.is_not
    try:
        fn()
    except Exception as e:
        if not should_throw:
            return AssertionRecord(
                False,
                "expected function not to throw",
                [ctx.received(repr(e))],
            )
        if _matches(e, matcher):
            return AssertionRecord(True, "function did throw")
        return AssertionRecord(
            False,
            "function did throw, but error is not valid",
            [ctx.expected(matcher), ctx.received(repr(e))],
        )
    if not should_throw:
        return AssertionRecord(True, "function did not throw")
    return AssertionRecord(False, "expected function to throw")


def check_step(ctx: CheckContext, name: Any) -> AssertionRecord:
    if ctx.is_not:
        return AssertionRecord(False, "assert.step cannot be negated")
    if not isinstance(name, str):
        return AssertionRecord(False, "assert.step requires a string", [ctx.received(name)])
    ctx.steps.append(name)
    return AssertionRecord(True, f'step: "{name}"')


def _format_steps(steps: list[str]) -> str:
    return "[" + ", ".join(f'"{s}"' for s in steps) + "]"


def check_verify_steps(ctx: CheckContext, expected: list[str]) -> AssertionRecord:
    if ctx.is_not:
        return AssertionRecord(False, "assert.verify_steps cannot be negated")
    recorded = list(ctx.steps)
    ctx.steps.clear()
    passed = recorded == list(expected)
    if passed:
        return AssertionRecord(True, "steps are correct")
    return AssertionRecord(
        False,
        "steps are not correct",
        [ctx.expected(_format_steps(list(expected))), ctx.received(_format_steps(recorded))],
    )


BUILTINS: dict[str, Callable[..., AssertionRecord]] = {
    "equal": check_equal,
    "deep_equal": check_deep_equal,
    "ok": check_ok,
    "throws": check_throws,
    "step": check_step,
    "verify_steps": check_verify_steps,
}


def register_builtins() -> None:
    """Register every built-in check that is not registered yet."""
    for name, check in BUILTINS.items():
        if name not in Assert.registered():
            Assert.extend(name, check)


register_builtins()
