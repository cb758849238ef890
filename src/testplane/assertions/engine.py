"""Assertion engine and its extension registry.

One ``Assert`` is created per test execution and handed to the test body.
Assertion methods are not defined on the class: they live in a registry
keyed by name (see ``Assert.extend``) and are resolved on attribute access.

Negation is a view. ``assert_.not_`` returns another ``Assert`` sharing the
same backing ``AssertState`` with the negation flag flipped, so negated and
plain checks in one test feed the same record list.
"""

from __future__ import annotations

import traceback
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from testplane.core.errors import AssertionRegistryError

log = structlog.get_logger(__name__)

InfoKind = Literal["expected", "received", "stack", "plain"]


@dataclass(frozen=True, slots=True)
class InfoLine:
    """One labelled value shown in a failure's detail."""

    label: str
    value: Any
    kind: InfoKind = "plain"


@dataclass(slots=True)
class AssertionRecord:
    """Outcome of one check performed during a test body."""

    passed: bool
    message: str | None = None
    info: list[InfoLine] = field(default_factory=list)
    stack: str | None = None


@dataclass(slots=True)
class AssertState:
    """Backing state shared by an Assert and its negated views."""

    assertions: list[AssertionRecord] = field(default_factory=list)
    passed: bool = True
    steps: list[str] = field(default_factory=list)
    expected_count: int | None = None
    expect_stack: str | None = None
    frozen: bool = False


@dataclass(frozen=True, slots=True)
class CheckContext:
    """What a check function gets to see of the engine."""

    is_not: bool
    steps: list[str]

    def apply_modifier(self, result: object) -> bool:
        """XOR a raw check result with the negation flag."""
        return not result if self.is_not else bool(result)

    def expected(self, value: Any) -> InfoLine:
        return InfoLine("Expected:", value, "expected")

    def received(self, value: Any) -> InfoLine:
        return InfoLine("Received:", value, "received")


CheckFn = Callable[..., AssertionRecord]


def _capture_stack() -> str:
    # Drop the engine frames: this helper, Assert._record and the dispatcher
    return "".join(traceback.format_stack()[:-3])


class Assert:
    """Per-test assertion object. Checks are looked up in ``_registry``."""

    _registry: dict[str, CheckFn] = {}

    __slots__ = ("_state", "_is_not")

    def __init__(self, state: AssertState | None = None, *, is_not: bool = False) -> None:
        self._state = state if state is not None else AssertState()
        self._is_not = is_not

    @classmethod
    def extend(cls, name: str, check: CheckFn) -> CheckFn:
        """Register ``check`` as the assertion method ``name``.

        ``check`` is called as ``check(ctx, *args, **kwargs)`` with a
        ``CheckContext`` and must return an ``AssertionRecord``.
        """
        if name in cls._registry or hasattr(cls, name):
            raise AssertionRegistryError.duplicate(name)
        cls._registry[name] = check
        return check

    @classmethod
    def unregister(cls, name: str) -> None:
        if name not in cls._registry:
            raise AssertionRegistryError.unknown(name)
        del cls._registry[name]

    @classmethod
    def registered(cls) -> list[str]:
        return sorted(cls._registry)

    def __getattr__(self, name: str) -> Callable[..., None]:
        # Only reached for names missing on the instance and class
        if name.startswith("_"):
            raise AttributeError(name)
        check = type(self)._registry.get(name)
        if check is None:
            raise AttributeError(f"'{name}' is not a registered assertion")

        def run_check(*args: Any, **kwargs: Any) -> None:
            ctx = CheckContext(is_not=self._is_not, steps=self._state.steps)
            record = check(ctx, *args, **kwargs)
            self._record(record)

        run_check.__name__ = name
        return run_check

    @property
    def not_(self) -> Assert:
        return Assert(self._state, is_not=not self._is_not)

    @property
    def is_not(self) -> bool:
        return self._is_not

    @property
    def passed(self) -> bool:
        return self._state.passed

    @property
    def assertions(self) -> list[AssertionRecord]:
        return self._state.assertions

    def expect(self, n: int) -> None:
        """Require exactly ``n`` assertions once the test body settles."""
        self._state.expected_count = n
        self._state.expect_stack = "".join(traceback.format_stack()[:-1])

    def fail(self) -> None:
        """Force the aggregate result to failed (used for body errors)."""
        self._state.passed = False

    def finalize(self) -> bool:
        """Run the expectation check and freeze the state. Returns ``passed``."""
        state = self._state
        if state.frozen:
            return state.passed
        if state.expected_count is not None:
            actual = len(state.assertions)
            if actual != state.expected_count:
                state.assertions.append(
                    AssertionRecord(
                        passed=False,
                        message=f"Expected {state.expected_count} assertions, but {actual} were run",
                        stack=state.expect_stack,
                    )
                )
                state.passed = False
        state.frozen = True
        return state.passed

    def _record(self, record: AssertionRecord) -> None:
        state = self._state
        if state.frozen:
            log.warning("assertion_after_finalize", message=record.message)
            return
        if record.message is None:
            record.message = "okay" if record.passed else "not okay"
        if not record.passed:
            record.stack = _capture_stack()
            record.info.append(InfoLine("Stack:", record.stack, "stack"))
        state.assertions.append(record)
        state.passed = state.passed and bool(record.passed)
