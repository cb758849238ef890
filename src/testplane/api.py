"""Public registration surface.

Test modules use these functions at import time::

    from testplane import suite, test

    def math():
        test("add", lambda a: a.equal(1 + 1, 2))

    suite("math", math)

    @test("strings", tags=["fast"])
    def _(a):
        a.ok("x" in "xyz")

Every function targets the process-wide runner returned by ``get_runner()``;
``reset_runner()`` swaps it (the CLI does this before loading test modules).
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from collections.abc import Callable, Mapping
from functools import partial
from pathlib import Path
from typing import Any

from testplane.assertions import Assert
from testplane.config.models import RunnerConfig
from testplane.runner.jobs import HookFn
from testplane.runner.runner import RunSummary, TestRunner

_SUITE_OPTIONS = frozenset({"only", "skip", "tags"})
_TEST_OPTIONS = frozenset({"only", "skip", "tags", "debug"})

_runner = TestRunner()


def get_runner() -> TestRunner:
    return _runner


def reset_runner(runner: TestRunner | None = None, config: RunnerConfig | None = None) -> TestRunner:
    """Replace the process-wide runner. Returns the new one."""
    global _runner
    _runner = runner or TestRunner(config)
    return _runner


def _parse(
    kind: str,
    description: str,
    rest: tuple[Any, ...],
    kwargs: dict[str, Any],
    allowed: frozenset[str],
) -> tuple[list[str], dict[str, Any], Callable[..., Any] | None]:
    """Split ``(description, [nested...], [options], [body])`` call forms."""
    names = [description]
    items = list(rest)
    while items and isinstance(items[0], str):
        names.append(items.pop(0))
    options: dict[str, Any] = {}
    if items and isinstance(items[0], Mapping):
        options.update(items.pop(0))
    body = items.pop(0) if items else None
    if items:
        raise TypeError(f"{kind}() got unexpected extra arguments: {items!r}")
    if body is not None and not callable(body):
        raise TypeError(f"{kind}() body must be callable, got {type(body).__name__}")
    options.update(kwargs)
    unknown = set(options) - allowed
    if unknown:
        raise TypeError(f"{kind}() got unknown options: {sorted(unknown)}")
    return names, options, body


class SuiteRegistrar:
    """``suite(description, [options], body)``; also ``suite.only`` / ``suite.skip``.

    Extra leading strings declare nested suites: ``suite("a", "b", body)``.
    Without a body, returns a decorator.
    """

    def __init__(self, runner: Callable[[], TestRunner]) -> None:
        self._runner = runner

    def __call__(self, description: str, *rest: Any, **options: Any) -> Any:
        names, opts, body = _parse("suite", description, rest, options, _SUITE_OPTIONS)
        if body is None:
            return partial(self._decorate, names, opts)
        self._register(names, opts, body)
        return None

    def only(self, description: str, *rest: Any, **options: Any) -> Any:
        return self(description, *rest, **{**options, "only": True})

    def skip(self, description: str, *rest: Any, **options: Any) -> Any:
        return self(description, *rest, **{**options, "skip": True})

    def _decorate(
        self, names: list[str], opts: dict[str, Any], body: Callable[[], Any]
    ) -> Callable[[], Any]:
        self._register(names, opts, body)
        return body

    def _register(self, names: list[str], opts: dict[str, Any], body: Callable[[], Any]) -> None:
        head, *nested = names
        if nested:
            # Options belong to the innermost suite
            self._runner().add_suite(head, lambda: self._register(nested, opts, body))
        else:
            self._runner().add_suite(head, body, **opts)


class TestRegistrar:
    """``test(description, [options], body)``; also ``.only`` / ``.skip`` / ``.debug``."""

    __test__ = False

    def __init__(self, runner: Callable[[], TestRunner]) -> None:
        self._runner = runner

    def __call__(self, description: str, *rest: Any, **options: Any) -> Any:
        names, opts, body = _parse("test", description, rest, options, _TEST_OPTIONS)
        if len(names) > 1:
            raise TypeError("test() takes a single description")
        if body is None:
            return partial(self._decorate, description, opts)
        self._runner().add_test(description, body, **opts)
        return None

    def only(self, description: str, *rest: Any, **options: Any) -> Any:
        return self(description, *rest, **{**options, "only": True})

    def skip(self, description: str, *rest: Any, **options: Any) -> Any:
        return self(description, *rest, **{**options, "skip": True})

    def debug(self, description: str, *rest: Any, **options: Any) -> Any:
        return self(description, *rest, **{**options, "only": True, "debug": True})

    def _decorate(
        self, description: str, opts: dict[str, Any], body: Callable[[Assert], Any]
    ) -> Callable[[Assert], Any]:
        self._runner().add_test(description, body, **opts)
        return body


suite = SuiteRegistrar(get_runner)
test = TestRegistrar(get_runner)
extend = Assert.extend


def before_suite(fn: HookFn) -> HookFn:
    return get_runner().hooks.before_suite(fn)


def before_each(fn: HookFn) -> HookFn:
    return get_runner().hooks.before_each(fn)


def after_test(fn: HookFn) -> HookFn:
    return get_runner().hooks.after_test(fn)


def after_suite(fn: HookFn) -> HookFn:
    return get_runner().hooks.after_suite(fn)


def get_fixture() -> Path:
    """Fresh temporary directory, removed once the current test is done."""
    path = Path(tempfile.mkdtemp(prefix="testplane-"))
    after_test(partial(shutil.rmtree, path, ignore_errors=True))
    return path


async def start() -> None:
    await get_runner().start()


def stop() -> None:
    get_runner().stop()


def run() -> RunSummary:
    """Run the process-wide runner to completion from synchronous code."""
    runner = get_runner()
    asyncio.run(runner.start())
    return runner.summary()
