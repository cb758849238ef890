"""Console reporter: renders runner events with rich.

The reporter only consumes the event bus and the runner's read-only
counters. One line per finished test, detail panels for failures (which
ones depends on ``show_detail``), and a summary once the run is over.
"""

from __future__ import annotations

import traceback
from collections.abc import Callable
from typing import Any

import structlog
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from testplane.assertions import AssertionRecord, InfoLine
from testplane.config.models import ShowDetail
from testplane.events.bus import EventType
from testplane.runner.jobs import Job, Suite, Test
from testplane.runner.runner import TestRunner

log = structlog.get_logger(__name__)

_MARKS = {
    "pass": ("✓", "green"),
    "fail": ("✗", "red"),
    "skip": ("-", "yellow"),
}

_INFO_STYLES = {
    "expected": "green",
    "received": "red",
    "stack": "dim",
    "plain": "",
}


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """Return "1 test" / "3 tests" style counts."""
    if plural is None:
        plural = singular + "s"
    word = singular if count == 1 else plural
    return f"{count} {word}"


def _job_line(job: Job, mark: str, *, index: int | None = None, count: int | None = None) -> Text:
    symbol, style = _MARKS[mark]
    line = Text()
    line.append(f"{symbol} ", style=style)
    if index is not None:
        line.append(f"{index}. ")
    line.append(job.full_description)
    if count is not None:
        line.append(f" ({count})", style="dim")
    for tag in job.tags:
        line.append(f" #{tag}", style="cyan")
    line.append(f"  [{job.hash}]", style="dim")
    return line


def _info_line(info: InfoLine) -> Text:
    if info.kind == "stack":
        return Text(str(info.value).rstrip(), style=_INFO_STYLES["stack"])
    line = Text("    ")
    line.append(info.label, style=_INFO_STYLES[info.kind])
    line.append(f" {info.value!r}")
    return line


def _record_lines(position: int, record: AssertionRecord) -> list[RenderableType]:
    symbol, style = _MARKS["pass" if record.passed else "fail"]
    head = Text(f"{position}. ")
    head.append(symbol, style=style)
    head.append(f" {record.message}")
    lines: list[RenderableType] = [head]
    if not record.passed:
        lines.extend(_info_line(info) for info in record.info)
        if record.stack and not any(info.kind == "stack" for info in record.info):
            lines.append(Text(record.stack.rstrip(), style="dim"))
    return lines


def render_detail(test: Test) -> Panel:
    """Assertion-by-assertion detail of a finished test."""
    body: list[RenderableType] = []
    for position, record in enumerate(test.assertions, start=1):
        body.extend(_record_lines(position, record))
    if test.error is not None:
        formatted = "".join(traceback.format_exception(test.error)).rstrip()
        body.append(Text(formatted, style="red"))
    if not body:
        body.append(Text("no assertion", style="dim"))
    return Panel(Group(*body), title=test.full_description, border_style="red", expand=False)


class ConsoleReporter:
    """Subscribes to a runner's bus and prints results as they arrive."""

    def __init__(
        self,
        runner: TestRunner,
        *,
        console: Console | None = None,
        show_detail: ShowDetail | None = None,
        hide_passed: bool = False,
    ) -> None:
        self.runner = runner
        self.console = console or Console(highlight=False)
        self.show_detail = show_detail or runner.config.show_detail
        self.hide_passed = hide_passed
        self.failed_hashes: list[str] = []
        self._index = 0
        self._shown_detail = False
        self._unsubscribers: list[Callable[[], None]] = []

    def attach(self) -> ConsoleReporter:
        handlers: dict[EventType, Callable[[Any], None]] = {
            EventType.BEFORE_ALL: self._on_before_all,
            EventType.AFTER_TEST: self._on_after_test,
            EventType.SKIPPED_TEST: self._on_skipped_test,
            EventType.AFTER_SUITE: self._on_after_suite,
            EventType.ABORT: self._on_abort,
            EventType.AFTER_ALL: self._on_after_all,
        }
        for event, handler in handlers.items():
            self._unsubscribers.append(self.runner.bus.subscribe(event, handler))
        return self

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()

    def _should_expand(self) -> bool:
        if self.show_detail == "failed":
            return True
        if self.show_detail == "first-fail":
            return not self._shown_detail
        return False

    def _on_before_all(self, _payload: None) -> None:
        self.console.print(Text("Running tests...", style="bold"))

    def _on_after_test(self, test: Test) -> None:
        self._index += 1
        if test.passed:
            if not self.hide_passed:
                self.console.print(
                    _job_line(test, "pass", index=self._index, count=len(test.assertions))
                )
            return
        self.failed_hashes.append(test.hash)
        self.console.print(_job_line(test, "fail", index=self._index, count=len(test.assertions)))
        if self._should_expand():
            self._shown_detail = True
            self.console.print(render_detail(test))

    def _on_skipped_test(self, test: Test) -> None:
        if not self.hide_passed:
            self.console.print(_job_line(test, "skip"))

    def _on_after_suite(self, suite: Suite) -> None:
        log.debug("suite_done", suite=suite.full_description)

    def _on_abort(self, _payload: None) -> None:
        self.console.print(Text("! Run aborted", style="yellow"))

    def _on_after_all(self, _payload: None) -> None:
        self.console.print(self.summary_line())

    def summary_line(self) -> Text:
        """Mirror of the run status: counts, failures and total time."""
        summary = self.runner.summary()
        style = "green" if summary.ok else "red"
        line = Text()
        line.append("● ", style=style)
        line.append(f"{pluralize(summary.done, 'test')} completed")
        if not summary.has_filter:
            line.append(f" in {pluralize(summary.suites, 'suite')}")
        if summary.skipped:
            line.append(f", with {summary.skipped} skipped")
        if summary.failed:
            line.append(f", with {summary.failed} failed", style="red")
        if summary.duration_ms is not None:
            line.append(f" (total time: {summary.duration_ms} ms)", style="dim")
        return line
