"""Test runner: owns the job forest, the filters and the execution walk.

Registration and execution are interleaved. Suite bodies are queued and run
one at a time before the run starts, so the forest may still be growing
when ``start()`` is called. The walk over the forest is iterative: a cursor
holds one frame per open suite (the suite and the index of its next child),
and the runner status is checked between every two jobs, so ``stop()``
interrupts a run cleanly without unwinding a call stack.

Usage::

    runner = TestRunner()

    def math() -> None:
        runner.add_test("add", lambda a: a.equal(1 + 1, 2))

    runner.add_suite("math", math)
    await runner.start()
"""

from __future__ import annotations

import asyncio
import inspect
import random
import time
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any

import structlog

from testplane.assertions import Assert
from testplane.config.models import RunnerConfig
from testplane.core.errors import InternalError, RegistrationError, TestTimeoutError
from testplane.core.logging import clear_run_id, set_run_id
from testplane.events.bus import EventBus, EventType
from testplane.runner.filters import JobFilter, prepare_jobs
from testplane.runner.hooks import HookRegistry
from testplane.runner.jobs import HookFn, Job, Suite, Test, TestFn
from testplane.runner.queue import SuiteDefinitionQueue

log = structlog.get_logger(__name__)


class RunStatus(str, Enum):
    """Runner lifecycle: registration is only allowed while READY."""

    READY = "ready"
    RUNNING = "running"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Read-only counters for reporters."""

    suites: int
    tests: int
    done: int
    failed: int
    skipped: int
    has_filter: bool
    duration_ms: int | None

    @property
    def passed(self) -> int:
        return self.done - self.failed

    @property
    def ok(self) -> bool:
        return self.failed == 0


@dataclass(slots=True)
class _Frame:
    suite: Suite
    index: int = 0
    hooks_added: int = 0


@dataclass(slots=True)
class _Cursor:
    """Open suites of the current walk, innermost last."""

    frames: list[_Frame] = field(default_factory=list)

    def frame_for(self, suite: Suite) -> _Frame | None:
        if self.frames and self.frames[-1].suite is suite:
            return self.frames[-1]
        return None

    def enter(self, suite: Suite) -> _Frame:
        frame = _Frame(suite)
        self.frames.append(frame)
        return frame

    def leave(self) -> _Frame:
        return self.frames.pop()


class TestRunner:
    """Builds the job forest from registration calls and runs it."""

    __test__ = False

    def __init__(self, config: RunnerConfig | None = None, bus: EventBus | None = None) -> None:
        self.config = config or RunnerConfig()
        self.bus = bus or EventBus()
        self.status = RunStatus.READY

        # Root forest; narrowed by prepare_jobs() once the run starts
        self.jobs: list[Job] = []
        self.arena: dict[int, Job] = {}
        self.tests: list[Test] = []
        self.suites: list[Suite] = []
        self.tags: set[str] = set()

        self.filter = JobFilter()
        self.has_filter = False
        self.debug = False

        self.suite_number = 0
        self.test_number = 0
        self.failed_test_number = 0
        self.skipped_test_number = 0
        self.done_test_number = 0

        self._defining: list[Suite] = []
        self._running: list[Suite] = []
        self._queue = SuiteDefinitionQueue()
        self.hooks = HookRegistry(lambda: self.current, lambda: self.running_suite)
        self._rng = random.Random()
        self._started_at: float | None = None
        self._finished_at: float | None = None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @property
    def current(self) -> Suite | None:
        """Suite whose body is being run, if any."""
        return self._defining[-1] if self._defining else None

    @property
    def running_suite(self) -> Suite | None:
        """Innermost suite entered by the walk, if any."""
        return self._running[-1] if self._running else None

    def add_filter(
        self,
        *,
        hash: str | None = None,
        tag: str | None = None,
        text: str | None = None,
        skip: str | None = None,
    ) -> None:
        self.has_filter = True
        if hash:
            self.filter.hashes.add(hash)
        if tag:
            self.filter.tags.add(tag)
        if text:
            self.filter.text = text
        if skip:
            self.filter.skip_hashes.add(skip)

    def add_suite(
        self,
        description: str,
        body: Callable[[], Any],
        *,
        only: bool = False,
        skip: bool = False,
        tags: Iterable[str] = (),
    ) -> Suite:
        """Create a suite under the open one and queue its body."""
        if self.status is not RunStatus.READY:
            raise RegistrationError.after_start("suite", description)
        tags = tuple(tags)
        suite = Suite(self.current, description, tags)
        self._attach(suite)
        if only:
            self.filter.only_ids.add(suite.id)
        if skip or suite.hash in self.filter.skip_hashes:
            suite.skip = True
        self.suites.append(suite)
        self.tags.update(tags)
        self.suite_number += 1
        self.bus.trigger(EventType.SUITE_ADDED, suite)
        self._queue.enqueue(partial(self._define_suite, suite, body))
        return suite

    def add_test(
        self,
        description: str,
        run_test: TestFn,
        *,
        only: bool = False,
        skip: bool = False,
        tags: Iterable[str] = (),
        debug: bool = False,
    ) -> Test:
        """Create a test under the open suite, or as a root job."""
        if self.status is not RunStatus.READY:
            raise RegistrationError.after_start("test", description)
        if self.config.no_standalone_test and self.current is None:
            raise RegistrationError.standalone_test(description)
        tags = tuple(tags)
        test = Test(self.current, description, run_test, tags)
        self._attach(test)
        if only:
            self.filter.only_ids.add(test.id)
        if skip or test.hash in self.filter.skip_hashes:
            test.skip = True
        if debug:
            self.debug = True
        self.tests.append(test)
        self.tags.update(tags)
        self.test_number += 1
        self.bus.trigger(EventType.TEST_ADDED, test)
        return test

    def _attach(self, job: Job) -> None:
        (job.parent.jobs if job.parent else self.jobs).append(job)
        self.arena[job.id] = job

    async def _define_suite(self, suite: Suite, body: Callable[[], Any]) -> None:
        self._defining.append(suite)
        try:
            result = body()
            if inspect.isawaitable(result):
                result = await result
        except Exception:
            log.exception("suite_body_failed", suite=suite.full_description)
            raise
        finally:
            self._defining.pop()
        if result is not None:
            raise RegistrationError.suite_returned_value(suite.full_description)

    async def settle(self) -> None:
        """Wait until every queued suite body has run."""
        await self._queue.drain()

    def get_job(self, job_id: int) -> Job:
        return self.arena[job_id]

    def find(self, job_hash: str) -> list[Job]:
        return [job for job in self.arena.values() if job.hash == job_hash]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def prepare_jobs(self) -> list[Job]:
        """Take the pending root jobs and apply the active filters."""
        jobs, self.jobs = self.jobs, []
        return prepare_jobs(jobs, self.filter)

    async def start(self) -> None:
        """Run every selected job. Returns at once unless the runner is READY."""
        if self.status is not RunStatus.READY:
            return
        await self.settle()
        if self.status is not RunStatus.READY:
            return
        if self.config.fail_fast:
            self.bus.subscribe(EventType.AFTER_TEST, self._stop_on_failure)
        self._rng = random.Random(self.config.seed)

        set_run_id()
        self.status = RunStatus.RUNNING
        self._started_at = time.perf_counter()
        log.info("run_started", tests=self.test_number, suites=self.suite_number)
        self.bus.trigger(EventType.BEFORE_ALL)

        try:
            while self.jobs and self.status is RunStatus.RUNNING:
                batch = self.prepare_jobs()
                if self.config.random_order:
                    self._rng.shuffle(batch)
                await self._walk(deque(batch))

            self._finished_at = time.perf_counter()
            self.bus.trigger(EventType.AFTER_ALL)
            self.status = RunStatus.DONE
            summary = self.summary()
            log.info(
                "run_finished",
                done=summary.done,
                passed=summary.passed,
                failed=summary.failed,
                skipped=summary.skipped,
                duration_ms=summary.duration_ms,
            )
        finally:
            clear_run_id()

    def stop(self) -> None:
        """Stop after the job in flight. Nothing else is started."""
        was_running = self.status is RunStatus.RUNNING
        self.status = RunStatus.DONE
        if was_running:
            log.info("run_aborted")
        self.bus.trigger(EventType.ABORT)

    def _stop_on_failure(self, test: Test) -> None:
        if not test.passed:
            self.stop()

    async def _walk(self, batch: deque[Job]) -> None:
        cursor = _Cursor()
        # suite-scoped before_each hooks of the open suites, outermost first
        before_each: list[HookFn] = []
        node: Job | None = batch.popleft() if batch else None

        try:
            while node is not None and self.status is RunStatus.RUNNING:
                if isinstance(node, Suite):
                    frame = cursor.frame_for(node)
                    if frame is None:
                        frame = await self._enter_suite(node, cursor, before_each)
                    if frame.index < len(node.jobs):
                        node = node.jobs[frame.index]
                        frame.index += 1
                        continue
                    await self._leave_suite(cursor, before_each)
                elif isinstance(node, Test):
                    await self._run_test(node, before_each)
                else:
                    raise InternalError.unexpected("unknown job type", job=repr(node))
                node = node.parent or (batch.popleft() if batch else None)
        finally:
            # suites left open by stop() are no longer running
            self._running.clear()

    async def _enter_suite(self, suite: Suite, cursor: _Cursor, before_each: list[HookFn]) -> _Frame:
        frame = cursor.enter(suite)
        if self.config.random_order:
            self._rng.shuffle(suite.jobs)
        self.bus.trigger(EventType.BEFORE_SUITE, suite)
        self._running.append(suite)
        for fn in list(suite.before_fns):
            await self._run_hook(fn, "before_suite", suite)
        before_each.extend(suite.before_each_fns)
        frame.hooks_added = len(suite.before_each_fns)
        return frame

    async def _leave_suite(self, cursor: _Cursor, before_each: list[HookFn]) -> None:
        frame = cursor.leave()
        suite = frame.suite
        if frame.hooks_added:
            del before_each[-frame.hooks_added :]
        self._running.pop()
        self.bus.trigger(EventType.AFTER_SUITE, suite)
        for fn in reversed(list(suite.after_fns)):
            await self._run_hook(fn, "after_suite", suite)

    async def _run_test(self, test: Test, before_each: list[HookFn]) -> None:
        if test.skip:
            self.skipped_test_number += 1
            self.bus.trigger(EventType.SKIPPED_TEST, test)
            return

        self.bus.trigger(EventType.BEFORE_TEST, test)
        assert_ = Assert()
        for fn in [*self.hooks.before_each_fns, *before_each]:
            await self._run_hook(fn, "before_each", test)

        start = time.perf_counter()
        if self.config.notrycatch:
            await self._execute(test, assert_)
        else:
            try:
                await self._race_timeout(test, assert_)
            except Exception as e:
                test.error = e
                assert_.fail()

        test.passed = assert_.finalize()
        test.assertions = assert_.assertions
        test.duration = int((time.perf_counter() - start) * 1000)
        if not self.debug:
            self.done_test_number += 1
            if not test.passed:
                self.failed_test_number += 1
            self.bus.trigger(EventType.AFTER_TEST, test)

        while cleanups := self.hooks.pop_after_test():
            for fn in cleanups:
                await self._run_hook(fn, "after_test", test)

    async def _execute(self, test: Test, assert_: Assert) -> None:
        result = test.run_test(assert_)
        if inspect.isawaitable(result):
            await result

    async def _race_timeout(self, test: Test, assert_: Assert) -> None:
        timeout_ms = self.config.timeout
        task = asyncio.ensure_future(self._execute(test, assert_))
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        if task in done:
            task.result()
            return
        task.cancel()
        task.add_done_callback(partial(_discard_late_result, test))
        log.warning("test_timeout", test=test.full_description, timeout_ms=timeout_ms)
        raise TestTimeoutError.exceeded(timeout_ms)

    async def _run_hook(self, fn: HookFn, hook: str, job: Job) -> None:
        try:
            result = fn()
            if inspect.isawaitable(result):
                await result
        except Exception:
            log.exception("hook_failed", hook=hook, job=job.full_description)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def summary(self) -> RunSummary:
        duration_ms = None
        if self._started_at is not None:
            end = self._finished_at if self._finished_at is not None else time.perf_counter()
            duration_ms = int((end - self._started_at) * 1000)
        return RunSummary(
            suites=self.suite_number,
            tests=self.test_number,
            done=self.done_test_number,
            failed=self.failed_test_number,
            skipped=self.skipped_test_number,
            has_filter=self.has_filter,
            duration_ms=duration_ms,
        )


def _discard_late_result(test: Test, task: asyncio.Future[None]) -> None:
    # Retrieve the outcome so asyncio does not warn about it
    if task.cancelled():
        return
    if (error := task.exception()) is not None:
        log.warning("late_test_error", test=test.full_description, error=repr(error))
