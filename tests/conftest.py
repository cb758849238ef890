"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local testplane package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from testplane.api import get_runner, reset_runner  # noqa: E402
from testplane.config.models import RunnerConfig  # noqa: E402
from testplane.events.bus import EventType  # noqa: E402
from testplane.runner.runner import TestRunner  # noqa: E402


class EventLog:
    """Records (event, payload description) pairs published on a runner's bus."""

    def __init__(self, runner: TestRunner) -> None:
        self.entries: list[tuple[str, str | None]] = []
        for event in EventType:
            runner.bus.subscribe(event, self._recorder(event))

    def _recorder(self, event: EventType):  # noqa: ANN202
        def record(payload: object) -> None:
            description = getattr(payload, "full_description", None)
            self.entries.append((event.value, description))

        return record

    def names(self, *events: str) -> list[str | None]:
        """Payload descriptions of the given events, in order."""
        return [desc for name, desc in self.entries if name in events]

    def count(self, event: str) -> int:
        return sum(1 for name, _ in self.entries if name == event)


@pytest.fixture
def runner() -> TestRunner:
    """Fresh runner with a short timeout."""
    return TestRunner(RunnerConfig(timeout=500))


@pytest.fixture
def events(runner: TestRunner) -> EventLog:
    return EventLog(runner)


@pytest.fixture
def global_runner() -> Iterator[TestRunner]:
    """Swap the process-wide runner used by testplane.api for the test's duration."""
    previous = get_runner()
    fresh = reset_runner(config=RunnerConfig(timeout=500))
    yield fresh
    reset_runner(previous)


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Undo structlog configuration done by CLI and logging tests."""
    yield
    structlog.reset_defaults()
