"""FIFO queue serializing suite-body execution.

Suite bodies may be coroutines. Running them one at a time, in the order
their suites were declared, keeps registration deterministic: whatever a
body registers lands in the suite that is open for it, and a sibling's body
never starts before the previous one has settled.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any

DefinitionTask = Callable[[], Awaitable[None]]


class SuiteDefinitionQueue:
    """One pending closure runs at a time, first in, first out."""

    def __init__(self) -> None:
        self._pending: deque[DefinitionTask] = deque()
        self._owner: asyncio.Task[Any] | None = None
        self._idle = asyncio.Event()
        self._idle.set()

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def draining(self) -> bool:
        return self._owner is not None

    def enqueue(self, task: DefinitionTask) -> None:
        self._pending.append(task)

    async def drain(self) -> None:
        """Run queued tasks until none are left.

        Tasks enqueued while draining (nested suites) are picked up by the
        same drain. A failing task propagates its exception; tasks still
        queued at that point stay queued for the next drain.

        Calling drain from inside a queued task is a no-op. Any other caller
        waits for the drain in flight, then drains whatever is left.
        """
        current = asyncio.current_task()
        while self._owner is not None:
            if self._owner is current:
                return
            await self._idle.wait()

        self._owner = current
        self._idle.clear()
        try:
            while self._pending:
                task = self._pending.popleft()
                await task()
        finally:
            self._owner = None
            self._idle.set()
