"""Job tree nodes: suites and tests.

Nodes are created by the registration API and never destroyed. Identity
(id, path, hash) is fixed at construction; a suite's ``jobs`` list grows
while its body runs and may later be narrowed by filtering. Traversal state
is kept by the runner's cursor, not on the nodes.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from testplane.assertions import AssertionRecord
    from testplane.assertions.engine import Assert

HookFn = Callable[[], Any]
TestFn = Callable[["Assert"], Any]

PATH_SEPARATOR = " > "
_HASH_JOINER = "\x1c"

_ids = itertools.count(1)


def generate_hash(parts: Iterable[str]) -> str:
    """Stable 8-hex-digit identifier for a job path.

    Java ``String.hashCode`` over the UTF-16 code units of the joined path:
    cheap and deterministic, not collision resistant.
    """
    data = _HASH_JOINER.join(parts).encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & 0xFFFFFFFF
    return f"{h:08x}"


def _merge_tags(inherited: Iterable[str], own: Iterable[str]) -> tuple[str, ...]:
    return tuple(dict.fromkeys([*inherited, *own]))


class Job:
    """Common identity of suites and tests."""

    __slots__ = ("id", "description", "parent", "path", "tags", "skip", "hash")

    def __init__(
        self,
        parent: Suite | None,
        description: str,
        tags: Iterable[str] = (),
    ) -> None:
        self.id: int = next(_ids)
        self.description = description
        self.parent = parent
        self.path: tuple[str, ...] = (*parent.path, description) if parent else (description,)
        self.tags: tuple[str, ...] = _merge_tags(parent.tags if parent else (), tags)
        self.skip: bool = parent.skip if parent else False
        self.hash = generate_hash(self.path)

    @property
    def full_description(self) -> str:
        return PATH_SEPARATOR.join(self.path)

    def has_tag(self, tags: Iterable[str]) -> bool:
        return any(t in self.tags for t in tags)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id} {self.full_description!r}>"


class Suite(Job):
    """A named group of jobs with its own hook registries."""

    __slots__ = ("jobs", "before_fns", "before_each_fns", "after_fns")

    def __init__(
        self,
        parent: Suite | None,
        description: str,
        tags: Iterable[str] = (),
    ) -> None:
        super().__init__(parent, description, tags)
        self.jobs: list[Job] = []
        self.before_fns: list[HookFn] = []
        self.before_each_fns: list[HookFn] = []
        self.after_fns: list[HookFn] = []

    @property
    def suite_path(self) -> list[Suite]:
        """Ancestor suites from the root down to this one."""
        chain: list[Suite] = []
        node: Suite | None = self
        while node is not None:
            chain.append(node)
            node = node.parent
        return chain[::-1]


class Test(Job):
    """A leaf job carrying a body and, once run, its result."""

    __test__ = False
    __slots__ = ("run_test", "assertions", "passed", "duration", "error")

    def __init__(
        self,
        parent: Suite | None,
        description: str,
        run_test: TestFn,
        tags: Iterable[str] = (),
    ) -> None:
        super().__init__(parent, description, tags)
        self.run_test = run_test
        self.assertions: list[AssertionRecord] = []
        self.passed = False
        self.duration: int | None = None
        self.error: BaseException | None = None
