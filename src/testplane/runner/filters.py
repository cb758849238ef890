"""Selection filters and the pruning pass applied before a run."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from testplane.runner.jobs import Job, Suite

Predicate = Callable[[Job], bool]


@dataclass
class JobFilter:
    """Active selection rules. Empty sets mean "no constraint"."""

    only_ids: set[int] = field(default_factory=set)
    hashes: set[str] = field(default_factory=set)
    tags: set[str] = field(default_factory=set)
    text: str = ""
    skip_hashes: set[str] = field(default_factory=set)

    def predicates(self) -> list[Predicate]:
        """Active predicates in precedence order: hash, tag, text.

        An explicit ``only`` mark overrides every other selection rule.
        """
        if self.only_ids:
            only_ids = set(self.only_ids)
            return [lambda job: job.id in only_ids]
        preds: list[Predicate] = []
        if self.hashes:
            hashes = set(self.hashes)
            preds.append(lambda job: job.hash in hashes)
        if self.tags:
            tags = set(self.tags)
            preds.append(lambda job: job.has_tag(tags))
        if self.text:
            text = self.text
            preds.append(lambda job: text in job.full_description)
        return preds


def _should_run(job: Job, predicate: Predicate) -> bool:
    if predicate(job):
        return True
    if isinstance(job, Suite):
        sub_jobs = select_jobs(job.jobs, predicate)
        if sub_jobs:
            job.jobs = sub_jobs
            return True
    return False


def select_jobs(jobs: list[Job], predicate: Predicate) -> list[Job]:
    """Keep matching jobs, and suites with at least one matching descendant.

    A suite kept only for its descendants has its ``jobs`` narrowed to them.
    """
    return [job for job in jobs if _should_run(job, predicate)]


def apply_skip(jobs: list[Job], skip_hashes: set[str], inherited: bool = False) -> None:
    """Mark jobs whose hash is in ``skip_hashes`` (and their subtrees) skipped."""
    for job in jobs:
        skipped = inherited or job.hash in skip_hashes
        if skipped:
            job.skip = True
        if isinstance(job, Suite):
            apply_skip(job.jobs, skip_hashes, skipped)


def prepare_jobs(jobs: list[Job], job_filter: JobFilter) -> list[Job]:
    """Narrow ``jobs`` successively by every active predicate."""
    selected = list(jobs)
    for predicate in job_filter.predicates():
        selected = select_jobs(selected, predicate)
    if job_filter.skip_hashes:
        apply_skip(selected, job_filter.skip_hashes)
    return selected
