"""testplane list command - show the collected job tree."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import click

from testplane.api import reset_runner
from testplane.cli.loader import load_modules
from testplane.core.errors import TestplaneError
from testplane.runner.jobs import Job, Suite


def job_to_dict(job: Job) -> dict[str, Any]:
    data: dict[str, Any] = {
        "kind": "suite" if isinstance(job, Suite) else "test",
        "description": job.description,
        "hash": job.hash,
        "tags": list(job.tags),
        "skip": job.skip,
    }
    if isinstance(job, Suite):
        data["jobs"] = [job_to_dict(child) for child in job.jobs]
    return data


def _tree_lines(jobs: list[Job], depth: int = 0) -> list[str]:
    lines = []
    for job in jobs:
        marker = "+" if isinstance(job, Suite) else "-"
        extras = "".join(f" #{tag}" for tag in job.tags)
        if job.skip:
            extras += " (skip)"
        lines.append(f"{'  ' * depth}{marker} {job.description} [{job.hash}]{extras}")
        if isinstance(job, Suite):
            lines.extend(_tree_lines(job.jobs, depth + 1))
    return lines


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_command(paths: tuple[Path, ...], as_json: bool) -> None:
    """List the suites and tests registered by PATHS, with their hashes."""
    runner = reset_runner()
    load_modules(paths)
    try:
        asyncio.run(runner.settle())
    except TestplaneError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(json.dumps([job_to_dict(job) for job in runner.jobs], indent=2))
        return
    for line in _tree_lines(runner.jobs):
        click.echo(line)
    click.echo(f"{runner.test_number} test(s) in {runner.suite_number} suite(s)")
