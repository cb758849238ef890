"""testplane run command - load test modules and run them."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import click

from testplane.api import reset_runner
from testplane.cli.loader import load_modules
from testplane.config.loader import load_config
from testplane.config.models import TestplaneConfig
from testplane.core.errors import TestplaneError
from testplane.core.logging import configure_logging
from testplane.reporting.console import ConsoleReporter, pluralize
from testplane.runner.runner import TestRunner

LAST_FAILED_FILE = ".testplane-last-failed"


def apply_filters(
    runner: TestRunner,
    *,
    tags: tuple[str, ...] = (),
    text: str | None = None,
    test_ids: tuple[str, ...] = (),
    suite_ids: tuple[str, ...] = (),
    skips: tuple[str, ...] = (),
) -> None:
    """Feed CLI selection options into the runner's filter set.

    Test ids win over suite ids when both are given.
    """
    for tag in tags:
        runner.add_filter(tag=tag)
    if text:
        runner.add_filter(text=text)
    for skip in skips:
        for job_hash in skip.split(","):
            runner.add_filter(skip=job_hash.strip())
    for job_hash in test_ids or suite_ids:
        runner.add_filter(hash=job_hash)


def read_last_failed(project_root: Path) -> list[str]:
    """Hashes of the tests that failed in the previous run under ``project_root``."""
    path = project_root / LAST_FAILED_FILE
    if not path.exists():
        return []
    try:
        hashes = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise click.ClickException(f"Unreadable {LAST_FAILED_FILE}: {e}") from e
    if not isinstance(hashes, list):
        raise click.ClickException(f"Unreadable {LAST_FAILED_FILE}: expected a list of hashes")
    return [h for h in hashes if isinstance(h, str)]


def write_last_failed(project_root: Path, hashes: list[str]) -> None:
    """Record failing hashes for ``--last-failed``; a clean run removes the record."""
    path = project_root / LAST_FAILED_FILE
    if hashes:
        path.write_text(json.dumps(hashes))
    else:
        path.unlink(missing_ok=True)


def build_config(project_root: Path, verbose: bool, runner_overrides: dict[str, Any]) -> TestplaneConfig:
    """Resolve configuration and (re)configure logging from it."""
    overrides = {k: v for k, v in runner_overrides.items() if v is not None}
    try:
        config = load_config(project_root, runner=overrides) if overrides else load_config(project_root)
    except TestplaneError as e:
        raise click.ClickException(str(e)) from e
    if verbose:
        configure_logging(level="DEBUG")
    else:
        configure_logging(config=config.logging)
    return config


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--tag", "tags", multiple=True, help="Only run jobs carrying this tag.")
@click.option("--filter", "text", help="Only run jobs whose full path contains TEXT.")
@click.option("--test-id", "test_ids", multiple=True, help="Only run the test with this hash.")
@click.option("--suite-id", "suite_ids", multiple=True, help="Only run the suite with this hash.")
@click.option("--skip", "skips", multiple=True, help="Skip jobs by hash (comma separated).")
@click.option("--last-failed", is_flag=True, help="Only run the tests that failed last time.")
@click.option("--timeout", type=int, help="Per-test timeout in milliseconds.")
@click.option("--fail-fast/--no-fail-fast", default=None, help="Stop on the first failure.")
@click.option("--notrycatch", is_flag=True, default=None, help="Let test exceptions propagate.")
@click.option("--random-order/--declared-order", default=None, help="Shuffle jobs.")
@click.option("--seed", type=int, help="Seed for --random-order.")
@click.option(
    "--show-detail",
    type=click.Choice(["first-fail", "failed", "none"]),
    help="Which failing tests get their detail expanded.",
)
@click.option("--hide-passed", is_flag=True, help="Only print failing tests.")
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory holding testplane.yaml (default: current directory).",
)
@click.pass_context
def run_command(
    ctx: click.Context,
    paths: tuple[Path, ...],
    tags: tuple[str, ...],
    text: str | None,
    test_ids: tuple[str, ...],
    suite_ids: tuple[str, ...],
    skips: tuple[str, ...],
    last_failed: bool,
    timeout: int | None,
    fail_fast: bool | None,
    notrycatch: bool | None,
    random_order: bool | None,
    seed: int | None,
    show_detail: str | None,
    hide_passed: bool,
    project_root: Path | None,
) -> None:
    """Run the tests registered by PATHS (files or directories)."""
    verbose = bool((ctx.obj or {}).get("verbose"))
    project_root = project_root or Path.cwd()
    config = build_config(
        project_root,
        verbose,
        {
            "timeout": timeout,
            "fail_fast": fail_fast,
            "notrycatch": notrycatch,
            "random_order": random_order,
            "seed": seed,
            "show_detail": show_detail,
        },
    )

    runner = reset_runner(config=config.runner)
    apply_filters(
        runner,
        tags=tags,
        text=text,
        test_ids=test_ids,
        suite_ids=suite_ids,
        skips=skips,
    )
    if last_failed:
        previous = read_last_failed(project_root)
        if previous:
            for job_hash in previous:
                runner.add_filter(hash=job_hash)
        else:
            click.echo("no recorded failures, running all tests")
    load_modules(paths)

    if not config.runner.autostart:
        try:
            asyncio.run(runner.settle())
        except TestplaneError as e:
            raise click.ClickException(str(e)) from e
        click.echo(
            f"autostart disabled: {pluralize(runner.test_number, 'test')} "
            f"in {pluralize(runner.suite_number, 'suite')} collected"
        )
        return

    reporter = ConsoleReporter(runner, hide_passed=hide_passed).attach()
    try:
        asyncio.run(runner.start())
    except TestplaneError as e:
        raise click.ClickException(str(e)) from e
    finally:
        reporter.detach()

    write_last_failed(project_root, reporter.failed_hashes)
    if runner.summary().failed:
        ctx.exit(1)
