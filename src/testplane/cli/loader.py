"""Discovery and import of test modules."""

from __future__ import annotations

import importlib.util
import re
import sys
from collections.abc import Iterable
from pathlib import Path
from types import ModuleType

import click
import structlog

log = structlog.get_logger(__name__)

TEST_FILE_PATTERNS = ("test_*.py", "*_test.py")


def discover(paths: Iterable[Path]) -> list[Path]:
    """Expand directories into test files. Order: as given, then sorted."""
    found: list[Path] = []
    for path in paths:
        if path.is_dir():
            matches: set[Path] = set()
            for pattern in TEST_FILE_PATTERNS:
                matches.update(path.rglob(pattern))
            found.extend(sorted(matches))
        else:
            found.append(path)
    # De-duplicate, keep first occurrence
    return list(dict.fromkeys(p.resolve() for p in found))


def _module_name(path: Path) -> str:
    return "testplane_module_" + re.sub(r"\W", "_", "_".join(path.with_suffix("").parts[-3:]))


def load_module(path: Path) -> ModuleType:
    """Import ``path`` so its registration calls run against the current runner."""
    name = _module_name(path)
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise click.ClickException(f"Cannot import test module: {path}")
    module = importlib.util.module_from_spec(spec)
    parent = str(path.parent)
    if parent not in sys.path:
        sys.path.insert(0, parent)
    sys.modules[name] = module
    try:
        spec.loader.exec_module(module)
    except click.ClickException:
        raise
    except Exception as e:
        sys.modules.pop(name, None)
        log.error("test_module_failed", path=str(path), exc_info=True)
        raise click.ClickException(f"Error while loading {path}: {e}") from e
    log.debug("test_module_loaded", path=str(path))
    return module


def load_modules(paths: Iterable[Path]) -> list[ModuleType]:
    files = discover(paths)
    if not files:
        raise click.ClickException("No test files found")
    return [load_module(path) for path in files]
