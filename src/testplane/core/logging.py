"""structlog setup for testplane.

Records from testplane modules and from the stdlib loggers of code under
test share one pipeline and fan out to every configured output. While a run
is in progress its id sits in the structlog context, so each record logged
from the run carries ``run_id``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from structlog.contextvars import bind_contextvars, get_contextvars, unbind_contextvars

if TYPE_CHECKING:
    from structlog.types import Processor

    from testplane.config.models import LoggingConfig, LogOutputConfig


def get_run_id() -> str | None:
    return get_contextvars().get("run_id")


def set_run_id(run_id: str | None = None) -> str:
    """Bind ``run_id`` (a fresh 12-digit hex id when omitted) to the log context."""
    run_id = run_id or uuid4().hex[:12]
    bind_contextvars(run_id=run_id)
    return run_id


def clear_run_id() -> None:
    unbind_contextvars("run_id")


def _level(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.WARNING)


def _handler(output: LogOutputConfig, level: int, shared: list[Processor]) -> logging.Handler:
    stream = {"stderr": sys.stderr, "stdout": sys.stdout}.get(output.destination)
    if stream is not None:
        handler: logging.Handler = logging.StreamHandler(stream)
    else:
        path = Path(output.destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path)

    if output.format == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        colors = stream is not None and stream.isatty()
        renderer = structlog.dev.ConsoleRenderer(colors=colors, pad_event_to=0, pad_level=False)

    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)
    )
    return handler


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "WARNING",
) -> None:
    """Route structlog through stdlib handlers, one per configured output.

    ``config`` wins over ``json_format`` and ``level``, which only describe
    a single stderr output.
    """
    from testplane.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level)

    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        # reconfigured per CLI invocation and per test
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(root_level)
    for output in config.outputs:
        output_level = _level(output.level) if output.level else root_level
        root.addHandler(_handler(output, output_level, shared))

    # Test bodies commonly drive asyncio; its debug chatter is not ours
    logging.getLogger("asyncio").setLevel(logging.WARNING)
