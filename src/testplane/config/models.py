"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (TESTPLANE__SECTION__KEY)
3. Project YAML (testplane.yaml)
4. Global YAML (~/.config/testplane/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    TESTPLANE__<SECTION>__<KEY>=<VALUE>

Examples:
    TESTPLANE__LOGGING__LEVEL=DEBUG
    TESTPLANE__RUNNER__TIMEOUT=2000
    TESTPLANE__RUNNER__FAIL_FAST=true
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
ShowDetail = Literal["first-fail", "failed", "none"]

DEFAULT_TIMEOUT_MS = 10_000


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        TESTPLANE__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. Hook failures are logged at ERROR.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class RunnerConfig(BaseModel):
    """Process-wide runner options. Mutable until the run starts.

    Env vars:
        TESTPLANE__RUNNER__TIMEOUT: Per-test timeout in milliseconds
        TESTPLANE__RUNNER__FAIL_FAST: Stop the run on the first failing test
        TESTPLANE__RUNNER__NOTRYCATCH: Let test exceptions propagate
    """

    timeout: int = Field(
        default=DEFAULT_TIMEOUT_MS,
        description="Per-test timeout (ms). A test still pending after this is failed.",
    )
    autostart: bool = Field(
        default=True,
        description="Start the run as soon as all test modules are loaded.",
    )
    show_detail: ShowDetail = Field(
        default="first-fail",
        description="Which failing tests get their assertion detail expanded.",
    )
    notrycatch: bool = Field(
        default=False,
        description="Disable the timeout race and exception containment. "
        "Useful to get raw tracebacks in a debugger.",
    )
    fail_fast: bool = Field(
        default=False,
        description="Stop the whole run on the first failing test.",
    )
    no_standalone_test: bool = Field(
        default=False,
        description="Reject tests declared outside of any suite.",
    )
    random_order: bool = Field(
        default=False,
        description="Shuffle root jobs and suite children before running them.",
    )
    seed: int | None = Field(
        default=None,
        description="Seed for random_order. None picks a fresh seed per run.",
    )

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"Timeout must be a positive number of ms, got {v}")
        return v


class TestplaneConfig(BaseModel):
    """Root configuration for testplane.

    All settings can be configured via:
    1. Environment variables: TESTPLANE__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
