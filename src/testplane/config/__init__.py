"""Config module exports."""

from testplane.config.loader import load_config
from testplane.config.models import (
    LoggingConfig,
    LogOutputConfig,
    RunnerConfig,
    TestplaneConfig,
)

__all__ = [
    "load_config",
    "LoggingConfig",
    "LogOutputConfig",
    "RunnerConfig",
    "TestplaneConfig",
]
