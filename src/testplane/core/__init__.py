"""Core module exports."""

from testplane.core.errors import (
    AssertionRegistryError,
    ConfigError,
    ErrorCode,
    InternalError,
    RegistrationError,
    TestplaneError,
    TestTimeoutError,
)
from testplane.core.logging import (
    clear_run_id,
    configure_logging,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "AssertionRegistryError",
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "RegistrationError",
    "TestplaneError",
    "TestTimeoutError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_run_id",
    "set_run_id",
]
