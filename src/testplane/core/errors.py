"""testplane error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Registration
- 4xxx: Assertion registry
- 5xxx: Test execution
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Registration (3xxx)
    REGISTRATION_AFTER_START = 3001
    STANDALONE_TEST = 3002
    HOOK_OUTSIDE_SUITE = 3003
    SUITE_RETURNED_VALUE = 3004

    # Assertion registry (4xxx)
    ASSERTION_DUPLICATE = 4001
    ASSERTION_UNKNOWN = 4002

    # Test execution (5xxx)
    TEST_TIMEOUT = 5001

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class TestplaneError(Exception):
    """Base error with structured context for reporting."""

    __test__ = False

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'TEST_TIMEOUT')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(TestplaneError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class RegistrationError(TestplaneError):
    """Misuse of the registration API. Always raised to the caller."""

    @classmethod
    def after_start(cls, kind: str, description: str) -> "RegistrationError":
        return cls(
            code=ErrorCode.REGISTRATION_AFTER_START,
            message=f"Cannot add a {kind} after starting the test runner",
            details={"kind": kind, "description": description},
        )

    @classmethod
    def standalone_test(cls, description: str) -> "RegistrationError":
        return cls(
            code=ErrorCode.STANDALONE_TEST,
            message=(
                "Test runner is setup to refuse standalone tests. "
                "Please add a surrounding 'suite' statement."
            ),
            details={"description": description},
        )

    @classmethod
    def hook_outside_suite(cls, hook: str) -> "RegistrationError":
        return cls(
            code=ErrorCode.HOOK_OUTSIDE_SUITE,
            message=f'"{hook}" can only be called inside a suite',
            details={"hook": hook},
        )

    @classmethod
    def suite_returned_value(cls, path: str) -> "RegistrationError":
        return cls(
            code=ErrorCode.SUITE_RETURNED_VALUE,
            message=f"Invalid suite definition '{path}': cannot return a value",
            details={"path": path},
        )


class AssertionRegistryError(TestplaneError):
    """Errors raised by the assertion extension registry."""

    @classmethod
    def duplicate(cls, name: str) -> "AssertionRegistryError":
        return cls(
            code=ErrorCode.ASSERTION_DUPLICATE,
            message=f"'{name}' assertion type already exists",
            details={"name": name},
        )

    @classmethod
    def unknown(cls, name: str) -> "AssertionRegistryError":
        return cls(
            code=ErrorCode.ASSERTION_UNKNOWN,
            message=f"'{name}' is not a registered assertion",
            details={"name": name},
        )


class TestTimeoutError(TestplaneError):
    """Recorded on a Test whose body did not settle in time."""

    @classmethod
    def exceeded(cls, timeout_ms: int) -> "TestTimeoutError":
        return cls(
            code=ErrorCode.TEST_TIMEOUT,
            message=f"test took longer than {timeout_ms}ms",
            details={"timeout_ms": timeout_ms},
        )


class InternalError(TestplaneError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
