"""Runcoach Error System.

Provides structured error handling with:
- Numeric error codes for programmatic handling
- User-friendly messages
- Context for debugging

Only programming errors are raised through this module. Data conditions
(missing history, too few samples, a failed optimizer run) are model states,
not errors, and never surface as exceptions.
"""


from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Numeric error codes organized by category.

    Format: XYYY where X = category, YYY = specific error

    Categories:
        1xxx - Fitting/model errors
        2xxx - Advisor errors
        3xxx - Storage errors
        5xxx - Configuration errors
        6xxx - Runtime/service errors
    """

    # 1xxx - Fitting/Model Errors
    FIT_INPUT_INVALID = 1001
    MODEL_INVALID = 1002
    MODEL_SET_INVALID = 1003

    # 2xxx - Advisor Errors
    ADVISOR_SEGMENT_UNKNOWN = 2001

    # 3xxx - Storage Errors
    STORE_WRITE_FAILED = 3001
    STORE_DURATIONS_INVALID = 3002

    # 5xxx - Configuration Errors
    CONFIG_INVALID = 5002

    # 6xxx - Runtime Errors
    RUNTIME_STATE_INVALID = 6001
    SERVICE_CLOSED = 6002

    @property
    def category(self) -> str:
        """Get the error category name."""
        prefix = self.value // 1000
        return {
            1: "model",
            2: "advisor",
            3: "storage",
            5: "config",
            6: "runtime",
        }.get(prefix, "unknown")

    @property
    def is_recoverable(self) -> bool:
        """Whether this error type is typically recoverable."""
        non_recoverable = {
            ErrorCode.CONFIG_INVALID,
            ErrorCode.SERVICE_CLOSED,
        }
        return self not in non_recoverable


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.FIT_INPUT_INVALID: "Invalid fit input '{field}': {detail}",
    ErrorCode.MODEL_INVALID: "Invalid segment model: {detail}",
    ErrorCode.MODEL_SET_INVALID: "Invalid model set: {detail}",
    ErrorCode.ADVISOR_SEGMENT_UNKNOWN: "Segment '{segment}' is not part of the model set.",
    ErrorCode.STORE_WRITE_FAILED: "Failed to write {path}: {detail}",
    ErrorCode.STORE_DURATIONS_INVALID: "Invalid durations for run '{run}': {detail}",
    ErrorCode.CONFIG_INVALID: "Invalid configuration for '{key}': {detail}",
    ErrorCode.RUNTIME_STATE_INVALID: "Invalid runtime state: {detail}",
    ErrorCode.SERVICE_CLOSED: "The coach service has been closed.",
}


class RuncoachError(Exception):
    """Base error type for all runcoach errors.

    Example:
        >>> err = RuncoachError(
        ...     code=ErrorCode.MODEL_SET_INVALID,
        ...     context={"detail": "segment 'b' has no model"},
        ... )
        >>> print(err)
        [RC-1003] Invalid model set: segment 'b' has no model
    """

    def __init__(
        self,
        code: ErrorCode,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.context = context or {}
        self.cause = cause
        super().__init__(str(self))

    @property
    def message(self) -> str:
        """Get the formatted user-friendly message."""
        template = ERROR_MESSAGES.get(self.code, "An error occurred: {detail}")
        try:
            return template.format(**self.context)
        except KeyError:
            return template

    @property
    def is_recoverable(self) -> bool:
        """Whether this error is typically recoverable."""
        return self.code.is_recoverable

    @property
    def category(self) -> str:
        """Get the error category."""
        return self.code.category

    @property
    def error_id(self) -> str:
        """Get the error ID string (e.g., 'RC-1003')."""
        return f"RC-{self.code.value}"

    def __str__(self) -> str:
        return f"[{self.error_id}] {self.message}"

    def __repr__(self) -> str:
        return f"RuncoachError(code={self.code!r}, context={self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dict for logging/JSON output."""
        return {
            "error_id": self.error_id,
            "code": self.code.value,
            "category": self.category,
            "message": self.message,
            "recoverable": self.is_recoverable,
            "context": self.context,
        }


def config_error(key: str, detail: str) -> RuncoachError:
    """Create a configuration error."""
    return RuncoachError(
        code=ErrorCode.CONFIG_INVALID,
        context={"key": key, "detail": detail},
    )


def fit_input_error(field: str, detail: str) -> RuncoachError:
    """Create an invalid fit input error."""
    return RuncoachError(
        code=ErrorCode.FIT_INPUT_INVALID,
        context={"field": field, "detail": detail},
    )


def model_set_error(detail: str) -> RuncoachError:
    """Create an invalid model set error."""
    return RuncoachError(
        code=ErrorCode.MODEL_SET_INVALID,
        context={"detail": detail},
    )
