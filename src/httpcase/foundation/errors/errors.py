"""Standardized error handling for the request engine.

Provides error codes, a structured error model and the exception hierarchy
raised by the engine. Every exception carries a frozen ToolError so callers
(dispatcher, server) can render it for agent feedback without losing the code.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, computed_field, field_validator


class ErrorCode(StrEnum):
    """Standard error codes for engine failures.

    Used for programmatic error handling and retry decisions.
    """
    INVALID_PARAMS = "INVALID_PARAMS"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    DEPENDENCY_MISSING = "DEPENDENCY_MISSING"
    NOT_FOUND = "NOT_FOUND"
    ASSERTION_FAILED = "ASSERTION_FAILED"
    UNKNOWN = "UNKNOWN"


# Pre-computed retryable codes set for O(1) lookup
_RETRYABLE_CODES: frozenset[ErrorCode] = frozenset({
    ErrorCode.TIMEOUT,
    ErrorCode.NETWORK_ERROR,
})


class ToolError(BaseModel):
    """Structured error response for tool failures.

    Attributes:
        tool_name: Name of the tool (or engine operation) that failed
        message: Human-readable error message
        code: Machine-readable error code for programmatic handling
        recoverable: Whether the error might succeed on retry
        details: Optional detailed information
    """

    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        validate_default=True,
        json_schema_extra={
            "title": "Tool Error",
            "description": "Structured error from tool execution",
            "examples": [{
                "tool_name": "get",
                "message": "Request timed out after 30000ms",
                "code": "TIMEOUT",
                "recoverable": True,
            }],
        },
    )

    tool_name: Annotated[str, Field(min_length=1)]
    message: Annotated[str, Field(min_length=1)]
    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = True
    details: str | None = None

    @field_validator("message", mode="before")
    @classmethod
    def _ensure_message(cls, v: str | Exception) -> str:
        """Accept Exception objects and extract message."""
        if isinstance(v, Exception):
            v = str(v) or type(v).__name__
        return v or "unknown error"

    @computed_field
    @property
    def is_retryable(self) -> bool:
        """Whether this error is retried by the retry coordinator."""
        return self.code in _RETRYABLE_CODES

    @classmethod
    def create(
        cls,
        tool_name: str,
        message: str,
        code: ErrorCode = ErrorCode.UNKNOWN,
        *,
        recoverable: bool = True,
        details: str | None = None,
    ) -> Self:
        """Factory method for construction."""
        return cls(tool_name=tool_name, message=message, code=code, recoverable=recoverable, details=details)

    def render(self) -> str:
        """Format error for LLM consumption."""
        parts = [f"**Tool Error ({self.tool_name}):** {self.message}"]
        if self.recoverable:
            parts.append("\n_This error may be recoverable - consider retrying or trying an alternative approach._")
        if self.details:
            parts.append(f"\n\nDetails:\n```\n{self.details}\n```")
        return "".join(parts)

    __str__ = render


class ToolException(Exception):
    """Exception wrapping a ToolError for raising.

    Subclasses fix the error code and recoverability so call sites only
    supply a message.
    """

    code: ErrorCode = ErrorCode.UNKNOWN
    recoverable: bool = False

    def __init__(self, message: str, *, tool_name: str = "httpcase", details: str | None = None) -> None:
        self.error = ToolError(
            tool_name=tool_name,
            message=message,
            code=self.code,
            recoverable=self.recoverable,
            details=details,
        )
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.error.message


class RequestValidationError(ToolException):
    """Malformed arguments. Raised before any network I/O."""

    code = ErrorCode.INVALID_PARAMS


class TransportError(ToolException):
    """Connection, DNS or protocol failure of a single transport attempt."""

    code = ErrorCode.NETWORK_ERROR
    recoverable = True

    def __init__(self, message: str, *, cause: BaseException | None = None, tool_name: str = "httpcase") -> None:
        super().__init__(message, tool_name=tool_name, details=type(cause).__name__ if cause else None)
        self.cause = cause


class TransportTimeout(TransportError):
    """No status and headers received within the request timeout."""

    code = ErrorCode.TIMEOUT


class RequestCancelled(ToolException):
    """The caller's cancel token fired. Never retried."""

    code = ErrorCode.CANCELLED


class SchemaValidationUnavailable(ToolException):
    """The JSON Schema validation library could not be loaded."""

    code = ErrorCode.DEPENDENCY_MISSING


class UnknownToolError(ToolException):
    """Tool name has no engine operation."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}", tool_name=name or "httpcase")
        self.name = name


class StatusAssertionError(ToolException):
    """Response status is not one of the expected values."""

    code = ErrorCode.ASSERTION_FAILED

    def __init__(self, actual: object, expected: list[int]) -> None:
        super().__init__(
            f"Unexpected status: {actual}. Expected: {', '.join(str(e) for e in expected)}",
            tool_name="assert_status",
        )
        self.actual, self.expected = actual, expected


def format_validation_error(exc: ValidationError, *, prefix: str | None = None) -> str:
    """Render the first pydantic error as ``loc: message``.

    Pydantic's ``Value error, `` prefix is stripped so messages raised from
    validators read as written.
    """
    err = exc.errors()[0]
    loc = ".".join(str(p) for p in err["loc"])
    msg = str(err["msg"]).removeprefix("Value error, ")
    if prefix:
        loc = f"{prefix}.{loc}" if loc else prefix
    return f"{loc}: {msg}" if loc else msg
