"""Unified error handling for httpcase.

- ErrorCode: Standard error codes for engine failures
- ToolError/ToolException: Structured errors and exceptions
- Concrete exceptions raised by the engine and the dispatcher
"""

from .errors import (
    ErrorCode,
    RequestCancelled,
    RequestValidationError,
    SchemaValidationUnavailable,
    StatusAssertionError,
    ToolError,
    ToolException,
    TransportError,
    TransportTimeout,
    UnknownToolError,
    format_validation_error,
)
from .types import JsonDict, JsonMapping, JsonPrimitive, JsonValue

__all__ = [
    # Core errors
    "ErrorCode", "ToolError", "ToolException",
    # Engine errors
    "RequestValidationError", "TransportError", "TransportTimeout", "RequestCancelled",
    "SchemaValidationUnavailable", "UnknownToolError", "StatusAssertionError",
    "format_validation_error",
    # JSON aliases
    "JsonDict", "JsonMapping", "JsonPrimitive", "JsonValue",
]
