"""HTTP request execution engine.

- ApiClient: facade over every engine operation
- HttpTransport: one attempt per call, timeout and cancel aware
- normalize_response: raw response -> ResponseResult
- upload_multipart / MultipartFile: multipart/form-data assembly
- SchemaValidator: pluggable JSON Schema capability

Example:
    >>> from httpcase.http import ApiClient
    >>> async with ApiClient() as client:
    ...     resp = await client.post("https://api.example.com/items", {"name": "x"}, retries=2)
    ...     resp.is_success
    True
"""

from .client import ApiClient
from .models import (
    DEFAULT_BACKOFF_MS,
    DEFAULT_CONCURRENCY,
    DEFAULT_TIMEOUT_MS,
    BatchOutcome,
    BatchRequest,
    EmptyBody,
    JsonBody,
    MultipartFile,
    RawBody,
    RequestDefaults,
    RequestOptions,
    RequestSpec,
    ResponseResult,
)
from .multipart import upload_multipart, validate_files
from .normalize import flatten_headers, normalize_httpx, normalize_response, parse_body
from .schema import JsonSchemaValidator, SchemaError, SchemaReport, SchemaValidator, load_default_validator
from .transport import DEFAULT_HEADERS, HttpTransport, merge_headers

__all__ = [
    # Facade
    "ApiClient",
    # Models
    "RequestSpec", "RequestOptions", "RequestDefaults", "ResponseResult",
    "JsonBody", "RawBody", "EmptyBody",
    "MultipartFile", "BatchRequest", "BatchOutcome",
    "DEFAULT_TIMEOUT_MS", "DEFAULT_BACKOFF_MS", "DEFAULT_CONCURRENCY",
    # Transport
    "HttpTransport", "DEFAULT_HEADERS", "merge_headers",
    # Normalization
    "normalize_response", "normalize_httpx", "parse_body", "flatten_headers",
    # Multipart
    "upload_multipart", "validate_files",
    # Schema
    "SchemaValidator", "JsonSchemaValidator", "SchemaReport", "SchemaError", "load_default_validator",
]
