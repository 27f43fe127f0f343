"""Value objects for request execution.

Request-scoped, immutable pydantic models. Python attributes are snake_case;
the wire (tool arguments and tool results) uses camelCase aliases.
"""

from __future__ import annotations

import base64
import binascii
import os
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    NonNegativeInt,
    Tag,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from httpcase.foundation.errors import JsonDict, JsonValue

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_BACKOFF_MS = 500
DEFAULT_CONCURRENCY = 5
OCTET_STREAM = "application/octet-stream"

_WIRE = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, revalidate_instances="never")


# ─────────────────────────────────────────────────────────────────────────────
# Request Body (tagged union, decided once at construction)
# ─────────────────────────────────────────────────────────────────────────────

class JsonBody(BaseModel):
    """Structured body, serialized as JSON by the transport."""

    model_config = ConfigDict(frozen=True)
    kind: Literal["json"] = "json"
    value: Any


class RawBody(BaseModel):
    """Raw body, sent as-is."""

    model_config = ConfigDict(frozen=True)
    kind: Literal["raw"] = "raw"
    data: bytes


class EmptyBody(BaseModel):
    """No body."""

    model_config = ConfigDict(frozen=True)
    kind: Literal["empty"] = "empty"


Body = Annotated[
    Union[
        Annotated[JsonBody, Tag("json")],
        Annotated[RawBody, Tag("raw")],
        Annotated[EmptyBody, Tag("empty")],
    ],
    Discriminator("kind"),
]

EMPTY_BODY = EmptyBody()


def check_http_url(url: str) -> str:
    """Validate URL has proper scheme."""
    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        raise ValueError("URL must start with http:// or https://")
    return url


def to_body(value: object) -> JsonBody | RawBody | EmptyBody:
    """Classify a caller-supplied body."""
    match value:
        case JsonBody() | RawBody() | EmptyBody():
            return value
        case None:
            return EMPTY_BODY
        case bytes() | bytearray() | memoryview():
            return RawBody(data=bytes(value))
        case str():
            return RawBody(data=value.encode("utf-8"))
        case _:
            return JsonBody(value=value)


# ─────────────────────────────────────────────────────────────────────────────
# Request
# ─────────────────────────────────────────────────────────────────────────────

class RequestSpec(BaseModel):
    """One HTTP request, fully resolved.

    Attributes:
        method: HTTP verb, upper-cased
        url: Absolute http(s) URL
        headers: Caller headers, merged over defaults by the transport
        body: Tagged body (json, raw or empty)
        timeout_ms: Per-attempt timeout in milliseconds
        max_retries: Retries after the first attempt
        backoff_ms: Base exponential backoff in milliseconds
    """

    model_config = ConfigDict(frozen=True, extra="forbid", revalidate_instances="never")

    method: Annotated[str, Field(min_length=1)]
    url: Annotated[str, Field(min_length=1)]
    headers: dict[str, str] = Field(default_factory=dict, repr=False)
    body: Body = Field(default=EMPTY_BODY, repr=False)
    timeout_ms: NonNegativeInt = DEFAULT_TIMEOUT_MS
    max_retries: NonNegativeInt = 0
    backoff_ms: NonNegativeInt = DEFAULT_BACKOFF_MS

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, v: str) -> str:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("url", mode="before")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        return check_http_url(v) if isinstance(v, str) else v

    @field_validator("body", mode="before")
    @classmethod
    def _classify_body(cls, v: object) -> object:
        return to_body(v)

    @computed_field
    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000


class RequestOptions(BaseModel):
    """Per-request options as they appear in tool arguments (times in ms)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    headers: dict[str, str] | None = None
    body: JsonValue | None = None
    timeout: NonNegativeInt | None = None
    retries: NonNegativeInt | None = None
    backoff: NonNegativeInt | None = None


# ─────────────────────────────────────────────────────────────────────────────
# Response
# ─────────────────────────────────────────────────────────────────────────────

class ResponseResult(BaseModel):
    """Normalized HTTP response. Produced fresh per call, never mutated."""

    model_config = _WIRE

    status_code: int
    is_success: bool
    headers: dict[str, str] = Field(default_factory=dict, repr=False)
    parsed_body: JsonValue | None = Field(default=None, repr=False)
    raw_body: str = Field(default="", repr=False)
    elapsed_ms: NonNegativeInt = 0

    def header(self, key: str) -> str | None:
        """Get header value case-insensitively."""
        key_lower = key.lower()
        return next((v for k, v in self.headers.items() if k.lower() == key_lower), None)

    def to_wire(self) -> JsonDict:
        return self.model_dump(by_alias=True)


# ─────────────────────────────────────────────────────────────────────────────
# Multipart
# ─────────────────────────────────────────────────────────────────────────────

class MultipartFile(BaseModel):
    """One file part of a multipart upload.

    Exactly one of ``file_path`` / ``content_base64`` must be given. Inline
    content is decoded at construction so malformed base64 fails before any
    network I/O.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore")

    field_name: Annotated[str, Field(min_length=1)]
    file_path: str | None = None
    content_base64: str | None = Field(default=None, repr=False)
    filename: str | None = None
    content_type: str | None = None

    @model_validator(mode="after")
    def _exactly_one_source(self) -> MultipartFile:
        if (self.file_path is None) == (self.content_base64 is None):
            raise ValueError("Multipart file must have either filePath or contentBase64")
        if self.content_base64 is not None:
            try:
                base64.b64decode(self.content_base64)
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"contentBase64 is not valid base64: {e}") from None
        return self

    @computed_field
    @property
    def source_kind(self) -> Literal["file_path", "inline_base64"]:
        return "file_path" if self.file_path is not None else "inline_base64"

    @property
    def resolved_path(self) -> str | None:
        return os.path.abspath(self.file_path) if self.file_path is not None else None

    @property
    def resolved_filename(self) -> str:
        if self.filename:
            return self.filename
        return os.path.basename(self.resolved_path) if self.file_path is not None else "file"

    @property
    def resolved_content_type(self) -> str | None:
        """Explicit type, else octet-stream for inline bytes; httpx guesses for paths."""
        if self.content_type:
            return self.content_type
        return None if self.file_path is not None else OCTET_STREAM

    @property
    def inline_bytes(self) -> bytes | None:
        return base64.b64decode(self.content_base64) if self.content_base64 is not None else None


# ─────────────────────────────────────────────────────────────────────────────
# Batch
# ─────────────────────────────────────────────────────────────────────────────

class BatchRequest(BaseModel):
    """One item of a concurrent batch."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    method: Annotated[str, Field(min_length=1)]
    url: Annotated[str, Field(min_length=1)]
    opts: RequestOptions = Field(default_factory=RequestOptions)


class BatchOutcome(BaseModel):
    """Result of one batch item: a response or an error message, never both."""

    model_config = ConfigDict(frozen=True)

    request: BatchRequest
    response: ResponseResult | None = None
    error: str | None = None

    @computed_field
    @property
    def ok(self) -> bool:
        return self.response is not None

    def to_wire(self) -> JsonDict:
        out: JsonDict = {"request": self.request.model_dump(exclude_none=True)}
        if self.response is not None:
            out["response"] = self.response.to_wire()
        else:
            out["error"] = self.error
        return out


# ─────────────────────────────────────────────────────────────────────────────
# Engine defaults
# ─────────────────────────────────────────────────────────────────────────────

class RequestDefaults(BaseModel):
    """Immutable engine configuration passed to the client at construction."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    headers: dict[str, str] = Field(default_factory=dict)
    timeout_ms: NonNegativeInt = DEFAULT_TIMEOUT_MS
    max_retries: NonNegativeInt = 0
    backoff_ms: NonNegativeInt = DEFAULT_BACKOFF_MS
    concurrency: Annotated[int, Field(ge=1)] = DEFAULT_CONCURRENCY
