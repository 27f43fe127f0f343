"""Parameter models for every tool.

Each model's JSON schema is exported as the tool's ``inputSchema``; the
dispatcher validates raw arguments against it before calling the engine.
Times are milliseconds.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, PositiveInt

from httpcase.foundation.errors import JsonDict, JsonValue
from httpcase.http import BatchRequest, MultipartFile

_PARAMS = ConfigDict(extra="ignore", frozen=True)

Headers = Annotated[dict[str, str] | None, Field(default=None, description="Request headers; override defaults case-insensitively")]
Timeout = Annotated[NonNegativeInt | None, Field(default=None, description="Timeout in milliseconds")]
Retries = Annotated[NonNegativeInt | None, Field(default=None, description="Number of retries on transient errors")]
Backoff = Annotated[NonNegativeInt | None, Field(default=None, description="Base backoff in ms for retries (exponential)")]
Body = Annotated[JsonValue | None, Field(default=None, description="Request body (objects and arrays are sent as JSON)")]
Url = Annotated[str, Field(min_length=1, description="Request URL")]


class RetryableParams(BaseModel):
    """Options shared by every single-request tool."""

    model_config = _PARAMS

    url: Url
    headers: Headers
    timeout: Timeout
    retries: Retries
    backoff: Backoff

    def options(self) -> dict[str, Any]:
        return {"headers": self.headers, "timeout": self.timeout, "retries": self.retries, "backoff": self.backoff}


class HttpRequestParams(RetryableParams):
    method: Annotated[str, Field(min_length=1, description="HTTP method (GET, POST, PUT, DELETE, etc.)")]
    body: Body


class GetParams(RetryableParams):
    pass


class BodyParams(RetryableParams):
    """POST / PUT / DELETE."""

    body: Body


class UploadMultipartParams(BaseModel):
    model_config = _PARAMS

    url: Url
    files: list[MultipartFile] = Field(..., description="File parts; each needs fieldName and filePath or contentBase64")
    fields: dict[str, str] | None = Field(default=None, description="Scalar form fields, sent before files")
    headers: Headers
    timeout: Timeout


class ValidateJsonSchemaParams(BaseModel):
    model_config = _PARAMS

    data: Any = Field(..., description="JSON value to validate")
    json_schema: JsonDict = Field(..., alias="schema", description="JSON Schema document")


class ConcurrentRequestsParams(BaseModel):
    model_config = _PARAMS

    requests: list[BatchRequest] = Field(..., description="Requests to run; each has method, url and optional opts")
    concurrency: PositiveInt | None = Field(default=None, description="Max concurrent workers")


class AssertStatusParams(BaseModel):
    model_config = _PARAMS

    response: dict[str, Any] = Field(..., description="A response object carrying statusCode")
    expected: int | list[int] = Field(..., description="Expected status code or list of codes")
