"""Multipart/form-data upload assembly.

Scalar fields go first (mapping order), then files (sequence order). File
paths are opened in binary mode and handed to httpx, whose multipart encoder
reads them in chunks while the request streams; nothing is buffered whole.
Every descriptor is validated, and every path opened, before the first byte
is sent.
"""

from __future__ import annotations

import os
from contextlib import ExitStack
from typing import IO, TYPE_CHECKING, Iterable, Mapping, Sequence

from pydantic import TypeAdapter, ValidationError

from httpcase.foundation.errors import RequestValidationError, format_validation_error

from .models import MultipartFile, ResponseResult
from .transport import drop_header

if TYPE_CHECKING:
    from httpcase.runtime.concurrency import CancelToken

    from .transport import HttpTransport

FilePart = tuple[str, tuple[str, "IO[bytes] | bytes", "str | None"]]
FieldPart = tuple[str, tuple[None, str]]

_FilesAdapter: TypeAdapter[list[MultipartFile]] = TypeAdapter(list[MultipartFile])


def validate_files(files: Iterable[MultipartFile | Mapping[str, object]]) -> list[MultipartFile]:
    """Coerce descriptors to MultipartFile, failing fast on the first bad one."""
    try:
        return _FilesAdapter.validate_python(list(files))
    except ValidationError as e:
        raise RequestValidationError(format_validation_error(e, prefix="files"), tool_name="upload_multipart") from e


def field_parts(fields: Mapping[str, object] | None) -> list[FieldPart]:
    """Scalar fields as filename-less parts, so they stay multipart with or without files."""
    return [(name, (None, str(value))) for name, value in (fields or {}).items()]


def build_parts(files: Sequence[MultipartFile], stack: ExitStack) -> list[FilePart]:
    """Turn descriptors into httpx ``files=`` entries. Opened handles are registered on ``stack``."""
    parts: list[FilePart] = []
    for f in files:
        if f.source_kind == "file_path":
            path = f.resolved_path
            try:
                handle = stack.enter_context(open(path, "rb"))  # type: ignore[arg-type]
            except OSError as e:
                raise RequestValidationError(f"Cannot read {path}: {e.strerror or e}",
                                             tool_name="upload_multipart") from e
            parts.append((f.field_name, (f.resolved_filename, handle, f.resolved_content_type)))
        else:
            parts.append((f.field_name, (f.resolved_filename, f.inline_bytes or b"", f.resolved_content_type)))
    return parts


async def upload_multipart(
    transport: HttpTransport,
    url: str,
    files: Iterable[MultipartFile | Mapping[str, object]],
    fields: Mapping[str, str] | None = None,
    *,
    headers: Mapping[str, str] | None = None,
    timeout_ms: int,
    cancel: CancelToken | None = None,
) -> ResponseResult:
    """Send one multipart POST. Single attempt, no retries.

    Raises:
        RequestValidationError: bad descriptor or unreadable file (no I/O attempted)
        TransportError / TransportTimeout / RequestCancelled: as for any request
    """
    descriptors = validate_files(files)
    # httpx must write the boundary header itself
    merged = drop_header(transport.build_headers(headers), "Content-Type")

    with ExitStack() as stack:
        parts = field_parts(fields) + build_parts(descriptors, stack)
        if not parts:
            # httpx only takes the multipart path when there is at least one part
            boundary = os.urandom(16).hex()
            merged["Content-Type"] = f"multipart/form-data; boundary={boundary}"
            return await transport.dispatch("POST", url, timeout_ms=timeout_ms, cancel=cancel,
                                            headers=merged, content=f"--{boundary}--\r\n".encode())
        return await transport.dispatch(
            "POST", url,
            timeout_ms=timeout_ms,
            cancel=cancel,
            headers=merged,
            files=parts,
        )
