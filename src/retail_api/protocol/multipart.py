"""
Minimal multipart/form-data decoder for upload requests.

Upload endpoints receive exactly one file part, optionally next to a few plain
string fields. The decoder works on the raw request body:

1. the ``--{boundary}`` delimiter is searched as a byte sequence;
2. each part's header block (up to the first blank line) is decoded as text;
3. the payload after the blank line is kept as bytes, minus the line break
   that precedes the next delimiter.

Earlier versions decoded the whole body as UTF-8 text before splitting it,
which corrupted binary uploads (images) whose bytes were not valid UTF-8.
Scanning bytes keeps binary payloads intact; text payloads decode exactly as
before.

Nested multipart, chunked transfer encoding and multiple file parts are not
supported: the first part carrying a ``filename`` attribute wins.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from retail_api.errors import EmptyPayloadError, MissingBoundaryError, NoFilePartError

CRLF = b"\r\n"
HEADER_SEPARATOR = b"\r\n\r\n"
CONTENT_DISPOSITION = "content-disposition"

_FILENAME_RE = re.compile(r'\bfilename="([^"]*)"', re.IGNORECASE)
_NAME_RE = re.compile(r'(?:^|;)\s*name="([^"]*)"', re.IGNORECASE)
_LINE_SPLIT_RE = re.compile(r"\r\n|\n")


@dataclass(frozen=True)
class FilePart:
    """The uploaded file extracted from a multipart body."""
    file_name: str
    content: bytes
    field_name: Optional[str] = None
    content_type: Optional[str] = None


@dataclass
class MultipartPart:
    headers: Dict[str, str]
    payload: bytes

    @property
    def disposition(self) -> str:
        return self.headers.get(CONTENT_DISPOSITION, "")

    @property
    def is_form_data(self) -> bool:
        return self.disposition.lower().startswith("form-data")

    @property
    def field_name(self) -> Optional[str]:
        match = _NAME_RE.search(self.disposition.split(";", 1)[-1])
        return match.group(1) if match else None

    @property
    def file_name(self) -> Optional[str]:
        match = _FILENAME_RE.search(self.disposition)
        return match.group(1) if match else None


@dataclass
class MultipartForm:
    """Plain string fields plus the (single) file part of an upload."""
    fields: Dict[str, str] = field(default_factory=dict)
    file: Optional[FilePart] = None


def extract_boundary(content_type: Optional[str]) -> str:
    """
    Return the ``boundary`` parameter of a Content-Type header value.

    The parameter name is matched case-insensitively and surrounding quotes are
    stripped.

    :raises MissingBoundaryError: if the header or the parameter is absent or empty.
    """
    if not content_type:
        raise MissingBoundaryError()

    for param in content_type.split(";"):
        key, sep, value = param.strip().partition("=")
        if sep and key.strip().lower() == "boundary":
            boundary = value.strip().strip('"')
            if boundary:
                return boundary
    raise MissingBoundaryError()


def _split_headers(raw_headers: bytes) -> Dict[str, str]:
    headers = {}
    for line in _LINE_SPLIT_RE.split(raw_headers.decode("utf-8", errors="replace")):
        name, sep, value = line.partition(":")
        if sep and name.strip():
            headers[name.strip().lower()] = value.strip()
    return headers


def _strip_terminator(payload: bytes) -> bytes:
    """Drop the single line break that precedes the next delimiter."""
    if payload.endswith(CRLF):
        return payload[:-2]
    if payload.endswith(b"\n"):
        return payload[:-1]
    return payload


def iter_parts(body: bytes, boundary: str) -> Iterator[MultipartPart]:
    """Yield every well-formed part of ``body`` in order."""
    if not boundary:
        raise MissingBoundaryError()

    delimiter = b"--" + boundary.encode("utf-8")
    for fragment in body.split(delimiter):
        # preamble, closing "--" marker and empty fragments carry no part
        if not fragment.strip() or fragment.startswith(b"--"):
            continue

        if fragment.startswith(CRLF):
            fragment = fragment[2:]
        elif fragment.startswith(b"\n"):
            fragment = fragment[1:]

        header_end = fragment.find(HEADER_SEPARATOR)
        separator_length = len(HEADER_SEPARATOR)
        if header_end == -1:
            header_end = fragment.find(b"\n\n")
            separator_length = 2
        if header_end == -1:
            continue

        yield MultipartPart(
            headers=_split_headers(fragment[:header_end]),
            payload=_strip_terminator(fragment[header_end + separator_length:]),
        )


def decode(body: bytes, boundary: str) -> FilePart:
    """
    Extract the file part of a multipart/form-data body.

    :param body: raw request body.
    :param boundary: boundary token, see :func:`extract_boundary`.
    :raises MissingBoundaryError: if ``boundary`` is empty.
    :raises NoFilePartError: if no form-data part carries a ``filename`` attribute.
    :raises EmptyPayloadError: if the selected file part has no content.
    """
    form = decode_form(body, boundary)
    if form.file is None:
        raise NoFilePartError()
    if not form.file.content:
        raise EmptyPayloadError()
    return form.file


def decode_form(body: bytes, boundary: str) -> MultipartForm:
    """Decode plain string fields and the first file part of ``body``."""
    form = MultipartForm()
    for part in iter_parts(body, boundary):
        if not part.is_form_data:
            continue

        file_name = part.file_name
        if file_name is None:
            if part.field_name:
                form.fields[part.field_name] = part.payload.decode("utf-8", errors="replace")
            continue

        if form.file is None:
            form.file = FilePart(
                file_name=file_name,
                content=part.payload,
                field_name=part.field_name,
                content_type=part.headers.get("content-type"),
            )
    return form
