"""HTTP request parsing from a line-oriented binary stream."""

import urllib.parse
from typing import BinaryIO, Iterable, Optional

from docserver.bootstrap.config import MAX_BODY_BYTES
from docserver.domain.correlation_id import get_logger
from docserver.domain.errors import (
    IncompleteBody,
    MalformedRequest,
    RequestEntityTooLarge,
)
from docserver.domain.http_types import CHUNKED_HINT_HEADER, HttpRequest
from docserver.domain.sandbox import clean_path

PARSER_LOGGER = get_logger("pipeline.parser")

MAX_LINE_BYTES = 8192
HEADER_ENCODING = "iso-8859-1"


def _read_line(stream: BinaryIO) -> Optional[str]:
    """Read one line without its terminator; None at end of stream."""
    raw = stream.readline(MAX_LINE_BYTES + 1)
    if not raw:
        return None
    if len(raw) > MAX_LINE_BYTES:
        raise MalformedRequest("Line too long")
    return raw.decode(HEADER_ENCODING).rstrip("\r\n")


def parse_request_line(request_line: str) -> tuple[str, str]:
    """Split ``METHOD SP TARGET SP VERSION`` into method and target."""
    parts = request_line.split(" ")
    if len(parts) != 3:
        raise MalformedRequest(f"Invalid request line: {request_line!r}")
    method, target, _ = parts
    return method, target


def split_target(target: str) -> tuple[str, str]:
    """Clean traversal sequences, then split path and query on the first '?'."""
    path, _, query = clean_path(target).partition("?")
    return path, query


def parse_parameters(encoded: str) -> dict[str, str]:
    """Decode ``key=value&key=value`` pairs, dropping malformed pairs."""
    parameters: dict[str, str] = {}
    for pair in encoded.split("&"):
        parts = pair.split("=")
        if len(parts) != 2:
            continue
        key, value = (
            urllib.parse.unquote_plus(part, encoding="utf-8", errors="replace")
            for part in parts
        )
        parameters[key] = value
    return parameters


def parse_headers(lines: Iterable[str]) -> list[tuple[str, str]]:
    """Split header lines on the first ':' keeping arrival order and name case."""
    parsed = []
    for line in lines:
        name, sep, value = line.partition(":")
        if not sep:
            continue
        parsed.append((name.strip(), value.strip()))
    return parsed


def determine_content_length(
    headers: dict[str, str], max_body_bytes: int = MAX_BODY_BYTES
) -> int:
    """Validate and return the declared Content-Length, defaulting to 0."""
    header_value = headers.get("content-length")
    if header_value is None:
        return 0
    # int() alone would also accept signs and underscores.
    if not (header_value.isascii() and header_value.isdigit()):
        raise MalformedRequest("Invalid Content-Length")
    content_length = int(header_value)
    if content_length > max_body_bytes:
        raise RequestEntityTooLarge(content_length)
    return content_length


def wants_chunked_response(headers: dict[str, str]) -> bool:
    """Return True when the client sent the custom ``Chunked: yes`` hint."""
    return headers.get(CHUNKED_HINT_HEADER, "").lower() == "yes"


def _read_header_lines(stream: BinaryIO) -> list[str]:
    lines = []
    while True:
        line = _read_line(stream)
        if not line:
            return lines
        lines.append(line)


def read_request(
    stream: BinaryIO, max_body_bytes: int = MAX_BODY_BYTES
) -> Optional[HttpRequest]:
    """Parse one request from the stream; None when the client sent nothing."""
    request_line = _read_line(stream)
    if request_line is None:
        return None
    method, target = parse_request_line(request_line)
    path, query = split_target(target)

    raw_headers = parse_headers(_read_header_lines(stream))
    headers = {name.lower(): value for name, value in raw_headers}
    content_length = determine_content_length(headers, max_body_bytes)

    body_parameters: dict[str, str] = {}
    if method == "POST" and content_length > 0:
        body = stream.read(content_length)
        if body is None or len(body) < content_length:
            raise IncompleteBody(
                f"Expected {content_length} body bytes, got {len(body or b'')}"
            )
        body_parameters = parse_parameters(body.decode("utf-8", errors="replace"))

    request = HttpRequest(
        method=method,
        path=path,
        target=target,
        headers=headers,
        raw_headers=tuple(raw_headers),
        query_parameters=parse_parameters(query) if query else {},
        body_parameters=body_parameters,
        content_length=content_length,
        use_chunked_response=wants_chunked_response(headers),
    )
    PARSER_LOGGER.debug(
        "Parsed request",
        extra={
            "event": "request_parsed",
            "method": method,
            "path": path,
            "chunked": request.use_chunked_response,
        },
    )
    return request
