"""Pure HTTP response builders."""

import html
from http import HTTPStatus
from typing import BinaryIO, Iterator, Mapping

from docserver.domain.http_types import HttpRequest, HttpResponse

HTTP_VERSION = "HTTP/1.1"
BLOCK_SIZE = 1024


def status_line(status: HTTPStatus) -> str:
    """Format the status line for the given status."""
    return f"{HTTP_VERSION} {status.value} {status.phrase}"


class FileBody:
    """Raw byte blocks read from an open binary file.

    The owner of the response calls ``close`` once transmission ends,
    whether or not the blocks were consumed.
    """

    def __init__(self, file_handle: BinaryIO, block_size: int = BLOCK_SIZE) -> None:
        self._file_handle = file_handle
        self._block_size = block_size

    def __iter__(self) -> Iterator[bytes]:
        while True:
            block = self._file_handle.read(self._block_size)
            if not block:
                return
            yield block

    def close(self) -> None:
        """Release the underlying file handle."""
        self._file_handle.close()


def error_response(status: HTTPStatus) -> HttpResponse:
    """Return an empty text/plain response carrying only a status."""
    return HttpResponse(status_line(status), {"Content-Type": "text/plain"})


def bad_request_response() -> HttpResponse:
    """Produce a 400 response."""
    return error_response(HTTPStatus.BAD_REQUEST)


def forbidden_response() -> HttpResponse:
    """Produce a 403 response."""
    return error_response(HTTPStatus.FORBIDDEN)


def not_found_response() -> HttpResponse:
    """Produce a 404 response."""
    return error_response(HTTPStatus.NOT_FOUND)


def entity_too_large_response() -> HttpResponse:
    """Produce a 413 response."""
    return error_response(HTTPStatus.REQUEST_ENTITY_TOO_LARGE)


def internal_error_response() -> HttpResponse:
    """Produce a 500 response."""
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR)


def not_implemented_response() -> HttpResponse:
    """Produce a 501 response."""
    return error_response(HTTPStatus.NOT_IMPLEMENTED)


def content_response(
    payload: bytes, content_type: str, request: HttpRequest
) -> HttpResponse:
    """Return a 200 response whose framing follows the client's chunked hint."""
    return HttpResponse(
        status_line(HTTPStatus.OK),
        {"Content-Type": content_type},
        payload,
        use_chunked=request.use_chunked_response,
    )


def render_parameters_page(parameters: Mapping[str, str]) -> str:
    """Render submitted parameters as an HTML unordered list."""
    items = "".join(
        f"<li>{html.escape(key)}: {html.escape(value)}</li>"
        for key, value in parameters.items()
    )
    return (
        "<html><body>"
        "<h1>Submitted Parameters:</h1>"
        f"<ul>{items}</ul>"
        "</body></html>"
    )


def render_trace_message(request: HttpRequest) -> str:
    """Echo the request line and received headers as a message/http body."""
    lines = [f"{request.method} {request.target} {HTTP_VERSION}"]
    lines.extend(f"{name}: {value}" for name, value in request.raw_headers)
    return "\r\n".join(lines) + "\r\n\r\n"
