"""Response transmission in fixed-length or chunked framing."""

import socket
from typing import Iterator

from docserver.domain.correlation_id import get_logger
from docserver.domain.http_types import HttpResponse
from docserver.domain.response_builders import BLOCK_SIZE

IO_LOGGER = get_logger("pipeline.io")

CRLF = b"\r\n"
LAST_CHUNK = b"0\r\n\r\n"


def iter_body(response: HttpResponse, block_size: int = BLOCK_SIZE) -> Iterator[bytes]:
    """Yield the response payload in blocks of at most ``block_size`` bytes."""
    if response.body_iter is not None:
        for block in response.body_iter:
            for start in range(0, len(block), block_size):
                yield block[start : start + block_size]
        return
    body = response.body
    for start in range(0, len(body), block_size):
        yield body[start : start + block_size]


def encode_chunk(block: bytes) -> bytes:
    """Frame one block as ``<hex size>CRLF<bytes>CRLF``."""
    return f"{len(block):x}".encode("ascii") + CRLF + block + CRLF


def build_header_block(response: HttpResponse) -> bytes:
    """Serialize the status line and headers, including framing headers."""
    headers: dict[str, str] = {}
    # HEAD always declares Content-Length, even when the chunked hint was sent.
    if response.use_chunked and not response.head_only:
        headers["Transfer-Encoding"] = "chunked"
        headers.update(response.headers)
    else:
        headers.update(response.headers)
        if response.content_length is not None:
            headers["Content-Length"] = str(response.content_length)
        else:
            headers["Content-Length"] = str(len(response.body))
    headers["Connection"] = "close"

    header_lines = [response.status_line]
    header_lines.extend(f"{name}: {value}" for name, value in headers.items())
    return "\r\n".join(header_lines).encode("iso-8859-1") + CRLF + CRLF


def send_response(client_socket: socket.socket, response: HttpResponse) -> int:
    """Write the response to the socket and return the number of payload bytes sent."""
    client_socket.sendall(build_header_block(response))
    sent = 0
    if not response.head_only:
        for block in iter_body(response):
            sent += len(block)
            if response.use_chunked:
                block = encode_chunk(block)
            client_socket.sendall(block)
        if response.use_chunked:
            client_socket.sendall(LAST_CHUNK)
    IO_LOGGER.debug(
        "Sent response",
        extra={
            "event": "response_sent",
            "status_code": response.status_code,
            "chunked": response.use_chunked,
            "bytes_out": sent,
        },
    )
    return sent
