"""Worker logic for handling one client connection.

Every connection carries exactly one request and one response:
accepted, parsing, routing, responding, closed. The socket is closed on
every path out of ``handle_connection``.
"""

import logging
import socket
import time
from typing import BinaryIO, Optional

from docserver.domain.correlation_id import correlation_scope, get_logger
from docserver.domain.errors import (
    IncompleteBody,
    MalformedRequest,
    RequestEntityTooLarge,
)
from docserver.domain.http_types import HttpResponse
from docserver.domain.response_builders import (
    bad_request_response,
    entity_too_large_response,
    internal_error_response,
)
from docserver.pipeline.io import send_response
from docserver.pipeline.parser import read_request
from docserver.pipeline.router import route_request
from docserver.transport.context import WorkerContext

WORKER_LOGGER = get_logger("transport.worker")

# Unread request bytes discarded after a 413 so the close is not a reset.
DRAIN_LIMIT_BYTES = 64 * 1024
DRAIN_TIMEOUT_SECONDS = 1.0


def _configure_socket(client_socket: socket.socket, context: WorkerContext) -> None:
    timeout = context.config.socket_timeout
    client_socket.settimeout(timeout if timeout > 0 else None)


def _build_response(
    stream: BinaryIO, context: WorkerContext, client: str
) -> Optional[HttpResponse]:
    """Parse the request and route it; parse failures map to error responses."""
    try:
        request = read_request(stream, context.max_body_bytes)
    except MalformedRequest as error:
        WORKER_LOGGER.warning(
            "Malformed request received",
            extra={"event": "malformed_request", "client": client, "error": str(error)},
        )
        return bad_request_response()
    except RequestEntityTooLarge:
        WORKER_LOGGER.warning(
            "Request body size exceeded limit",
            extra={"event": "body_size_exceeded", "client": client},
        )
        return entity_too_large_response()
    except IncompleteBody as error:
        WORKER_LOGGER.warning(
            "Request body could not be read",
            extra={"event": "incomplete_body", "client": client, "error": str(error)},
        )
        return internal_error_response()

    if request is None:
        if WORKER_LOGGER.logger.isEnabledFor(logging.DEBUG):
            WORKER_LOGGER.debug(
                "Client closed without sending a request",
                extra={"event": "client_disconnected", "client": client},
            )
        return None

    WORKER_LOGGER.debug(
        "Request line parsed",
        extra={
            "event": "request_line_parsed",
            "method": request.method,
            "route": request.path,
        },
    )
    return route_request(request, context.config)


def _transmit(
    client_socket: socket.socket, response: HttpResponse, client: str
) -> None:
    """Send the response; a failed write gets a best-effort 400 before closing."""
    try:
        send_response(client_socket, response)
    except OSError as error:
        WORKER_LOGGER.warning(
            "Response write failed",
            extra={
                "event": "write_failed",
                "client": client,
                "error_type": type(error).__name__,
            },
        )
        try:
            send_response(client_socket, bad_request_response())
        except OSError:
            WORKER_LOGGER.debug(
                "Fallback response could not be sent",
                extra={"event": "fallback_write_failed", "client": client},
            )
    finally:
        response.close()


def _discard_input(client_socket: socket.socket) -> int:
    """Read and drop pending request bytes, up to DRAIN_LIMIT_BYTES."""
    discarded = 0
    try:
        client_socket.settimeout(DRAIN_TIMEOUT_SECONDS)
        while discarded < DRAIN_LIMIT_BYTES:
            data = client_socket.recv(min(4096, DRAIN_LIMIT_BYTES - discarded))
            if not data:
                break
            discarded += len(data)
    except OSError:
        pass
    return discarded


def _close_socket(
    client_socket: socket.socket, client: str, discard_input: bool = False
) -> None:
    try:
        client_socket.shutdown(socket.SHUT_WR)
    except OSError:
        pass
    if discard_input:
        discarded = _discard_input(client_socket)
        WORKER_LOGGER.debug(
            "Unread request body discarded",
            extra={"event": "input_discarded", "client": client, "bytes": discarded},
        )
    client_socket.close()
    WORKER_LOGGER.debug(
        "Socket closed", extra={"event": "socket_closed", "client": client}
    )


def handle_connection(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Serve a single request on the socket, then close it unconditionally."""
    client = f"{client_address[0]}:{client_address[1]}"
    with correlation_scope():
        started = time.monotonic()
        discard_input = False
        WORKER_LOGGER.debug(
            "Request processing started",
            extra={"event": "request_started", "client": client},
        )
        try:
            _configure_socket(client_socket, context)
            with client_socket.makefile("rb") as stream:
                response = _build_response(stream, context, client)
            if response is not None:
                discard_input = response.status_code == 413
                _transmit(client_socket, response, client)
                WORKER_LOGGER.info(
                    "Request complete",
                    extra={
                        "event": "request_complete",
                        "client": client,
                        "status_code": response.status_code,
                        "duration_ms": round((time.monotonic() - started) * 1000, 3),
                    },
                )
        except (ConnectionError, TimeoutError, OSError) as error:
            WORKER_LOGGER.error(
                "Error handling client connection",
                extra={
                    "event": "connection_error",
                    "client": client,
                    "error_type": type(error).__name__,
                },
            )
        except Exception as error:  # pylint: disable=broad-except
            WORKER_LOGGER.error(
                "Unexpected error in worker",
                extra={
                    "event": "worker_error",
                    "client": client,
                    "error_type": type(error).__name__,
                    "error": str(error),
                },
                exc_info=True,
            )
        finally:
            _close_socket(client_socket, client, discard_input)
            if context.lifecycle is not None:
                context.lifecycle.connection_finished()
