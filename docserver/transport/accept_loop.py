"""Main connection acceptance loop."""

import functools
import logging
import socket
from concurrent.futures import Future, ThreadPoolExecutor

from docserver.bootstrap.config import ServerConfig
from docserver.bootstrap.socket_factory import create_server_socket
from docserver.domain.correlation_id import get_logger
from docserver.lifecycle.state import ServerLifecycle
from docserver.transport.context import WorkerContext
from docserver.transport.worker import handle_connection

ACCEPT_LOGGER = get_logger("transport.accept")


def _release_if_cancelled(
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
    future: Future,
) -> None:
    """Close a connection whose queued work was cancelled before it ran."""
    if not future.cancelled():
        return
    client_socket.close()
    if context.lifecycle is not None:
        context.lifecycle.connection_finished()
    ACCEPT_LOGGER.warning(
        "Queued connection dropped at shutdown",
        extra={
            "event": "connection_abandoned",
            "client": f"{client_address[0]}:{client_address[1]}",
        },
    )


def _dispatch(
    executor: ThreadPoolExecutor,
    client_socket: socket.socket,
    client_address: tuple[str, int],
    context: WorkerContext,
) -> None:
    """Queue the connection for the next free worker; never blocks the loop."""
    if ACCEPT_LOGGER.logger.isEnabledFor(logging.DEBUG):
        ACCEPT_LOGGER.debug(
            "Client connection accepted",
            extra={
                "event": "client_accepted",
                "client": f"{client_address[0]}:{client_address[1]}",
            },
        )
    if context.lifecycle is not None:
        context.lifecycle.connection_queued()
    future = executor.submit(handle_connection, client_socket, client_address, context)
    future.add_done_callback(
        functools.partial(_release_if_cancelled, client_socket, client_address, context)
    )


def run_server(config: ServerConfig, lifecycle: ServerLifecycle) -> None:
    """Accept connections until shutdown, serving them on a bounded worker pool."""
    server_socket = create_server_socket(config)
    ACCEPT_LOGGER.info(
        "Server listening for connections",
        extra={
            "event": "server_listening",
            "host": config.host,
            "port": config.port,
            "max_workers": config.max_workers,
        },
    )

    context = WorkerContext(config=config, lifecycle=lifecycle)
    executor = ThreadPoolExecutor(
        max_workers=config.max_workers, thread_name_prefix="docserver-worker"
    )
    try:
        while not lifecycle.should_stop():
            try:
                client_socket, client_address = server_socket.accept()
            except socket.timeout:
                continue
            except OSError as error:
                if lifecycle.should_stop():
                    break
                ACCEPT_LOGGER.error(
                    "Socket accept failed",
                    extra={"event": "accept_error", "error_type": type(error).__name__},
                )
                continue
            _dispatch(executor, client_socket, client_address, context)
    finally:
        server_socket.close()
        ACCEPT_LOGGER.info(
            "Waiting for active connections to complete",
            extra={
                "event": "shutdown_waiting",
                "shutdown_grace_seconds": config.shutdown_grace_seconds,
            },
        )
        drained = lifecycle.wait_for_idle(config.shutdown_grace_seconds)
        executor.shutdown(wait=drained, cancel_futures=not drained)
        ACCEPT_LOGGER.info(
            "Server shutdown complete", extra={"event": "server_stopped"}
        )
