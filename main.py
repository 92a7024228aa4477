"""Static document HTTP server entry point."""

import signal
import sys

from docserver.bootstrap.config import build_config, parse_cli_args
from docserver.bootstrap.logging_setup import configure_logging, stop_logging
from docserver.domain.correlation_id import get_logger
from docserver.domain.errors import ConfigError
from docserver.lifecycle.state import ServerLifecycle
from docserver.transport.accept_loop import run_server

SERVER_LOGGER = get_logger("server")


def main(argv=None) -> int:
    """Load configuration, install signal handlers and run the accept loop."""
    args = parse_cli_args(sys.argv[1:] if argv is None else argv)
    configure_logging(args.log_level, args.log_destination, args.log_format == "json")

    try:
        config = build_config(args)
    except ConfigError as error:
        SERVER_LOGGER.critical(
            "Invalid configuration",
            extra={"event": "config_invalid", "error": str(error)},
        )
        stop_logging()
        return 1

    lifecycle = ServerLifecycle()

    def shutdown_handler(signum: int, _frame) -> None:
        SERVER_LOGGER.info(
            "Received shutdown signal", extra={"event": "signal", "signal": signum}
        )
        lifecycle.begin_draining()

    signal.signal(signal.SIGTERM, shutdown_handler)
    signal.signal(signal.SIGINT, shutdown_handler)

    SERVER_LOGGER.info(
        "Starting HTTP server",
        extra={
            "event": "server_starting",
            "host": config.host,
            "port": config.port,
            "document_root": config.document_root.as_posix(),
            "default_page": config.default_page,
            "max_workers": config.max_workers,
            "log_destination": args.log_destination,
            "log_level": args.log_level,
            "socket_timeout": config.socket_timeout,
            "shutdown_grace_seconds": config.shutdown_grace_seconds,
        },
    )
    try:
        run_server(config, lifecycle)
    except OSError as error:
        SERVER_LOGGER.critical(
            "Could not bind listening socket",
            extra={
                "event": "bind_failed",
                "host": config.host,
                "port": config.port,
                "error": str(error),
            },
        )
        return 1
    finally:
        stop_logging()
    return 0


if __name__ == "__main__":
    sys.exit(main())
