"""Server configuration: CLI flags, environment defaults and key=value files."""

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from docserver.domain.errors import ConfigError


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value is not None else default


MAX_BODY_BYTES = _env_int("DOCSERVER_MAX_BODY_BYTES", 5 * 1024 * 1024)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_ROOT = "."
DEFAULT_PAGE = "index.html"
DEFAULT_MAX_WORKERS = 10
DEFAULT_SOCKET_TIMEOUT = 60
DEFAULT_SHUTDOWN_GRACE_SECONDS = 30

# Config file key -> ServerConfig field.
CONFIG_FILE_KEYS = {
    "host": "host",
    "port": "port",
    "root": "document_root",
    "defaultpage": "default_page",
    "maxthreads": "max_workers",
    "sockettimeout": "socket_timeout",
    "shutdowngraceseconds": "shutdown_grace_seconds",
}

ENV_VARIABLES = {
    "host": "DOCSERVER_HOST",
    "port": "DOCSERVER_PORT",
    "document_root": "DOCSERVER_ROOT",
    "default_page": "DOCSERVER_DEFAULT_PAGE",
    "max_workers": "DOCSERVER_MAX_WORKERS",
    "socket_timeout": "DOCSERVER_SOCKET_TIMEOUT",
    "shutdown_grace_seconds": "DOCSERVER_SHUTDOWN_GRACE_SECONDS",
}

DEFAULTS = {
    "host": DEFAULT_HOST,
    "port": DEFAULT_PORT,
    "document_root": DEFAULT_ROOT,
    "default_page": DEFAULT_PAGE,
    "max_workers": DEFAULT_MAX_WORKERS,
    "socket_timeout": DEFAULT_SOCKET_TIMEOUT,
    "shutdown_grace_seconds": DEFAULT_SHUTDOWN_GRACE_SECONDS,
}

INTEGER_FIELDS = {"port", "max_workers", "socket_timeout", "shutdown_grace_seconds"}


@dataclass(frozen=True)
class ServerConfig:
    """Validated, read-only settings shared by every worker."""

    host: str
    port: int
    document_root: Path
    default_page: str
    max_workers: int
    socket_timeout: int = DEFAULT_SOCKET_TIMEOUT
    shutdown_grace_seconds: int = DEFAULT_SHUTDOWN_GRACE_SECONDS

    def __post_init__(self) -> None:
        if not 1 <= self.port <= 65535:
            raise ConfigError(f"port must be between 1 and 65535, got {self.port}")
        if self.max_workers <= 0:
            raise ConfigError(f"max workers must be positive, got {self.max_workers}")
        if self.socket_timeout < 0:
            raise ConfigError("socket timeout must not be negative")
        if self.shutdown_grace_seconds < 0:
            raise ConfigError("shutdown grace period must not be negative")
        if not self.document_root.is_dir():
            raise ConfigError(f"document root is not a directory: {self.document_root}")
        page = self.default_page
        if not page or "/" in page or "\\" in page or page in {".", ".."}:
            raise ConfigError(f"default page must be a plain file name, got {page!r}")
        object.__setattr__(self, "document_root", self.document_root.resolve())


def read_config_file(path: Path) -> dict[str, str]:
    """Parse a key=value file; blank lines and '#' or ';' comments are skipped."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc

    values: dict[str, str] = {}
    for number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith(("#", ";")):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise ConfigError(f"{path}:{number}: expected key=value")
        field_name = CONFIG_FILE_KEYS.get(key.strip().lower())
        if field_name is None:
            raise ConfigError(f"{path}:{number}: unknown key {key.strip()!r}")
        values[field_name] = value.strip()
    return values


def _coerce(field_name: str, value) -> object:
    if field_name in INTEGER_FIELDS:
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(
                f"{field_name} must be an integer, got {value!r}"
            ) from exc
    if field_name == "document_root":
        return Path(value)
    return str(value)


def build_config(
    args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None
) -> ServerConfig:
    """Merge defaults, environment, config file and CLI flags into a ServerConfig.

    Later sources win: defaults, then ``DOCSERVER_*`` variables, then the
    file named by ``--config``, then flags given explicitly on the command line.
    """
    environ = os.environ if environ is None else environ
    merged: dict[str, object] = dict(DEFAULTS)
    for field_name, variable in ENV_VARIABLES.items():
        if variable in environ:
            merged[field_name] = environ[variable]
    if getattr(args, "config", None):
        merged.update(read_config_file(Path(args.config)))
    for field_name in DEFAULTS:
        value = getattr(args, field_name, None)
        if value is not None:
            merged[field_name] = value

    coerced = {name: _coerce(name, value) for name, value in merged.items()}
    return ServerConfig(**coerced)


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Return parsed CLI arguments for server configuration."""
    parser = argparse.ArgumentParser(description="Static document HTTP server")
    parser.add_argument("--config", help="Path to a key=value configuration file")
    parser.add_argument("--host", help=f"Bind address (default: {DEFAULT_HOST})")
    parser.add_argument(
        "--port", type=int, help=f"Listening port (default: {DEFAULT_PORT})"
    )
    parser.add_argument(
        "--root",
        dest="document_root",
        help="Document root directory (default: current directory)",
    )
    parser.add_argument(
        "--default-page",
        help=f"File served for directory requests (default: {DEFAULT_PAGE})",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        help=f"Worker pool size (default: {DEFAULT_MAX_WORKERS})",
    )
    parser.add_argument(
        "--socket-timeout",
        type=int,
        help="Per-connection socket timeout in seconds, 0 to disable",
    )
    parser.add_argument(
        "--shutdown-grace-seconds",
        type=int,
        help="Grace period in seconds for graceful shutdown",
    )
    default_log_level = os.getenv("DOCSERVER_LOG_LEVEL", "INFO").upper()
    default_destination = os.getenv("DOCSERVER_LOG_DESTINATION", "stdout")
    default_log_format = os.getenv("DOCSERVER_LOG_FORMAT", "json").lower()
    parser.add_argument(
        "--log-level",
        default=default_log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
    )
    parser.add_argument(
        "--log-destination",
        default=default_destination,
        help="stdout or a file path",
    )
    parser.add_argument(
        "--log-format",
        default=default_log_format,
        choices=["json", "text"],
        type=str.lower,
    )
    return parser.parse_args(argv)
