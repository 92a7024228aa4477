"""Shared pytest fixtures for integration and unit tests."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import TYPE_CHECKING, Generator, TypedDict

import pytest

from tests.utils.documents import populate_document_root
from tests.utils.http import reserve_port, wait_for_port
from tests.utils.process import launch_server, stop_server

if TYPE_CHECKING:
    from _pytest.tmpdir import TempPathFactory


class ServerProcessInfo(TypedDict):
    """Metadata describing a running server fixture instance."""

    base_url: str
    host: str
    port: int
    document_root: Path
    process: subprocess.Popen
    log_file: Path


def _serve(
    tmp_path_factory: "TempPathFactory", extra_args: list[str] | None = None
) -> Generator[ServerProcessInfo, None, None]:
    host = "127.0.0.1"
    port = reserve_port(host)
    document_root = tmp_path_factory.mktemp("docroot")
    populate_document_root(document_root)
    log_file = tmp_path_factory.mktemp("logs") / "server.log"

    process = launch_server(port, document_root, log_file, extra_args)
    try:
        wait_for_port(host, port)
    except RuntimeError:
        stop_server(process)
        raise

    yield {
        "base_url": f"http://{host}:{port}",
        "host": host,
        "port": port,
        "document_root": document_root,
        "process": process,
        "log_file": log_file,
    }
    stop_server(process)


@pytest.fixture(name="server_process")
def _server_process(
    tmp_path_factory: "TempPathFactory",
) -> Generator[ServerProcessInfo, None, None]:
    """Launch the server over a populated document root."""

    yield from _serve(tmp_path_factory)


@pytest.fixture(name="single_worker_server")
def _single_worker_server(
    tmp_path_factory: "TempPathFactory",
) -> Generator[ServerProcessInfo, None, None]:
    """Launch the server with a worker pool of one."""

    yield from _serve(tmp_path_factory, ["--max-workers", "1"])


@pytest.fixture()
def base_url(server_process: ServerProcessInfo) -> str:
    """Expose the running server base URL to integration tests."""

    return server_process["base_url"]
