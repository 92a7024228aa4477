"""Integration tests for startup configuration and request logging."""

from __future__ import annotations

import json
import subprocess
import time
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import requests

from tests.utils.documents import populate_document_root
from tests.utils.http import reserve_port, wait_for_port
from tests.utils.process import launch_server, stop_server

pytestmark = pytest.mark.integration

if TYPE_CHECKING:
    from tests.conftest import ServerProcessInfo


def _load_records(log_file: Path) -> list[dict]:
    records = []
    if not log_file.exists():
        return records
    for line in log_file.read_text().splitlines():
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError:
            # Line still being written by the log listener.
            continue
    return records


def _wait_for_events(
    log_file: Path, event: str, count: int = 1, timeout: float = 5.0
) -> list[dict]:
    """Poll the JSON log until ``count`` records with ``event`` are present."""

    deadline = time.monotonic() + timeout
    while True:
        matching = [r for r in _load_records(log_file) if r.get("event") == event]
        if len(matching) >= count or time.monotonic() > deadline:
            return matching
        time.sleep(0.05)


def test_missing_document_root_exits_with_error(tmp_path: Path) -> None:
    """An invalid root stops startup with a non-zero status."""

    log_file = tmp_path / "server.log"
    process = launch_server(reserve_port(), tmp_path / "missing", log_file)
    try:
        process.wait(timeout=10)
    except subprocess.TimeoutExpired:
        stop_server(process)
        raise
    assert process.returncode == 1
    assert _wait_for_events(log_file, "config_invalid")


def test_config_file_supplies_settings(tmp_path: Path) -> None:
    """File settings apply, and command-line flags override them."""

    root = tmp_path / "site"
    root.mkdir()
    populate_document_root(root)
    (root / "start.html").write_text("<p>start</p>")
    config_file = tmp_path / "server.conf"
    config_file.write_text(
        "# test settings\n"
        f"root={(tmp_path / 'not-here').as_posix()}\n"
        "defaultPage=start.html\n"
        "maxThreads=2\n"
    )
    port = reserve_port()
    process = launch_server(
        port, root, tmp_path / "server.log", ["--config", config_file.as_posix()]
    )
    try:
        wait_for_port("127.0.0.1", port)
        response = requests.get(f"http://127.0.0.1:{port}/", timeout=5)
    finally:
        stop_server(process)

    assert response.status_code == 200
    assert response.text == "<p>start</p>"


def test_requests_are_logged_with_correlation_ids(
    server_process: "ServerProcessInfo",
) -> None:
    """Each connection's completion is logged with its own correlation ID."""

    base_url = server_process["base_url"]
    requests.get(f"{base_url}/hello.html", timeout=5)
    requests.get(f"{base_url}/missing.html", timeout=5)

    completed = _wait_for_events(
        server_process["log_file"], "request_complete", count=2
    )

    assert sorted(r["status_code"] for r in completed) == [200, 404]
    ids = {r["correlation_id"] for r in completed}
    assert len(ids) == 2
    assert "-" not in ids
    assert all(r["component"] == "transport.worker" for r in completed)
