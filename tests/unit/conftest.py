"""Shared fixtures for unit tests."""

import logging
from pathlib import Path

import pytest

from docserver.bootstrap.config import ServerConfig
from tests.utils.documents import populate_document_root


@pytest.fixture(autouse=True)
def enable_log_propagation():
    """Ensure logs propagate to root so caplog can catch them."""
    logger = logging.getLogger("docserver")
    old_propagate = logger.propagate
    logger.propagate = True
    yield
    logger.propagate = old_propagate


@pytest.fixture(name="document_root")
def document_root_fixture(tmp_path: Path) -> Path:
    """A document root holding the standard fixture documents."""
    root = tmp_path / "www"
    root.mkdir()
    populate_document_root(root)
    return root


@pytest.fixture(name="config")
def config_fixture(document_root: Path) -> ServerConfig:
    """Server configuration pointing at the fixture document root."""
    return ServerConfig(
        host="127.0.0.1",
        port=8080,
        document_root=document_root,
        default_page="index.html",
        max_workers=2,
        socket_timeout=5,
        shutdown_grace_seconds=1,
    )
