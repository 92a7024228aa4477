"""Unit tests for document root containment."""

import os
from pathlib import Path

import pytest

from docserver.domain.errors import ForbiddenPath
from docserver.domain.sandbox import clean_path, resolve_target


def test_clean_path_removes_every_traversal_sequence():
    """Stripping repeats until no literal /../ remains."""
    assert clean_path("/a/../../b/../c") == "/a/b/c"
    assert clean_path("/plain/path") == "/plain/path"
    assert "/../" not in clean_path("/....//../../..//")


def test_resolve_target_allows_paths_inside_root(document_root: Path):
    """Ordinary paths resolve beneath the root."""
    assert resolve_target(document_root, "/hello.html") == (
        document_root / "hello.html"
    ).resolve()
    assert resolve_target(document_root, "/") == document_root.resolve()
    assert resolve_target(document_root, "/docs/../hello.html") == (
        document_root / "hello.html"
    ).resolve()


def test_resolve_target_decodes_percent_escapes(document_root: Path):
    """Encoded names resolve to the real file."""
    (document_root / "with space.html").write_text("x")
    assert resolve_target(document_root, "/with%20space.html").name == "with space.html"


@pytest.mark.parametrize(
    "url_path",
    [
        "/..",
        "/%2e%2e/%2e%2e/etc/passwd",
        "/..%2f..%2fetc/passwd",
        "/docs/%2E%2E/%2E%2E/secret",
        "/hello.html%00.png",
    ],
)
def test_resolve_target_refuses_escapes(document_root: Path, url_path: str):
    """Anything canonicalizing outside the root is forbidden."""
    with pytest.raises(ForbiddenPath):
        resolve_target(document_root, url_path)


def test_resolve_target_refuses_sibling_prefix(tmp_path: Path):
    """A sibling directory sharing the root's name prefix is outside the root."""
    root = tmp_path / "www"
    root.mkdir()
    (tmp_path / "www-private").mkdir()
    with pytest.raises(ForbiddenPath):
        resolve_target(root, "-private")


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
def test_resolve_target_refuses_symlink_out_of_root(tmp_path: Path):
    """Symlinks are followed before the containment check."""
    root = tmp_path / "www"
    root.mkdir()
    secret = tmp_path / "secret.txt"
    secret.write_text("classified")
    (root / "link.txt").symlink_to(secret)
    with pytest.raises(ForbiddenPath):
        resolve_target(root, "/link.txt")
