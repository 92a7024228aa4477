"""Fixture documents written into temporary document roots."""

from pathlib import Path

# Bytes covering every value, so any text decoding on the way out corrupts them.
BINARY_PAYLOAD = bytes(range(256)) * 12 + b"\r\n\x00tail"


def populate_document_root(root: Path) -> None:
    """Write the documents the tests request."""

    (root / "index.html").write_text("<h1>home</h1>", encoding="utf-8")
    (root / "hello.html").write_text("<p>hello world</p>", encoding="utf-8")
    (root / "image.png").write_bytes(BINARY_PAYLOAD)
    docs = root / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<h1>docs</h1>", encoding="utf-8")
    (root / "empty").mkdir()
