"""Document root containment for request paths.

Two independent checks guard the filesystem. ``clean_path`` is the textual
filter applied while parsing; ``resolve_target`` canonicalizes the joined path
and is the authoritative check before anything on disk is touched.
"""

import urllib.parse
from pathlib import Path

from docserver.domain.errors import ForbiddenPath

TRAVERSAL_SEQUENCE = "/../"


def clean_path(raw_path: str) -> str:
    """Strip every literal ``/../`` sequence, repeating until none remain."""
    cleaned = raw_path
    while TRAVERSAL_SEQUENCE in cleaned:
        cleaned = cleaned.replace(TRAVERSAL_SEQUENCE, "/")
    return cleaned


def is_within(root: Path, candidate: Path) -> bool:
    """Return True when candidate is root itself or lies beneath it."""
    return candidate == root or root in candidate.parents


def resolve_target(document_root: Path, url_path: str) -> Path:
    """Join a URL path onto the document root and verify it stays inside.

    The URL path is percent-decoded and appended textually, so encoded
    separators or dot segments surface here and are caught by the
    canonical comparison.
    """
    decoded = urllib.parse.unquote(url_path)
    if "\x00" in decoded:
        raise ForbiddenPath(url_path)

    root = document_root.resolve()
    target = Path(str(root) + decoded).resolve()
    if not is_within(root, target):
        raise ForbiddenPath(url_path)
    return target
