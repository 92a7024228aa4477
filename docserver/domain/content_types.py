"""File extension to Content-Type mapping."""

from pathlib import PurePath
from typing import Union

DEFAULT_CONTENT_TYPE = "application/octet-stream"

CONTENT_TYPES = {
    "html": "text/html",
    "jpg": "image/jpg",
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "ico": "image/x-icon",
}


def content_type_for(filename: Union[str, PurePath]) -> str:
    """Return the MIME type for the extension after the last dot of the file name."""
    name = PurePath(filename).name
    _, dot, extension = name.rpartition(".")
    if not dot:
        return DEFAULT_CONTENT_TYPE
    return CONTENT_TYPES.get(extension.lower(), DEFAULT_CONTENT_TYPE)
