"""Shared HTTP type definitions to avoid circular imports."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

SUPPORTED_METHODS = frozenset({"GET", "POST", "HEAD", "TRACE"})
IMAGE_SUFFIXES = (".jpg", ".bmp", ".gif", ".png")

# Non-standard request header a client sets to "yes" to receive a chunked response.
CHUNKED_HINT_HEADER = "chunked"


@dataclass(frozen=True)
class HttpRequest:
    """Represents a parsed HTTP request."""

    method: str
    path: str
    target: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    raw_headers: tuple[tuple[str, str], ...] = ()
    query_parameters: dict[str, str] = field(default_factory=dict)
    body_parameters: dict[str, str] = field(default_factory=dict)
    content_length: int = 0
    use_chunked_response: bool = False

    @property
    def is_image(self) -> bool:
        """Return True when the path names a common image file."""
        return self.path.lower().endswith(IMAGE_SUFFIXES)

    @property
    def parameters(self) -> dict[str, str]:
        """Query parameters followed by body parameters; body values win."""
        merged = dict(self.query_parameters)
        merged.update(self.body_parameters)
        return merged


@dataclass
class HttpResponse:
    """Represents an HTTP response to be sent to a client."""

    status_line: str
    headers: dict[str, str]
    body: bytes = b""
    body_iter: Optional[Iterable[bytes]] = None
    content_length: Optional[int] = None
    use_chunked: bool = False
    head_only: bool = False

    @property
    def status_code(self) -> int:
        """Numeric status parsed from the status line."""
        return int(self.status_line.split(" ", 2)[1])

    def close(self) -> None:
        """Release whatever resource backs ``body_iter``."""
        closer = getattr(self.body_iter, "close", None)
        if callable(closer):
            closer()
