"""Context object shared across worker threads."""

from dataclasses import dataclass
from typing import Optional

from docserver.bootstrap.config import MAX_BODY_BYTES, ServerConfig
from docserver.lifecycle.state import ServerLifecycle


@dataclass(frozen=True)
class WorkerContext:
    """Read-only dependencies every worker needs."""

    config: ServerConfig
    lifecycle: Optional[ServerLifecycle] = None
    max_body_bytes: int = MAX_BODY_BYTES
