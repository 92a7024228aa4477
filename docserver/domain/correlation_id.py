"""Per-connection correlation IDs carried through contextvars."""

import contextlib
import contextvars
import logging
import uuid
from typing import Any, Iterator, MutableMapping, Optional

LOGGER_NAMESPACE = "docserver"

_correlation_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "correlation_id", default=None
)


def generate_correlation_id() -> str:
    """Generate a short random connection identifier."""
    return uuid.uuid4().hex[:16]


def get_correlation_id() -> Optional[str]:
    """Retrieve the current correlation ID from context."""
    return _correlation_id_var.get()


@contextlib.contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation ID for the duration of one connection."""
    value = correlation_id or generate_correlation_id()
    token = _correlation_id_var.set(value)
    try:
        yield value
    finally:
        _correlation_id_var.reset(token)


def get_logger(name: str) -> "CorrelationLoggerAdapter":
    """Return an adapter for ``docserver.<name>``."""
    return CorrelationLoggerAdapter(logging.getLogger(f"{LOGGER_NAMESPACE}.{name}"), {})


class CorrelationLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that injects the correlation ID and component into records."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        extra = dict(kwargs.get("extra") or {})

        correlation_id = get_correlation_id()
        extra["correlation_id"] = correlation_id if correlation_id is not None else "-"

        logger_name = self.logger.name
        prefix = f"{LOGGER_NAMESPACE}."
        if logger_name.startswith(prefix):
            logger_name = logger_name[len(prefix) :]
        extra["component"] = logger_name

        kwargs["extra"] = extra
        return msg, kwargs
