"""Server lifecycle state: shutdown signalling and in-flight connection tracking."""

import threading

from docserver.domain.correlation_id import get_logger

LIFECYCLE_LOGGER = get_logger("lifecycle")


class ServerLifecycle:
    """Tracks whether the server should stop and how many connections are in flight."""

    def __init__(self) -> None:
        self._stop_event = threading.Event()
        self._idle = threading.Condition()
        self._in_flight = 0

    def should_stop(self) -> bool:
        """Check if the accept loop should stop taking new connections."""
        return self._stop_event.is_set()

    def begin_draining(self) -> None:
        """Stop accepting; connections already queued or running still complete."""
        if not self._stop_event.is_set():
            self._stop_event.set()
            LIFECYCLE_LOGGER.info(
                "Beginning graceful shutdown", extra={"event": "shutdown_requested"}
            )

    def connection_queued(self) -> None:
        """Count a connection handed to the worker pool."""
        with self._idle:
            self._in_flight += 1

    def connection_finished(self) -> None:
        """Count a connection whose socket has been closed."""
        with self._idle:
            if self._in_flight > 0:
                self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.notify_all()

    def in_flight(self) -> int:
        """Return the number of queued or running connections."""
        with self._idle:
            return self._in_flight

    def wait_for_idle(self, timeout: float) -> bool:
        """Block until no connection is in flight; False if the timeout expires."""
        with self._idle:
            drained = self._idle.wait_for(lambda: self._in_flight == 0, timeout)
            remaining = self._in_flight
        if not drained:
            LIFECYCLE_LOGGER.warning(
                "Shutdown timeout exceeded",
                extra={"event": "shutdown_timeout", "remaining_workers": remaining},
            )
        return drained
