"""Unit tests for server lifecycle state."""

import logging
import threading

from docserver.lifecycle.state import ServerLifecycle


class TestServerLifecycle:
    """Tests for ServerLifecycle state management."""

    def test_initial_state(self):
        """A new lifecycle is running with nothing in flight."""
        lifecycle = ServerLifecycle()
        assert not lifecycle.should_stop()
        assert lifecycle.in_flight() == 0

    def test_begin_draining_sets_stop_flag_once(self, caplog):
        """Draining stops the accept loop and logs a single event."""
        caplog.set_level(logging.INFO)
        lifecycle = ServerLifecycle()
        lifecycle.begin_draining()
        lifecycle.begin_draining()
        assert lifecycle.should_stop()
        events = [getattr(r, "event", None) for r in caplog.records]
        assert events.count("shutdown_requested") == 1

    def test_connection_counting(self):
        """Queued connections are counted until they finish."""
        lifecycle = ServerLifecycle()
        lifecycle.connection_queued()
        lifecycle.connection_queued()
        assert lifecycle.in_flight() == 2
        lifecycle.connection_finished()
        assert lifecycle.in_flight() == 1
        lifecycle.connection_finished()
        lifecycle.connection_finished()
        assert lifecycle.in_flight() == 0

    def test_wait_for_idle_returns_immediately_when_idle(self):
        """No connections means nothing to wait for."""
        assert ServerLifecycle().wait_for_idle(0)

    def test_wait_for_idle_waits_for_running_connections(self):
        """Waiting ends when the last connection finishes."""
        lifecycle = ServerLifecycle()
        lifecycle.connection_queued()
        timer = threading.Timer(0.05, lifecycle.connection_finished)
        timer.start()
        try:
            assert lifecycle.wait_for_idle(5)
        finally:
            timer.cancel()
        assert lifecycle.in_flight() == 0

    def test_wait_for_idle_times_out_and_logs(self, caplog):
        """A stuck connection makes the wait give up with a warning."""
        caplog.set_level(logging.WARNING)
        lifecycle = ServerLifecycle()
        lifecycle.connection_queued()

        assert not lifecycle.wait_for_idle(0.05)

        record = next(
            r for r in caplog.records if getattr(r, "event", None) == "shutdown_timeout"
        )
        assert record.remaining_workers == 1
