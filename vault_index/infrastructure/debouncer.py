"""Debouncer that groups rapid file-system events into a single callback."""

import threading
from collections.abc import Callable

from vault_index.domain.constants import DEBOUNCE_SECONDS
from vault_index.domain.models import WatchEvent
from vault_index.logging_config import get_logger

logger = get_logger(__name__)


class Debouncer:
    """Coalesce rapid events per path into a single callback after a quiet period.

    Each `trigger(event)` cancels the pending timer for `event.path` and
    starts a new one. When a timer fires, the callback receives the event
    that last reset it, so a modify followed by a delete delivers the delete.
    Timers for different paths run independently and their callbacks may
    overlap.
    """

    def __init__(
        self,
        callback: Callable[[WatchEvent], None],
        delay: float = DEBOUNCE_SECONDS,
    ) -> None:
        self._callback = callback
        self._delay = delay
        self._timers: dict[str, threading.Timer] = {}
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._delivering: set[threading.Thread] = set()
        self._closed = False

    def trigger(self, event: WatchEvent) -> None:
        """Schedule (or reschedule) the callback for the event's path."""
        with self._lock:
            if self._closed:
                return

            existing = self._timers.get(event.path)
            if existing is not None:
                existing.cancel()
                logger.debug("Debounce reset for: %s (%s)", event.path, event.operation.value)

            timer = threading.Timer(self._delay, self._fire, args=(event,))
            timer.daemon = True
            self._timers[event.path] = timer
            timer.start()

    def _fire(self, event: WatchEvent) -> None:
        """Execute the callback and clean up the timer entry."""
        with self._lock:
            # A timer cancelled after it started waiting on the lock must not deliver
            if self._closed or self._timers.get(event.path) is not threading.current_thread():
                return
            del self._timers[event.path]
            self._delivering.add(threading.current_thread())

        logger.info("Debounce fired for: %s (%s)", event.path, event.operation.value)
        try:
            self._callback(event)
        except Exception:
            logger.exception("Debounce callback failed for: %s", event.path)
        finally:
            with self._lock:
                self._delivering.discard(threading.current_thread())
                self._idle.notify_all()

    def cancel_all(self) -> None:
        """Cancel all pending timers and refuse new ones. Called during shutdown.

        Returns only after callbacks already in progress have finished, so no
        callback runs once this returns. A callback that calls this itself
        does not wait on its own delivery.
        """
        current = threading.current_thread()
        with self._lock:
            self._closed = True
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()
            self._idle.wait_for(lambda: not (self._delivering - {current}))
        logger.info("All debounce timers cancelled")

    @property
    def pending_count(self) -> int:
        """Return the number of paths with pending timers."""
        with self._lock:
            return len(self._timers)
