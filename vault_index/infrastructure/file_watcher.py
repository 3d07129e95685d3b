"""File system watcher for a document vault using watchdog."""

import os
import threading
from collections.abc import Callable, Sequence

from watchdog.events import (
    DirCreatedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from vault_index.domain.constants import DEBOUNCE_SECONDS, HIDDEN_PREFIX, WATCH_EXTENSIONS
from vault_index.domain.models import FileOp, WatchEvent
from vault_index.infrastructure.debouncer import Debouncer
from vault_index.logging_config import get_logger

logger = get_logger(__name__)


class _VaultEventHandler(FileSystemEventHandler):
    """Translate raw watchdog events into debounced WatchEvents."""

    def __init__(
        self,
        vault_path: str,
        extensions: Sequence[str],
        on_event: Callable[[WatchEvent], None],
    ) -> None:
        self._vault_path = vault_path
        self._extensions = tuple(extensions)
        self._on_event = on_event

    def _rel_path(self, abs_path: str | bytes) -> str:
        """Convert absolute path to vault-relative path."""
        return os.path.relpath(os.fsdecode(abs_path), self._vault_path)

    def _is_hidden(self, rel_path: str) -> bool:
        """True if any component of the path is hidden."""
        return any(
            part.startswith(HIDDEN_PREFIX) and part not in (".", "..")
            for part in rel_path.split(os.sep)
        )

    def _is_watched(self, rel_path: str) -> bool:
        return rel_path.endswith(self._extensions) and not self._is_hidden(rel_path)

    def _emit(self, abs_path: str | bytes, operation: FileOp) -> None:
        rel = self._rel_path(abs_path)
        if not self._is_watched(rel):
            return
        logger.debug("Raw event %s: %s", operation.value, rel)
        self._on_event(WatchEvent(path=rel, operation=operation))

    def on_created(self, event: FileCreatedEvent | DirCreatedEvent) -> None:
        if event.is_directory:
            rel = self._rel_path(event.src_path)
            if not self._is_hidden(rel):
                logger.info("Added new directory to watch: %s", rel)
            return
        self._emit(event.src_path, FileOp.CREATE)

    def on_modified(self, event: FileModifiedEvent) -> None:
        if event.is_directory:
            return
        self._emit(event.src_path, FileOp.MODIFY)

    def on_deleted(self, event: FileDeletedEvent) -> None:
        if event.is_directory:
            return
        self._emit(event.src_path, FileOp.DELETE)

    def on_moved(self, event: FileMovedEvent) -> None:
        if event.is_directory:
            return
        # A rename is a delete of the old path plus a create of the new one
        self._emit(event.src_path, FileOp.DELETE)
        self._emit(event.dest_path, FileOp.CREATE)


class FileWatcher:
    """Monitor a vault for document changes and report each settled change once.

    The callback gets the vault-relative path and the operation of the last
    event seen for that path. It runs on a timer thread, so callbacks for
    different paths may run concurrently.
    """

    def __init__(
        self,
        vault_path: str,
        callback: Callable[[str, FileOp], None],
        debounce_seconds: float = DEBOUNCE_SECONDS,
        extensions: Sequence[str] = WATCH_EXTENSIONS,
    ) -> None:
        self._vault_path = os.path.abspath(vault_path)
        self._callback = callback
        self._debouncer = Debouncer(callback=self._deliver, delay=debounce_seconds)
        self._handler = _VaultEventHandler(
            vault_path=self._vault_path,
            extensions=extensions,
            on_event=self._debouncer.trigger,
        )
        self._observer = Observer()
        self._lock = threading.Lock()
        self._running = False
        self._closed = False

    def _deliver(self, event: WatchEvent) -> None:
        self._callback(event.path, event.operation)

    def start(self) -> None:
        """Start watching the vault directory recursively."""
        with self._lock:
            if self._running:
                return
            if self._closed:
                raise RuntimeError("FileWatcher cannot be restarted after close()")
            self._observer.schedule(self._handler, self._vault_path, recursive=True)
            self._observer.start()
            self._running = True
        logger.info("Watching vault for changes: %s", self._vault_path)

    def close(self) -> None:
        """Cancel pending callbacks and stop the observer. Safe to call repeatedly."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            was_running = self._running
            self._running = False

        self._debouncer.cancel_all()
        if was_running:
            self._observer.stop()
            self._observer.join(timeout=5)
        logger.info("File watcher stopped")

    @property
    def is_running(self) -> bool:
        """Return whether the watcher is currently active."""
        return self._running

    @property
    def pending_count(self) -> int:
        """Number of paths waiting for their debounce window to elapse."""
        return self._debouncer.pending_count
