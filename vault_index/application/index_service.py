import threading
import time
from datetime import datetime, timezone

from vault_index.domain.constants import DEBOUNCE_SECONDS
from vault_index.domain.errors import VaultIndexError
from vault_index.domain.models import FileOp, IndexRebuildResponse, IndexStatus
from vault_index.infrastructure.embedding import Embedder
from vault_index.infrastructure.file_watcher import FileWatcher
from vault_index.infrastructure.store_factory import VectorStore
from vault_index.infrastructure.vault_reader import VaultReader
from vault_index.logging_config import get_logger

logger = get_logger(__name__)


class IndexService:
    """Keep the vector store in sync with the vault."""

    def __init__(
        self,
        reader: VaultReader,
        store: VectorStore,
        embedder: Embedder | None = None,
        debounce_seconds: float = DEBOUNCE_SECONDS,
    ) -> None:
        self._reader = reader
        self._store = store
        self._embedder = embedder
        self._debounce_seconds = debounce_seconds
        self._last_indexed: datetime | None = None
        self._rebuild_lock = threading.Lock()
        self._watcher: FileWatcher | None = None

    @property
    def store(self) -> VectorStore:
        return self._store

    def start_watcher(self) -> None:
        """Create and start the debounced file watcher."""
        if self._watcher is not None and self._watcher.is_running:
            return

        self._watcher = FileWatcher(
            vault_path=self._reader.vault_path,
            callback=self._on_file_event,
            debounce_seconds=self._debounce_seconds,
        )
        self._watcher.start()
        logger.info("Auto-indexing enabled for vault: %s", self._reader.vault_path)

    def stop_watcher(self) -> None:
        """Stop the file watcher and cancel pending debounce timers."""
        if self._watcher is not None:
            self._watcher.close()
            self._watcher = None
        logger.info("Watcher stopped")

    def _on_file_event(self, doc_id: str, operation: FileOp) -> None:
        """Handle a settled file change."""
        if operation is FileOp.DELETE:
            logger.info("Deleted note detected: %s", doc_id)
            self.remove_document(doc_id)
            return

        logger.info("%s note detected: %s", "New" if operation is FileOp.CREATE else "Modified", doc_id)
        try:
            self.index_document(doc_id)
        except VaultIndexError as exc:
            logger.warning("Failed to index %s: %s", doc_id, exc)

    def index_document(self, doc_id: str) -> None:
        """Read one document from the vault and (re)index it."""
        content = self._reader.read_document(doc_id)
        title = self._reader.extract_title(doc_id, content)
        self._store.index(doc_id, title, content)
        self._last_indexed = datetime.now(tz=timezone.utc)
        logger.info("Indexed via %s: %s", self._store.backend_name, doc_id)

    def remove_document(self, doc_id: str) -> None:
        """Remove a document from the index."""
        self._store.remove(doc_id)
        logger.info("Removed from index via %s: %s", self._store.backend_name, doc_id)

    def rebuild_index(self) -> IndexRebuildResponse | None:
        """Index every document in the vault. Returns None if a rebuild is already running."""
        if not self._rebuild_lock.acquire(blocking=False):
            return None

        try:
            start_time = time.time()
            indexed = 0
            failed = 0

            documents = self._reader.list_documents()
            for i, doc_id in enumerate(documents, start=1):
                logger.debug("[%d/%d] Indexing: %s", i, len(documents), doc_id)
                try:
                    self.index_document(doc_id)
                except VaultIndexError as exc:
                    logger.warning("Failed to index %s: %s", doc_id, exc)
                    failed += 1
                    continue
                indexed += 1

            elapsed = time.time() - start_time
            logger.info(
                "Rebuild complete via %s: %d indexed, %d failed in %.1fs",
                self._store.backend_name,
                indexed,
                failed,
                elapsed,
            )
            return IndexRebuildResponse(
                status="success" if failed == 0 else "partial",
                notes_indexed=indexed,
                notes_failed=failed,
                time_taken_seconds=round(elapsed, 1),
            )
        finally:
            self._rebuild_lock.release()

    def get_status(self) -> IndexStatus:
        """Return current index statistics."""
        return IndexStatus(
            indexed_notes=self._store.count(),
            backend=self._store.backend_name,
            embedder_configured=self._embedder is not None and self._embedder.is_configured(),
            last_indexed=self._last_indexed,
            watcher_running=self._watcher is not None and self._watcher.is_running,
        )
