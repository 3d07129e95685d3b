"""File-persisted vector store with exact brute-force cosine search."""

import os
import threading
from collections.abc import Sequence

import numpy as np
from pydantic import TypeAdapter, ValidationError

from vault_index.domain.errors import SearchUnavailableError, StoreCorruptedError
from vault_index.domain.models import Document, SearchResult
from vault_index.infrastructure.embedding import Embedder
from vault_index.logging_config import get_logger

logger = get_logger(__name__)

_DOCUMENTS = TypeAdapter(list[Document])


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between a and b. Zero for empty, zero-norm or mismatched vectors."""
    if len(a) != len(b) or len(a) == 0:
        return 0.0

    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


class LocalVectorStore:
    """One embedding per document, kept in memory and mirrored to a JSON file.

    The whole file is rewritten on every mutation, which is fine for the
    small vaults this fallback serves.
    """

    backend_name = "local"

    def __init__(self, store_path: str, embedder: Embedder | None) -> None:
        self._path = store_path
        self._embedder = embedder
        self._documents: dict[str, Document] = {}
        self._lock = threading.Lock()
        self._write_lock = threading.Lock()
        self._load()

    @property
    def path(self) -> str:
        return self._path

    def _embedder_ready(self) -> bool:
        return self._embedder is not None and self._embedder.is_configured()

    def _load(self) -> None:
        """Read the store file. A missing file is an empty store."""
        try:
            with open(self._path, "rb") as f:
                raw = f.read()
        except FileNotFoundError:
            logger.info("No local store at %s, starting empty", self._path)
            return
        except OSError as exc:
            raise StoreCorruptedError(f"failed to read store {self._path}: {exc}") from exc

        try:
            docs = _DOCUMENTS.validate_json(raw)
        except ValidationError as exc:
            raise StoreCorruptedError(f"failed to parse store {self._path}: {exc}") from exc

        with self._lock:
            for doc in docs:
                self._documents[doc.id] = doc
        logger.info("Loaded %d documents from %s", len(docs), self._path)

    def _save(self) -> None:
        """Write the current map to disk.

        Writers queue on the write lock before taking their snapshot, so the
        file always ends with the newest state. Disk I/O stays outside the
        map lock and does not block searches.
        """
        directory = os.path.dirname(self._path)

        with self._write_lock:
            with self._lock:
                docs = list(self._documents.values())
            data = _DOCUMENTS.dump_json(docs, indent=2)

            if directory:
                os.makedirs(directory, exist_ok=True)
            tmp_path = f"{self._path}.tmp"
            with open(tmp_path, "wb") as f:
                f.write(data)
            os.replace(tmp_path, self._path)

    def index(self, doc_id: str, title: str, content: str) -> None:
        """Add or replace a document. Without an embedder it is stored unsearchable."""
        embedding: list[float] | None = None
        if self._embedder_ready():
            assert self._embedder is not None
            embedding = self._embedder.embed_text(content)
        else:
            logger.debug("No embedder configured, storing %s without embedding", doc_id)

        doc = Document(id=doc_id, title=title, content=content, embedding=embedding)
        with self._lock:
            self._documents[doc_id] = doc
        self._save()

    def remove(self, doc_id: str) -> None:
        """Remove a document. Absent ids are not an error."""
        with self._lock:
            self._documents.pop(doc_id, None)
        self._save()

    def search(self, query: str, limit: int) -> list[SearchResult]:
        """Rank every embedded document by cosine similarity to the query."""
        if not self._embedder_ready():
            raise SearchUnavailableError("semantic search requires configured embedder")
        assert self._embedder is not None

        query_vector = self._embedder.embed_text(query)

        with self._lock:
            docs = list(self._documents.values())

        results = [
            SearchResult(document=doc, similarity=cosine_similarity(query_vector, doc.embedding))
            for doc in docs
            if doc.embedding
        ]
        # sorted() is stable, so equal scores keep insertion order
        results = sorted(results, key=lambda r: r.similarity, reverse=True)

        if limit > 0:
            results = results[:limit]
        return results

    def count(self) -> int:
        with self._lock:
            return len(self._documents)

    def has(self, doc_id: str) -> bool:
        with self._lock:
            return doc_id in self._documents
