import uuid
from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from qdrant_client import QdrantClient
from qdrant_client.http.exceptions import ApiException, ResponseHandlingException
from qdrant_client.models import (
    Distance,
    FieldCondition,
    Filter,
    MatchValue,
    PointStruct,
    VectorParams,
)

from vault_index.domain.constants import (
    DIMENSION_PROBE_TEXT,
    METADATA_TIMEOUT_SECONDS,
    QDRANT_COLLECTION_NAME,
    QDRANT_OVERFETCH_FACTOR,
    QDRANT_URL,
    SEARCH_TIMEOUT_SECONDS,
    TOP_K_DEFAULT,
)
from vault_index.domain.errors import (
    BackendError,
    BackendTimeoutError,
    DimensionMismatchError,
    SearchUnavailableError,
)
from vault_index.domain.models import Document, SearchResult
from vault_index.infrastructure.chunker import Chunker
from vault_index.infrastructure.embedding import Embedder
from vault_index.logging_config import get_logger

logger = get_logger(__name__)

_BACKEND = "qdrant"
_SCROLL_BATCH = 256


@contextmanager
def _backend_call(action: str) -> Iterator[None]:
    """Re-raise transport and protocol failures as BackendError."""
    try:
        yield
    except (ApiException, httpx.HTTPError) as exc:
        source = getattr(exc, "source", None) if isinstance(exc, ResponseHandlingException) else exc
        if isinstance(source, httpx.TimeoutException):
            raise BackendTimeoutError(_BACKEND, f"{action} timed out: {exc}") from exc
        raise BackendError(_BACKEND, f"{action} failed: {exc}") from exc


class QdrantVectorStore:
    """Vector store backed by Qdrant. A document is stored as one point per chunk."""

    backend_name = _BACKEND

    def __init__(
        self,
        embedder: Embedder,
        url: str = QDRANT_URL,
        api_key: str | None = None,
        collection_name: str = QDRANT_COLLECTION_NAME,
        chunker: Chunker | None = None,
        client: QdrantClient | None = None,
        metadata_timeout: int = METADATA_TIMEOUT_SECONDS,
        search_timeout: int = SEARCH_TIMEOUT_SECONDS,
    ) -> None:
        self._embedder = embedder
        self._collection = collection_name
        self._chunker = chunker or Chunker()
        self._search_timeout = search_timeout
        owns_client = client is None
        self.client = client or QdrantClient(
            url=url,
            api_key=api_key,
            timeout=max(metadata_timeout, search_timeout),
        )
        try:
            self.ensure_collection()
        except Exception:
            if owns_client:
                self.client.close()
            raise

    @property
    def collection_name(self) -> str:
        return self._collection

    # --- Collection lifecycle ---

    def ensure_collection(self) -> None:
        """Create the collection, or recreate it if its dimension is stale.

        Recreation is destructive: every indexed point is dropped and the
        vault has to be re-indexed.
        """
        dimension = self._probe_dimension()

        with _backend_call("check collection"):
            exists = self.client.collection_exists(self._collection)

        if exists:
            try:
                self._check_dimension(dimension)
                return
            except DimensionMismatchError as exc:
                logger.warning(
                    "%s - recreating collection. All indexed points are lost; "
                    "a full rebuild is required.",
                    exc,
                )
                with _backend_call("delete collection"):
                    self.client.delete_collection(self._collection)

        with _backend_call("create collection"):
            self.client.create_collection(
                collection_name=self._collection,
                vectors_config=VectorParams(size=dimension, distance=Distance.COSINE),
            )
        logger.info("Created collection: %s (dimension %d)", self._collection, dimension)

    def _probe_dimension(self) -> int:
        """Embed a probe string to learn the live vector size."""
        vector = self._embedder.embed_text(DIMENSION_PROBE_TEXT)
        return len(vector)

    def _check_dimension(self, expected: int) -> None:
        with _backend_call("get collection"):
            info = self.client.get_collection(self._collection)

        vectors = info.config.params.vectors
        actual = getattr(vectors, "size", None)
        if actual != expected:
            raise DimensionMismatchError(self._collection, expected, actual or 0)

    # --- Mutations ---

    def index(self, doc_id: str, title: str, content: str) -> None:
        """Replace all chunk points of a document with freshly embedded ones.

        Embedding happens before the old points are touched, so a failed
        re-index leaves the previous version searchable.
        """
        chunks = self._chunker.chunk(doc_id, content)
        embeddings = self._embedder.embed_batch([c.text for c in chunks]) if chunks else []

        try:
            self.remove(doc_id)
        except BackendError as exc:
            # Stale chunks beyond the new chunk count survive until the next index
            logger.warning("Failed to remove old chunks for %s: %s", doc_id, exc)

        if not chunks:
            logger.debug("Nothing to index for %s", doc_id)
            return

        points = [
            PointStruct(
                id=self._deterministic_id(f"{chunk.parent_id}#chunk{chunk.index}"),
                vector=embedding,
                payload={
                    "id": doc_id,
                    "title": title,
                    "content": chunk.text,
                    "chunk_index": chunk.index,
                    "total_chunks": chunk.total_chunks,
                    "is_chunked": chunk.total_chunks > 1,
                },
            )
            for chunk, embedding in zip(chunks, embeddings)
        ]

        with _backend_call("upsert points"):
            self.client.upsert(
                collection_name=self._collection,
                points=points,
                timeout=self._search_timeout * len(points),
            )
        logger.info("Indexed %s as %d chunk(s)", doc_id, len(points))

    def remove(self, doc_id: str) -> None:
        """Delete every chunk point of a document."""
        with _backend_call("delete points"):
            self.client.delete(
                collection_name=self._collection,
                points_selector=self._document_filter(doc_id),
            )
        logger.debug("Deleted chunks for document: %s", doc_id)

    # --- Queries ---

    def search(self, query: str, limit: int) -> list[SearchResult]:
        """Search chunks, then fold them back into one result per document.

        Over-fetches `limit * 3` points since several chunks of one document
        compete for slots. A document scores its best chunk, not an average.
        """
        if not self._embedder.is_configured():
            raise SearchUnavailableError("semantic search requires configured embedder")
        if limit <= 0:
            limit = TOP_K_DEFAULT

        query_vector = self._embedder.embed_text(query)

        with _backend_call("query points"):
            response = self.client.query_points(
                collection_name=self._collection,
                query=query_vector,
                limit=limit * QDRANT_OVERFETCH_FACTOR,
                with_payload=True,
                timeout=self._search_timeout,
            )

        scores: dict[str, float] = {}
        titles: dict[str, str] = {}
        texts: dict[str, list[str]] = {}
        for point in response.points:
            payload = point.payload or {}
            doc_id = payload.get("id", "")
            if not doc_id:
                continue
            score = point.score if point.score is not None else 0.0
            if doc_id not in scores:
                scores[doc_id] = score
                titles[doc_id] = payload.get("title", "")
                texts[doc_id] = []
            else:
                scores[doc_id] = max(scores[doc_id], score)
            texts[doc_id].append(payload.get("content", ""))

        results = [
            SearchResult(
                document=Document(id=doc_id, title=titles[doc_id], content="\n\n".join(texts[doc_id])),
                similarity=score,
            )
            for doc_id, score in scores.items()
        ]
        results = sorted(results, key=lambda r: r.similarity, reverse=True)
        return results[:limit]

    def count(self) -> int:
        """Return the number of distinct documents, not chunk points."""
        return len(self._indexed_ids())

    def has(self, doc_id: str) -> bool:
        """Check if a document has any chunks in the index."""
        with _backend_call("scroll points"):
            points, _ = self.client.scroll(
                collection_name=self._collection,
                scroll_filter=self._document_filter(doc_id),
                limit=1,
                with_payload=False,
                with_vectors=False,
            )
        return len(points) > 0

    def close(self) -> None:
        self.client.close()

    def _indexed_ids(self) -> set[str]:
        """Scroll the whole collection, collecting payload ids."""
        ids: set[str] = set()
        offset = None

        while True:
            with _backend_call("scroll points"):
                points, next_offset = self.client.scroll(
                    collection_name=self._collection,
                    limit=_SCROLL_BATCH,
                    offset=offset,
                    with_payload=["id"],
                    with_vectors=False,
                )
            for point in points:
                if point.payload and point.payload.get("id"):
                    ids.add(point.payload["id"])

            if next_offset is None:
                break
            offset = next_offset

        return ids

    @staticmethod
    def _document_filter(doc_id: str) -> Filter:
        return Filter(must=[FieldCondition(key="id", match=MatchValue(value=doc_id))])

    @staticmethod
    def _deterministic_id(key: str) -> str:
        """Generate a deterministic UUID from a string key."""
        return str(uuid.uuid5(uuid.NAMESPACE_URL, key))
