"""Backend selection for embedders and vector stores."""

from typing import Protocol

from vault_index.config import Settings
from vault_index.domain.models import SearchResult
from vault_index.infrastructure.chunker import Chunker
from vault_index.infrastructure.embedding import Embedder, OllamaEmbedder, OpenAIEmbedder
from vault_index.infrastructure.local_store import LocalVectorStore
from vault_index.infrastructure.qdrant_store import QdrantVectorStore
from vault_index.logging_config import get_logger

logger = get_logger(__name__)


class VectorStore(Protocol):
    """Capability set shared by every vector store backend."""

    backend_name: str

    def index(self, doc_id: str, title: str, content: str) -> None: ...

    def remove(self, doc_id: str) -> None: ...

    def search(self, query: str, limit: int) -> list[SearchResult]: ...

    def count(self) -> int: ...

    def has(self, doc_id: str) -> bool: ...


def create_embedder(settings: Settings) -> Embedder:
    """Pick an embedding backend. Priority: Ollama (if enabled and reachable) > OpenAI.

    When nothing is configured the unconfigured OpenAI embedder is returned;
    it raises on first use rather than here.
    """
    if settings.use_ollama:
        ollama = OllamaEmbedder(
            endpoint=settings.ollama_endpoint,
            model=settings.ollama_model,
            timeout=settings.embedding_timeout,
        )
        if ollama.is_configured():
            logger.info("Using Ollama embeddings (local): %s", settings.ollama_model)
            return ollama
        logger.warning("Ollama not reachable at %s, trying OpenAI", settings.ollama_endpoint)

    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None
    openai = OpenAIEmbedder(
        api_key=api_key,
        endpoint=settings.openai_endpoint,
        model=settings.openai_model,
        timeout=settings.embedding_timeout,
    )
    if openai.is_configured():
        logger.info("Using OpenAI embeddings: %s", settings.openai_model)
    else:
        logger.warning("No embedder configured; semantic search is unavailable")
    return openai


def create_vector_store(settings: Settings, embedder: Embedder | None = None) -> VectorStore:
    """Try Qdrant first and fall back to the local JSON store if it cannot be set up.

    Only construction failures fall back. Once chosen, a backend stays in
    use until the process restarts.
    """
    if embedder is None:
        embedder = create_embedder(settings)

    if settings.qdrant_enabled:
        qdrant_key = settings.qdrant_api_key.get_secret_value() if settings.qdrant_api_key else None
        try:
            store = QdrantVectorStore(
                embedder=embedder,
                url=settings.qdrant_url,
                api_key=qdrant_key,
                collection_name=settings.qdrant_collection,
                chunker=Chunker(settings.chunk_max_size, settings.chunk_overlap),
                metadata_timeout=settings.metadata_timeout,
                search_timeout=settings.search_timeout,
            )
        except Exception as exc:
            logger.warning("Qdrant unavailable (%s), falling back to local store", exc)
        else:
            logger.info("Using Qdrant vector store: %s", settings.qdrant_collection)
            return store

    local = LocalVectorStore(settings.resolved_store_path, embedder)
    logger.info("Using local vector store: %s", local.path)
    return local
