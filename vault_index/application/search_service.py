import time

from vault_index.domain.constants import SNIPPET_LENGTH
from vault_index.domain.models import SearchRequest, SearchResponse, SearchResultItem
from vault_index.infrastructure.store_factory import VectorStore
from vault_index.logging_config import get_logger

logger = get_logger(__name__)


def extract_snippet(text: str, max_length: int = SNIPPET_LENGTH) -> str:
    """Trim text to max_length, backing off to the last word boundary."""
    text = text.strip()
    if len(text) <= max_length:
        return text

    snippet = text[:max_length]
    last_space = snippet.rfind(" ")
    if last_space > max_length // 2:
        snippet = snippet[:last_space]
    return snippet.rstrip() + "..."


class SearchService:
    """Embed the query, search the active store, shape the response."""

    def __init__(self, store: VectorStore) -> None:
        self._store = store

    def search(self, request: SearchRequest) -> SearchResponse:
        """Execute a semantic search over indexed documents."""
        start = time.time()

        results = self._store.search(request.query, request.limit)

        items = [
            SearchResultItem(
                note_path=r.document.id,
                note_title=r.document.title,
                similarity=r.similarity,
                snippet=extract_snippet(r.document.content),
            )
            for r in results
        ]

        elapsed_ms = (time.time() - start) * 1000
        logger.info(
            "Search '%s' via %s: %d results in %.1fms",
            request.query,
            self._store.backend_name,
            len(items),
            elapsed_ms,
        )

        return SearchResponse(
            query=request.query,
            backend=self._store.backend_name,
            results=items,
            total_hits=len(items),
            search_time_ms=round(elapsed_ms, 1),
        )
