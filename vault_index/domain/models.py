from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from vault_index.domain.constants import MAX_TOP_K, TOP_K_DEFAULT


# --- Core Entities ---


class Document(BaseModel):
    """An indexed document. `id` is the vault-relative path."""

    id: str
    title: str
    content: str
    embedding: list[float] | None = None


class Chunk(BaseModel):
    """A bounded slice of a document's text."""

    text: str
    index: int
    total_chunks: int
    parent_id: str


class SearchResult(BaseModel):
    """A document paired with its similarity to the query."""

    document: Document
    similarity: float


class FileOp(str, Enum):
    """Settled file operation delivered by the watcher."""

    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"


@dataclass(frozen=True)
class WatchEvent:
    """A single file-system event for a vault-relative path."""

    path: str
    operation: FileOp


# --- Search Models ---


class SearchRequest(BaseModel):
    """Request body for POST /search."""

    query: str = Field(min_length=1)
    limit: int = Field(default=TOP_K_DEFAULT, ge=1, le=MAX_TOP_K)


class SearchResultItem(BaseModel):
    """A single search result."""

    note_path: str
    note_title: str
    similarity: float
    snippet: str = ""


class SearchResponse(BaseModel):
    """Response from POST /search."""

    query: str
    backend: str
    results: list[SearchResultItem]
    total_hits: int
    search_time_ms: float


# --- Index Rebuild ---


class IndexRebuildResponse(BaseModel):
    """Response from POST /index/rebuild."""

    status: str
    notes_indexed: int
    notes_failed: int
    time_taken_seconds: float


# --- Health ---


class HealthResponse(BaseModel):
    """Response from GET /health."""

    status: str
    timestamp: str
    backend: str | None = None


# --- Index Status ---


class IndexStatus(BaseModel):
    """Response from GET /index/status."""

    indexed_notes: int
    backend: str
    embedder_configured: bool
    last_indexed: datetime | None = None
    watcher_running: bool
