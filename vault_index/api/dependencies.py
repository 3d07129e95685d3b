from vault_index.application.index_service import IndexService
from vault_index.application.search_service import SearchService
from vault_index.config import Settings
from vault_index.infrastructure.embedding import Embedder
from vault_index.infrastructure.store_factory import VectorStore, create_embedder, create_vector_store
from vault_index.infrastructure.vault_reader import VaultReader
from vault_index.logging_config import get_logger

logger = get_logger(__name__)

_settings: Settings | None = None
_index_service: IndexService | None = None
_search_service: SearchService | None = None

# Shared infrastructure singletons (created once, shared across services)
_embedder: Embedder | None = None
_store: VectorStore | None = None


def get_settings() -> Settings:
    """Return the process settings, read from the environment on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def initialize_services() -> None:
    """Initialize all services at startup. Called from FastAPI lifespan."""
    get_index_service()
    get_search_service()


def shutdown_services() -> None:
    """Close backend clients and drop the singletons. Called from FastAPI lifespan."""
    global _embedder, _store, _index_service, _search_service  # noqa: PLW0603
    for resource in (_store, _embedder):
        close = getattr(resource, "close", None)
        if close is not None:
            close()
    _index_service = None
    _search_service = None
    _store = None
    _embedder = None


def _get_store() -> VectorStore:
    global _embedder, _store  # noqa: PLW0603
    if _store is None:
        settings = get_settings()
        _embedder = _embedder or create_embedder(settings)
        _store = create_vector_store(settings, embedder=_embedder)
    return _store


def get_active_backend() -> str | None:
    """Name of the selected store backend, or None before startup."""
    return _store.backend_name if _store is not None else None


def get_index_service() -> IndexService:
    """Return the singleton IndexService, creating it on first call."""
    global _index_service  # noqa: PLW0603
    if _index_service is None:
        settings = get_settings()
        logger.info("Initializing IndexService with vault: %s", settings.vault_path)

        store = _get_store()
        _index_service = IndexService(
            reader=VaultReader(settings.vault_path),
            store=store,
            embedder=_embedder,
            debounce_seconds=settings.debounce_seconds,
        )

    return _index_service


def get_search_service() -> SearchService:
    """Return the singleton SearchService, creating it on first call."""
    global _search_service  # noqa: PLW0603
    if _search_service is None:
        _search_service = SearchService(store=_get_store())
        logger.info("Initialized SearchService")

    return _search_service


def set_settings(settings: Settings | None) -> None:
    """Override the Settings singleton (for testing)."""
    global _settings  # noqa: PLW0603
    _settings = settings


def set_index_service(service: IndexService | None) -> None:
    """Override the IndexService singleton (for testing)."""
    global _index_service  # noqa: PLW0603
    _index_service = service


def set_search_service(service: SearchService | None) -> None:
    """Override the SearchService singleton (for testing)."""
    global _search_service  # noqa: PLW0603
    _search_service = service
