from fastapi import APIRouter, HTTPException

from vault_index.api.dependencies import get_search_service
from vault_index.domain.errors import BackendError, ConfigurationError
from vault_index.domain.models import SearchRequest, SearchResponse
from vault_index.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


@router.post(
    "",
    response_model=SearchResponse,
    summary="Semantic search over the vault",
    responses={
        503: {"description": "Embedding or vector store backend not available"},
    },
)
def search_notes(request: SearchRequest) -> SearchResponse:
    """Accept a natural language query and return ranked documents."""
    service = get_search_service()

    try:
        return service.search(request)
    except ConfigurationError as exc:
        logger.warning("Search unavailable for query '%s': %s", request.query, exc)
        raise HTTPException(
            status_code=503,
            detail={"error_code": "SEARCH_UNAVAILABLE", "detail": str(exc)},
        ) from exc
    except BackendError as exc:
        logger.exception("Search failed for query: %s", request.query)
        raise HTTPException(
            status_code=503,
            detail={"error_code": "BACKEND_ERROR", "backend": exc.backend, "detail": exc.message},
        ) from exc
