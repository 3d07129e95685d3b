from fastapi import APIRouter, HTTPException

from vault_index.api.dependencies import get_index_service
from vault_index.domain.models import IndexRebuildResponse, IndexStatus

router = APIRouter(prefix="/index", tags=["index"])


@router.post(
    "/rebuild",
    response_model=IndexRebuildResponse,
    summary="Trigger full vault re-index",
    responses={409: {"description": "Re-index already in progress"}},
)
def rebuild_index() -> IndexRebuildResponse:
    """Re-index every document in the vault (manual trigger)."""
    service = get_index_service()
    result = service.rebuild_index()

    if result is None:
        raise HTTPException(
            status_code=409,
            detail={
                "error_code": "REINDEX_IN_PROGRESS",
                "detail": "A re-index operation is already running.",
            },
        )

    return result


@router.get(
    "/status",
    response_model=IndexStatus,
    summary="Get index backend and statistics",
)
def get_index_status() -> IndexStatus:
    """Return document count, active backend and watcher state."""
    service = get_index_service()
    return service.get_status()
