from datetime import datetime, timezone

from fastapi import APIRouter

from vault_index.api.dependencies import get_active_backend
from vault_index.domain.models import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse, summary="Liveness and active store backend")
def health_check() -> HealthResponse:
    """Report liveness and which vector store backend was selected."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(tz=timezone.utc).isoformat(),
        backend=get_active_backend(),
    )
