from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from vault_index.api.dependencies import (
    get_active_backend,
    get_index_service,
    get_settings,
    initialize_services,
    shutdown_services,
)
from vault_index.api.health_routes import router as health_router
from vault_index.api.index_routes import router as index_router
from vault_index.api.search_routes import router as search_router
from vault_index.logging_config import get_logger, setup_logging

setup_logging(get_settings().log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Select backends on startup, start the watcher if enabled, release everything on shutdown."""
    settings = get_settings()
    logger.info("Starting up: vault %s", settings.vault_path)
    initialize_services()
    logger.info("Active vector store backend: %s", get_active_backend())

    index_service = get_index_service()
    if settings.enable_auto_index:
        index_service.start_watcher()
    else:
        logger.info("Auto-indexing disabled (ENABLE_AUTO_INDEX=false)")

    yield

    logger.info("Shutting down")
    index_service.stop_watcher()
    shutdown_services()


app = FastAPI(
    title="Vault Index",
    description="Semantic indexing and retrieval over a folder of markdown notes",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(index_router)
app.include_router(search_router)
